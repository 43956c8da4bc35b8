"""Services Layer — token issuing, intake, duplicate hints, approval and bulk approval.

Invariants:
    - Services depend on the Protocols in core/repository_protocols, never on SQLAlchemy
    - Expected failures return Err(IntakeError); only storage faults raise
"""
