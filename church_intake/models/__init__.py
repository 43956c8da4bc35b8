"""ORM Models — SQLAlchemy declarative models for tokens, registrations, members, audit.

Invariants:
    - All models inherit from Base (db/base.py)
    - Tokens and pending registrations are never deleted

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from church_intake.models.registration_token import RegistrationToken  # noqa: F401
from church_intake.models.pending_registration import PendingRegistration  # noqa: F401
from church_intake.models.member import Member  # noqa: F401
from church_intake.models.audit_entry import AuditLogEntry  # noqa: F401
