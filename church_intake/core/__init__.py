"""Core Layer — pure domain rules: token checks, form checks, transitions, audit policy.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO and no async; the current time is always passed in

Design Decisions:
    - Functional core, imperative shell: services do the IO around these rules
"""
