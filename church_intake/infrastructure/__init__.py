"""Infrastructure Layer — SQLAlchemy stores, session management, structured logging.

Invariants:
    - Stores map ORM rows to frozen core records at the boundary
    - SQLAlchemy exceptions are mapped to DatabaseError before leaving this layer
"""
