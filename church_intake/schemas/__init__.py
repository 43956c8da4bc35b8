"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate shape at the HTTP boundary; business rules stay in services
    - Domain enums from core/ are used for enum fields
"""
