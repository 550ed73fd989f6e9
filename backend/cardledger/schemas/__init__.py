"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate shape at the system boundary; lifecycle rules stay in core/
    - Response models read ORM rows and AuditEntry dataclasses via from_attributes

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
