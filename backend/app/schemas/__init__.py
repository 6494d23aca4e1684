"""Pydantic Schemas — write validation for every resource.

Invariants:
    - Create schemas describe a complete document; update schemas a partial one
    - Unknown keys are rejected on every schema

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
    - Validated inside the store, so a rejected write surfaces as DocumentValidationError
"""
