"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (client input, API responses)
    - Domain enums from core/ used for enum fields
"""
