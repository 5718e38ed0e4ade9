"""Core Layer: pure donation domain logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, repositories/ or db/
    - All functions are pure and deterministic (except reference/code randomness)
"""
