"""Repositories: SQLAlchemy implementations of the core repository protocols.

Invariants:
    - Repositories flush but never commit; the transaction orchestrator owns the commit
"""
