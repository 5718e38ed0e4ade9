"""FundFlow: donation recording and campaign totals service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
