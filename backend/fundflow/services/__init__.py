"""Services Layer: transaction orchestration, entry points, and notification collaborators.

Invariants:
    - Only DonationTransaction commits donation rows
    - Notification collaborators commit in their own sessions, after the donation commit
"""
