"""ORM Models: SQLAlchemy declarative models for the donation domain.

Invariants:
    - All models inherit from Base (db/base.py)
    - Campaign is the aggregate root; donations, activities and coupons reference it

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata knows every table (foreign keys,
      create_all in tests, alembic autogenerate)
"""

from fundflow.models.campaign import Campaign  # noqa: F401
from fundflow.models.donation import Donation  # noqa: F401
from fundflow.models.activity import Activity  # noqa: F401
from fundflow.models.coupon import Coupon  # noqa: F401
