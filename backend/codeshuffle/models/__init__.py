"""ORM Models - SQLAlchemy declarative models for catalog, roster, ledger and settings.

Invariants:
    - All models inherit from Base (db/base.py)
    - Team is the per-team document: members, slots and code live in one row

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from codeshuffle.models.problem import Problem  # noqa: F401
from codeshuffle.models.team import Team  # noqa: F401
from codeshuffle.models.submission import Submission  # noqa: F401
from codeshuffle.models.event_settings import EventSettingsRow  # noqa: F401
