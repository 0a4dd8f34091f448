"""Data access layer repositories.

Each module provides async functions over the ORM models in
`signaldesk.database.orm`, opening its own session via `get_session()`.
"""

from . import filtering_stats_orm
from . import instruments_orm
from . import news_orm
from . import opinions_orm


__all__ = [
    "filtering_stats_orm",
    "instruments_orm",
    "news_orm",
    "opinions_orm",
]
