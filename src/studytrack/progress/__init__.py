"""Progress aggregation for StudyTrack.

Provides daily rollups, weekly series, calendar heatmap data and the
dashboard summary.
"""

from .cache import InMemoryRollupCache
from .calendar import CalendarEntry, CalendarRangeBuilder, heatmap_level
from .dashboard import Dashboard, DashboardService
from .rollup import (
    DailyRollup,
    DailyRollupCalculator,
    RollupCache,
    TaskSource,
    aggregate_rollups,
    completion_percentage,
)
from .summary import build_summary
from .weekly import WeeklySeriesBuilder, WeeklyStatsEntry

__all__ = [
    "CalendarEntry",
    "CalendarRangeBuilder",
    "DailyRollup",
    "DailyRollupCalculator",
    "Dashboard",
    "DashboardService",
    "InMemoryRollupCache",
    "RollupCache",
    "TaskSource",
    "WeeklySeriesBuilder",
    "WeeklyStatsEntry",
    "aggregate_rollups",
    "build_summary",
    "completion_percentage",
    "heatmap_level",
]
