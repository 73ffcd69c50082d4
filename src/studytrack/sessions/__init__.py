"""Study sessions module for StudyTrack.

Provides study session records and daily study metrics.
"""

from .metrics import SessionSource, StudyMetrics, StudyMetricsCalculator, parse_duration
from .models import LearningSession, SessionStatus

__all__ = [
    "LearningSession",
    "SessionSource",
    "SessionStatus",
    "StudyMetrics",
    "StudyMetricsCalculator",
    "parse_duration",
]
