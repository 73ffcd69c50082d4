"""StudyTrack - Learning progress tracker for students.

StudyTrack provides:
- Study task management with completion tracking
- Daily and weekly completion rollups
- Calendar heatmap data
- Dashboard summaries of today's progress

Usage:
    python -m studytrack dashboard --user alice
    python -m studytrack --profile prod calendar --days 90
"""

__version__ = "0.1.0"

from .config import StudyTrackConfig
from .config.loader import load_config

__all__ = [
    "StudyTrackConfig",
    "__version__",
    "load_config",
]
