"""SessionState enum."""

from enum import Enum


class SessionState(str, Enum):
    ABSENT = "absent"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"
