from openplay.models.open_play_event import OpenPlayEvent
from openplay.models.open_play_match import OpenPlayMatch

__all__ = [
    "OpenPlayEvent",
    "OpenPlayMatch",
]
