# Force SQLModel table registration at test discovery time
from openplay.models.open_play_event import OpenPlayEvent  # noqa: F401
from openplay.models.open_play_match import OpenPlayMatch  # noqa: F401
