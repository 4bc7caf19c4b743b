# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from boxleague.models.match import Match  # noqa: F401
from boxleague.models.membership import BoxMembership  # noqa: F401
from boxleague.models.player import Player  # noqa: F401
from boxleague.models.season import Box, Season  # noqa: F401
from boxleague.models.waiting_list import WaitingListEntry  # noqa: F401
