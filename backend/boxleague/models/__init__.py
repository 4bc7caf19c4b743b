from boxleague.models.match import Match
from boxleague.models.membership import BoxMembership
from boxleague.models.player import Player
from boxleague.models.season import Box, Season
from boxleague.models.waiting_list import WaitingListEntry

__all__ = [
    "Season",
    "Box",
    "Player",
    "BoxMembership",
    "Match",
    "WaitingListEntry",
]
