"""
Live referee scoring for a best-of-five squash match.

A live match is fully described by its rally log: the sequence of sides
("A"/"B") that won each rally. Every view is rebuilt from that log by
replay(): games, current score, who serves and from which side, and the
two persisted strings:

  - live_score: "11-9;7-11;3-2", completed games then the current game.
    The current game is left out once the match is finished.
  - fullscore: point-by-point, one segment per game separated by "|",
    each segment "0-0;1-0;1-1;...".

Undo drops the last rally and replays, so it can cross a game boundary
and reopen a finished match.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

SIDE_A = "A"
SIDE_B = "B"
SIDES = (SIDE_A, SIDE_B)

SERVE_RIGHT = "R"
SERVE_LEFT = "L"

POINTS_TO_WIN_GAME = 11
WIN_MARGIN = 2
GAMES_TO_WIN_MATCH = 3

GAME_SEPARATOR = ";"
SET_SEPARATOR = "|"


class LiveScoringError(Exception):
    """Refused scoring action. ``code`` is stable for API clients."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class GameScore:
    a: int = 0
    b: int = 0

    @property
    def winner(self) -> Optional[str]:
        return game_winner(self.a, self.b)

    @property
    def started(self) -> bool:
        return self.a > 0 or self.b > 0

    def __str__(self) -> str:
        return f"{self.a}-{self.b}"


@dataclass(frozen=True)
class Rally:
    """One rally after it was played: who won it and the score it produced."""

    winner: str
    score: GameScore
    server: str
    service_side: str


@dataclass
class LiveMatchState:
    completed_games: List[GameScore] = field(default_factory=list)
    current: GameScore = field(default_factory=GameScore)
    rallies: List[List[Rally]] = field(default_factory=lambda: [[]])  # per game
    server: Optional[str] = None  # None until the first rally of a game
    service_side: str = SERVE_RIGHT
    points: List[str] = field(default_factory=list)

    @property
    def games_a(self) -> int:
        return sum(1 for g in self.completed_games if g.winner == SIDE_A)

    @property
    def games_b(self) -> int:
        return sum(1 for g in self.completed_games if g.winner == SIDE_B)

    @property
    def is_finished(self) -> bool:
        return max(self.games_a, self.games_b) >= GAMES_TO_WIN_MATCH

    @property
    def winner(self) -> Optional[str]:
        if self.games_a >= GAMES_TO_WIN_MATCH:
            return SIDE_A
        if self.games_b >= GAMES_TO_WIN_MATCH:
            return SIDE_B
        return None

    @property
    def live_score(self) -> str:
        return format_live_score(self.completed_games, self.current, self.is_finished)

    @property
    def fullscore(self) -> str:
        return format_fullscore(self)


def game_winner(score_a: int, score_b: int) -> Optional[str]:
    """First to 11, two clear points."""
    if score_a >= POINTS_TO_WIN_GAME and score_a - score_b >= WIN_MARGIN:
        return SIDE_A
    if score_b >= POINTS_TO_WIN_GAME and score_b - score_a >= WIN_MARGIN:
        return SIDE_B
    return None


# ============================================================================
# Rally log
# ============================================================================


def replay(points: Sequence[str]) -> LiveMatchState:
    """Rebuild the full match state from a rally log."""
    state = LiveMatchState()
    for index, side in enumerate(points):
        if side not in SIDES:
            raise LiveScoringError("invalid_side", f"Rally {index + 1} has unknown side {side!r}")
        if state.is_finished:
            raise LiveScoringError("match_finished", "The match is already decided")
        _play_rally(state, side)
    return state


def _play_rally(state: LiveMatchState, side: str) -> None:
    # The first rally of a game is taken as served by its winner, from the right.
    server = state.server or side
    service_side = state.service_side if state.server else SERVE_RIGHT

    current = GameScore(
        state.current.a + (1 if side == SIDE_A else 0),
        state.current.b + (1 if side == SIDE_B else 0),
    )
    state.rallies[-1].append(Rally(winner=side, score=current, server=server, service_side=service_side))
    state.points.append(side)

    # The rally winner serves next: a held serve changes box, a hand-out starts on the right.
    if side == server:
        state.service_side = SERVE_LEFT if service_side == SERVE_RIGHT else SERVE_RIGHT
    else:
        state.service_side = SERVE_RIGHT
    state.server = side

    if current.winner:
        state.completed_games.append(current)
        state.current = GameScore()
        state.server = None
        state.service_side = SERVE_RIGHT
        if not state.is_finished:
            state.rallies.append([])
    else:
        state.current = current


def score_point(points: Sequence[str], side: str) -> List[str]:
    """The rally log after *side* wins one more rally."""
    if side not in SIDES:
        raise LiveScoringError("invalid_side", f"Unknown side {side!r}")
    if replay(points).is_finished:
        raise LiveScoringError("match_finished", "The match is already decided")
    return list(points) + [side]


def undo_point(points: Sequence[str]) -> List[str]:
    if not points:
        raise LiveScoringError("nothing_to_undo", "No rally has been scored yet")
    return list(points[:-1])


# ============================================================================
# live_score strings
# ============================================================================


def _parse_game(text: str) -> GameScore:
    a, _, b = text.strip().partition("-")
    try:
        return GameScore(int(a or 0), int(b or 0))
    except ValueError:
        raise LiveScoringError("malformed_score", f"Cannot read game score {text!r}") from None


def format_live_score(completed: Sequence[GameScore], current: GameScore, finished: bool = False) -> str:
    parts = [str(g) for g in completed]
    if not finished:
        parts.append(str(current))
    return GAME_SEPARATOR.join(parts)


def parse_live_score(text: Optional[str], games_a: int = 0, games_b: int = 0) -> Tuple[List[GameScore], GameScore]:
    """Split a live_score into completed games and the current game.

    *games_a* / *games_b* are the stored game counts. Once either side has
    won the match there is no current game and every part is completed.
    """
    if not text:
        return [], GameScore()
    games = [_parse_game(part) for part in text.split(GAME_SEPARATOR) if part.strip()]
    if max(games_a, games_b) >= GAMES_TO_WIN_MATCH or not games:
        return games, GameScore()
    return games[:-1], games[-1]


# ============================================================================
# fullscore strings
# ============================================================================


def format_fullscore(state: LiveMatchState) -> str:
    segments = []
    for rallies in state.rallies:
        if not rallies:
            continue
        segments.append(GAME_SEPARATOR.join(["0-0"] + [str(r.score) for r in rallies]))
    return SET_SEPARATOR.join(segments)


def parse_fullscore(text: Optional[str]) -> List[str]:
    """Recover the rally log from a fullscore string.

    Unchanged entries (a repeated "0-0") are skipped. A jump of several
    points is read as that many rallies, A's first.
    """
    points: List[str] = []
    if not text:
        return points
    for segment in text.split(SET_SEPARATOR):
        previous = GameScore()
        for entry in segment.split(GAME_SEPARATOR):
            if not entry.strip():
                continue
            score = _parse_game(entry)
            gained_a = score.a - previous.a
            gained_b = score.b - previous.b
            if gained_a < 0 or gained_b < 0:
                raise LiveScoringError("malformed_score", f"Score goes backwards at {entry!r}")
            points.extend([SIDE_A] * gained_a + [SIDE_B] * gained_b)
            previous = score
    return points


def reconstruct_fullscore(completed: Sequence[GameScore], current: GameScore = GameScore()) -> str:
    """A plausible point-by-point fullscore for games known only by their final score.

    Points alternate toward each final score so the leader never runs out
    of points early; used for matches scored before rally logs were kept.
    """
    segments = []
    games = list(completed) + ([current] if current.started else [])
    for game in games:
        a = b = 0
        entries = ["0-0"]
        while a < game.a or b < game.b:
            if a < game.a and (b >= game.b or a <= b):
                a += 1
            else:
                b += 1
            entries.append(f"{a}-{b}")
        segments.append(GAME_SEPARATOR.join(entries))
    return SET_SEPARATOR.join(segments)
