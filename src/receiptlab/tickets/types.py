"""Dataclasses for games, selections and tickets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BetType(str, Enum):
    HOME = "1"
    DRAW = "X"
    AWAY = "2"
    HOME_OR_DRAW = "1X"
    DRAW_OR_AWAY = "X2"
    HOME_OR_AWAY = "12"
    OVER = "over"
    UNDER = "under"


@dataclass(frozen=True)
class Game:
    """A finished match with a predetermined result."""

    id: str
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    date: str
    time: str
    league: str
    winning_bet: BetType
    odds: float
    odds_1: float
    odds_x: float
    odds_2: float

    def __post_init__(self) -> None:
        if self.home_score < 0 or self.away_score < 0:
            raise ValueError(f"Game {self.id} has a negative score")
        head_to_head = {
            BetType.HOME: self.odds_1,
            BetType.DRAW: self.odds_x,
            BetType.AWAY: self.odds_2,
        }
        expected = head_to_head.get(BetType(self.winning_bet))
        if expected is not None and expected != self.odds:
            raise ValueError(
                f"Game {self.id}: odds {self.odds} do not match the {self.winning_bet} price {expected}"
            )

    @property
    def score(self) -> str:
        return f"{self.home_score}-{self.away_score}"


@dataclass(frozen=True)
class Selection:
    game: Game


@dataclass(frozen=True)
class Branch:
    id: str
    name: str


@dataclass(frozen=True)
class Ticket:
    receipt_number: str
    branch_id: str
    branch_name: str
    date: str
    time: str
    selections: tuple[Selection, ...]
    stake: float
    total_odds: float
    winnings: float
