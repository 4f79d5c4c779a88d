"""Pydantic schemas for the ReceiptLab API.

Field names follow the camelCase wire format used by the browser client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from receiptlab.tickets.types import BetType, Game, Selection, Ticket


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GameSchema(WireModel):
    id: str
    home_team: str = Field(alias="homeTeam")
    away_team: str = Field(alias="awayTeam")
    home_score: int = Field(alias="homeScore", ge=0)
    away_score: int = Field(alias="awayScore", ge=0)
    date: str
    time: str
    league: str
    winning_bet: BetType = Field(alias="winningBet")
    odds: float = Field(gt=0)
    odds_1: float = Field(alias="odds1", gt=0)
    odds_x: float = Field(alias="oddsX", gt=0)
    odds_2: float = Field(alias="odds2", gt=0)

    def to_game(self) -> Game:
        return Game(**self.model_dump())

    @classmethod
    def from_game(cls, game: Game) -> "GameSchema":
        return cls(
            id=game.id,
            home_team=game.home_team,
            away_team=game.away_team,
            home_score=game.home_score,
            away_score=game.away_score,
            date=game.date,
            time=game.time,
            league=game.league,
            winning_bet=game.winning_bet,
            odds=game.odds,
            odds_1=game.odds_1,
            odds_x=game.odds_x,
            odds_2=game.odds_2,
        )


class SelectionSchema(WireModel):
    game: GameSchema

    def to_selection(self) -> Selection:
        return Selection(game=self.game.to_game())


class GenerateReceiptRequest(WireModel):
    # Both fields are validated by hand so every bad payload gets the same 400 envelope.
    selections: Any = None
    stake: Any = None


SELECTIONS_ADAPTER = TypeAdapter(list[SelectionSchema])


class GenerateReceiptResponse(WireModel):
    success: bool = True
    image_url: str = Field(alias="imageUrl")
    receipt_number: str = Field(alias="receiptNumber")
    date: str
    time: str


class TicketResponse(WireModel):
    receipt_number: str = Field(alias="receiptNumber")
    branch_id: str = Field(alias="branchId")
    branch_name: str = Field(alias="branchName")
    date: str
    time: str
    selections: list[SelectionSchema]
    stake: float
    total_odds: float = Field(alias="totalOdds")
    winnings: float

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            receipt_number=ticket.receipt_number,
            branch_id=ticket.branch_id,
            branch_name=ticket.branch_name,
            date=ticket.date,
            time=ticket.time,
            selections=[SelectionSchema(game=GameSchema.from_game(sel.game)) for sel in ticket.selections],
            stake=ticket.stake,
            total_odds=ticket.total_odds,
            winnings=ticket.winnings,
        )


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
