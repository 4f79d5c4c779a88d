"""Ticket construction logic."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import datetime

from receiptlab.tickets.types import Branch, Selection, Ticket

RECEIPT_NUMBER_LENGTH = 10

BRANCHES: tuple[Branch, ...] = (
    Branch("0137", "תל אביב - דיזנגוף"),
    Branch("0089", "ירושלים - מרכז"),
    Branch("0234", "חיפה - כרמל"),
    Branch("0156", "באר שבע - קניון"),
    Branch("0312", "ראשון לציון"),
    Branch("0078", "נתניה - מרכז"),
    Branch("0445", "אשדוד - סיטי"),
    Branch("0567", "פתח תקווה"),
)


def combine_odds(selections: Iterable[Selection]) -> float:
    decimal = 1.0
    for selection in selections:
        decimal *= selection.game.odds
    return decimal


def potential_winnings(stake: float, total_odds: float) -> float:
    return stake * total_odds


def generate_receipt_number(rng: random.Random | None = None) -> str:
    """Return ten random digits. Collisions between calls are possible."""

    rng = rng or random
    return "".join(str(rng.randrange(10)) for _ in range(RECEIPT_NUMBER_LENGTH))


def choose_branch(rng: random.Random | None = None) -> Branch:
    rng = rng or random
    return rng.choice(BRANCHES)


def current_date_time(now: datetime | None = None) -> tuple[str, str]:
    """Local wall-clock date and time as ``DD/MM/YYYY`` and ``HH:MM``."""

    now = now or datetime.now()
    return now.strftime("%d/%m/%Y"), now.strftime("%H:%M")


def build_ticket(
    selections: Sequence[Selection],
    stake: float,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> Ticket:
    """Compute the receipt for already validated selections and stake."""

    total_odds = combine_odds(selections)
    branch = choose_branch(rng)
    date_str, time_str = current_date_time(now)
    return Ticket(
        receipt_number=generate_receipt_number(rng),
        branch_id=branch.id,
        branch_name=branch.name,
        date=date_str,
        time=time_str,
        selections=tuple(selections),
        stake=stake,
        total_odds=total_odds,
        winnings=potential_winnings(stake, total_odds),
    )
