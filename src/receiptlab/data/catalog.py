"""Static catalog of finished matches offered on the bet slip."""

from __future__ import annotations

from typing import Dict, List

from receiptlab.tickets.types import BetType, Game

ISRAELI_PREMIER = "ליגת העל"
LA_LIGA = "לה ליגה - ספרד"
PREMIER_LEAGUE = "פרמייר ליג - אנגליה"

MOCK_GAMES: tuple[Game, ...] = (
    Game("1", "מכבי תל אביב", "הפועל באר שבע", 2, 1, "31/12/2025", "20:00", ISRAELI_PREMIER, BetType.HOME, 1.85, 1.85, 3.40, 4.20),
    Game("2", 'מכבי חיפה', 'בית"ר ירושלים', 3, 3, "31/12/2025", "17:30", ISRAELI_PREMIER, BetType.DRAW, 3.40, 2.10, 3.40, 3.20),
    Game("3", "הפועל תל אביב", "בני סכנין", 1, 0, "30/12/2025", "19:00", ISRAELI_PREMIER, BetType.HOME, 2.10, 2.10, 3.25, 3.50),
    Game("4", "ריאל מדריד", "ברצלונה", 2, 2, "29/12/2025", "22:00", LA_LIGA, BetType.DRAW, 4.20, 2.30, 4.20, 2.50),
    Game("5", "ליברפול", "מנצ'סטר סיטי", 3, 1, "29/12/2025", "18:30", PREMIER_LEAGUE, BetType.HOME, 2.75, 2.75, 3.60, 2.40),
    Game("6", "באיירן מינכן", "דורטמונד", 4, 2, "28/12/2025", "20:30", "בונדסליגה - גרמניה", BetType.HOME, 1.55, 1.55, 4.50, 5.20),
    Game("7", "יובנטוס", "אינטר מילאן", 1, 1, "28/12/2025", "21:45", "סריה A - איטליה", BetType.DRAW, 3.25, 2.60, 3.25, 2.70),
    Game("8", "פריז סן ז'רמן", "מרסיי", 2, 0, "27/12/2025", "21:00", "ליג 1 - צרפת", BetType.HOME, 1.45, 1.45, 4.80, 6.50),
    Game("9", "אתלטיקו מדריד", "סביליה", 3, 0, "27/12/2025", "19:00", LA_LIGA, BetType.HOME, 1.90, 1.90, 3.50, 4.00),
    Game("10", "צ'לסי", "ארסנל", 0, 2, "26/12/2025", "17:30", PREMIER_LEAGUE, BetType.AWAY, 2.60, 2.80, 3.40, 2.60),
    Game("11", "מכבי נתניה", "הפועל חיפה", 2, 2, "26/12/2025", "20:00", ISRAELI_PREMIER, BetType.DRAW, 3.15, 2.40, 3.15, 2.90),
    Game("12", "אשדוד", 'מכבי פ"ת', 1, 3, "25/12/2025", "19:30", ISRAELI_PREMIER, BetType.AWAY, 3.50, 2.20, 3.30, 3.50),
)

_BY_ID: Dict[str, Game] = {game.id: game for game in MOCK_GAMES}


def list_games() -> List[Game]:
    return list(MOCK_GAMES)


def get_game(game_id: str) -> Game:
    """Return the catalog game with ``game_id`` or raise ``KeyError``."""

    try:
        return _BY_ID[game_id]
    except KeyError:
        raise KeyError(f"Unknown game id: {game_id}") from None


def games_by_league() -> Dict[str, List[Game]]:
    """Group the catalog by league, keeping the order leagues first appear in."""

    grouped: Dict[str, List[Game]] = {}
    for game in MOCK_GAMES:
        grouped.setdefault(game.league, []).append(game)
    return grouped
