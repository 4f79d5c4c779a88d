"""Ordered, de-duplicated bet slip selections."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from receiptlab.tickets.types import Game, Selection


class SelectionSet:
    """Bet slip keyed by game id; insertion order is the display order."""

    def __init__(self, games: Iterable[Game] = ()) -> None:
        self._selections: list[Selection] = []
        for game in games:
            self.add(game)

    def __len__(self) -> int:
        return len(self._selections)

    def __iter__(self) -> Iterator[Selection]:
        return iter(self._selections)

    def __contains__(self, game_id: object) -> bool:
        return game_id in self.ids

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(sel.game.id for sel in self._selections)

    @property
    def selections(self) -> tuple[Selection, ...]:
        return tuple(self._selections)

    @property
    def games(self) -> list[Game]:
        return [sel.game for sel in self._selections]

    def add(self, game: Game) -> None:
        if game.id not in self.ids:
            self._selections.append(Selection(game=game))

    def remove(self, game_id: str) -> None:
        self._selections = [sel for sel in self._selections if sel.game.id != game_id]

    def toggle(self, game: Game) -> bool:
        """Flip membership of ``game``; return True when it is now selected."""

        if game.id in self.ids:
            self.remove(game.id)
            return False
        self._selections.append(Selection(game=game))
        return True

    def clear(self) -> None:
        self._selections.clear()
