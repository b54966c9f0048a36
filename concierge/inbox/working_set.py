"""Arbeitsbestand: geordnete Sammlung der Mails in Bearbeitung."""

from __future__ import annotations

from typing import Iterable, Iterator

from concierge.inbox.models import Item
from concierge.logging_config import get_logger

logger = get_logger("inbox")


class WorkingSet:
    """Geordnete Sammlung von Mails, eindeutig nach ID.

    Neu aufgenommene Mails stehen vor den bereits vorhandenen (neuester
    Abruf oben).  Bereits bekannte IDs werden beim Aufnehmen still
    übersprungen und bleiben unverändert.
    """

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}

    def admit(self, items: Iterable[Item]) -> list[Item]:
        """Nimmt neue Mails auf und gibt die tatsächlich neuen zurück.

        Duplikate (auch innerhalb derselben Lieferung) werden ignoriert.
        """
        fresh: dict[str, Item] = {}
        duplicates = 0
        for item in items:
            if item.id in self._items or item.id in fresh:
                duplicates += 1
                continue
            fresh[item.id] = item

        if fresh:
            self._items = {**fresh, **self._items}

        if duplicates:
            logger.debug("%d bereits bekannte Mail(s) übersprungen", duplicates)
        return list(fresh.values())

    def get(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def remove(self, item_id: str) -> bool:
        """Entfernt eine Mail; False wenn sie nicht (mehr) vorhanden war."""
        return self._items.pop(item_id, None) is not None

    def ids(self) -> list[str]:
        return list(self._items)

    def ordered(self, item_ids: Iterable[str]) -> list[str]:
        """Die übergebenen IDs in Bestandsreihenfolge (unbekannte fallen weg)."""
        wanted = set(item_ids)
        return [item_id for item_id in self._items if item_id in wanted]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
