"""Erkennungsmuster für die Hervorhebung im Mailtext.

Statische Bibliothek der Muster für Kontakt (E-Mail-Adresse), Telefon,
Datum, Preis und den Vornamen des Absenders.  Die Muster sind auf
französische Korrespondenz zugeschnitten (Monats-/Wochentagsnamen,
+33-Nummern, Euro-Beträge).

Die Reihenfolge in `PatternSet.priority` entscheidet bei Überlappungen:
ein früheres Muster gewinnt, spätere Muster sehen bereits markierte
Abschnitte nicht mehr.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class HighlightCategory(str, Enum):
    """Kategorien hervorgehobener Textstellen."""
    CONTACT = "contact"
    PHONE = "phone"
    DATE = "date"
    PRICE = "price"
    SUBJECT_NAME = "subject_name"


# Standard-Priorität: Kontakt vor Telefon vor Datum vor Preis vor Name
DEFAULT_PRIORITY: tuple[HighlightCategory, ...] = (
    HighlightCategory.CONTACT,
    HighlightCategory.PHONE,
    HighlightCategory.DATE,
    HighlightCategory.PRICE,
    HighlightCategory.SUBJECT_NAME,
)


@dataclass(frozen=True)
class Pattern:
    """Ein Erkennungsmuster mit Kategorie und Darstellungshinweis.

    `render_hint` ist für die Oberfläche gedacht (Farbschema) und wird
    vom Segmentierer nicht ausgewertet.
    """
    category: HighlightCategory
    regex: re.Pattern[str]
    render_hint: str


# ---------------------------------------------------------------------------
# Statische Muster
# ---------------------------------------------------------------------------

_WEEKDAYS = "lundi|mardi|mercredi|jeudi|vendredi|samedi|dimanche"
_MONTHS = (
    "janvier|février|mars|avril|mai|juin|juillet|août|"
    "septembre|octobre|novembre|décembre"
)

CONTACT_PATTERN = Pattern(
    category=HighlightCategory.CONTACT,
    regex=re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    render_hint="green",
)

# +33 / 0033 / 0, dann Ziffer 1-9 und vier Zweiergruppen
PHONE_PATTERN = Pattern(
    category=HighlightCategory.PHONE,
    regex=re.compile(r"(?:(?:\+|00)33|0)\s*[1-9](?:[\s.-]*\d{2}){4}"),
    render_hint="green",
)

# "mardi 5 mars 2026", "5 mars", "12/03", "12-03-2026".
# Wochentag und Leerzeichen sind nur gemeinsam optional, damit das
# Leerzeichen vor einer Zahl nicht in den Treffer gezogen wird.
DATE_PATTERN = Pattern(
    category=HighlightCategory.DATE,
    regex=re.compile(
        rf"\b(?:(?:{_WEEKDAYS})\s)?\d{{1,2}}\s(?:{_MONTHS})(?:\s\d{{4}})?\b"
        r"|\b\d{1,2}[-/]\d{1,2}(?:[-/]\d{2,4})?\b",
        re.IGNORECASE,
    ),
    render_hint="indigo",
)

# "150 €", "89,90€", "200 euros", "75 EUR"
PRICE_PATTERN = Pattern(
    category=HighlightCategory.PRICE,
    regex=re.compile(r"\d+(?:[.,]\d+)?\s?(?:€|euros?\b|eur\b)", re.IGNORECASE),
    render_hint="amber",
)

SUBJECT_NAME_RENDER_HINT = "purple"

STATIC_PATTERNS: dict[HighlightCategory, Pattern] = {
    p.category: p
    for p in (CONTACT_PATTERN, PHONE_PATTERN, DATE_PATTERN, PRICE_PATTERN)
}


def build_name_pattern(reference_name: str) -> Pattern | None:
    """Baut das Namensmuster aus dem ersten Wort des Referenznamens.

    Der Name wird wörtlich (escaped), ohne Groß-/Kleinschreibung und nur
    als ganzes Wort gesucht.

    Returns:
        Pattern oder None, wenn der Referenzname leer ist.
    """
    tokens = reference_name.split()
    if not tokens:
        return None
    return Pattern(
        category=HighlightCategory.SUBJECT_NAME,
        regex=re.compile(rf"\b{re.escape(tokens[0])}\b", re.IGNORECASE),
        render_hint=SUBJECT_NAME_RENDER_HINT,
    )


def render_hint_for(category: HighlightCategory) -> str:
    """Darstellungshinweis einer Kategorie (für Renderer)."""
    if category is HighlightCategory.SUBJECT_NAME:
        return SUBJECT_NAME_RENDER_HINT
    return STATIC_PATTERNS[category].render_hint


# ---------------------------------------------------------------------------
# PatternSet
# ---------------------------------------------------------------------------

class PatternSet:
    """Geordnete Menge von Erkennungsmustern.

    Verwendung:
        patterns = PatternSet().build("Sophie Lemaire")
        # → [contact, phone, date, price, subject_name("Sophie")]

    Kategorien, die in einer eigenen Reihenfolge fehlen, werden nicht
    angewendet.
    """

    def __init__(
        self,
        priority: Sequence[HighlightCategory | str] = DEFAULT_PRIORITY,
    ) -> None:
        """Initialisiert die Mustermenge.

        Args:
            priority: Kategorien in absteigender Priorität.

        Raises:
            ValueError: Bei unbekannten oder doppelten Kategorien.
        """
        order = tuple(HighlightCategory(c) for c in priority)
        if len(set(order)) != len(order):
            raise ValueError(f"Doppelte Kategorien in der Priorität: {order}")
        self._priority = order

    @property
    def priority(self) -> tuple[HighlightCategory, ...]:
        return self._priority

    def build(self, reference_name: str) -> list[Pattern]:
        """Liefert die Muster in Prioritätsreihenfolge für einen Durchlauf.

        Das Namensmuster wird pro Aufruf aus `reference_name` gebaut;
        ohne verwertbaren Namen entfällt es.
        """
        patterns: list[Pattern] = []
        for category in self._priority:
            if category is HighlightCategory.SUBJECT_NAME:
                name_pattern = build_name_pattern(reference_name)
                if name_pattern is not None:
                    patterns.append(name_pattern)
            else:
                patterns.append(STATIC_PATTERNS[category])
        return patterns

    def __repr__(self) -> str:
        return f"PatternSet({', '.join(c.value for c in self._priority)})"


DEFAULT_PATTERN_SET = PatternSet()
