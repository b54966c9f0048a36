"""Segmentierung eines Mailtexts in neutrale und markierte Abschnitte.

Ablauf:
 1. Start mit einem einzigen neutralen Abschnitt (gesamter Text)
 2. Muster nacheinander in Prioritätsreihenfolge anwenden
 3. Pro Muster nur noch neutrale Abschnitte durchsuchen und an allen
    nicht überlappenden Treffern (links nach rechts) aufteilen

Bereits markierte Abschnitte werden nie erneut durchsucht – das frühere
Muster gewinnt.  Die Verkettung aller Abschnitte ergibt immer exakt den
Eingabetext.

Die Funktion ist rein: gleiche Eingabe, gleiche Ausgabe, kein Zustand.
"""

from __future__ import annotations

from dataclasses import dataclass

from concierge.highlight.patterns import (
    DEFAULT_PATTERN_SET,
    HighlightCategory,
    Pattern,
    PatternSet,
)


@dataclass(frozen=True)
class Segment:
    """Zusammenhängender Textabschnitt, neutral oder mit genau einer Kategorie."""
    text: str
    category: HighlightCategory | None = None

    @property
    def is_tagged(self) -> bool:
        return self.category is not None


def segment(
    text: str,
    reference_name: str,
    pattern_set: PatternSet | None = None,
) -> list[Segment]:
    """Zerlegt `text` in eine geordnete Folge von Abschnitten.

    Args:
        text: Beliebiger Mailtext.
        reference_name: Anzeigename des Absenders; nur das erste Wort
            wird als Namensmuster verwendet.
        pattern_set: Mustermenge mit Priorität (None = Standard).

    Returns:
        Mindestens ein Abschnitt.  Leere Abschnitte gibt es nur für
        leere Eingabe.
    """
    patterns = (pattern_set or DEFAULT_PATTERN_SET).build(reference_name)

    segments = [Segment(text)]
    for pattern in patterns:
        segments = _apply_pattern(segments, pattern)
    return segments


def join_segments(segments: list[Segment]) -> str:
    """Setzt die Abschnitte wieder zum Originaltext zusammen."""
    return "".join(s.text for s in segments)


def tagged_values(segments: list[Segment]) -> dict[HighlightCategory, list[str]]:
    """Gruppiert markierte Texte nach Kategorie (Reihenfolge bleibt erhalten)."""
    grouped: dict[HighlightCategory, list[str]] = {}
    for seg in segments:
        if seg.category is not None:
            grouped.setdefault(seg.category, []).append(seg.text)
    return grouped


# --- Hilfsfunktionen (intern) ---

def _apply_pattern(segments: list[Segment], pattern: Pattern) -> list[Segment]:
    """Wendet ein Muster auf alle noch neutralen Abschnitte an."""
    result: list[Segment] = []
    for seg in segments:
        if seg.is_tagged:
            result.append(seg)
        else:
            result.extend(_split(seg.text, pattern))
    return result


def _split(text: str, pattern: Pattern) -> list[Segment]:
    """Teilt einen neutralen Abschnitt an den Treffern eines Musters."""
    pieces: list[Segment] = []
    last = 0

    for match in pattern.regex.finditer(text):
        start, end = match.span()
        # Leere Treffer würden leere Abschnitte erzeugen
        if start == end:
            continue
        if start > last:
            pieces.append(Segment(text[last:start]))
        pieces.append(Segment(match.group(0), pattern.category))
        last = end

    if not pieces:
        return [Segment(text)]

    if last < len(text):
        pieces.append(Segment(text[last:]))
    return pieces
