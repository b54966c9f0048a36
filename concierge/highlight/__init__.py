"""Hervorhebung – Segmentierung von Mailtexten für die Durchsicht.

Öffentliche API:
- segment: Text + Referenzname → Abschnitte (neutral oder markiert)
- Segment: einzelner Abschnitt
- PatternSet: Erkennungsmuster mit Prioritätsreihenfolge
- HighlightCategory: contact, phone, date, price, subject_name

Typische Verwendung:
    from concierge.highlight import segment

    for seg in segment(item.body, item.sender_name):
        print(seg.category, seg.text)
"""

from concierge.highlight.patterns import (
    DEFAULT_PATTERN_SET,
    DEFAULT_PRIORITY,
    HighlightCategory,
    Pattern,
    PatternSet,
    build_name_pattern,
    render_hint_for,
)
from concierge.highlight.segmenter import (
    Segment,
    join_segments,
    segment,
    tagged_values,
)

__all__ = [
    # Segmentierung
    "segment",
    "Segment",
    "join_segments",
    "tagged_values",
    # Muster
    "HighlightCategory",
    "Pattern",
    "PatternSet",
    "DEFAULT_PATTERN_SET",
    "DEFAULT_PRIORITY",
    "build_name_pattern",
    "render_hint_for",
]
