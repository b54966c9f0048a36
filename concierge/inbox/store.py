"""Verarbeitungszustand pro Mail-ID.

Alle Zustandsänderungen laufen über diese Klasse, damit die Invarianten
an einer Stelle durchgesetzt werden:

- höchstens ein Zustand pro ID
- Ergebnis genau bei DONE, Fehlermeldung genau bei ERROR
- DONE/ERROR nur über set_result()/set_error() erreichbar

Schreibzugriffe auf nicht registrierte IDs (z.B. verspätetes Ergebnis
einer bereits abgeschlossenen Mail) sind stille No-ops.
"""

from __future__ import annotations

from collections import Counter

from concierge.analysis.models import AnalysisResult
from concierge.exceptions import InvalidStateError
from concierge.inbox.models import ProcessingEntry, ProcessingState
from concierge.logging_config import get_logger

logger = get_logger("inbox")

# Über set_state() erlaubte Zustände
_PLAIN_STATES = (ProcessingState.IDLE, ProcessingState.PROCESSING)


class ItemProcessingStore:
    """Zuordnung Mail-ID → {Zustand, Ergebnis, Fehlermeldung}."""

    def __init__(self) -> None:
        self._entries: dict[str, ProcessingEntry] = {}

    # --- Registrierung ---

    def register(self, item_id: str) -> bool:
        """Registriert eine ID im Zustand IDLE.

        Bereits registrierte IDs behalten ihren Zustand.

        Returns:
            True wenn die ID neu war.
        """
        if item_id in self._entries:
            return False
        self._entries[item_id] = ProcessingEntry()
        return True

    def remove(self, item_id: str) -> bool:
        """Entfernt eine ID samt Ergebnis und Fehler."""
        return self._entries.pop(item_id, None) is not None

    # --- Lesen ---

    def get(self, item_id: str) -> ProcessingEntry | None:
        return self._entries.get(item_id)

    def state(self, item_id: str) -> ProcessingState:
        """Zustand einer ID; IDLE für unbekannte IDs."""
        entry = self._entries.get(item_id)
        return entry.state if entry else ProcessingState.IDLE

    def count_by_state(self) -> dict[ProcessingState, int]:
        counts = Counter(e.state for e in self._entries.values())
        return {s: counts.get(s, 0) for s in ProcessingState}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # --- Schreiben ---

    def set_state(self, item_id: str, state: ProcessingState) -> bool:
        """Setzt IDLE oder PROCESSING; Ergebnis und Fehler werden verworfen.

        Raises:
            ValueError: Für DONE/ERROR (→ set_result()/set_error()).
        """
        if state not in _PLAIN_STATES:
            raise ValueError(
                f"Zustand {state.value} nur über set_result()/set_error() setzbar"
            )
        if not self._is_registered(item_id, "set_state"):
            return False
        self._entries[item_id] = ProcessingEntry(state=state)
        return True

    def set_result(self, item_id: str, result: AnalysisResult) -> bool:
        """Speichert das Ergebnis und setzt DONE."""
        if not self._is_registered(item_id, "set_result"):
            return False
        self._entries[item_id] = ProcessingEntry(
            state=ProcessingState.DONE, result=result,
        )
        return True

    def set_error(self, item_id: str, message: str) -> bool:
        """Speichert die Fehlermeldung und setzt ERROR."""
        if not self._is_registered(item_id, "set_error"):
            return False
        self._entries[item_id] = ProcessingEntry(
            state=ProcessingState.ERROR, error=message,
        )
        return True

    def mutate_draft(self, item_id: str, new_draft: str) -> bool:
        """Ersetzt den Antwortentwurf eines fertig analysierten Eintrags.

        Returns:
            True bei Erfolg, False wenn die ID nicht (mehr) registriert ist.

        Raises:
            InvalidStateError: Wenn der Eintrag nicht im Zustand DONE ist.
        """
        entry = self._entries.get(item_id)
        if entry is None:
            logger.debug("Entwurf für unbekannte Mail %s ignoriert", item_id)
            return False
        if entry.state is not ProcessingState.DONE or entry.result is None:
            raise InvalidStateError(item_id, entry.state.value, "Entwurf bearbeiten")

        self._entries[item_id] = ProcessingEntry(
            state=ProcessingState.DONE,
            result=entry.result.with_draft(new_draft),
        )
        return True

    def _is_registered(self, item_id: str, action: str) -> bool:
        if item_id in self._entries:
            return True
        logger.debug("%s für nicht registrierte Mail %s ignoriert", action, item_id)
        return False
