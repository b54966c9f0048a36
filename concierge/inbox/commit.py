"""Abschluss einer Mail: Übergabe an den Commit-Sink und Entfernen.

Ein Commit ist pro Mail atomar: entweder wurde der vollständige Vorgang
an den Sink übergeben und die Mail aus Arbeitsbestand und Store entfernt,
oder es hat sich nichts geändert.
"""

from __future__ import annotations

import inspect

from concierge.analysis.models import AnalysisResult
from concierge.exceptions import CommitError, InvalidStateError
from concierge.inbox.models import CommitSink, CommittedRecord, ProcessingState
from concierge.inbox.store import ItemProcessingStore
from concierge.inbox.working_set import WorkingSet
from concierge.logging_config import get_logger

logger = get_logger("inbox")


class Committer:
    """Schließt Mails ab oder verwirft sie.

    Verwendung:
        committer = Committer(working_set, store, sink)
        record = await committer.commit("email_001")
    """

    def __init__(
        self,
        working_set: WorkingSet,
        store: ItemProcessingStore,
        sink: CommitSink,
    ) -> None:
        self._working_set = working_set
        self._store = store
        self._sink = sink
        self.committed_count = 0

    async def commit(
        self,
        item_id: str,
        result: AnalysisResult | None = None,
    ) -> CommittedRecord | None:
        """Übergibt Mail + Ergebnis an den Sink und entfernt die Mail.

        Args:
            item_id: ID der Mail.
            result: Bereits vorliegendes Ergebnis (z.B. frisch aus process());
                None = Ergebnis aus dem Store.

        Returns:
            Der übergebene Vorgang, oder None wenn die Mail nicht mehr im
            Arbeitsbestand ist (verspäteter Commit, kein Fehler).

        Raises:
            InvalidStateError: Kein Ergebnis vorhanden (Zustand nicht DONE).
            CommitError: Sink hat eine Exception geworfen; nichts wurde entfernt.
        """
        item = self._working_set.get(item_id)
        if item is None:
            logger.info("Commit für Mail %s ignoriert – nicht mehr im Arbeitsbestand", item_id)
            return None

        if result is None:
            entry = self._store.get(item_id)
            if entry is None or entry.state is not ProcessingState.DONE or entry.result is None:
                state = entry.state.value if entry else ProcessingState.IDLE.value
                raise InvalidStateError(item_id, state, "Commit")
            result = entry.result

        record = CommittedRecord(item=item, result=result)

        try:
            outcome = self._sink(record)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.error("Commit-Sink hat Mail %s abgelehnt: %s", item_id, exc)
            raise CommitError(item_id, str(exc) or type(exc).__name__) from exc

        self._working_set.remove(item_id)
        self._store.remove(item_id)
        self.committed_count += 1

        logger.info(
            "Mail %s abgeschlossen: record=%s, category=%s",
            item_id,
            record.record_id,
            result.category.value,
        )
        return record

    def discard(self, item_id: str) -> bool:
        """Entfernt eine Mail ohne Übergabe an den Sink.

        Returns:
            True wenn die Mail vorhanden war.
        """
        removed = self._working_set.remove(item_id)
        self._store.remove(item_id)
        if removed:
            logger.info("Mail %s verworfen", item_id)
        return removed
