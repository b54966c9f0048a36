"""Sammelverarbeitung: ausgewählte Mails analysieren und abschließen.

Die IDs werden strikt sequenziell in Bestandsreihenfolge abgearbeitet –
immer nur eine Analyse gleichzeitig.  Fehler bei einer Mail brechen den
Durchlauf nicht ab; die Mail bleibt im Arbeitsbestand (Zustand ERROR) und
kann einzeln erneut versucht werden.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable

from concierge.analysis.models import AnalysisResult
from concierge.exceptions import (
    AlreadyProcessingError,
    AnalysisFailure,
    CommitError,
    ConciergeError,
)
from concierge.inbox.commit import Committer
from concierge.inbox.models import Item, ProcessingState
from concierge.inbox.processor import SingleItemProcessor
from concierge.inbox.store import ItemProcessingStore
from concierge.inbox.working_set import WorkingSet
from concierge.logging_config import get_logger

logger = get_logger("inbox")


@dataclass
class BulkCommitResult:
    """Ergebnis einer Sammelverarbeitung.

    `skipped` enthält IDs, die beim Start nicht (mehr) im Arbeitsbestand
    waren – das ist kein Fehler.
    """
    committed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """True wenn keine Mail fehlgeschlagen ist."""
        return not self.failed


class BulkOrchestrator:
    """Analysiert und schließt eine Auswahl von Mails nacheinander ab.

    Verwendung:
        bulk = BulkOrchestrator(working_set, store, processor, committer)
        outcome = await bulk.bulk_commit({"email_001", "email_002"})
    """

    def __init__(
        self,
        working_set: WorkingSet,
        store: ItemProcessingStore,
        processor: SingleItemProcessor,
        committer: Committer,
    ) -> None:
        self._working_set = working_set
        self._store = store
        self._processor = processor
        self._committer = committer

    async def bulk_commit(self, item_ids: Iterable[str]) -> BulkCommitResult:
        """Analysiert (falls nötig) und schließt jede angegebene Mail ab.

        Bereits analysierte Mails werden ohne neuen Aufruf übernommen.
        Pro Mail: entweder vollständig abgeschlossen oder unverändert.
        """
        requested = list(dict.fromkeys(item_ids))
        order = self._working_set.ordered(requested)
        outcome = BulkCommitResult(
            skipped=[item_id for item_id in requested if item_id not in self._working_set],
        )
        start_time = time.monotonic()

        logger.info(
            "Sammelverarbeitung Start: %d Mail(s), %d übersprungen",
            len(order),
            len(outcome.skipped),
        )

        for item_id in order:
            item = self._working_set.get(item_id)
            if item is None:
                # Während des Durchlaufs entfernt (z.B. einzeln abgeschlossen)
                outcome.skipped.append(item_id)
                continue

            try:
                result = await self._result_for(item)
                record = await self._committer.commit(item_id, result)
            except AnalysisFailure as exc:
                outcome.failed[item_id] = str(exc)
                continue
            except (AlreadyProcessingError, CommitError) as exc:
                outcome.failed[item_id] = str(exc)
                logger.warning("Mail %s nicht abgeschlossen: %s", item_id, exc)
                continue
            except ConciergeError as exc:
                outcome.failed[item_id] = str(exc)
                logger.error("Mail %s nicht abgeschlossen: %s", item_id, exc)
                continue

            if record is None:
                outcome.skipped.append(item_id)
            else:
                outcome.committed.append(item_id)

        outcome.duration_seconds = time.monotonic() - start_time
        logger.info(
            "Sammelverarbeitung abgeschlossen: %d abgeschlossen, %d Fehler, "
            "%d übersprungen, %.1fs",
            len(outcome.committed),
            len(outcome.failed),
            len(outcome.skipped),
            outcome.duration_seconds,
        )
        return outcome

    async def _result_for(self, item: Item) -> AnalysisResult:
        """Vorhandenes Ergebnis oder neue Analyse (inline abgewartet)."""
        entry = self._store.get(item.id)
        if entry is not None and entry.state is ProcessingState.DONE and entry.result is not None:
            return entry.result
        return await self._processor.process(item)
