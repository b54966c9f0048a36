"""Posteingangs-Sitzung: Orchestrierungsschicht für einen Bearbeiter.

Besitzt Arbeitsbestand und Verarbeitungs-Store exklusiv; alle Änderungen
laufen über diese Klasse bzw. die von ihr gehaltenen Komponenten.

Abläufe:
- fetch_new_items(): neue Mails abrufen, Duplikate still ignorieren
- focus(): Mail zur Ansicht öffnen, startet ggf. die Analyse
- process() / edit_draft() / commit() / discard(): Einzelaktionen
- Auswahl + bulk_commit_selected(): Sammelverarbeitung
- view(): Mail, Zustand, Ergebnis und hervorgehobene Abschnitte
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from concierge.analysis.client import AnalysisClient
from concierge.analysis.models import AnalysisResult
from concierge.exceptions import BulkInProgressError, ItemSourceError, UnknownItemError
from concierge.highlight import PatternSet, Segment, segment
from concierge.inbox.bulk import BulkCommitResult, BulkOrchestrator
from concierge.inbox.commit import Committer
from concierge.inbox.models import (
    CommitSink,
    CommittedRecord,
    Item,
    ItemSource,
    ProcessingState,
)
from concierge.inbox.processor import SingleItemProcessor
from concierge.inbox.store import ItemProcessingStore
from concierge.inbox.working_set import WorkingSet
from concierge.logging_config import get_logger

logger = get_logger("inbox")


@dataclass(frozen=True)
class ItemView:
    """Alles, was die Durchsicht einer Mail braucht."""
    item: Item
    state: ProcessingState
    result: Optional[AnalysisResult]
    error: Optional[str]
    segments: list[Segment]


class InboxSession:
    """Arbeitsbestand + Zustandsautomat + Sammelverarbeitung eines Bearbeiters.

    Verwendung:
        session = InboxSession(client, sink=database_writer)
        await session.fetch_new_items(mailbox)
        session.focus("email_001")
        ...
        record = await session.commit("email_001")
    """

    def __init__(
        self,
        client: AnalysisClient,
        sink: CommitSink,
        pattern_set: PatternSet | None = None,
    ) -> None:
        self.client = client
        self.working_set = WorkingSet()
        self.store = ItemProcessingStore()
        self.processor = SingleItemProcessor(client, self.store)
        self.committer = Committer(self.working_set, self.store, sink)
        self.bulk = BulkOrchestrator(
            self.working_set, self.store, self.processor, self.committer,
        )
        self._pattern_set = pattern_set

        self.focused_id: str | None = None
        self._selected: set[str] = set()
        self._bulk_running = False

    # --- Abruf ---

    async def fetch_new_items(self, source: ItemSource) -> list[Item]:
        """Ruft neue Mails ab und nimmt unbekannte IDs in den Bestand auf.

        Bereits vorhandene Mails und ihr Zustand bleiben unverändert.

        Returns:
            Die tatsächlich neu aufgenommenen Mails.

        Raises:
            ItemSourceError: Wenn die Quelle fehlschlägt (Bestand unverändert).
        """
        try:
            fetched = await source.fetch_new_items()
        except Exception as exc:
            logger.error("Fehler beim Abrufen neuer Mails: %s", exc)
            raise ItemSourceError(f"Abruf fehlgeschlagen: {exc}") from exc

        admitted = self.working_set.admit(fetched)
        for item in admitted:
            self.store.register(item.id)

        logger.info(
            "%d Mail(s) abgerufen, %d neu, %d im Bestand",
            len(fetched),
            len(admitted),
            len(self.working_set),
        )
        return admitted

    # --- Einzelaktionen ---

    def items(self) -> list[Item]:
        """Arbeitsbestand in Anzeigereihenfolge."""
        return list(self.working_set)

    def focus(self, item_id: str | None) -> asyncio.Task[AnalysisResult] | None:
        """Setzt die fokussierte Mail und startet ggf. deren Analyse.

        Muss innerhalb der laufenden Event-Loop aufgerufen werden.

        Returns:
            Der gestartete Analyse-Task oder None.

        Raises:
            UnknownItemError: ID ist nicht im Arbeitsbestand.
        """
        if item_id is None:
            self.focused_id = None
            return None

        item = self._require(item_id)
        self.focused_id = item_id
        return self.processor.on_focus(item)

    async def process(self, item_id: str) -> AnalysisResult:
        """Analysiert eine Mail (oder wiederholt eine fehlgeschlagene)."""
        return await self.processor.process(self._require(item_id))

    def edit_draft(self, item_id: str, new_draft: str) -> bool:
        """Ändert den Antwortentwurf einer analysierten Mail.

        Returns:
            False wenn die Mail nicht mehr im Bestand ist.
        """
        return self.store.mutate_draft(item_id, new_draft)

    async def commit(self, item_id: str) -> CommittedRecord | None:
        """Schließt eine analysierte Mail ab (verspäteter Commit → None)."""
        record = await self.committer.commit(item_id)
        if record is not None:
            self._forget(item_id)
        return record

    def discard(self, item_id: str) -> bool:
        """Verwirft eine Mail ohne Übergabe an den Sink."""
        removed = self.committer.discard(item_id)
        self._forget(item_id)
        return removed

    def view(self, item_id: str) -> ItemView:
        """Mail mit Zustand, Ergebnis und hervorgehobenem Text."""
        item = self._require(item_id)
        entry = self.store.get(item_id)
        return ItemView(
            item=item,
            state=entry.state if entry else ProcessingState.IDLE,
            result=entry.result if entry else None,
            error=entry.error if entry else None,
            segments=segment(item.body, item.sender_name, self._pattern_set),
        )

    # --- Auswahl ---

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    def toggle_selection(self, item_id: str) -> bool:
        """Schaltet die Auswahl einer Mail um; gibt den neuen Zustand zurück."""
        self._require(item_id)
        if item_id in self._selected:
            self._selected.discard(item_id)
            return False
        self._selected.add(item_id)
        return True

    def toggle_select_all(self) -> None:
        """Alles ausgewählt → Auswahl leeren, sonst alles auswählen."""
        all_ids = set(self.working_set.ids())
        if all_ids and self._selected >= all_ids:
            self._selected.clear()
        else:
            self._selected = all_ids

    def clear_selection(self) -> None:
        self._selected.clear()

    async def bulk_commit_selected(self) -> BulkCommitResult:
        """Analysiert und schließt alle ausgewählten Mails ab.

        Abgeschlossene und übersprungene Mails verlassen die Auswahl,
        fehlgeschlagene bleiben ausgewählt.

        Raises:
            BulkInProgressError: Wenn bereits eine Sammelverarbeitung läuft.
        """
        if self._bulk_running:
            raise BulkInProgressError("Sammelverarbeitung läuft bereits")

        self._bulk_running = True
        try:
            outcome = await self.bulk.bulk_commit(sorted(self._selected))
        finally:
            self._bulk_running = False

        for item_id in [*outcome.committed, *outcome.skipped]:
            self._forget(item_id)
        return outcome

    @property
    def is_bulk_running(self) -> bool:
        return self._bulk_running

    # --- Intern ---

    def _require(self, item_id: str) -> Item:
        item = self.working_set.get(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        return item

    def _forget(self, item_id: str) -> None:
        """Entfernt eine abgeschlossene Mail aus Auswahl und Fokus."""
        self._selected.discard(item_id)
        if self.focused_id == item_id:
            self.focused_id = None
