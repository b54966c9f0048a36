"""Posteingang – Arbeitsbestand, Zustandsautomat und Sammelverarbeitung.

Öffentliche API:
- InboxSession: Orchestrierung für einen Bearbeiter
- SingleItemProcessor: Analyse einer Mail (höchstens eine pro ID gleichzeitig)
- BulkOrchestrator / BulkCommitResult: Sammelverarbeitung mit Fehlerisolation
- Committer: atomarer Abschluss pro Mail
- ItemProcessingStore / WorkingSet: Zustand und Bestand
- Item, ProcessingState, ProcessingEntry, CommittedRecord
"""

from concierge.inbox.bulk import BulkCommitResult, BulkOrchestrator
from concierge.inbox.commit import Committer
from concierge.inbox.models import (
    CommitSink,
    CommittedRecord,
    Item,
    ItemSource,
    ProcessingEntry,
    ProcessingState,
    SourcePlatform,
)
from concierge.inbox.processor import AUTO_TRIGGER_STATES, SingleItemProcessor
from concierge.inbox.session import InboxSession, ItemView
from concierge.inbox.store import ItemProcessingStore
from concierge.inbox.working_set import WorkingSet

__all__ = [
    # Orchestrierung
    "InboxSession",
    "ItemView",
    "SingleItemProcessor",
    "AUTO_TRIGGER_STATES",
    "BulkOrchestrator",
    "BulkCommitResult",
    "Committer",
    # Zustand
    "ItemProcessingStore",
    "WorkingSet",
    # Modelle
    "Item",
    "SourcePlatform",
    "ProcessingState",
    "ProcessingEntry",
    "CommittedRecord",
    "ItemSource",
    "CommitSink",
]
