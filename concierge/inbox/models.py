"""Datenmodelle des Posteingangs.

- Item: eingegangene Mail (unveränderlich ab Aufnahme in den Arbeitsbestand)
- ProcessingState / ProcessingEntry: Verarbeitungszustand pro Mail-ID
- CommittedRecord: abgeschlossener Vorgang (Mail + Analyseergebnis)
- ItemSource / CommitSink: externe Quelle und Abnehmer
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from concierge.analysis.models import AnalysisResult


class SourcePlatform(str, Enum):
    """Herkunft einer Mail."""
    GMAIL = "gmail"
    OUTLOOK = "outlook"


class Item(BaseModel):
    """Eingegangene Mail.

    Die ID ist eindeutig und stabil; sie dient zur Deduplizierung beim
    Abruf und als Schlüssel für den Verarbeitungszustand.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    sender: str
    sender_name: str = ""
    subject: str = ""
    body: str = ""
    received_at: datetime
    platform: SourcePlatform = SourcePlatform.GMAIL
    read: bool = False

    @property
    def first_name(self) -> str:
        """Erstes Wort des Anzeigenamens (Referenz für die Namensmarkierung)."""
        tokens = self.sender_name.split()
        return tokens[0] if tokens else ""


class ProcessingState(str, Enum):
    """Verarbeitungszustand einer Mail."""
    IDLE = "idle"               # Aufgenommen, noch nicht analysiert
    PROCESSING = "processing"   # Analyse läuft
    DONE = "done"               # Ergebnis liegt vor
    ERROR = "error"             # Analyse fehlgeschlagen, Fehlermeldung liegt vor


@dataclass(frozen=True)
class ProcessingEntry:
    """Momentaufnahme des Zustands einer Mail.

    Invariante: `result` ist genau bei DONE gesetzt, `error` genau bei ERROR.
    """
    state: ProcessingState = ProcessingState.IDLE
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None


class CommittedRecord(BaseModel):
    """Abgeschlossener Vorgang, wie er an den Commit-Sink übergeben wird."""
    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    item: Item
    result: AnalysisResult
    committed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ItemSource(Protocol):
    """Quelle für neue Mails (z.B. Postfach-Anbindung)."""

    async def fetch_new_items(self) -> Sequence[Item]:
        ...


# Abnehmer abgeschlossener Vorgänge – synchron oder als Coroutine
CommitSink = Callable[[CommittedRecord], Union[None, Awaitable[None]]]
