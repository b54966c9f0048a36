"""Gemeinsame Fixtures und Fakes für die Tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Sequence

import pytest

from concierge.analysis.models import (
    AnalysisResult,
    DossierStatus,
    EmailCategory,
    EmailSubCategory,
    ExtractedInfo,
)
from concierge.inbox.models import CommittedRecord, Item, SourcePlatform
from concierge.inbox.session import InboxSession


def make_item(
    item_id: str = "email_001",
    sender: str = "sophie.lemaire@example.com",
    sender_name: str = "Sophie Lemaire",
    body: str | None = None,
    subject: str = "Réservation chambre double",
) -> Item:
    return Item(
        id=item_id,
        sender=sender,
        sender_name=sender_name,
        subject=subject,
        body=body if body is not None else f"Bonjour, message {item_id}",
        received_at=datetime(2026, 2, 10, 9, 30, tzinfo=timezone.utc),
        platform=SourcePlatform.GMAIL,
    )


def make_result(
    draft: str = "Madame, nous vous remercions pour votre demande.",
    category: EmailCategory = EmailCategory.RENSEIGNEMENTS,
) -> AnalysisResult:
    return AnalysisResult(
        summary="Demande de réservation.",
        category=category,
        sub_category=EmailSubCategory.NUITEES,
        status=DossierStatus.NOUVEAU,
        extracted_info=ExtractedInfo(nom_client="Sophie Lemaire", nb_personnes=2),
        draft_response=draft,
    )


class FakeAnalysisClient:
    """Analyse-Client mit vorgegebenen Antworten pro Mailtext.

    Zählt Aufrufe und die maximale Anzahl gleichzeitig laufender Analysen.
    Mit `gate` bleiben Aufrufe hängen, bis das Event gesetzt wird.
    """

    def __init__(self, default: AnalysisResult | None = None) -> None:
        self.default = default or make_result()
        self.calls: list[tuple[str, str]] = []
        self.responses: dict[str, list[AnalysisResult | BaseException]] = {}
        self.gate: asyncio.Event | None = None
        self.active = 0
        self.max_active = 0

    def script(self, content: str, *outcomes: AnalysisResult | BaseException) -> None:
        self.responses.setdefault(content, []).extend(outcomes)

    async def analyze(self, content: str, sender: str) -> AnalysisResult:
        self.calls.append((content, sender))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            queue = self.responses.get(content)
            outcome = queue.pop(0) if queue else self.default
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.active -= 1


class RecordingSink:
    """Commit-Sink, der übergebene Vorgänge sammelt."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.records: list[CommittedRecord] = []
        self.fail_for = fail_for or set()

    def __call__(self, record: CommittedRecord) -> None:
        if record.item.id in self.fail_for:
            raise RuntimeError("Datenbank nicht erreichbar")
        self.records.append(record)

    @property
    def item_ids(self) -> list[str]:
        return [r.item.id for r in self.records]


class FakeSource:
    """Mail-Quelle, die bei jedem Abruf dieselbe Liste liefert."""

    def __init__(self, items: Sequence[Item], error: Exception | None = None) -> None:
        self.items = list(items)
        self.error = error
        self.fetch_count = 0

    async def fetch_new_items(self) -> Sequence[Item]:
        self.fetch_count += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.items


@pytest.fixture
def client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session(client: FakeAnalysisClient, sink: RecordingSink) -> InboxSession:
    return InboxSession(client, sink)
