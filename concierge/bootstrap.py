"""Aufbau einer lauffähigen Sitzung aus der Konfiguration.

Lifecycle:
1. create_session()   – Logging, Analyse-Client, Sitzung
2. ... Bearbeitung ...
3. close_session()    – laufende Analysen abwarten, Client schließen
"""

from __future__ import annotations

from concierge.analysis.client import ClaudeAnalysisClient
from concierge.config import Settings, get_settings
from concierge.highlight import PatternSet
from concierge.inbox.models import CommitSink
from concierge.inbox.session import InboxSession
from concierge.logging_config import get_logger, setup_logging

logger = get_logger("app")


def create_session(
    sink: CommitSink,
    settings: Settings | None = None,
    configure_logging: bool = True,
) -> InboxSession:
    """Erstellt eine InboxSession mit Claude als Analysedienst.

    Args:
        sink: Abnehmer abgeschlossener Vorgänge.
        settings: Konfiguration (None = get_settings()).
        configure_logging: setup_logging() aufrufen.

    Raises:
        AnalysisConfigError: Wenn kein gültiger API-Key konfiguriert ist.
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(settings.log_level.value, settings.log_dir)

    client = ClaudeAnalysisClient(
        api_key=settings.anthropic_api_key,
        model=settings.analysis_model,
        max_tokens=settings.analysis_max_tokens,
        max_retries=settings.analysis_max_retries,
        assistant_name=settings.assistant_name,
    )
    pattern_set = PatternSet(settings.highlight_order)

    logger.info(
        "Sitzung erstellt: model=%s, Hervorhebung=%s",
        settings.analysis_model,
        settings.highlight_priority,
    )
    return InboxSession(client, sink, pattern_set=pattern_set)


async def close_session(session: InboxSession) -> None:
    """Wartet auf laufende Analysen und schließt den Analyse-Client."""
    await session.processor.drain()
    close = getattr(session.client, "close", None)
    if close is not None:
        await close()
    logger.info("Sitzung beendet")
