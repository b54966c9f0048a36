"""Einzelverarbeitung: eine Mail durch den Analyse-Zustandsautomaten führen.

Ablauf pro Aufruf:
 1. Zustand PROCESSING setzen (alter Fehler und altes Ergebnis verworfen)
 2. AnalysisClient.analyze(body, sender) aufrufen
 3. Erfolg → Ergebnis speichern, DONE, Ergebnis zurückgeben
    Fehler → Meldung speichern, ERROR, AnalysisFailure weiterreichen

Pro Mail-ID läuft höchstens eine Analyse.  Ein zweiter Aufruf während
einer laufenden Analyse wartet auf dasselbe Ergebnis, statt den Dienst
erneut aufzurufen.  Laufende Analysen werden nicht abgebrochen, wenn der
Bearbeiter zu einer anderen Mail wechselt; ein verspätetes Ergebnis wird
trotzdem gespeichert (oder still verworfen, falls die Mail inzwischen
abgeschlossen wurde).
"""

from __future__ import annotations

import asyncio
import time
from functools import partial

from concierge.analysis.client import AnalysisClient
from concierge.analysis.models import AnalysisResult
from concierge.exceptions import AlreadyProcessingError, AnalysisFailure, UnknownItemError
from concierge.inbox.models import Item, ProcessingState
from concierge.inbox.store import ItemProcessingStore
from concierge.logging_config import get_logger

logger = get_logger("inbox")

# Zustände, in denen das Fokussieren einer Mail die Analyse startet
AUTO_TRIGGER_STATES = (ProcessingState.IDLE, ProcessingState.ERROR)


class SingleItemProcessor:
    """Führt die Analyse einzelner Mails aus und pflegt den Store.

    Verwendung:
        processor = SingleItemProcessor(client, store)
        result = await processor.process(item)     # wartet auf Ergebnis
        task = processor.on_focus(item)            # startet ggf. im Hintergrund
    """

    def __init__(self, client: AnalysisClient, store: ItemProcessingStore) -> None:
        self._client = client
        self._store = store
        self._in_flight: dict[str, asyncio.Task[AnalysisResult]] = {}

    # --- Öffentliche API ---

    async def process(self, item: Item) -> AnalysisResult:
        """Analysiert eine Mail und gibt das Ergebnis zurück.

        Läuft für die ID bereits eine eigene Analyse, wird auf deren
        Ergebnis gewartet (kein zweiter Aufruf des Dienstes).  Ein erneuter
        Aufruf im Zustand ERROR ist ein Retry.

        Raises:
            UnknownItemError: ID ist nicht im Store registriert.
            AlreadyProcessingError: Store meldet PROCESSING ohne eigene Analyse.
            AnalysisFailure: Analyse fehlgeschlagen (Meldung liegt im Store).
        """
        task = self._start(item)
        # shield: Abbruch eines Wartenden beendet nicht die gemeinsame Analyse
        return await asyncio.shield(task)

    def on_focus(self, item: Item) -> asyncio.Task[AnalysisResult] | None:
        """Hook für den Fokuswechsel auf eine Mail.

        IDLE oder ERROR → Analyse starten; PROCESSING oder DONE → nichts.
        Unbekannte IDs werden ignoriert.

        Returns:
            Der gestartete Task oder None.
        """
        entry = self._store.get(item.id)
        if entry is None:
            logger.debug("Fokus auf unbekannte Mail %s – keine Analyse", item.id)
            return None
        if entry.state not in AUTO_TRIGGER_STATES:
            return None

        logger.info("Fokus auf Mail %s (%s) – starte Analyse", item.id, entry.state.value)
        return self._start(item)

    def in_flight(self, item_id: str) -> bool:
        """True wenn für die ID gerade eine eigene Analyse läuft."""
        task = self._in_flight.get(item_id)
        return task is not None and not task.done()

    async def drain(self) -> None:
        """Wartet auf alle laufenden Analysen (Fehler werden nicht weitergereicht)."""
        tasks = [t for t in self._in_flight.values() if not t.done()]
        if tasks:
            logger.debug("Warte auf %d laufende Analyse(n)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

    # --- Intern ---

    def _start(self, item: Item) -> asyncio.Task[AnalysisResult]:
        """Startet die Analyse oder liefert den bereits laufenden Task."""
        existing = self._in_flight.get(item.id)
        if existing is not None and not existing.done():
            logger.info(
                "Analyse für Mail %s läuft bereits – warte auf laufenden Aufruf",
                item.id,
            )
            # Nach Verwerfen und erneutem Abruf steht die ID wieder auf IDLE,
            # obwohl der alte Aufruf noch läuft
            if item.id in self._store and self._store.state(item.id) is not ProcessingState.PROCESSING:
                self._store.set_state(item.id, ProcessingState.PROCESSING)
            return existing

        if item.id not in self._store:
            raise UnknownItemError(item.id)
        if self._store.state(item.id) is ProcessingState.PROCESSING:
            raise AlreadyProcessingError(item.id)

        # Zustand wird vor dem ersten await gesetzt – kein zweiter Start möglich
        self._store.set_state(item.id, ProcessingState.PROCESSING)

        task = asyncio.create_task(self._run(item), name=f"analyze-{item.id}")
        self._in_flight[item.id] = task
        task.add_done_callback(partial(self._on_task_done, item.id))
        return task

    async def _run(self, item: Item) -> AnalysisResult:
        """Ruft den Analysedienst auf und schreibt das Ergebnis in den Store."""
        start_time = time.monotonic()
        logger.info("Analyse Start: Mail %s von %s", item.id, item.sender)

        try:
            result = await self._client.analyze(item.body, item.sender)

        except asyncio.CancelledError:
            # Kein Ergebnis – Mail wieder freigeben, damit ein Retry möglich ist
            self._store.set_state(item.id, ProcessingState.IDLE)
            logger.warning("Analyse für Mail %s abgebrochen", item.id)
            raise

        except AnalysisFailure as exc:
            if exc.item_id is None:
                exc.item_id = item.id
            message = str(exc) or type(exc).__name__
            self._store.set_error(item.id, message)
            logger.warning("Analyse fehlgeschlagen für Mail %s: %s", item.id, message)
            raise

        except Exception as exc:
            message = str(exc) or "Unbekannter Fehler bei der Analyse"
            self._store.set_error(item.id, message)
            logger.exception("Unerwarteter Fehler bei der Analyse von Mail %s: %s", item.id, exc)
            raise AnalysisFailure(message, item_id=item.id) from exc

        if self._store.set_result(item.id, result):
            logger.info(
                "Analyse abgeschlossen: Mail %s → %s (%.1fs)",
                item.id,
                result.category.value,
                time.monotonic() - start_time,
            )
        else:
            logger.info(
                "Ergebnis für Mail %s verworfen – nicht mehr im Arbeitsbestand",
                item.id,
            )
        return result

    def _on_task_done(self, item_id: str, task: asyncio.Task[AnalysisResult]) -> None:
        """Callback für den Analyse-Task: aufräumen und Fehler abholen."""
        if self._in_flight.get(item_id) is task:
            del self._in_flight[item_id]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(
                "Analyse-Task für Mail %s beendet mit %s", item_id, type(exc).__name__,
            )
