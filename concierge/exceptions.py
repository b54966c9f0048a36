"""Spezifische Exceptions des Mail-Concierge.

Hierarchie:
    ConciergeError (Basis)
    ├── AnalysisFailure              – Analyse fehlgeschlagen (pro Mail, wiederholbar)
    │   ├── AnalysisConfigError      – API-Key fehlt oder ungültig
    │   ├── AnalysisTransportError   – Netzwerkfehler, Timeout, HTTP-Fehler
    │   ├── AnalysisAuthError        – 401/403
    │   └── AnalysisResponseError    – Antwort nicht parsbar oder unvollständig
    ├── AlreadyProcessingError       – Mail ist bereits in Analyse (fremder Aufruf)
    ├── UnknownItemError             – Mail-ID nicht im Arbeitsbestand
    ├── InvalidStateError            – Aktion im aktuellen Zustand nicht erlaubt
    ├── CommitError                  – Übergabe an den Commit-Sink fehlgeschlagen
    ├── ItemSourceError              – Abruf neuer Mails fehlgeschlagen
    └── BulkInProgressError          – Sammelverarbeitung läuft bereits

Kein Fehler ist für den Prozess fatal: jeder betrifft genau eine Mail-ID
oder einen einzelnen Abruf.
"""

from __future__ import annotations


class ConciergeError(Exception):
    """Basisklasse für alle Concierge-Fehler."""


# ---------------------------------------------------------------------------
# Analyse
# ---------------------------------------------------------------------------

class AnalysisFailure(ConciergeError):
    """Analyse einer Mail ist fehlgeschlagen.

    Wird pro Mail im Store abgelegt und kann per erneutem `process()`
    wiederholt werden.
    """

    def __init__(self, message: str, item_id: str | None = None) -> None:
        self.item_id = item_id
        super().__init__(message)


class AnalysisConfigError(AnalysisFailure):
    """Fehlende oder ungültige Konfiguration (z.B. kein API-Key)."""


class AnalysisTransportError(AnalysisFailure):
    """Fehler bei der Kommunikation mit dem Analysedienst."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AnalysisAuthError(AnalysisFailure):
    """Authentifizierung beim Analysedienst fehlgeschlagen (401/403)."""


class AnalysisResponseError(AnalysisFailure):
    """Antwort des Analysedienstes konnte nicht geparst oder validiert werden."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        self.raw_response = raw_response
        super().__init__(message)


# ---------------------------------------------------------------------------
# Zustandsverwaltung
# ---------------------------------------------------------------------------

class AlreadyProcessingError(ConciergeError):
    """Für die Mail läuft bereits eine Analyse, die nicht von uns stammt."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Mail {item_id} wird bereits analysiert")


class UnknownItemError(ConciergeError):
    """Mail-ID ist nicht (mehr) im Arbeitsbestand."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Mail {item_id} ist nicht im Arbeitsbestand")


class InvalidStateError(ConciergeError):
    """Aktion ist im aktuellen Verarbeitungszustand nicht erlaubt."""

    def __init__(self, item_id: str, state: str, action: str) -> None:
        self.item_id = item_id
        self.state = state
        self.action = action
        super().__init__(
            f"'{action}' für Mail {item_id} nicht möglich (Zustand: {state})"
        )


class CommitError(ConciergeError):
    """Der Commit-Sink hat die Übergabe abgelehnt; die Mail bleibt unverändert."""

    def __init__(self, item_id: str, message: str) -> None:
        self.item_id = item_id
        super().__init__(f"Commit für Mail {item_id} fehlgeschlagen: {message}")


class ItemSourceError(ConciergeError):
    """Abruf neuer Mails aus der Quelle fehlgeschlagen."""


class BulkInProgressError(ConciergeError):
    """Es läuft bereits eine Sammelverarbeitung."""
