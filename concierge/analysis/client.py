"""Analyse-Schnittstelle und Claude-Implementierung.

`AnalysisClient` ist die einzige Fähigkeit, die die Zustandsverwaltung vom
Analysedienst braucht: `analyze(content, sender) -> AnalysisResult`.
Jeder Fehler (Transport, Authentifizierung, unbrauchbare Antwort) wird
als `AnalysisFailure` gemeldet.

`ClaudeAnalysisClient` setzt diese Schnittstelle mit dem Anthropic Python
SDK (AsyncAnthropic) um: System-Prompt mit Prompt Caching, Mail als
User-Prompt, JSON-Antwort wird per Pydantic validiert.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

import anthropic

from concierge.analysis.models import AnalysisResult
from concierge.analysis.prompts import build_system_prompt, build_user_prompt
from concierge.exceptions import (
    AnalysisAuthError,
    AnalysisConfigError,
    AnalysisResponseError,
    AnalysisTransportError,
)
from concierge.logging_config import get_logger

logger = get_logger("analysis")

# Standard max_tokens: Antwortentwurf + extrahierte Felder passen locker hinein
DEFAULT_MAX_TOKENS = 2048

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


class AnalysisClient(Protocol):
    """Fähigkeit zur Analyse einer einzelnen Mail."""

    async def analyze(self, content: str, sender: str) -> AnalysisResult:
        """Analysiert eine Mail.

        Raises:
            AnalysisFailure: Bei jedem Fehler des Analysedienstes.
        """
        ...


class ClaudeAnalysisClient:
    """Asynchroner Analyse-Client auf Basis der Claude API.

    Verwendung:
        async with ClaudeAnalysisClient(api_key="sk-ant-...") as client:
            result = await client.analyze(mail.body, mail.sender)
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        max_retries: int = 2,
        assistant_name: str = "Emma",
    ) -> None:
        """Initialisiert den Client.

        Args:
            api_key: Anthropic API Key (muss mit 'sk-ant-' beginnen).
            model: Modell für die Analyse.
            max_tokens: Maximale Anzahl Output-Tokens.
            max_retries: Anzahl automatischer Retries bei 429/5xx (im SDK).
            assistant_name: Name der Assistentin im Prompt.

        Raises:
            AnalysisConfigError: Wenn der API-Key fehlt oder ungültig ist.
        """
        if not api_key:
            raise AnalysisConfigError(
                "ANTHROPIC_API_KEY ist nicht konfiguriert. "
                "Bitte in .env oder als Umgebungsvariable setzen."
            )
        if not api_key.startswith("sk-ant-"):
            raise AnalysisConfigError(
                "ANTHROPIC_API_KEY hat ein ungültiges Format "
                "(erwartet: Prefix 'sk-ant-')."
            )

        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            max_retries=max_retries,
        )
        self._model = model
        self._max_tokens = max_tokens
        self._assistant_name = assistant_name
        self._system_prompt = build_system_prompt(assistant_name)

        logger.info(
            "ClaudeAnalysisClient initialisiert: model=%s, max_tokens=%d, retries=%d",
            model,
            max_tokens,
            max_retries,
        )

    async def close(self) -> None:
        """Schließt den HTTP-Client und gibt Ressourcen frei."""
        await self._client.close()
        logger.debug("ClaudeAnalysisClient geschlossen")

    async def __aenter__(self) -> ClaudeAnalysisClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # --- Hauptmethode ---

    async def analyze(self, content: str, sender: str) -> AnalysisResult:
        """Sendet eine Mail an Claude und liefert das Analyseergebnis.

        Args:
            content: Mailtext.
            sender: Absenderadresse.

        Returns:
            Validiertes AnalysisResult.

        Raises:
            AnalysisTransportError: Netzwerk- oder HTTP-Fehler.
            AnalysisAuthError: API-Key abgelehnt.
            AnalysisResponseError: Antwort leer, kein JSON oder unvollständig.
        """
        logger.info(
            "Analyse starten: model=%s, sender=%s, %d Zeichen",
            self._model,
            sender,
            len(content),
        )

        try:
            message = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=[
                    {
                        "type": "text",
                        "text": self._system_prompt,
                        "cache_control": {"type": "ephemeral"},
                    }
                ],
                messages=[
                    {
                        "role": "user",
                        "content": build_user_prompt(
                            content, sender, self._assistant_name,
                        ),
                    }
                ],
            )
        except anthropic.APIConnectionError as exc:
            raise AnalysisTransportError(
                f"Verbindung zur Claude API fehlgeschlagen: {exc}"
            ) from exc
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as exc:
            raise AnalysisAuthError(
                f"Claude API hat den API-Key abgelehnt (HTTP {exc.status_code})"
            ) from exc
        except anthropic.APIStatusError as exc:
            raise AnalysisTransportError(
                f"Claude API Fehler (HTTP {exc.status_code}): {exc.message}",
                status_code=exc.status_code,
            ) from exc

        usage = getattr(message, "usage", None)
        if usage is not None:
            logger.debug(
                "Token-Verbrauch: input=%d, output=%d",
                usage.input_tokens,
                usage.output_tokens,
            )

        raw_text = self._extract_text(message)
        result = self._parse_response(raw_text)

        logger.info(
            "Analyse abgeschlossen: sender=%s, category=%s, status=%s",
            sender,
            result.category.value,
            result.status.value,
        )
        return result

    # --- Hilfsmethoden (intern) ---

    @staticmethod
    def _extract_text(message: Any) -> str:
        """Extrahiert den ersten Textblock aus der API-Antwort.

        Raises:
            AnalysisResponseError: Wenn kein Textinhalt vorhanden ist.
        """
        for block in message.content:
            if getattr(block, "text", None):
                return block.text

        raise AnalysisResponseError(
            "Claude-Antwort enthält keinen Textinhalt",
            raw_response=str(message.content),
        )

    @staticmethod
    def _parse_response(raw_text: str) -> AnalysisResult:
        """Parst die JSON-Antwort in ein AnalysisResult.

        Behandelt JSON in Markdown-Codeblöcken und führenden/nachfolgenden
        Whitespace.  Unbekannte Felder werden ignoriert.

        Raises:
            AnalysisResponseError: Wenn JSON ungültig oder nicht validierbar ist.
        """
        cleaned = raw_text.strip()

        codeblock_match = re.search(
            r"```(?:json)?\s*\n?(.*?)\n?\s*```",
            cleaned,
            re.DOTALL,
        )
        if codeblock_match:
            cleaned = codeblock_match.group(1).strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise AnalysisResponseError(
                f"Ungültiges JSON in Claude-Antwort: {exc}",
                raw_response=raw_text,
            ) from exc

        if not isinstance(data, dict):
            raise AnalysisResponseError(
                f"JSON ist kein Objekt sondern {type(data).__name__}",
                raw_response=raw_text,
            )

        try:
            return AnalysisResult.model_validate(data)
        except ValueError as exc:
            raise AnalysisResponseError(
                f"JSON-Validierung fehlgeschlagen: {exc}",
                raw_response=raw_text,
            ) from exc
