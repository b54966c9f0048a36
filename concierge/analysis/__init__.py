"""Analyse – Schnittstelle zum Analysedienst und Ergebnis-Modelle.

Öffentliche API:
- AnalysisClient: Protokoll `analyze(content, sender) -> AnalysisResult`
- ClaudeAnalysisClient: Implementierung über die Claude API
- AnalysisResult, ExtractedInfo und die Enums für Kategorie/Status
- build_system_prompt / build_user_prompt

Typische Verwendung:
    from concierge.analysis import ClaudeAnalysisClient

    async with ClaudeAnalysisClient(api_key="sk-ant-...") as client:
        result = await client.analyze(body, sender)
        print(result.category.value, result.draft_response)
"""

from concierge.analysis.client import AnalysisClient, ClaudeAnalysisClient
from concierge.analysis.models import (
    AnalysisResult,
    DossierStatus,
    EmailCategory,
    EmailSubCategory,
    ExtractedInfo,
)
from concierge.analysis.prompts import build_system_prompt, build_user_prompt

__all__ = [
    # Client
    "AnalysisClient",
    "ClaudeAnalysisClient",
    # Modelle
    "AnalysisResult",
    "ExtractedInfo",
    "EmailCategory",
    "EmailSubCategory",
    "DossierStatus",
    # Prompts
    "build_system_prompt",
    "build_user_prompt",
]
