from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest

from concierge.analysis import (
    ClaudeAnalysisClient,
    DossierStatus,
    EmailCategory,
    EmailSubCategory,
    build_system_prompt,
    build_user_prompt,
)
from concierge.exceptions import (
    AnalysisAuthError,
    AnalysisConfigError,
    AnalysisFailure,
    AnalysisResponseError,
    AnalysisTransportError,
)

RESPONSE = {
    "summary": "Demande de devis pour un séminaire de 20 personnes.",
    "category": "Renseignements",
    "sub_category": "Séminaires",
    "status": "En attente d'action de l'hôtel",
    "extracted_info": {
        "nom_client": "Jean Dupont",
        "societe": "Acme",
        "nb_personnes": 20,
        "urgence": True,
        "champ_inconnu": "ignoré",
    },
    "draft_response": "Objet : Votre séminaire\n\nMonsieur Dupont, ...",
}

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _message(text: str) -> SimpleNamespace:
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=1200, output_tokens=350),
    )


@pytest.fixture
def claude() -> ClaudeAnalysisClient:
    return ClaudeAnalysisClient(api_key="sk-ant-test")


def _stub_create(claude: ClaudeAnalysisClient, **kwargs) -> AsyncMock:
    create = AsyncMock(**kwargs)
    claude._client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return create


# --- Konfiguration ---

@pytest.mark.parametrize("key", [None, "", "sk-test-123"])
def test_missing_or_malformed_key_is_config_error(key) -> None:
    with pytest.raises(AnalysisConfigError):
        ClaudeAnalysisClient(api_key=key)


def test_config_error_is_an_analysis_failure() -> None:
    assert issubclass(AnalysisConfigError, AnalysisFailure)


# --- Antwort-Parsing ---

def test_parse_plain_json() -> None:
    result = ClaudeAnalysisClient._parse_response(json.dumps(RESPONSE))

    assert result.category is EmailCategory.RENSEIGNEMENTS
    assert result.sub_category is EmailSubCategory.SEMINAIRES
    assert result.status is DossierStatus.ATTENTE_HOTEL
    assert result.extracted_info.nb_personnes == 20
    assert result.is_urgent


def test_parse_json_in_code_fence() -> None:
    raw = "Voici l'analyse :\n```json\n" + json.dumps(RESPONSE) + "\n```"

    result = ClaudeAnalysisClient._parse_response(raw)

    assert result.extracted_info.nom_client == "Jean Dupont"


def test_parse_fills_defaults_for_missing_optional_fields() -> None:
    result = ClaudeAnalysisClient._parse_response('{"category": "Spams"}')

    assert result.category is EmailCategory.SPAMS
    assert result.sub_category is EmailSubCategory.NA
    assert result.status is DossierStatus.NOUVEAU
    assert result.draft_response == ""


def test_parse_accepts_null_fields() -> None:
    raw = json.dumps({
        "summary": None,
        "category": "PEC",
        "sub_category": None,
        "status": None,
        "extracted_info": {
            "nom_client": None,
            "societe": None,
            "nb_personnes": None,
            "urgence": None,
        },
        "draft_response": None,
    })

    result = ClaudeAnalysisClient._parse_response(raw)

    assert result.category is EmailCategory.PEC
    assert result.sub_category is EmailSubCategory.NA
    assert result.status is DossierStatus.NOUVEAU
    assert result.summary == ""
    assert result.draft_response == ""
    assert result.extracted_info.societe is None
    assert result.extracted_info.nb_personnes is None
    assert not result.is_urgent


def test_parse_accepts_null_extracted_info() -> None:
    result = ClaudeAnalysisClient._parse_response('{"category": "Factures", "extracted_info": null}')

    assert result.extracted_info.nom_client is None


@pytest.mark.parametrize(
    "raw",
    [
        "Je ne peux pas répondre.",
        "[1, 2, 3]",
        '{"summary": "sans catégorie"}',
        '{"category": "Inconnue"}',
    ],
)
def test_unusable_responses_raise_response_error(raw: str) -> None:
    with pytest.raises(AnalysisResponseError) as exc_info:
        ClaudeAnalysisClient._parse_response(raw)

    assert exc_info.value.raw_response == raw


# --- analyze() ---

@pytest.mark.asyncio
async def test_analyze_sends_cached_system_prompt_and_mail(claude) -> None:
    create = _stub_create(claude, return_value=_message(json.dumps(RESPONSE)))

    result = await claude.analyze("Bonjour, nous souhaitons...", "jean@acme.fr")

    assert result.category is EmailCategory.RENSEIGNEMENTS
    kwargs = create.await_args.kwargs
    assert kwargs["system"][0]["cache_control"] == {"type": "ephemeral"}
    assert kwargs["system"][0]["text"] == build_system_prompt("Emma")
    user_content = kwargs["messages"][0]["content"]
    assert "jean@acme.fr" in user_content
    assert "Bonjour, nous souhaitons..." in user_content


@pytest.mark.asyncio
async def test_analyze_without_text_block_is_response_error(claude) -> None:
    _stub_create(claude, return_value=SimpleNamespace(content=[], usage=None))

    with pytest.raises(AnalysisResponseError):
        await claude.analyze("Bonjour", "a@b.fr")


@pytest.mark.asyncio
async def test_connection_error_is_transport_error(claude) -> None:
    _stub_create(claude, side_effect=anthropic.APIConnectionError(request=_REQUEST))

    with pytest.raises(AnalysisTransportError):
        await claude.analyze("Bonjour", "a@b.fr")


@pytest.mark.asyncio
async def test_rejected_key_is_auth_error(claude) -> None:
    response = httpx.Response(401, request=_REQUEST)
    _stub_create(
        claude,
        side_effect=anthropic.AuthenticationError("invalid x-api-key", response=response, body=None),
    )

    with pytest.raises(AnalysisAuthError):
        await claude.analyze("Bonjour", "a@b.fr")


@pytest.mark.asyncio
async def test_server_error_keeps_status_code(claude) -> None:
    response = httpx.Response(529, request=_REQUEST)
    _stub_create(
        claude,
        side_effect=anthropic.APIStatusError("overloaded", response=response, body=None),
    )

    with pytest.raises(AnalysisTransportError) as exc_info:
        await claude.analyze("Bonjour", "a@b.fr")

    assert exc_info.value.status_code == 529


# --- Prompts ---

def test_system_prompt_lists_allowed_values() -> None:
    prompt = build_system_prompt("Emma")

    for value in ("Renseignements", "Nuitée(s)", "Option posée", "draft_response"):
        assert value in prompt


def test_user_prompt_uses_elision_for_vowel_names() -> None:
    assert "qu'Emma" in build_user_prompt("Bonjour", "a@b.fr", "Emma")
    assert "que Marie" in build_user_prompt("Bonjour", "a@b.fr", "Marie")
