from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from concierge.analysis import ClaudeAnalysisClient
from concierge.bootstrap import close_session, create_session
from concierge.config import LogLevel, Settings
from concierge.exceptions import AnalysisConfigError
from concierge.highlight import HighlightCategory
from concierge.logging_config import COMPONENTS, ROOT_LOGGER_NAME, get_logger, setup_logging

C = HighlightCategory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ANTHROPIC_API_KEY", "HIGHLIGHT_PRIORITY", "LOG_LEVEL", "LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


# --- Settings ---

def test_defaults() -> None:
    settings = make_settings()

    assert settings.anthropic_api_key is None
    assert settings.assistant_name == "Emma"
    assert settings.log_level is LogLevel.INFO
    assert settings.highlight_order == (C.CONTACT, C.PHONE, C.DATE, C.PRICE, C.SUBJECT_NAME)


def test_api_key_must_have_prefix() -> None:
    with pytest.raises(ValidationError):
        make_settings(anthropic_api_key="sk-test-123")

    assert make_settings(anthropic_api_key="sk-ant-abc").anthropic_api_key == "sk-ant-abc"


def test_highlight_priority_is_normalized() -> None:
    settings = make_settings(highlight_priority=" Price , DATE ,")

    assert settings.highlight_priority == "price,date"
    assert settings.highlight_order == (C.PRICE, C.DATE)


@pytest.mark.parametrize("value", ["", " , ", "price,iban", "date,price,date"])
def test_invalid_highlight_priority_is_rejected(value: str) -> None:
    with pytest.raises(ValidationError):
        make_settings(highlight_priority=value)


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HIGHLIGHT_PRIORITY", "subject_name,contact")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    settings = make_settings()

    assert settings.highlight_order == (C.SUBJECT_NAME, C.CONTACT)
    assert settings.log_level is LogLevel.DEBUG


# --- Logging ---

def test_setup_logging_writes_log_file(tmp_path) -> None:
    setup_logging("DEBUG", tmp_path / "logs")
    logger = get_logger("inbox")

    logger.info("Testeintrag %d", 42)
    for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
        handler.flush()

    content = (tmp_path / "logs" / "concierge.log").read_text(encoding="utf-8")
    assert "concierge.inbox" in content
    assert "Testeintrag 42" in content
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("INFO")
    assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1


def test_get_logger_accepts_only_known_components() -> None:
    for component in COMPONENTS:
        assert get_logger(component).name == f"{ROOT_LOGGER_NAME}.{component}"

    with pytest.raises(ValueError, match="highlight"):
        get_logger("highlight")


# --- Bootstrap ---

@pytest.mark.asyncio
async def test_create_session_uses_settings() -> None:
    settings = make_settings(anthropic_api_key="sk-ant-test", highlight_priority="price,date")

    session = create_session(lambda record: None, settings=settings, configure_logging=False)

    assert isinstance(session.client, ClaudeAnalysisClient)
    assert session._pattern_set.priority == (C.PRICE, C.DATE)
    await close_session(session)


def test_create_session_without_key_fails() -> None:
    with pytest.raises(AnalysisConfigError):
        create_session(lambda record: None, settings=make_settings(), configure_logging=False)
