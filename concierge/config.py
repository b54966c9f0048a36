"""Konfigurationsmanagement mit Pydantic Settings.

Lädt Konfiguration aus Environment-Variablen und .env-Datei.
Validiert Formate und setzt sinnvolle Defaults für optionale Felder.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from concierge.highlight.patterns import DEFAULT_PRIORITY, HighlightCategory


class LogLevel(str, Enum):
    """Erlaubte Log-Level."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """Zentrale Konfiguration des Mail-Concierge.

    Für die Analyse über Claude muss ANTHROPIC_API_KEY gesetzt sein.
    Segmentierung und Zustandsverwaltung laufen auch ohne Key.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Claude API ---
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="API-Key aus der Anthropic Console",
    )
    analysis_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Modell für die Mail-Analyse",
    )
    analysis_max_tokens: int = Field(
        default=2048,
        ge=256,
        description="Maximale Output-Tokens pro Analyse",
    )
    analysis_max_retries: int = Field(
        default=2,
        ge=0,
        description="Automatische SDK-Retries bei 429/5xx",
    )
    assistant_name: str = Field(
        default="Emma",
        min_length=1,
        description="Name der Assistentin im System-Prompt",
    )

    # --- Hervorhebung ---
    # Komma-separiert, Reihenfolge = Priorität bei Überlappungen
    highlight_priority: str = Field(
        default=",".join(c.value for c in DEFAULT_PRIORITY),
        description="Reihenfolge der Erkennungsmuster (z.B. 'contact,phone,date,price,subject_name')",
    )

    # --- Logging ---
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Log-Level für die Anwendung",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Verzeichnis für Log-Dateien (None = nur stdout)",
    )

    @field_validator("anthropic_api_key")
    @classmethod
    def validate_api_key_format(cls, v: Optional[str]) -> Optional[str]:
        """Grundlegende Formatprüfung des API-Keys (falls gesetzt)."""
        if v is not None and not v.startswith("sk-ant-"):
            raise ValueError(
                "ANTHROPIC_API_KEY muss mit 'sk-ant-' beginnen. "
                "Bitte Key aus der Anthropic Console prüfen."
            )
        return v

    @field_validator("highlight_priority")
    @classmethod
    def validate_highlight_priority(cls, v: str) -> str:
        """Normalisiert die Liste und prüft Kategorien auf Gültigkeit."""
        names = [part.strip().lower() for part in v.split(",") if part.strip()]
        if not names:
            raise ValueError("HIGHLIGHT_PRIORITY darf nicht leer sein")
        known = {c.value for c in HighlightCategory}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ValueError(
                f"Unbekannte Kategorie(n) in HIGHLIGHT_PRIORITY: {', '.join(unknown)}"
            )
        if len(set(names)) != len(names):
            raise ValueError("HIGHLIGHT_PRIORITY enthält doppelte Kategorien")
        return ",".join(names)

    @property
    def highlight_order(self) -> tuple[HighlightCategory, ...]:
        """Prioritätsreihenfolge als Enum-Tupel."""
        return tuple(HighlightCategory(n) for n in self.highlight_priority.split(","))


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Gibt die Settings-Instanz zurück (Lazy Singleton).

    Wird beim ersten Aufruf erstellt und danach wiederverwendet.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
