"""Logging-Konfiguration für den Mail-Concierge.

Setzt strukturiertes Logging auf mit:
- Console-Handler (stdout)
- RotatingFileHandler für persistente Logs (optional)
- Logger-Hierarchie: concierge.{component}
  → app, analysis, inbox

Alle Logger schreiben in dieselbe Datei mit Komponenten-Feld,
sodass per grep/Filter nach Komponente gesucht werden kann.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


# Basis-Logger-Name – alle Sublogger erben davon
ROOT_LOGGER_NAME = "concierge"

# Verfügbare Komponenten-Logger
COMPONENTS = ("app", "analysis", "inbox")

# Log-Format: Zeitstempel | Level | Komponente | Nachricht
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation: 2 MB pro Datei, maximal 3 Dateien behalten
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3

# Externe Libraries, die nur Warnungen durchlassen sollen
QUIET_LOGGERS = ("anthropic", "httpx", "httpcore")


def setup_logging(log_level: str = "INFO", log_dir: Path | None = None) -> None:
    """Konfiguriert das Logging-System.

    Args:
        log_level: Log-Level als String (DEBUG, INFO, WARNING, ERROR)
        log_dir: Verzeichnis für Log-Dateien. None = nur stdout.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    # Vorhandene Handler entfernen (bei erneutem Aufruf, z.B. in Tests)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / "concierge.log",
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("Log-Verzeichnis nicht beschreibbar: %s – nur stdout aktiv", e)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(component: str) -> logging.Logger:
    """Gibt einen Logger für die angegebene Komponente zurück.

    Args:
        component: Name der Komponente (app, analysis, inbox)

    Returns:
        Logger-Instanz mit Name 'concierge.{component}'

    Raises:
        ValueError: Für Komponenten außerhalb von COMPONENTS.
    """
    if component not in COMPONENTS:
        raise ValueError(
            f"Unbekannte Log-Komponente '{component}' (erlaubt: {', '.join(COMPONENTS)})"
        )
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
