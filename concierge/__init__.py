"""Mail-Concierge – Hervorhebung, Analyse und Abschluss eingehender Hotel-Mails."""

__version__ = "0.1.0"
