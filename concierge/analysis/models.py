"""Pydantic-Modelle für das Analyseergebnis einer Mail.

Bilden die Antwort des Analysedienstes als typisierte Python-Objekte ab.
Feldnamen entsprechen dem JSON-Format der Antwort (französisch, wie im
Prompt vorgegeben).  Unbekannte Felder werden ignoriert, fehlende
optionale Felder bekommen Defaults, damit auch unvollständige Antworten
verwertbar bleiben.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class EmailCategory(str, Enum):
    """Hauptkategorie einer Mail."""
    RENSEIGNEMENTS = "Renseignements"
    PEC = "PEC"
    FACTURES = "Factures"
    SPAMS = "Spams"


class EmailSubCategory(str, Enum):
    """Unterkategorie (nur für Anfragen relevant)."""
    SEMINAIRES = "Séminaires"
    NUITEES = "Nuitée(s)"
    RESTAURATION = "Restauration"
    NA = "N/A"


class DossierStatus(str, Enum):
    """Bearbeitungsstand des Vorgangs."""
    NOUVEAU = "Nouveau"
    ATTENTE_CLIENT = "En attente d'informations du client"
    ATTENTE_HOTEL = "En attente d'action de l'hôtel"
    OPTION = "Option posée"
    CONFIRME = "Confirmé"
    CLOS = "Clos"


class ExtractedInfo(BaseModel):
    """Aus der Mail extrahierte Fakten.

    Alle Felder optional, damit auch unvollständige Claude-Antworten
    (fehlende Felder oder null) geparst werden können.
    """
    model_config = ConfigDict(extra="ignore")

    nom_client: Optional[str] = None
    societe: Optional[str] = None
    dates_sejour: Optional[str] = None
    # Zahl oder Freitext ("environ 20")
    nb_personnes: Optional[Union[int, str]] = None
    type_prestation: Optional[str] = None
    budget_evoque: Optional[str] = None
    demandes_specifiques: Optional[str] = None
    urgence: Optional[bool] = False
    langue_mail: Optional[str] = None


class AnalysisResult(BaseModel):
    """Strukturiertes Analyseergebnis einer Mail.

    Der Antwortentwurf darf vom Bearbeiter nachträglich geändert werden;
    dafür wird über `with_draft()` eine Kopie erzeugt.
    """
    model_config = ConfigDict(extra="ignore")

    summary: str = Field("", description="Zusammenfassung in 2-4 Sätzen")
    category: EmailCategory
    sub_category: EmailSubCategory = EmailSubCategory.NA
    status: DossierStatus = DossierStatus.NOUVEAU
    extracted_info: ExtractedInfo = Field(default_factory=ExtractedInfo)
    draft_response: str = Field("", description="Antwortentwurf inkl. Betreff")

    @field_validator(
        "summary", "sub_category", "status", "extracted_info", "draft_response",
        mode="before",
    )
    @classmethod
    def null_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        """null in der Antwort → Default des Feldes."""
        if v is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v

    @property
    def is_urgent(self) -> bool:
        return bool(self.extracted_info.urgence)

    def with_draft(self, draft: str) -> AnalysisResult:
        """Gibt eine Kopie mit geändertem Antwortentwurf zurück."""
        return self.model_copy(update={"draft_response": draft})
