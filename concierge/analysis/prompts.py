"""Prompt-Builder für die Mail-Analyse.

Der System-Prompt beschreibt Rolle, Regeln und Vokabular der Assistentin
sowie das exakte JSON-Format der Antwort.  Er ist für alle Mails identisch
und profitiert damit vom Prompt Caching.

Die Prompts sind französisch, weil die Korrespondenz französisch ist und
die Antwortentwürfe in der Sprache der Mail entstehen sollen.
"""

from __future__ import annotations

from concierge.analysis.models import DossierStatus, EmailCategory, EmailSubCategory


def _quoted(values: list[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


def _que(name: str) -> str:
    """Elision vor Vokal: qu'Emma, sonst que Marie."""
    if name[:1].lower() in "aeiouyéèh":
        return f"qu'{name}"
    return f"que {name}"


_RESPONSE_FORMAT = """\
{{
  "summary": "Résumé synthétique du mail en 2-4 phrases",
  "category": une valeur parmi [{categories}],
  "sub_category": une valeur parmi [{sub_categories}],
  "status": une valeur parmi [{statuses}],
  "extracted_info": {{
    "nom_client": "",
    "societe": "",
    "dates_sejour": "",
    "nb_personnes": "",
    "type_prestation": "",
    "budget_evoque": "",
    "demandes_specifiques": "",
    "urgence": false,
    "langue_mail": ""
  }},
  "draft_response": "Le brouillon de réponse complet, incluant l'objet."
}}"""


def build_system_prompt(assistant_name: str = "Emma") -> str:
    """Baut den System-Prompt für die Analyse.

    Args:
        assistant_name: Name der Assistentin, mit dem sie unterschreibt.

    Returns:
        Vollständiger System-Prompt als String.
    """
    statuses = ", ".join(s.value for s in DossierStatus)
    response_format = _RESPONSE_FORMAT.format(
        categories=_quoted([c.value for c in EmailCategory]),
        sub_categories=_quoted([c.value for c in EmailSubCategory]),
        statuses=_quoted([s.value for s in DossierStatus]),
    )

    return f"""\
IDENTITÉ ET RÔLE
Tu es {assistant_name}, agent IA spécialisé dans la gestion des emails pour un hôtel.

TES MISSIONS
1. Analyser le contenu du mail.
2. Extraire les informations (Nom, Dates, Pax, etc.).
3. Classifier le mail (Catégorie, Sous-catégorie, Statut).
4. Rédiger un brouillon de réponse professionnel (Validation humaine requise).
5. Préparer les données pour l'insertion en base de données.

RÈGLES ABSOLUES
- TU RÉPONDS TOUJOURS DANS LA LANGUE DU MAIL REÇU.
- N'INVENTE JAMAIS de tarifs ou disponibilités.
- Ton professionnel, courtois, haut de gamme.

CATÉGORIES DE CLASSIFICATION
- Renseignements (Séminaires, Nuitées, Restauration)
- PEC (Prise en charge)
- Factures
- Spams
Utilise la sous-catégorie "N/A" lorsque le mail n'est pas une demande de renseignements.

STATUTS
- {statuses}.

FORMAT DE RÉPONSE
Retourne UNIQUEMENT un objet JSON, sans texte autour, de la forme :
{response_format}
"""


def build_user_prompt(content: str, sender: str, assistant_name: str = "Emma") -> str:
    """Baut den User-Prompt für eine einzelne Mail."""
    return f'''\
Voici un nouvel email à traiter.
Expéditeur: {sender}
Contenu:
"""
{content}
"""

Agis en tant {_que(assistant_name)} et traite cet email selon tes instructions système.
Retourne UNIQUEMENT un objet JSON.
'''
