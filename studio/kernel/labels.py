"""
Studio Kernel — Labels

Human-readable names for document paths and actions. Used for default
ActionResult labels and for matching rollback targets against history.

The product UI is French; labels are too.
"""

from __future__ import annotations

import re
from typing import Any

from studio.kernel.types import THEME_PRESETS

SECTION_LABELS: dict[str, str] = {
    "header": "En-tête",
    "hero": "Héro",
    "services": "Services",
    "about": "À propos",
    "testimonials": "Témoignages",
    "faq": "FAQ",
    "cta": "Appel à l'action",
    "contact": "Contact",
    "footer": "Pied de page",
    "theme": "Thème",
}

FIELD_LABELS: dict[str, str] = {
    "title": "Titre",
    "subtitle": "Sous-titre",
    "description": "Description",
    "content": "Contenu",
    "name": "Nom",
    "text": "Texte",
    "url": "Lien",
    "image": "Image",
    "icon": "Icône",
    "enabled": "Visible",
    "tagline": "Accroche",
    "price": "Prix",
    "quote": "Témoignage",
    "author": "Auteur",
    "role": "Fonction",
    "company": "Entreprise",
    "rating": "Note",
    "question": "Question",
    "answer": "Réponse",
    "value": "Valeur",
    "ctaPrimary": "Bouton principal",
    "ctaSecondary": "Bouton secondaire",
    "ctaButton": "Bouton d'action",
    "buttonPrimary": "Bouton principal",
    "buttonSecondary": "Bouton secondaire",
    "email": "Email",
    "phone": "Téléphone",
    "address": "Adresse",
    "hours": "Horaires",
    "logoText": "Logo",
    "badge": "Badge",
}

STYLE_LABELS: dict[str, str] = {
    "color": "Couleur",
    "bgColor": "Couleur de fond",
    "textColor": "Couleur du texte",
    "borderColor": "Couleur de bordure",
    "gradient": "Dégradé",
    "radius": "Arrondi",
    "padding": "Espacement",
    "shadow": "Ombre",
}

# Exact paths whose generic label would read badly
PATH_LABELS: dict[str, str] = {
    "theme.primaryColor": "Couleur principale",
    "theme.secondaryColor": "Couleur secondaire",
    "theme.fontHeading": "Police des titres",
    "theme.fontBody": "Police du texte",
    "theme.mode": "Mode (clair/sombre)",
    "hero.title": "Titre principal",
    "hero.badge": "Badge accroche",
    "header.sticky": "En-tête fixe",
    "about.content": "Texte de présentation",
    "contact.showForm": "Formulaire de contact",
}

_ITEM_PATH = re.compile(r"^(\w+)\.(items|values)\[(\d+)\]\.?(\w*)$")
_STYLE_PATH = re.compile(r"^(\w+)\.styles\.(.+)$")
_SIMPLE_PATH = re.compile(r"^(\w+)\.(\w+)$")
_BUTTON_PATH = re.compile(r"^(\w+)\.(cta\w+|button\w+)\.(\w+)$")

# Words ignored when matching a user phrase against history and changes
STOPWORDS: set[str] = {
    "le", "la", "les", "l", "de", "du", "des", "d", "un", "une", "et", "juste", "seulement",
    "changement", "changements", "modification", "modifications", "modif", "modifs", "ajout",
    "the", "a", "an", "of", "and", "only", "just", "change", "changes", "edit", "edits",
}


def keywords(text: str | None) -> list[str]:
    """Lower-cased words of `text`, minus STOPWORDS."""
    return [w for w in re.findall(r"\w+", (text or "").lower()) if w not in STOPWORDS]


def _section(section: str) -> str:
    return SECTION_LABELS.get(section, section)


def humanize_path(path: str | None) -> str:
    """
    "hero.styles.title.color"  → "Couleur (héro)"
    "services.items[1].name"   → "Nom du services n°2"
    "hero.ctaPrimary.text"     → "Texte du bouton principal (héro)"
    """
    if not path:
        return "Élément"
    if path in PATH_LABELS:
        return PATH_LABELS[path]
    if path in SECTION_LABELS:
        return SECTION_LABELS[path]

    m = _ITEM_PATH.match(path)
    if m:
        section, list_field, index, fld = m.groups()
        num = int(index) + 1
        if list_field == "values":
            return f"{FIELD_LABELS.get(fld, fld)} de la valeur n°{num}" if fld else f"Valeur n°{num}"
        if fld:
            return f"{FIELD_LABELS.get(fld, fld)} du {_section(section).lower()} n°{num}"
        return f"{_section(section)} n°{num}"

    m = _STYLE_PATH.match(path)
    if m:
        section, style_path = m.groups()
        last = style_path.split(".")[-1]
        return f"{STYLE_LABELS.get(last, last)} ({_section(section).lower()})"

    m = _SIMPLE_PATH.match(path)
    if m:
        section, fld = m.groups()
        return f"{FIELD_LABELS.get(fld, fld)} ({_section(section).lower()})"

    m = _BUTTON_PATH.match(path)
    if m:
        section, button, fld = m.groups()
        return (
            f"{FIELD_LABELS.get(fld, fld)} du {FIELD_LABELS.get(button, button).lower()} "
            f"({_section(section).lower()})"
        )

    last = path.split(".")[-1]
    return FIELD_LABELS.get(last, last)


def humanize_action(action: Any) -> str:
    """Label for an action model: its own label if set, else one derived from its type."""
    label = getattr(action, "label", None)
    if label:
        return label

    action_type = getattr(action, "type", None)
    path = getattr(action, "path", None)
    section = getattr(action, "section", None)

    if action_type in ("update", "update_item"):
        return f"{humanize_path(path)} modifié"
    if action_type == "add_item":
        return f"{humanize_path(path)} ajouté"
    if action_type == "delete_item":
        return f"{humanize_path(path)} supprimé"
    if action_type == "generate_section":
        return f"{_section(section)} généré"
    if action_type == "apply_preset":
        preset = THEME_PRESETS.get(getattr(action, "preset_id", ""))
        return f"Thème {preset['name']}" if preset else "Thème appliqué"
    if action_type == "update_theme":
        return "Thème modifié"
    if action_type == "toggle_section":
        return f"{_section(section)} {'activé' if getattr(action, 'enabled', False) else 'masqué'}"
    if action_type == "update_field":
        return f"{humanize_path(f'{section}.{action.field}')} modifié"
    if action_type == "update_button":
        return f"{humanize_path(f'{section}.{action.button}')} modifié"
    return humanize_path(path) if path else "Élément"
