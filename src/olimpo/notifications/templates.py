"""Placeholder substitution for notification templates.

Template bodies use ``{{variable}}`` placeholders. Rendering is literal
substitution; unknown placeholders are left untouched.
"""

from __future__ import annotations

import re
from datetime import date

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render(content: str, values: dict[str, str]) -> str:
    """Replace ``{{key}}`` tokens with values; unknown keys are kept as-is."""

    def replacer(match: re.Match[str]) -> str:
        key = match.group(1)
        return values.get(key, match.group(0))

    return PLACEHOLDER_PATTERN.sub(replacer, content)


def placeholders(content: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    seen: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(content):
        if name not in seen:
            seen.append(name)
    return seen


def extract_parameters(message: str, variables: list[str] | None) -> list[dict[str, str]]:
    """
    Build WhatsApp template body parameters from a free-text message.

    For each declared variable present as ``{{variable}}`` in the message, a
    ``variable: value`` (or ``variable = value``) pair in the same message
    supplies the value. A placeholder without such a pair is sent verbatim,
    and a variable absent from the message yields an empty parameter. With no
    declared variables the whole message is the single parameter.
    """
    if not variables:
        return [{"type": "text", "text": message}]

    remaining = message
    parameters = []
    for variable in variables:
        placeholder = re.compile(r"\{\{\s*" + re.escape(variable) + r"\s*\}\}")
        if not placeholder.search(remaining):
            parameters.append({"type": "text", "text": ""})
            continue
        value_pattern = re.compile(re.escape(variable) + r"\s*[:=]\s*([^,;\n]+)", re.IGNORECASE)
        match = value_pattern.search(remaining)
        if match and match.group(1).strip():
            parameters.append({"type": "text", "text": match.group(1).strip()})
            remaining = value_pattern.sub("", remaining, count=1)
        else:
            parameters.append({"type": "text", "text": "{{" + variable + "}}"})
    return parameters


def format_date(value: date) -> str:
    """Dates in notification bodies read as dd/mm/yyyy."""
    return value.strftime("%d/%m/%Y")


def text_to_html(text: str) -> str:
    return text.replace("\n", "<br>")


# ---------------------------------------------------------------------------
# Default membership message bodies
# ---------------------------------------------------------------------------

SIGNATURE = "\n\nSaludos,\nEl equipo de Olimpo Gym"


def expired_message(name: str, membership_type: str, end_date: date) -> str:
    return (
        f"Hola {name},\n\nTe informamos que tu membresía {membership_type} en Olimpo Gym "
        f"ha expirado el {format_date(end_date)}.\n\n"
        "Puedes renovarla visitando nuestras instalaciones o desde nuestra página web.\n\n"
        "¡Esperamos verte pronto!" + SIGNATURE
    )


def renewed_message(name: str, membership_type: str, end_date: date) -> str:
    return (
        f"Hola {name},\n\nTe informamos que tu membresía {membership_type} en Olimpo Gym "
        "ha sido renovada exitosamente.\n\n"
        f"Tu nueva fecha de expiración es el {format_date(end_date)}.\n\n"
        "¡Gracias por seguir confiando en Olimpo Gym!" + SIGNATURE
    )


def reminder_email_body(name: str, membership_type: str, days_remaining: int, end_date: date) -> str:
    return (
        f"Hola {name},\n\nTe recordamos que tu membresía {membership_type} en Olimpo Gym "
        f"expirará en {days_remaining} días ({format_date(end_date)}).\n\n"
        "Para evitar interrupciones en tu acceso al gimnasio, te recomendamos renovar tu membresía "
        "antes de la fecha de expiración.\n\n"
        "Puedes renovarla visitando nuestras instalaciones o desde nuestra página web.\n\n"
        "¡Gracias por ser parte de Olimpo Gym!" + SIGNATURE
    )


def reminder_whatsapp_body(name: str, membership_type: str, days_remaining: int, end_date: date) -> str:
    return (
        f"Hola {name},\n\nTe informamos que tu membresía {membership_type} en Olimpo Gym "
        f"expirará en {days_remaining} días ({format_date(end_date)}).\n\n"
        "Puedes renovarla visitando nuestras instalaciones o desde nuestra página web.\n\n"
        "¡Gracias por ser parte de Olimpo Gym!" + SIGNATURE
    )
