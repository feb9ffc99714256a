"""
QR tokens and check-in payload parsing.

Tokens have the form ``{user_id}_{epoch_ms}``. They carry no signature and
no expiry: anyone who knows a user id can forge one.

Check-in payloads come from scanned codes and arrive in several shapes:
plain JSON, a URL with a ``data=<urlencoded json>`` suffix, or a bare query
string with ``user_id``/``gym_id``.
"""

from __future__ import annotations

import base64
import io
import json
import re
import time
from dataclasses import dataclass
from urllib.parse import parse_qs, unquote, urlsplit

import qrcode
from qrcode import constants

from olimpo.errors import ValidationFailed

_EMBEDDED_DATA = re.compile(r"data=(.+)$")


@dataclass(frozen=True, slots=True)
class CheckInPayload:
    user_id: str
    gym_id: str | None = None


def make_qr_token(user_id: str) -> str:
    return f"{user_id}_{int(time.time() * 1000)}"


def qr_data_url(data: str) -> str:
    """Render ``data`` as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def parse_qr_token(token: str) -> str:
    """Return the user id embedded in a token."""
    parts = token.split("_")
    if len(parts) != 2 or not parts[0]:
        msg = "Formato de token inválido"
        raise ValidationFailed(msg)
    return parts[0]


# ---------------------------------------------------------------------------
# Public check-in payloads
# ---------------------------------------------------------------------------


def _from_embedded_url(decoded: str) -> object | None:
    match = _EMBEDDED_DATA.search(decoded)
    if match is None:
        return None
    try:
        return json.loads(unquote(match.group(1)))
    except json.JSONDecodeError:
        return None


def _from_query_string(decoded: str) -> dict[str, str] | None:
    query = urlsplit(decoded).query or decoded
    params = parse_qs(query)
    user_id = params.get("user_id") or params.get("userId")
    if not user_id:
        return None
    gym_id = params.get("gym_id")
    return {"user_id": user_id[0], "gym_id": gym_id[0] if gym_id else None}


def parse_check_in_payload(raw: str | None) -> CheckInPayload:
    """
    Resolve the user id from a scanned payload.

    Tried in order: JSON, ``data=<json>`` extraction, query string.

    Raises:
        ValidationFailed: empty payload, unparseable payload, or no user id.
    """
    if not raw:
        msg = "No se proporcionaron datos para el registro de asistencia"
        raise ValidationFailed(msg)

    decoded = unquote(raw)
    try:
        data = json.loads(decoded)
    except json.JSONDecodeError as exc:
        data = _from_embedded_url(decoded) or _from_query_string(decoded)
        if data is None:
            msg = f"Formato de datos inválido en el QR: {exc.msg}"
            raise ValidationFailed(msg) from exc

    if not isinstance(data, dict):
        msg = "Formato de datos inválido en el QR: se esperaba un objeto"
        raise ValidationFailed(msg)

    user_id = data.get("user_id") or data.get("userId")
    if not user_id:
        msg = "Error: No se proporcionó el ID de usuario en el código QR"
        raise ValidationFailed(msg)
    gym_id = data.get("gym_id") or data.get("gymId")
    return CheckInPayload(user_id=str(user_id), gym_id=str(gym_id) if gym_id else None)
