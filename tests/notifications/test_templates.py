"""Tests for template rendering and phone normalization."""

from datetime import date

import pytest

from olimpo.notifications.service import normalize_phone
from olimpo.notifications.templates import (
    SIGNATURE,
    expired_message,
    extract_parameters,
    format_date,
    placeholders,
    render,
    renewed_message,
    text_to_html,
)


class TestRender:
    def test_substitutes_known_keys(self):
        out = render("Hola {{nombre}}, vence el {{ fecha_expiracion }}", {
            "nombre": "Juan",
            "fecha_expiracion": "01/04/2025",
        })
        assert out == "Hola Juan, vence el 01/04/2025"

    def test_unknown_keys_left_intact(self):
        assert render("Hola {{nombre}} {{apellido}}", {"nombre": "Ana"}) == "Hola Ana {{apellido}}"

    def test_placeholders_in_order_without_duplicates(self):
        assert placeholders("{{a}} {{b}} {{a}} {{ c }}") == ["a", "b", "c"]


class TestExtractParameters:
    def test_no_variables_sends_whole_message(self):
        assert extract_parameters("Hola", None) == [{"type": "text", "text": "Hola"}]
        assert extract_parameters("Hola", []) == [{"type": "text", "text": "Hola"}]

    def test_values_from_pairs(self):
        message = "Hola {{nombre}}, vence {{fecha}}. nombre: Juan, fecha = 01/04/2025"
        assert extract_parameters(message, ["nombre", "fecha"]) == [
            {"type": "text", "text": "Juan"},
            {"type": "text", "text": "01/04/2025"},
        ]

    def test_placeholder_without_value_is_sent_verbatim(self):
        assert extract_parameters("Hola {{nombre}}", ["nombre"]) == [{"type": "text", "text": "{{nombre}}"}]

    def test_variable_missing_from_message_is_empty(self):
        assert extract_parameters("Hola", ["nombre"]) == [{"type": "text", "text": ""}]


class TestFormatting:
    def test_date_is_day_month_year(self):
        assert format_date(date(2025, 4, 1)) == "01/04/2025"

    def test_newlines_become_breaks(self):
        assert text_to_html("a\nb") == "a<br>b"


class TestNormalizePhone:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("+5491155550000", "+5491155550000"),
            ("01155550000", "+541155550000"),
            ("1555550000", "+54955550000"),
            ("5491155550000", "+5491155550000"),
            ("11 5555 0000", "+541155550000"),
        ],
    )
    def test_argentine_numbers(self, raw: str, expected: str):
        assert normalize_phone(raw) == expected

    def test_other_country_code(self):
        assert normalize_phone("0987654321", country_code="56") == "+56987654321"


class TestDefaultBodies:
    def test_expired_message(self):
        body = expired_message("Juan Pérez", "monthly", date(2025, 1, 31))
        assert body.startswith("Hola Juan Pérez,")
        assert "tu membresía monthly en Olimpo Gym ha expirado el 31/01/2025." in body
        assert body.endswith(SIGNATURE)

    def test_renewed_message(self):
        body = renewed_message("Juan Pérez", "quarterly", date(2025, 5, 1))
        assert "ha sido renovada exitosamente" in body
        assert "Tu nueva fecha de expiración es el 01/05/2025." in body
        assert body.endswith(SIGNATURE)
