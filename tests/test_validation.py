"""Tests de las reglas de validación compartidas."""

from decimal import Decimal

import pytest

from errors import ValidationError
from models import ChartType
from validation import (
    is_valid_password,
    parse_chart_type,
    validate_chart_name,
    validate_entry_value,
    validate_notes,
    validate_password,
    validate_user_name,
)


@pytest.mark.parametrize(
    "password",
    [
        "short1A",  # 7 caracteres
        "nouppercase1",
        "NOLOWERCASE1",
        "NoDigitsHere",
        "",
        None,
        "Aa1" + "x" * 70,  # 73 caracteres
    ],
)
def test_password_policy_rejects(password):
    """Contraseñas que no cumplen la política"""
    assert not is_valid_password(password)
    assert isinstance(validate_password(password), ValidationError)


@pytest.mark.parametrize("password", ["ValidPass123", "Abcdef123x", "Aa1" + "x" * 69])
def test_password_policy_accepts(password):
    """Entre 10 y 72 caracteres con mayúscula, minúscula y número"""
    assert is_valid_password(password)
    assert validate_password(password) is None


@pytest.mark.parametrize("name", ["", "   ", None, "x" * 51])
def test_user_name_rejects(name):
    assert isinstance(validate_user_name(name), ValidationError)


@pytest.mark.parametrize("name", ["a", "alice", "x" * 50])
def test_user_name_accepts(name):
    assert validate_user_name(name) is None


def test_chart_name_limits():
    assert validate_chart_name("Sleep") is None
    assert validate_chart_name("x" * 50) is None
    assert isinstance(validate_chart_name("x" * 51), ValidationError)
    assert isinstance(validate_chart_name(""), ValidationError)
    assert isinstance(validate_chart_name(None), ValidationError)


def test_notes_limit():
    assert validate_notes(None) is None
    assert validate_notes("x" * 500) is None
    assert isinstance(validate_notes("x" * 501), ValidationError)


@pytest.mark.parametrize(
    "value, expected",
    [
        (ChartType.Scale, ChartType.Scale),
        (0, ChartType.Counter),
        (1, ChartType.Checkmark),
        (2, ChartType.Scale),
        ("counter", ChartType.Counter),
        ("Checkmark", ChartType.Checkmark),
        ("2", ChartType.Scale),
    ],
)
def test_parse_chart_type_known_variants(value, expected):
    assert parse_chart_type(value) is expected


@pytest.mark.parametrize("value", [3, -1, "Bar", "", None, True, 1.5])
def test_parse_chart_type_unknown_variants(value):
    assert isinstance(parse_chart_type(value), ValidationError)


@pytest.mark.parametrize(
    "value", ["0", "7", "-3.5", "1.2345", "1.50000", "99999999999999.9999", "-99999999999999.9999"]
)
def test_entry_value_accepts(value):
    assert validate_entry_value(Decimal(value)) is None


@pytest.mark.parametrize(
    "value", [None, "1e400", "1E+14", "-100000000000000", "1.23456", "0.00001", "NaN", "-Infinity"]
)
def test_entry_value_rejects(value):
    """Infinitos, NaN, demasiadas cifras enteras o más de 4 decimales"""
    assert isinstance(validate_entry_value(None if value is None else Decimal(value)), ValidationError)
