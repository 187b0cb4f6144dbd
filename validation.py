"""
=============================================================================
VALIDATION.PY — Reglas de Validación
=============================================================================
Reglas compartidas por los servicios. Cada función devuelve None si el dato
es válido, o un ValidationError listo para devolver.

Contraseña:
  - Entre 10 y 72 caracteres (bcrypt solo usa los primeros 72 bytes)
  - Al menos una mayúscula, una minúscula y un número

Valor de una entrada:
  - Un decimal finito que quepa EXACTO en la columna Numeric(18, 4):
    como mucho 14 cifras enteras y 4 decimales. Nada se redondea.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from errors import ValidationError
from models import ChartType

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 10
PASSWORD_MAX_LENGTH = 72
NOTES_MAX_LENGTH = 500

# Deben coincidir con Numeric(VALUE_PRECISION, VALUE_SCALE) en models.py
VALUE_PRECISION = 18
VALUE_SCALE = 4
VALUE_LIMIT = Decimal(10) ** (VALUE_PRECISION - VALUE_SCALE)
VALUE_STEP = Decimal(1).scaleb(-VALUE_SCALE)


def validate_user_name(name: Optional[str]) -> Optional[ValidationError]:
    if not name or not name.strip() or len(name) > NAME_MAX_LENGTH:
        return ValidationError(
            f"El nombre de usuario debe tener entre {NAME_MIN_LENGTH} y {NAME_MAX_LENGTH} caracteres."
        )
    return None


def is_valid_password(password: Optional[str]) -> bool:
    """Comprueba la política de contraseñas"""
    if password is None:
        return False
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        return False
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    return has_upper and has_lower and has_digit


def validate_password(password: Optional[str]) -> Optional[ValidationError]:
    if not is_valid_password(password):
        return ValidationError(
            f"La contraseña debe tener entre {PASSWORD_MIN_LENGTH} y {PASSWORD_MAX_LENGTH} "
            "caracteres e incluir una mayúscula, una minúscula y un número."
        )
    return None


def validate_chart_name(name: Optional[str]) -> Optional[ValidationError]:
    if not name or not name.strip() or len(name) > NAME_MAX_LENGTH:
        return ValidationError(
            f"El nombre de la gráfica debe tener entre {NAME_MIN_LENGTH} y {NAME_MAX_LENGTH} caracteres."
        )
    return None


def validate_notes(notes: Optional[str]) -> Optional[ValidationError]:
    if notes is not None and len(notes) > NOTES_MAX_LENGTH:
        return ValidationError(
            f"Las notas no pueden superar los {NOTES_MAX_LENGTH} caracteres."
        )
    return None


def validate_entry_value(value: Optional[Decimal]) -> Optional[ValidationError]:
    """
    Rechaza lo que la columna no podría guardar tal cual: infinitos, NaN,
    números de más de 14 cifras enteras (1e400...) o con más de 4 decimales.
    """
    error = ValidationError(
        f"El valor debe ser un número con como mucho {VALUE_PRECISION - VALUE_SCALE} "
        f"cifras enteras y {VALUE_SCALE} decimales."
    )
    if value is None:
        return error
    try:
        value = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return error

    if not value.is_finite() or abs(value) >= VALUE_LIMIT:
        return error
    # 1.50000 vale; 1.23456 no (se perderían decimales al guardar)
    if value.quantize(VALUE_STEP) != value:
        return error
    return None


def parse_chart_type(value: Any) -> Union[ChartType, ValidationError]:
    """
    Acepta un ChartType, su valor numérico (0, 1, 2) o su nombre
    ("counter", "Checkmark"...). Cualquier otra cosa es un error.
    """
    if isinstance(value, ChartType):
        return value
    # bool es subclase de int: True no es un tipo de gráfica
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return ChartType(value)
        except ValueError:
            pass
    if isinstance(value, str):
        for member in ChartType:
            if member.name.lower() == value.strip().lower():
                return member
        if value.strip().isdigit():
            return parse_chart_type(int(value.strip()))
    return ValidationError("Tipo de gráfica no válido.")
