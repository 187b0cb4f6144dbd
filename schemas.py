"""
=============================================================================
SCHEMAS.PY — Esquemas de Validación (Pydantic)
=============================================================================
¿Por qué separar Models y Schemas?
  - Models (SQLAlchemy) → definen las TABLAS de la BD
  - Schemas (Pydantic) → definen qué DATOS acepta/devuelve la API

Aquí solo se comprueban TIPOS (que la fecha sea una fecha, que el valor sea
un número...). Las reglas de negocio (longitudes, política de contraseñas,
tipos de gráfica) viven en validation.py y las aplican los servicios.

En el JSON las claves van en camelCase (createdAt, chartCount,
currentPassword...), como espera el cliente React. También se aceptan en
snake_case al recibir.

Convención de nombres:
  XxxCreate → para crear algo nuevo (POST)
  XxxUpdate → para actualizar algo (PATCH)
  XxxResponse → lo que devuelve la API (GET)
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from models import ChartType

# El valor de una entrada viaja como número JSON, no como string
JsonDecimal = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class ApiModel(BaseModel):
    """Base común: camelCase en el JSON y lectura desde objetos ORM"""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# =============================================================================
# ===================== ERRORES ===============================================
# =============================================================================

class ProblemDetails(ApiModel):
    """Forma de TODOS los errores de la API"""
    title: str
    status: int
    detail: str
    trace_id: Optional[str] = None


class MessageResponse(ApiModel):
    message: str


# =============================================================================
# ===================== USERS =================================================
# =============================================================================

class UserCredentials(ApiModel):
    """Datos para registrarse o iniciar sesión"""
    name: Optional[str] = None
    password: Optional[str] = None


class UserIdResponse(ApiModel):
    id: uuid.UUID


class AccountResponse(ApiModel):
    """Datos de la cuenta propia"""
    id: uuid.UUID
    name: str
    chart_count: int
    created_at: datetime


class AccountNewData(ApiModel):
    name: Optional[str] = None
    password: Optional[str] = None


class AccountUpdate(ApiModel):
    """Cambiar nombre y/o contraseña (siempre con la contraseña actual)"""
    current_password: Optional[str] = None
    new_data: AccountNewData = AccountNewData()


class AccountDelete(ApiModel):
    password: Optional[str] = None


# =============================================================================
# ===================== CHARTS ================================================
# =============================================================================

class ChartCreate(ApiModel):
    name: Optional[str] = None
    # 0/1/2 o "Counter"/"Checkmark"/"Scale"; lo valida el servicio
    type: Union[int, str, None] = None


class ChartUpdate(ApiModel):
    name: Optional[str] = None


class ChartIdResponse(ApiModel):
    id: uuid.UUID


class ChartResponse(ApiModel):
    id: uuid.UUID
    name: str
    type: ChartType
    created_at: datetime


# =============================================================================
# ===================== ENTRIES ===============================================
# =============================================================================

class EntryCreate(ApiModel):
    entry_date: date = Field(alias="date")
    value: Decimal
    notes: Optional[str] = None

    @field_validator("entry_date", mode="before")
    @classmethod
    def only_the_day(cls, v):
        """El cliente puede mandar un timestamp completo; solo nos importa el día"""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class EntryUpdate(ApiModel):
    value: Optional[Decimal] = None
    notes: Optional[str] = None


class EntryIdResponse(ApiModel):
    id: uuid.UUID


class EntryResponse(ApiModel):
    id: uuid.UUID
    year: int
    month: int
    day: int
    value: JsonDecimal
    notes: Optional[str] = None
