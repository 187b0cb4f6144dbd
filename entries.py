"""
=============================================================================
ENTRIES.PY — Entradas (un valor por día)
=============================================================================
Reglas:
  - Solo el dueño de la gráfica puede ver o tocar sus entradas
  - Una sola entrada por gráfica y día
  - No se pueden crear entradas de años anteriores a la gráfica
  - Las notas tienen como máximo 500 caracteres
  - El valor cabe exacto en Numeric(18, 4): sin redondeos ni infinitos

Sobre lo de "una por día": primero se comprueba con una consulta (para dar
un mensaje claro), pero quien lo garantiza de verdad es la restricción
UNIQUE de la tabla. Si dos peticiones llegan a la vez, la segunda falla en
el commit y devolvemos el mismo error.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from charts import find_user_chart
from errors import (
    Ok, Result, BadRequestError, NotFoundError, ValidationError,
    CHART_NOT_FOUND, ENTRY_NOT_FOUND,
)
from models import Entry
from validation import validate_entry_value, validate_notes

logger = logging.getLogger("daytracker.entries")

DUPLICATE_ENTRY = "Ya existe una entrada para ese día."


def _find_entry(db: Session, chart_id: uuid.UUID, entry_id: uuid.UUID) -> Optional[Entry]:
    return db.query(Entry).filter(
        Entry.chart_id == chart_id, Entry.id == entry_id
    ).first()


def create_entry(
    db: Session,
    chart_id: uuid.UUID,
    requester_id: uuid.UUID,
    entry_date: date,
    value: Decimal,
    notes: Optional[str] = None,
) -> Result[Entry]:
    """
    Registra el valor de un día.

    Flujo:
      1. Verificar que la gráfica pertenece al usuario
      2. Validar valor y notas
      3. Comprobar que la fecha no es de un año anterior a la gráfica
      4. Comprobar que no hay ya una entrada ese día
      5. Guardar
    """
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    error = validate_entry_value(value) or validate_notes(notes)
    if error:
        return error

    if entry_date.year < chart.created_at.year:
        return BadRequestError(
            f"La fecha no puede ser anterior al año de creación de la gráfica ({chart.created_at.year})."
        )

    existing = db.query(Entry.id).filter(
        Entry.chart_id == chart.id,
        Entry.year == entry_date.year,
        Entry.month == entry_date.month,
        Entry.day == entry_date.day,
    ).first()
    if existing is not None:
        return BadRequestError(DUPLICATE_ENTRY)

    entry = Entry(
        chart_id=chart.id,
        year=entry_date.year,
        month=entry_date.month,
        day=entry_date.day,
        value=Decimal(value),
        notes=notes or None,
    )
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"⚠️ Entrada duplicada detectada en el commit: chart {chart_id}, {entry_date}")
        return BadRequestError(DUPLICATE_ENTRY)
    db.refresh(entry)

    return Ok(entry)


def update_entry(
    db: Session,
    chart_id: uuid.UUID,
    entry_id: uuid.UUID,
    requester_id: uuid.UUID,
    value: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> Result[Entry]:
    """
    Cambia el valor y/o las notas. Hay que mandar al menos uno de los dos.
    Unas notas vacías ("") borran las notas.
    """
    if value is None and notes is None:
        return ValidationError("Indica un valor o unas notas.")

    if value is not None:
        error = validate_entry_value(value)
        if error:
            return error
    error = validate_notes(notes)
    if error:
        return error

    # Si la gráfica es del usuario, sus entradas también lo son
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    entry = _find_entry(db, chart.id, entry_id)
    if entry is None:
        return NotFoundError(ENTRY_NOT_FOUND)

    if value is not None:
        entry.value = Decimal(value)
    if notes is not None:
        entry.notes = notes or None

    db.commit()
    db.refresh(entry)
    return Ok(entry)


def delete_entry(
    db: Session, chart_id: uuid.UUID, entry_id: uuid.UUID, requester_id: uuid.UUID
) -> Result[None]:
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    entry = _find_entry(db, chart.id, entry_id)
    if entry is None:
        return NotFoundError(ENTRY_NOT_FOUND)

    db.delete(entry)
    db.commit()
    return Ok(None)


def list_entries_by_year(
    db: Session, chart_id: uuid.UUID, requester_id: uuid.UUID, year: int
) -> Result[list[Entry]]:
    """Todas las entradas de la gráfica en ese año (lista vacía si no hay)"""
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    entries = db.query(Entry).filter(
        Entry.chart_id == chart.id, Entry.year == year
    ).order_by(Entry.month, Entry.day).all()
    return Ok(entries)
