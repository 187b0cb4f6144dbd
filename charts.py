"""
=============================================================================
CHARTS.PY — Gráficas
=============================================================================
CRUD de gráficas. Todas las consultas filtran por el usuario que pide:
si la gráfica es de otro, se responde exactamente igual que si no existiera
(NotFound), para no revelar qué IDs existen.
"""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session

from errors import Ok, Result, NotFoundError, ValidationError, CHART_NOT_FOUND
from models import Chart
from validation import parse_chart_type, validate_chart_name

logger = logging.getLogger("daytracker.charts")


def find_user_chart(db: Session, chart_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Chart]:
    """Devuelve la gráfica si existe Y es del usuario; si no, None"""
    return db.query(Chart).filter(
        Chart.id == chart_id, Chart.user_id == user_id
    ).first()


def create_chart(db: Session, owner_id: uuid.UUID, name: str, chart_type: Any) -> Result[Chart]:
    error = validate_chart_name(name)
    if error:
        return error

    parsed_type = parse_chart_type(chart_type)
    if isinstance(parsed_type, ValidationError):
        return parsed_type

    chart = Chart(user_id=owner_id, name=name, type=parsed_type)
    db.add(chart)
    db.commit()
    db.refresh(chart)

    logger.info(f"➕ Gráfica creada: {chart.name} ({chart.type.name}, user: {owner_id})")
    return Ok(chart)


def get_chart(db: Session, chart_id: uuid.UUID, requester_id: uuid.UUID) -> Result[Chart]:
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)
    return Ok(chart)


def list_charts(db: Session, owner_id: uuid.UUID) -> Result[list[Chart]]:
    """Gráficas del usuario, la más reciente primero"""
    charts = db.query(Chart).filter(
        Chart.user_id == owner_id
    ).order_by(Chart.created_at.desc()).all()
    return Ok(charts)


def update_chart(
    db: Session, chart_id: uuid.UUID, requester_id: uuid.UUID, new_name: str
) -> Result[Chart]:
    """Solo se puede cambiar el nombre; el tipo es fijo"""
    error = validate_chart_name(new_name)
    if error:
        return error

    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    chart.name = new_name
    db.commit()
    db.refresh(chart)
    return Ok(chart)


def delete_chart(db: Session, chart_id: uuid.UUID, requester_id: uuid.UUID) -> Result[None]:
    """Elimina la gráfica y todas sus entradas"""
    chart = find_user_chart(db, chart_id, requester_id)
    if chart is None:
        return NotFoundError(CHART_NOT_FOUND)

    db.delete(chart)
    db.commit()

    logger.info(f"🗑️ Gráfica eliminada: {chart_id} (user: {requester_id})")
    return Ok(None)
