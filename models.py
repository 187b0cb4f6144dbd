"""
=============================================================================
MODELS.PY — Todos los Modelos (Tablas) de la Base de Datos
=============================================================================
Cada clase aquí = una tabla en la base de datos.
Cada atributo de la clase = una columna en esa tabla.

RELACIONES:
  User tiene muchos → Charts
  Chart tiene muchos → Entries

  USER
  └── charts[] ──→ entries[]

Si borras un usuario se borran sus gráficas, y si borras una gráfica se
borran sus entradas (cascade).
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, ForeignKey, Enum,
    UniqueConstraint, Index, Uuid
)
from sqlalchemy.orm import relationship
from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ===================== ENUMS (Tipos predefinidos) ============================
# =============================================================================

class ChartType(int, enum.Enum):
    """
    Tipo de gráfica. Decide cómo se interpreta el `value` de sus entradas:
      Counter   → un número (vasos de agua, páginas leídas...)
      Checkmark → 0/1 (¿lo hiciste?)
      Scale     → una valoración (1-5, 1-10...)

    El cliente envía y recibe el valor numérico (0, 1, 2).
    """
    Counter = 0
    Checkmark = 1
    Scale = 2


# =============================================================================
# ===================== TABLA 1: USERS ========================================
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # unique=True → el nombre es único y distingue mayúsculas ("Ana" ≠ "ana")
    name = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # cascade="all, delete-orphan" → si borras el usuario, se borran sus gráficas
    charts = relationship(
        "Chart", back_populates="user", cascade="all, delete-orphan",
        passive_deletes=True
    )


# =============================================================================
# ===================== TABLA 2: CHARTS =======================================
# =============================================================================

class Chart(Base):
    __tablename__ = "charts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name = Column(String(50), nullable=False)
    # type → no se puede cambiar después de crear la gráfica
    type = Column(Enum(ChartType), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="charts")
    entries = relationship(
        "Entry", back_populates="chart", cascade="all, delete-orphan",
        passive_deletes=True
    )


# =============================================================================
# ===================== TABLA 3: ENTRIES ======================================
# =============================================================================

class Entry(Base):
    """
    Un valor de un día concreto dentro de una gráfica.

    La fecha se guarda partida en year/month/day porque las consultas del
    heatmap son siempre "todas las entradas de este año".
    """
    __tablename__ = "entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chart_id = Column(
        Uuid, ForeignKey("charts.id", ondelete="CASCADE"), nullable=False
    )

    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    day = Column(Integer, nullable=False)

    # value → decimal opaco; su significado depende del tipo de la gráfica.
    # validation.validate_entry_value garantiza que cabe sin redondear.
    value = Column(Numeric(18, 4), nullable=False)
    notes = Column(String(500), nullable=True)

    chart = relationship("Chart", back_populates="entries")

    __table_args__ = (
        # Una sola entrada por gráfica y día. La BD lo garantiza aunque
        # lleguen dos peticiones a la vez.
        UniqueConstraint("chart_id", "year", "month", "day", name="uq_entries_chart_day"),
        Index("ix_entries_chart_year", "chart_id", "year"),
    )
