"""
=============================================================================
ACCOUNTS.PY — Cuentas de Usuario
=============================================================================
Registro, inicio de sesión y gestión de la propia cuenta.

Todas las funciones devuelven Ok(...) o un ServiceError (ver errors.py).
La cookie de sesión NO se toca aquí: eso es cosa de la ruta (main.py).
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import hash_password, verify_password
from errors import (
    Ok, Result, BadRequestError, ConflictError, NotFoundError,
    UnauthorizedError, ValidationError,
    ACCOUNT_NOT_FOUND, INVALID_CREDENTIALS, INVALID_PASSWORD, NAME_TAKEN,
)
from models import Chart, User
from validation import validate_password, validate_user_name

logger = logging.getLogger("daytracker.accounts")


@dataclass(frozen=True)
class AccountSummary:
    """Lo que devuelve GET /Api/Users/Account"""
    id: uuid.UUID
    name: str
    chart_count: int
    created_at: datetime


def _name_taken(db: Session, name: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    # Comparación exacta: "Ana" y "ana" son nombres distintos
    query = db.query(User.id).filter(User.name == name)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


# =============================================================================
# ===================== REGISTRO E INICIO DE SESIÓN ===========================
# =============================================================================

def sign_up(db: Session, name: str, password: str) -> Result[uuid.UUID]:
    """
    Registra un usuario nuevo.

    Flujo:
      1. Validar nombre y contraseña
      2. Verificar que el nombre no existe
      3. Hashear la contraseña y guardar el usuario
    """
    error = validate_user_name(name) or validate_password(password)
    if error:
        return error

    if _name_taken(db, name):
        return ConflictError(NAME_TAKEN)

    user = User(name=name, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Otro registro con el mismo nombre se ha colado entre la
        # comprobación y el insert
        db.rollback()
        return ConflictError(NAME_TAKEN)
    db.refresh(user)

    logger.info(f"👤 Nuevo usuario registrado: {user.name} ({user.id})")
    return Ok(user.id)


def sign_in(db: Session, name: str, password: str) -> Result[User]:
    """
    Comprueba nombre y contraseña.
    No distingue "no existe" de "contraseña mal" para no filtrar qué
    nombres de usuario existen.
    """
    user = db.query(User).filter(User.name == name).first() if name else None

    if user is None or not password or not verify_password(password, user.password_hash):
        return UnauthorizedError(INVALID_CREDENTIALS)

    return Ok(user)


# =============================================================================
# ===================== CUENTA PROPIA =========================================
# =============================================================================

def get_account(db: Session, user_id: uuid.UUID) -> Result[AccountSummary]:
    user = db.get(User, user_id)
    if user is None:
        return NotFoundError(ACCOUNT_NOT_FOUND)

    chart_count = db.query(func.count(Chart.id)).filter(Chart.user_id == user_id).scalar() or 0
    return Ok(AccountSummary(
        id=user.id,
        name=user.name,
        chart_count=chart_count,
        created_at=user.created_at,
    ))


def update_account(
    db: Session,
    user_id: uuid.UUID,
    current_password: str,
    new_name: Optional[str] = None,
    new_password: Optional[str] = None,
) -> Result[User]:
    """
    Cambia el nombre y/o la contraseña.
    Siempre exige la contraseña actual, aunque la sesión sea válida.
    """
    user = db.get(User, user_id)
    if user is None:
        return NotFoundError(ACCOUNT_NOT_FOUND)

    if not current_password or not verify_password(current_password, user.password_hash):
        return BadRequestError(INVALID_PASSWORD)

    if new_name is None and new_password is None:
        return ValidationError("Indica un nombre o una contraseña nuevos.")

    if new_name is not None:
        error = validate_user_name(new_name)
        if error:
            return error
        if _name_taken(db, new_name, exclude_id=user.id):
            return ConflictError(NAME_TAKEN)

    if new_password is not None:
        error = validate_password(new_password)
        if error:
            return error

    if new_name is not None:
        user.name = new_name
    if new_password is not None:
        user.password_hash = hash_password(new_password)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return ConflictError(NAME_TAKEN)
    db.refresh(user)

    logger.info(f"✏️ Cuenta actualizada: {user.id}")
    return Ok(user)


def delete_account(db: Session, user_id: uuid.UUID, password: str) -> Result[None]:
    """Borra la cuenta y TODAS sus gráficas y entradas (irreversible)"""
    user = db.get(User, user_id)
    if user is None:
        return NotFoundError(ACCOUNT_NOT_FOUND)

    if not password or not verify_password(password, user.password_hash):
        return BadRequestError(INVALID_PASSWORD)

    db.delete(user)
    db.commit()

    logger.info(f"🗑️ Cuenta borrada: {user_id}")
    return Ok(None)
