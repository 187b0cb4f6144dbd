"""
=============================================================================
AUTH.PY — Sistema de Autenticación
=============================================================================
Gestiona:
  - Hashing de contraseñas (nunca guardar contraseñas en texto plano)
  - Creación y verificación del token de sesión (JWT firmado)
  - La cookie de sesión (HttpOnly, Secure, SameSite=Strict)
  - Obtener el usuario actual desde la cookie

Flujo:
  1. Usuario envía nombre + contraseña (SignUp o SignIn)
  2. Si son correctos, el servidor guarda un JWT en una cookie HttpOnly
     (el JavaScript del navegador NO puede leerla)
  3. El navegador envía esa cookie en cada petición siguiente
  4. El servidor verifica el JWT, sabe quién es el usuario y renueva la
     cookie otros 30 días (caducidad deslizante)
"""

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request, Response
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import get_db
from errors import ProblemException, UnauthorizedError
from models import User

logger = logging.getLogger("daytracker.auth")

# ─────────────────────────────────────────────────────────────────────────────
# CONFIGURACIÓN
# ─────────────────────────────────────────────────────────────────────────────

SECRET_KEY = os.getenv("SECRET_KEY", "daytracker-dev-secret-key-cambiar-en-produccion")
ALGORITHM = "HS256"

SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "30"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "daytracker_session")
# En local sin HTTPS se puede poner SESSION_COOKIE_SECURE=false
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "true").lower() != "false"

# ─────────────────────────────────────────────────────────────────────────────
# HASHING DE CONTRASEÑAS
# ─────────────────────────────────────────────────────────────────────────────
# bcrypt solo mira los primeros 72 bytes; recortamos igual al hashear y al
# verificar para que contraseñas con caracteres multibyte no fallen.

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Convierte una contraseña en texto plano a un hash seguro (con sal)"""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compara una contraseña en texto plano con un hash almacenado"""
    if plain_password is None:
        return False
    return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


# ─────────────────────────────────────────────────────────────────────────────
# TOKEN DE SESIÓN
# ─────────────────────────────────────────────────────────────────────────────

def create_session_token(user_id: uuid.UUID, now: Optional[datetime] = None) -> str:
    """
    Crea el JWT de sesión:
      - sub (subject): el ID del usuario
      - exp (expiration): ahora + SESSION_EXPIRE_DAYS
    """
    now = now or datetime.now(timezone.utc)
    to_encode = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=SESSION_EXPIRE_DAYS),
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def read_session_token(token: str) -> Optional[uuid.UUID]:
    """
    Decodifica el JWT de sesión y devuelve el ID del usuario.
    Si el token es inválido, está manipulado o ha caducado, devuelve None.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    sub = payload.get("sub")
    if sub is None:
        return None
    try:
        return uuid.UUID(sub)
    except ValueError:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# COOKIE
# ─────────────────────────────────────────────────────────────────────────────

def set_session_cookie(response: Response, user_id: uuid.UUID) -> None:
    """Guarda (o renueva) la cookie de sesión en la respuesta"""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_token(user_id),
        max_age=SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    """
    Borra la cookie de sesión. Descarta antes cualquier renovación que
    require_session haya añadido a esta misma respuesta.
    """
    if "set-cookie" in response.headers:
        del response.headers["set-cookie"]
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="strict",
    )


# ─────────────────────────────────────────────────────────────────────────────
# DEPENDENCIA: OBTENER USUARIO ACTUAL
# ─────────────────────────────────────────────────────────────────────────────
# Se usa como "dependencia" en FastAPI para proteger endpoints:
#
#   @app.get("/Api/Charts")
#   def list_charts(user_id: uuid.UUID = Depends(require_session)):
#       ...
#
# Devuelve SOLO el ID. Los servicios reciben ese ID de forma explícita; no
# hay un "usuario actual" global.

def require_session(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> uuid.UUID:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    user_id = read_session_token(token) if token else None

    if user_id is None:
        raise ProblemException(UnauthorizedError("Necesitas iniciar sesión."))

    # El usuario puede haber borrado su cuenta con la cookie aún viva
    exists = db.query(User.id).filter(User.id == user_id).first()
    if exists is None:
        logger.info(f"🔒 Sesión de un usuario inexistente: {user_id}")
        raise ProblemException(UnauthorizedError("Necesitas iniciar sesión."))

    # Caducidad deslizante: cada petición autenticada renueva la cookie
    set_session_cookie(response, user_id)
    return user_id
