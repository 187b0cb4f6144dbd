"""
=============================================================================
MAIN.PY — La API de Day Tracker
=============================================================================
Este archivo define TODOS los endpoints de la API REST.

Organización por secciones:
  1. USERS    → Registro, login, logout, cuenta propia
  2. CHARTS   → CRUD de gráficas
  3. ENTRIES  → CRUD de entradas (un valor por día)

Cada ruta:
  1. Obtiene el ID del usuario de la cookie (Depends(require_session))
  2. Llama al servicio pasándole ese ID
  3. unwrap() convierte el resultado en respuesta o en "problem details"
"""

import logging
import os
import time
import traceback
import uuid
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import accounts
import charts
import entries
from auth import clear_session_cookie, require_session, set_session_cookie
from database import get_db, init_db
from errors import (
    ProblemException, ServiceError, ValidationError, NotFoundError,
    UnauthorizedError, InternalError, problem_details, unwrap,
)
from schemas import (
    ProblemDetails, MessageResponse,
    UserCredentials, UserIdResponse, AccountResponse, AccountUpdate, AccountDelete,
    ChartCreate, ChartUpdate, ChartIdResponse, ChartResponse,
    EntryCreate, EntryUpdate, EntryIdResponse, EntryResponse,
)

APP_NAME = "Day Tracker"
APP_VERSION = "1.0.0"

# ─────────────────────────────────────────────────────────────────────────────
# LOGGING
# ─────────────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
)
logger = logging.getLogger("daytracker.api")


# ─────────────────────────────────────────────────────────────────────────────
# LIFESPAN (Arranque y apagado)
# ─────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Al arrancar crea las tablas si no existen"""
    logger.info("🚀 Arrancando Day Tracker...")
    init_db()
    logger.info("✅ Base de datos inicializada")

    yield

    logger.info("👋 Apagado completo")


# ─────────────────────────────────────────────────────────────────────────────
# APLICACIÓN FASTAPI
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Day Tracker API",
    description="Registra tu día a día y visualízalo como un heatmap de calendario",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS → solo hace falta si la web se sirve desde otro origen.
# La cookie es SameSite=Strict, así que los orígenes deben ser del mismo sitio.
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ─────────────────────────────────────────────────────────────────────────────
# TRACE ID + LOG DE PETICIONES
# ─────────────────────────────────────────────────────────────────────────────
# Cada petición recibe un traceId que aparece en el log, en la cabecera
# X-Trace-Id y en el cuerpo de cualquier error.

@app.middleware("http")
async def trace_requests(request: Request, call_next):
    trace_id = uuid.uuid4().hex
    request.state.trace_id = trace_id
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error(f"{request.method} {request.url.path} → 500 ({elapsed_ms:.1f} ms) [{trace_id}]")
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({elapsed_ms:.1f} ms) [{trace_id}]"
    )
    response.headers["X-Trace-Id"] = trace_id
    return response


def _trace_id(request: Request) -> str:
    trace_id = getattr(request.state, "trace_id", None)
    if trace_id is None:
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
    return trace_id


def problem_response(request: Request, error: ServiceError) -> JSONResponse:
    trace_id = _trace_id(request)
    return JSONResponse(
        status_code=error.status,
        content=problem_details(error, trace_id),
        media_type="application/problem+json",
        headers={"X-Trace-Id": trace_id},
    )


# ─────────────────────────────────────────────────────────────────────────────
# ERROR HANDLERS
# ─────────────────────────────────────────────────────────────────────────────
# Todos los errores salen con la misma forma (problem details). Nunca se
# envía al cliente el texto de la excepción ni el traceback.

@app.exception_handler(ProblemException)
async def service_error_handler(request: Request, exc: ProblemException):
    return problem_response(request, exc.error)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """JSON mal formado, tipos incorrectos, IDs que no son UUID... → 400"""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    detail = "; ".join(messages) or "Petición no válida."
    return problem_response(request, ValidationError(detail))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Rutas que no existen, métodos no permitidos..."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return problem_response(request, NotFoundError("No existe esta ruta."))
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        return problem_response(request, UnauthorizedError(str(exc.detail)))

    trace_id = _trace_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "title": "Error",
            "status": exc.status_code,
            "detail": str(exc.detail),
            "traceId": trace_id,
        },
        media_type="application/problem+json",
        headers={"X-Trace-Id": trace_id, **(exc.headers or {})},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Captura errores no manejados: se registran enteros y al cliente le llega un 500 genérico"""
    error_trace = traceback.format_exc()
    logger.error(f"❌ Error no manejado en {request.url.path}: {exc!r}\n{error_trace}")
    return problem_response(request, InternalError("Ha ocurrido un error inesperado."))


# Respuestas de error para la documentación OpenAPI
AUTH_ERRORS = {401: {"model": ProblemDetails}}
NOT_FOUND_ERRORS = {**AUTH_ERRORS, 404: {"model": ProblemDetails}}
BAD_REQUEST_ERRORS = {**NOT_FOUND_ERRORS, 400: {"model": ProblemDetails}}


# =============================================================================
# ===================== HEALTH CHECK ==========================================
# =============================================================================

@app.get("/", tags=["Health"])
def health_check():
    """Verifica que la API está viva"""
    return {
        "status": "ok",
        "app": APP_NAME,
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# =============================================================================
# ===================== SECCIÓN 1: USERS ======================================
# =============================================================================

@app.post(
    "/Api/Users/SignUp",
    response_model=UserIdResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ProblemDetails}, 409: {"model": ProblemDetails}},
    tags=["Users"],
)
def sign_up(data: UserCredentials, response: Response, db: Session = Depends(get_db)):
    """
    Registra un usuario nuevo y deja la sesión iniciada.

    Flujo:
      1. Validar nombre (1-50) y contraseña (10-72, mayúscula, minúscula, número)
      2. Verificar que el nombre no existe
      3. Crear el usuario
      4. Guardar la cookie de sesión
    """
    user_id = unwrap(accounts.sign_up(db, data.name, data.password))
    set_session_cookie(response, user_id)
    return UserIdResponse(id=user_id)


@app.post(
    "/Api/Users/Account/SignIn",
    response_model=UserIdResponse,
    responses={401: {"model": ProblemDetails}},
    tags=["Users"],
)
def sign_in(data: UserCredentials, response: Response, db: Session = Depends(get_db)):
    """Inicia sesión con nombre y contraseña"""
    user = unwrap(accounts.sign_in(db, data.name, data.password))
    set_session_cookie(response, user.id)
    logger.info(f"🔑 Sesión iniciada: {user.name}")
    return UserIdResponse(id=user.id)


@app.post(
    "/Api/Users/Account/SignOut",
    response_model=MessageResponse,
    responses=AUTH_ERRORS,
    tags=["Users"],
)
def sign_out(response: Response, user_id: uuid.UUID = Depends(require_session)):
    """Cierra la sesión (borra la cookie)"""
    clear_session_cookie(response)
    return MessageResponse(message="Sesión cerrada")


@app.get(
    "/Api/Users/Account",
    response_model=AccountResponse,
    responses=NOT_FOUND_ERRORS,
    tags=["Users"],
)
def get_account(user_id: uuid.UUID = Depends(require_session), db: Session = Depends(get_db)):
    """Devuelve los datos del usuario autenticado"""
    return unwrap(accounts.get_account(db, user_id))


@app.patch(
    "/Api/Users/Account",
    response_model=AccountResponse,
    responses={**BAD_REQUEST_ERRORS, 409: {"model": ProblemDetails}},
    tags=["Users"],
)
def update_account(
    data: AccountUpdate,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Cambia el nombre y/o la contraseña (pide la contraseña actual)"""
    unwrap(accounts.update_account(
        db, user_id, data.current_password,
        new_name=data.new_data.name,
        new_password=data.new_data.password,
    ))
    return unwrap(accounts.get_account(db, user_id))


@app.delete(
    "/Api/Users/Account",
    response_model=MessageResponse,
    responses=BAD_REQUEST_ERRORS,
    tags=["Users"],
)
def delete_account(
    data: AccountDelete,
    response: Response,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Borra la cuenta y TODOS los datos del usuario (irreversible)"""
    unwrap(accounts.delete_account(db, user_id, data.password))
    clear_session_cookie(response)
    return MessageResponse(message="Cuenta y todos los datos eliminados correctamente")


# =============================================================================
# ===================== SECCIÓN 2: CHARTS =====================================
# =============================================================================

@app.post(
    "/Api/Charts",
    response_model=ChartIdResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**AUTH_ERRORS, 400: {"model": ProblemDetails}},
    tags=["Charts"],
)
def create_chart(
    data: ChartCreate,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Crea una gráfica nueva (Counter = 0, Checkmark = 1, Scale = 2)"""
    chart = unwrap(charts.create_chart(db, user_id, data.name, data.type))
    return ChartIdResponse(id=chart.id)


@app.get("/Api/Charts", response_model=list[ChartResponse], responses=AUTH_ERRORS, tags=["Charts"])
def list_charts(user_id: uuid.UUID = Depends(require_session), db: Session = Depends(get_db)):
    """Lista las gráficas del usuario, la más reciente primero"""
    return unwrap(charts.list_charts(db, user_id))


@app.get(
    "/Api/Charts/{chart_id}",
    response_model=ChartResponse,
    responses=NOT_FOUND_ERRORS,
    tags=["Charts"],
)
def get_chart(
    chart_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Obtiene una gráfica por ID"""
    return unwrap(charts.get_chart(db, chart_id, user_id))


@app.patch(
    "/Api/Charts/{chart_id}",
    response_model=ChartResponse,
    responses=BAD_REQUEST_ERRORS,
    tags=["Charts"],
)
def update_chart(
    chart_id: uuid.UUID,
    data: ChartUpdate,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Cambia el nombre de una gráfica (el tipo no se puede cambiar)"""
    return unwrap(charts.update_chart(db, chart_id, user_id, data.name))


@app.delete(
    "/Api/Charts/{chart_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND_ERRORS,
    tags=["Charts"],
)
def delete_chart(
    chart_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Elimina una gráfica y todas sus entradas"""
    unwrap(charts.delete_chart(db, chart_id, user_id))
    return MessageResponse(message="Gráfica eliminada")


# =============================================================================
# ===================== SECCIÓN 3: ENTRIES ====================================
# =============================================================================

@app.post(
    "/Api/Charts/{chart_id}/Entries",
    response_model=EntryIdResponse,
    responses=BAD_REQUEST_ERRORS,
    tags=["Entries"],
)
def create_entry(
    chart_id: uuid.UUID,
    data: EntryCreate,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """
    Registra el valor de un día.
    Solo una entrada por gráfica y día, y nunca de un año anterior a la gráfica.
    """
    entry = unwrap(entries.create_entry(
        db, chart_id, user_id, data.entry_date, data.value, data.notes
    ))
    return EntryIdResponse(id=entry.id)


@app.get(
    "/Api/Charts/{chart_id}/Entries",
    response_model=list[EntryResponse],
    responses=NOT_FOUND_ERRORS,
    tags=["Entries"],
)
def list_entries(
    chart_id: uuid.UUID,
    year: Optional[int] = Query(None, ge=1, le=9999, description="Año a consultar (por defecto, el actual)"),
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Todas las entradas de un año, ordenadas por fecha"""
    if year is None:
        year = datetime.now(timezone.utc).year
    return unwrap(entries.list_entries_by_year(db, chart_id, user_id, year))


@app.patch(
    "/Api/Charts/{chart_id}/Entries/{entry_id}",
    response_model=EntryResponse,
    responses=BAD_REQUEST_ERRORS,
    tags=["Entries"],
)
def update_entry(
    chart_id: uuid.UUID,
    entry_id: uuid.UUID,
    data: EntryUpdate,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Cambia el valor y/o las notas de una entrada"""
    return unwrap(entries.update_entry(
        db, chart_id, entry_id, user_id, value=data.value, notes=data.notes
    ))


@app.delete(
    "/Api/Charts/{chart_id}/Entries/{entry_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND_ERRORS,
    tags=["Entries"],
)
def delete_entry(
    chart_id: uuid.UUID,
    entry_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Elimina una entrada"""
    unwrap(entries.delete_entry(db, chart_id, entry_id, user_id))
    return MessageResponse(message="Entrada eliminada")
