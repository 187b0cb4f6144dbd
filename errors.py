"""
=============================================================================
ERRORS.PY — Resultados y Errores de los Servicios
=============================================================================
Los servicios (accounts, charts, entries) NO lanzan excepciones para los
casos esperados (validación, no encontrado, conflicto...). Devuelven:

  Ok(valor)          → todo bien
  XxxError(detalle)  → algo esperado ha fallado

La capa de API (main.py) llama a unwrap() una sola vez: si es un error,
se convierte en ProblemException y el handler lo pinta como
"problem details":

  {"title": "...", "status": 404, "detail": "...", "traceId": "..."}
"""

from dataclasses import dataclass
from typing import ClassVar, Generic, Optional, TypeVar, Union

T = TypeVar("T")


# =============================================================================
# ===================== RESULTADOS ============================================
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class ServiceError:
    """Error esperado de un servicio. Cada subclase fija su título y status HTTP."""
    detail: str

    title: ClassVar[str] = "Error"
    status: ClassVar[int] = 400


class ValidationError(ServiceError):
    """Datos mal formados o fuera de rango"""
    title = "Validation Error"
    status = 400


class BadRequestError(ServiceError):
    """Petición válida en forma pero imposible (entrada duplicada, fecha anterior a la gráfica...)"""
    title = "Bad Request"
    status = 400


class UnauthorizedError(ServiceError):
    """Sin sesión, sesión caducada o credenciales incorrectas"""
    title = "Unauthorized"
    status = 401


class NotFoundError(ServiceError):
    """No existe, o existe pero es de otro usuario (no se distingue)"""
    title = "Not Found"
    status = 404


class ConflictError(ServiceError):
    """Violación de unicidad (nombre de usuario ya cogido)"""
    title = "Conflict"
    status = 409


class InternalError(ServiceError):
    title = "Internal Server Error"
    status = 500


Result = Union[Ok[T], ServiceError]


# =============================================================================
# ===================== FRONTERA CON LA API ===================================
# =============================================================================

class ProblemException(Exception):
    """Transporta un ServiceError hasta el exception handler de FastAPI"""

    def __init__(self, error: ServiceError):
        super().__init__(error.detail)
        self.error = error


def unwrap(result: Result[T]) -> T:
    """Devuelve el valor de un Ok o lanza ProblemException con el error"""
    if isinstance(result, ServiceError):
        raise ProblemException(result)
    return result.value


def problem_details(error: ServiceError, trace_id: Optional[str]) -> dict:
    """Cuerpo JSON uniforme para cualquier error de la API"""
    return {
        "title": error.title,
        "status": error.status,
        "detail": error.detail,
        "traceId": trace_id,
    }


# ─────────────────────────────────────────────────────────────────────────────
# MENSAJES COMPARTIDOS
# ─────────────────────────────────────────────────────────────────────────────

CHART_NOT_FOUND = "No se ha encontrado la gráfica."
ENTRY_NOT_FOUND = "No se ha encontrado la entrada."
ACCOUNT_NOT_FOUND = "No se ha encontrado tu cuenta."
INVALID_CREDENTIALS = "Nombre de usuario o contraseña incorrectos."
INVALID_PASSWORD = "La contraseña no es correcta."
NAME_TAKEN = "Este nombre de usuario ya está cogido."
