"""
=============================================================================
DATABASE.PY — Configuración de la Base de Datos
=============================================================================
Este archivo configura la conexión a la base de datos.

En DESARROLLO (tu PC): usa SQLite (un archivo .db)
En PRODUCCIÓN: usa PostgreSQL

¿Cómo sabe cuál usar?
→ Si existe la variable de entorno DATABASE_URL, usa esa.
→ Si no existe, usa SQLite local (daytracker.db).
"""

import os
from typing import Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

# ─────────────────────────────────────────────────────────────────────────────
# CONEXIÓN
# ─────────────────────────────────────────────────────────────────────────────

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./daytracker.db")

# Los proveedores suelen dar la URL con "postgres://" pero SQLAlchemy necesita
# "postgresql://", y como usamos psycopg (v3) el driver va explícito.
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)


def build_engine(url: str, **kwargs) -> Engine:
    """
    Crea el engine para una URL.

    Para SQLite añade check_same_thread=False, porque FastAPI ejecuta las
    rutas síncronas en un pool de hilos y SQLite por defecto no permite
    compartir la conexión entre hilos.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(url, echo=False, **kwargs)


engine = build_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """
    SQLite ignora las FOREIGN KEY (y por tanto ON DELETE CASCADE) salvo que
    se active el pragma en cada conexión.
    """
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ─────────────────────────────────────────────────────────────────────────────
# SESSION (Sesión de base de datos)
# ─────────────────────────────────────────────────────────────────────────────
# Una sesión es una "conversación" con la BD. Abres una, haces operaciones,
# y la cierras. SessionLocal es una "fábrica" de sesiones.

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Todos los modelos (User, Chart, Entry) heredan de esta clase.
Base = declarative_base()


def get_db():
    """
    Generador que crea una sesión de BD por petición y la cierra al terminar.

    Se usa como "dependencia" en FastAPI:
      @app.get("/algo")
      def mi_endpoint(db: Session = Depends(get_db)):
          ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None):
    """
    Crea todas las tablas en la BD si no existen.
    Se llama una vez al arrancar la aplicación.
    """
    # Importar los modelos para que queden registrados en Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
