"""Punto de entrada de la aplicación FastAPI."""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router as api_router
from app.core.config import settings
from app.core.database import build_session_factory, create_engine_for, init_db
from app.core.exceptions import RecordError
from app.models import *  # noqa: F401, F403 - Registra modelos en Base.metadata antes de init_db

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {
        "name": "notas",
        "description": "Registro de notas por clave natural y promedio ponderado por estudiante y materia.",
    },
    {
        "name": "asistencias",
        "description": "Registro de asistencia por clase (todo o nada) y porcentaje de presencia.",
    },
    {
        "name": "estudiantes",
        "description": "Boletín de notas e historial de asistencia de un estudiante.",
    },
    {
        "name": "api",
        "description": "Endpoints generales de la API v1. Incluye rutas protegidas que requieren JWT.",
    },
    {
        "name": "salud",
        "description": "Comprobación del estado del servicio.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestiona el ciclo de vida: crea el engine, las tablas y lo libera al cerrar."""
    engine = create_engine_for()
    app.state.session_factory = build_session_factory(engine)
    await init_db(engine)
    logger.info("Base de datos inicializada")
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Engine liberado")


app = FastAPI(
    title=settings.app_name,
    description="API del **registro académico**: notas y asistencia con upsert idempotente, lotes atómicos y autorización por materia.",
    version="0.1.0",
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(RecordError)
async def record_error_handler(request: Request, exc: RecordError):
    """Traduce los errores del registro académico a respuestas HTTP."""
    logger.warning("%s en %s: %s", type(exc).__name__, request.url.path, exc.reason)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Excepción no controlada en %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Error interno del servidor"})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Registra método, ruta y código de respuesta de cada request."""
    response = await call_next(request)
    logger.info("%s %s - %s", request.method, request.url.path, response.status_code)
    return response


@app.get(
    "/health",
    tags=["salud"],
    summary="Estado del servicio",
    response_description="Indica que la API está en ejecución",
)
async def health_check():
    """Comprueba que el servicio está activo. No requiere autenticación."""
    return {"status": "ok", "message": "Servicio en ejecución"}
