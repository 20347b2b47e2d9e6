# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import models  # noqa: F401  registers every table
from app.core.config import get_settings
from app.core.database import Base, SessionLocal, engine
from app.core.exceptions import DuplicateCodeError, NotFoundError, PersistenceError, ValidationError
from app.core.logging import setup_logging
from app.core.seed import seed_database
from app.comment.routes import files_router, router as comment_router
from app.product.routes import router as product_router
from app.ticket.routes import router as ticket_router
from app.user.routes import router as user_router

settings = get_settings()
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_database(db)
    logger.info("%s %s started.", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESC,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Service errors that escape a route
@app.exception_handler(ValidationError)
def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DuplicateCodeError)
def duplicate_code_handler(request: Request, exc: DuplicateCodeError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"detail": "A database error occurred."})


# Routers
app.include_router(ticket_router)
app.include_router(comment_router)
app.include_router(files_router)
app.include_router(product_router)
app.include_router(user_router)

@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
