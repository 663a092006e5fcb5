"""API REST del Expense Tracker: registro, login y CRUD de transacciones por usuario."""

import os
import logging
import re
import time
from datetime import timezone
from typing import List, Optional

from fastapi import FastAPI, Depends, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from expense_service.db import engine, Base, get_db
from expense_service.errors import DuplicateEmail, InvalidCredentials, ServerError
from expense_service.models import Transaction, User, utcnow
from expense_service import schemas
from expense_service.utils import (
    authenticate,
    create_access_token,
    get_password_hash,
    verify_password,
)

# Configura logger
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Crea tablas si no existen al iniciar
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified/created.")
except SQLAlchemyError as e:
    logger.error(f"Error initializing database: {e}", exc_info=True)


app = FastAPI(
    title="Expense Tracker API",
    description="Handles user registration, authentication and per-user transactions.",
    version="1.0.0",
    responses={
        400: {"model": schemas.ErrorResponse},
        401: {"model": schemas.ErrorResponse},
    },
)

# --- Configuración de CORS ---
origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ids enteros que caben en una columna INTEGER de 64 bits
TRANSACTION_ID_PATTERN = re.compile(r"[0-9]{1,18}")

# --- Métricas Prometheus ---
REQUEST_COUNT = Counter(
    "expense_requests_total",
    "Total requests processed by the Expense Tracker API",
    ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "expense_request_latency_seconds",
    "Request latency in seconds for the Expense Tracker API",
    ["endpoint"]
)


# --- Middleware para Métricas ---
def route_template(request: Request) -> str:
    """
    Plantilla de la ruta (ej. /api/expenses/{transaction_id}) para etiquetar métricas.
    Las rutas desconocidas comparten la etiqueta "unmatched".
    """
    route = request.scope.get("route")
    if route is not None:
        return route.path
    for candidate in app.router.routes:
        match, _ = candidate.matches(request.scope)
        if match != Match.NONE:
            return candidate.path
    return "unmatched"


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    response = None
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
    except Exception as exc:
        logger.error(f"Unhandled exception during request processing: {exc}", exc_info=True)
        response = JSONResponse(status_code=500, content={"error": "Internal server error"})
    finally:
        latency = time.time() - start_time
        endpoint = route_template(request)
        final_status_code = getattr(response, 'status_code', status_code)

        REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=final_status_code
        ).inc()

    return response


# --- Manejadores de Errores ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Todas las respuestas de error usan el cuerpo {"error": <mensaje>}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    detail = "; ".join(messages) or "Invalid input"
    logger.warning(f"Validation failed on {request.url.path}: {detail}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": detail})


# --- Dependencia de Seguridad ---
def get_current_user_id(authorization: Optional[str] = Header(None)) -> int:
    """
    Dependencia de FastAPI que valida el token del header Authorization.
    Se usa en todos los endpoints de transacciones.
    """
    return authenticate(authorization)


# --- Endpoints de Salud y Métricas ---
@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Exposes application metrics for Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", tags=["Monitoring"])
def health_check():
    """Performs a basic health check of the service."""
    return {"status": "ok", "service": "expense_service"}


# --- Endpoints de Autenticación ---

@app.post("/api/auth/register", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED, tags=["Authentication"])
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Registers a new user. The password is stored as a bcrypt hash.
    Does not log the user in.
    """
    logger.info(f"Registration attempt for email: {user.email}")
    if db.query(User).filter(User.email == user.email).first():
        logger.warning(f"Registration failed: Email {user.email} already exists.")
        raise DuplicateEmail()

    new_user = User(
        name=user.name,
        email=user.email,
        hashed_password=get_password_hash(user.password),
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError:
        # Otro registro con el mismo email ganó la carrera
        db.rollback()
        logger.warning(f"Registration failed: Email {user.email} already exists (constraint).")
        raise DuplicateEmail()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during user creation for email {user.email}: {e}", exc_info=True)
        raise ServerError("Could not save user")

    logger.info(f"User created with ID: {new_user.id} for email: {user.email}")
    return {"message": "User registered successfully"}


@app.post("/api/auth/login", response_model=schemas.LoginResponse, tags=["Authentication"])
def login(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Authenticates a user by email and password.
    Returns a signed JWT (1 hour) and the public user profile.
    """
    email = credentials.email.strip()
    logger.info(f"Login attempt for user: {email}")
    user = db.query(User).filter(User.email == email).first()

    if not user:
        logger.warning(f"Login failed for {email}: user not found.")
        raise InvalidCredentials()

    if not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Login failed for {email}: wrong password.")
        raise InvalidCredentials()

    # 'sub' (subject) es el ID del usuario
    token = create_access_token(data={"sub": str(user.id)})
    logger.info(f"Login successful for user_id: {user.id}")

    return {"token": token, "user": schemas.UserPublic.model_validate(user)}


# --- Endpoints de Transacciones (protegidos) ---

@app.get("/api/expenses", response_model=List[schemas.TransactionResponse], tags=["Transactions"])
def list_transactions(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Returns every transaction owned by the caller, most recent first."""
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .all()
    )


@app.post("/api/expenses", response_model=schemas.TransactionResponse, tags=["Transactions"])
def create_transaction(
    transaction_in: schemas.TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Creates a transaction for the caller.
    The owner always comes from the token; the date defaults to now.
    """
    date = transaction_in.date or utcnow()
    # Se guarda siempre en UTC: SQLite descarta el offset
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    date = date.astimezone(timezone.utc)

    new_transaction = Transaction(
        user_id=user_id,
        title=transaction_in.title,
        amount=transaction_in.amount,
        type=transaction_in.type.value,
        category=transaction_in.category,
        date=date,
    )

    try:
        db.add(new_transaction)
        db.commit()
        db.refresh(new_transaction)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error creating transaction for user_id {user_id}: {e}", exc_info=True)
        raise ServerError("Could not save transaction")

    logger.info(f"Transaction {new_transaction.id} ({new_transaction.type}) created for user_id: {user_id}")
    return new_transaction


@app.delete("/api/expenses/{transaction_id}", response_model=schemas.MessageResponse, tags=["Transactions"])
def delete_transaction(
    transaction_id: str,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Deletes one of the caller's transactions.
    Missing ids, malformed ids and ids owned by someone else all answer success
    without side effects.
    """
    # El id se valida aquí y no en la ruta: el token se comprueba primero
    if not TRANSACTION_ID_PATTERN.fullmatch(transaction_id):
        logger.warning(f"Delete with malformed transaction id {transaction_id!r} by user_id {user_id}.")
        return {"message": "Deleted"}

    try:
        deleted = (
            db.query(Transaction)
            .filter(Transaction.id == int(transaction_id), Transaction.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error deleting transaction {transaction_id}: {e}", exc_info=True)
        raise ServerError("Could not delete transaction")

    if deleted:
        logger.info(f"Transaction {transaction_id} deleted by user_id: {user_id}")
    else:
        logger.warning(f"Delete of transaction {transaction_id} by user_id {user_id} matched nothing.")
    return {"message": "Deleted"}
