"""Funciones de utilidad del servicio: hash de contraseñas y manejo de JWT."""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from passlib.context import CryptContext
from jose import JWTError, jwt
from dotenv import load_dotenv

from expense_service.errors import Unauthorized

# Carga variables de entorno desde .env
load_dotenv()

logger = logging.getLogger(__name__)

# --- Configuración de Seguridad ---
SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not SECRET_KEY:
    logger.warning("JWT_SECRET_KEY is not set. Using an insecure default key for development.")
    SECRET_KEY = "insecure_default_key_change_me"

ALGORITHM = "HS256"

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

AUTH_SCHEME = "Bearer"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña plana contra un hash almacenado."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Genera el hash de una contraseña plana usando bcrypt."""
    return pwd_context.hash(password)


# --- Utilidades para Tokens JWT ---
def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Genera un token de acceso JWT con los datos proporcionados y una marca de expiración.

    Args:
        data: Diccionario (payload) a incluir en el token (ej., {'sub': '42'}).
        expires_delta: Vida del token; por defecto ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        String del JWT codificado.
    """
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[Dict]:
    """
    Decodifica y valida un token JWT (firma y expiración).

    Returns:
        El payload si el token es válido y no ha expirado; en caso contrario, None.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token decoding failed: {e}")
        return None


def extract_token(authorization: Optional[str]) -> str:
    """Obtiene el token de una cabecera 'Authorization: Bearer <token>'."""
    if not authorization:
        raise Unauthorized("Access denied")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != AUTH_SCHEME.lower() or not token.strip():
        raise Unauthorized("Invalid token")
    return token.strip()


def authenticate(authorization: Optional[str]) -> int:
    """
    Valida la cabecera Authorization y devuelve el id del usuario embebido en el token.
    Lanza Unauthorized si falta, está mal formada, fue alterada o expiró.
    """
    token = extract_token(authorization)
    payload = decode_token(token)
    if payload is None or "sub" not in payload:
        raise Unauthorized("Invalid token")

    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        logger.warning(f"Token payload has a non-numeric 'sub': {payload.get('sub')!r}")
        raise Unauthorized("Invalid token")
