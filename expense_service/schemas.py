"""Modelos Pydantic (schemas) para validación de datos de entrada/salida de la API."""

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


# --- Schemas de Usuario ---

class UserCreate(BaseModel):
    """Schema para los datos requeridos al registrar un nuevo usuario."""
    name: str = Field(..., min_length=1, description="Nombre visible del usuario")
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class UserLogin(BaseModel):
    email: str
    password: str


class UserPublic(BaseModel):
    """Proyección pública del usuario (excluye la contraseña)."""
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Respuesta del login: token firmado y datos públicos del usuario."""
    token: str
    user: UserPublic


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


# --- Schemas de Transacciones ---

class TransactionType(str, enum.Enum):
    """Enumeración cerrada de tipos de movimiento."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    WITHDRAWAL = "withdrawal"


class TransactionCreate(BaseModel):
    """
    Datos aceptados al crear una transacción.
    El dueño nunca se toma del cuerpo: se ignoran campos extra como 'user_id'.
    """
    title: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0, description="Monto no negativo, sin moneda")
    type: TransactionType = TransactionType.EXPENSE
    category: Optional[str] = None
    date: Optional[datetime] = Field(None, description="Si se omite, el servidor usa la hora actual")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    title: str
    amount: float
    type: str
    category: Optional[str] = None
    date: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite devuelve fechas sin zona horaria; se guardan siempre en UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
