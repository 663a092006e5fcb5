"""Define las tablas 'users' y 'transactions' usando SQLAlchemy ORM."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from expense_service.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Modelo SQLAlchemy que representa la tabla 'users'.
    Almacena la información de autenticación de los usuarios.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False)

    # Identificador único para el login
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Hash bcrypt; la contraseña en texto plano nunca se guarda.
    hashed_password = Column(String(255), nullable=False)

    transactions = relationship("Transaction", back_populates="owner", cascade="all, delete-orphan")


class Transaction(Base):
    """
    Un movimiento de dinero (ingreso, gasto, inversión o retiro) de un único usuario.
    Nunca se modifica; solo se crea y se elimina.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)

    # Dueño del registro: toda consulta filtra por esta columna.
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    amount = Column(Float, nullable=False)

    # income | expense | investment | withdrawal (validado en schemas)
    type = Column(String(20), nullable=False, default="expense")

    # Etiqueta libre; el cliente sugiere un conjunto fijo pero no lo impone.
    category = Column(String(100), nullable=True)

    date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    owner = relationship("User", back_populates="transactions")
