"""
Acceso a la API de gastos.

ExpenseAPI define las operaciones; HttpExpenseAPI habla con el servidor REST
y MockExpenseAPI guarda todo localmente (modo demo). La variante se elige al
arrancar con create_api(settings).
"""

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from expense_client.config import ClientSettings
from expense_client.session import Session
from expense_client.stats import Transaction, TransactionType

logger = logging.getLogger(__name__)

TransactionId = Union[int, str]

TRANSACTION_LIST = TypeAdapter(List[Transaction])


class ApiError(Exception):
    """Respuesta de error de la API o fallo de red."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ExpenseAPI(ABC):
    """Operaciones que el cliente necesita del backend."""

    @abstractmethod
    def register(self, name: str, email: str, password: str) -> str:
        """Registra un usuario. Devuelve el mensaje del servidor."""

    @abstractmethod
    def login(self, email: str, password: str) -> Session:
        """Autentica y devuelve la sesión (perfil + token)."""

    @abstractmethod
    def fetch_expenses(self, session: Session) -> List[Transaction]:
        """Todas las transacciones del usuario, más recientes primero."""

    @abstractmethod
    def add_expense(self, session: Session, data: Dict[str, Any]) -> Transaction:
        pass

    @abstractmethod
    def delete_expense(self, session: Session, transaction_id: TransactionId) -> TransactionId:
        pass

    def close(self) -> None:
        pass


class HttpExpenseAPI(ExpenseAPI):
    """Cliente REST con httpx. Toda llamada lleva timeout."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, path: str, session: Optional[Session] = None, **kwargs) -> Any:
        headers = session.auth_header if session else {}
        try:
            response = self.client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            logger.error(f"Request to {path} failed: {exc}")
            raise ApiError(f"Could not reach the expense API: {exc}") from exc

        if response.is_error:
            message = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("error") or body.get("detail")
            except ValueError:
                message = response.text
            logger.warning(f"{method} {path} answered {response.status_code}: {message}")
            raise ApiError(message or f"Request failed with status {response.status_code}", response.status_code)

        return response.json()

    def register(self, name: str, email: str, password: str) -> str:
        body = self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        return body.get("message", "")

    def login(self, email: str, password: str) -> Session:
        body = self._request("POST", "/auth/login", json={"email": email, "password": password})
        user = body["user"]
        return Session(id=str(user["id"]), name=user["name"], email=user["email"], token=body["token"])

    def fetch_expenses(self, session: Session) -> List[Transaction]:
        body = self._request("GET", "/expenses", session=session)
        return [Transaction.model_validate(item) for item in body]

    def add_expense(self, session: Session, data: Dict[str, Any]) -> Transaction:
        payload = {key: value.isoformat() if isinstance(value, datetime) else value for key, value in data.items()}
        body = self._request("POST", "/expenses", session=session, json=payload)
        return Transaction.model_validate(body)

    def delete_expense(self, session: Session, transaction_id: TransactionId) -> TransactionId:
        self._request("DELETE", f"/expenses/{transaction_id}", session=session)
        return transaction_id

    def close(self) -> None:
        self.client.close()


class MockExpenseAPI(ExpenseAPI):
    """
    Backend local para demos y pruebas sin servidor.
    Acepta cualquier login y no separa datos por usuario. Con store_path las
    transacciones se guardan en JSON y sobreviven entre ejecuciones.
    """

    def __init__(self, store_path: Optional[Path] = None):
        self.store_path = Path(store_path) if store_path else None
        self.expenses: List[Transaction] = self._load()
        last_id = max((int(item.id) for item in self.expenses if str(item.id).isdigit()), default=0)
        self._ids = itertools.count(last_id + 1)

    def _load(self) -> List[Transaction]:
        if self.store_path is None or not self.store_path.exists():
            return []
        try:
            return TRANSACTION_LIST.validate_json(self.store_path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable mock store {self.store_path}: {e}")
            return []

    def _save(self) -> None:
        if self.store_path is None:
            return
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        self.store_path.write_bytes(TRANSACTION_LIST.dump_json(self.expenses))

    def register(self, name: str, email: str, password: str) -> str:
        return "User registered successfully"

    def login(self, email: str, password: str) -> Session:
        return Session(id="user_123", name="Demo User", email=email, token="mock-token")

    def fetch_expenses(self, session: Session) -> List[Transaction]:
        return list(self.expenses)

    def add_expense(self, session: Session, data: Dict[str, Any]) -> Transaction:
        payload = {key: value for key, value in data.items() if key not in ("id", "user_id")}

        # Mismas reglas que el servidor, con el mismo código de estado
        if not str(payload.get("title") or "").strip():
            raise ApiError("title: Field required", status_code=400)
        try:
            amount = float(payload.get("amount"))
        except (TypeError, ValueError):
            raise ApiError("amount: Input should be a valid number", status_code=400)
        if amount < 0:
            raise ApiError("amount: Input should be greater than or equal to 0", status_code=400)
        try:
            tx_type = TransactionType(payload.get("type") or TransactionType.EXPENSE)
        except ValueError:
            raise ApiError(f"type: Input should be one of {', '.join(t.value for t in TransactionType)}", status_code=400)

        payload.update(title=str(payload["title"]).strip(), amount=amount, type=tx_type.value)
        if payload.get("date") is None:
            payload["date"] = datetime.now(timezone.utc)
        transaction = Transaction(id=str(next(self._ids)), user_id=session.id, **payload)
        self.expenses.insert(0, transaction)
        self._save()
        return transaction

    def delete_expense(self, session: Session, transaction_id: TransactionId) -> TransactionId:
        self.expenses = [item for item in self.expenses if str(item.id) != str(transaction_id)]
        self._save()
        return transaction_id


def create_api(settings: ClientSettings) -> ExpenseAPI:
    """Elige la implementación según la configuración (EXPENSE_API_MODE)."""
    if settings.api_mode == "mock":
        logger.info(f"Using mock expense API stored at {settings.mock_store_file}")
        return MockExpenseAPI(settings.mock_store_file)
    logger.info(f"Using expense API at {settings.api_url}")
    return HttpExpenseAPI(settings.api_url, timeout=settings.timeout)
