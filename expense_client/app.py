"""
Estado de la aplicación cliente.

TrackerApp es lo que una interfaz gráfica manejaría: mantiene la sesión,
la lista de transacciones y los filtros elegidos, y deriva la vista
agregada cada vez que se le pide.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from expense_client.api import ApiError, ExpenseAPI, TransactionId, create_api
from expense_client.config import ClientSettings, load_settings
from expense_client.session import Session, SessionStore
from expense_client.stats import (
    ALL_CATEGORIES,
    DashboardView,
    TimeRange,
    Transaction,
    build_dashboard,
)

logger = logging.getLogger(__name__)


class InputError(ValueError):
    """Datos del formulario incompletos o inválidos; no se llama a la API."""


class TrackerApp:

    def __init__(self, api: ExpenseAPI, store: SessionStore):
        self.api = api
        self.store = store
        self.session: Optional[Session] = None
        self.transactions: List[Transaction] = []
        self.time_range = TimeRange.MONTHLY
        self.category = ALL_CATEGORIES
        self.loading = False

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None) -> "TrackerApp":
        settings = settings or load_settings()
        return cls(create_api(settings), SessionStore(settings.session_file))

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def start(self) -> Optional[Session]:
        """Recupera la sesión guardada y, si existe, carga las transacciones."""
        self.session = self.store.load()
        if self.session:
            logger.info(f"Restored session for {self.session.email}")
            self.refresh()
        return self.session

    # --- Autenticación ---
    # Los errores se propagan: la interfaz los muestra al usuario.

    def register(self, name: str, email: str, password: str) -> str:
        if not name or not email or not password:
            raise InputError("Name, email and password are required")
        return self.api.register(name, email, password)

    def login(self, email: str, password: str) -> Session:
        if not email or not password:
            raise InputError("Email and password are required")
        session = self.api.login(email, password)
        self.session = session
        self.store.save(session)
        self.refresh()
        return session

    def logout(self) -> None:
        if self.session:
            logger.info(f"Logging out {self.session.email}")
        self.session = None
        self.transactions = []
        self.store.clear()

    # --- Transacciones ---

    def _require_session(self) -> Session:
        if self.session is None:
            raise ApiError("Not signed in", status_code=401)
        return self.session

    def refresh(self) -> List[Transaction]:
        """
        Vuelve a pedir la lista completa.
        Si falla, se registra el error y se conserva la última lista válida.
        """
        session = self._require_session()
        self.loading = True
        try:
            self.transactions = self.api.fetch_expenses(session)
        except ApiError as e:
            logger.error(f"Failed to fetch expenses: {e}")
        finally:
            self.loading = False
        return self.transactions

    def add_transaction(
        self,
        title: str,
        amount: Union[float, str],
        type: str = "expense",
        category: Optional[str] = "Food",
        date: Optional[datetime] = None,
    ) -> Transaction:
        if not title or amount in (None, ""):
            raise InputError("Title and amount are required")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise InputError(f"Amount must be numeric, got {amount!r}")

        data = {"title": title, "amount": amount, "type": type, "category": category}
        if date is not None:
            data["date"] = date

        transaction = self.api.add_expense(self._require_session(), data)
        self.transactions.insert(0, transaction)
        return transaction

    def delete_transaction(self, transaction_id: TransactionId) -> bool:
        """Borra en el servidor y luego localmente. Un fallo deja el estado intacto."""
        session = self._require_session()
        try:
            self.api.delete_expense(session, transaction_id)
        except ApiError as e:
            logger.error(f"Failed to delete transaction {transaction_id}: {e}")
            return False
        self.transactions = [item for item in self.transactions if str(item.id) != str(transaction_id)]
        return True

    # --- Vista ---

    def set_time_range(self, time_range: Union[TimeRange, str]) -> None:
        self.time_range = TimeRange(time_range)

    def set_category(self, category: Optional[str]) -> None:
        self.category = category or ALL_CATEGORIES

    def dashboard(self, now: Optional[datetime] = None) -> DashboardView:
        return build_dashboard(self.transactions, self.time_range, self.category, now=now)
