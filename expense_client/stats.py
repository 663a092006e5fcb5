"""
Motor de agregación del cliente.

Funciones puras sobre la lista completa de transacciones del usuario:
filtro por rango de tiempo, filtro por categoría y totales por tipo.
Los totales se calculan sobre la lista filtrada por tiempo; la categoría
solo afecta la lista mostrada.
"""

import enum
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

ALL_CATEGORIES = "All"

SUGGESTED_CATEGORIES = [
    "Food",
    "Transport",
    "Housing",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Salary",
    "Stocks",
    "Crypto",
    "Savings",
]


class TransactionType(str, enum.Enum):
    """Los mismos tipos que acepta el servidor."""
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    WITHDRAWAL = "withdrawal"


class TimeRange(str, enum.Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ALL = "all"


class Transaction(BaseModel):
    """Transacción tal como la devuelve la API (o el modo mock)."""
    id: Union[int, str]
    title: str
    amount: float
    type: str = "expense"
    category: Optional[str] = None
    date: datetime
    user_id: Optional[Union[int, str]] = None

    model_config = ConfigDict(extra="ignore")


class Stats(BaseModel):
    total_income: float = 0.0
    total_expense: float = 0.0
    total_invested: float = 0.0
    total_withdrawn: float = 0.0
    total_balance: float = 0.0


class DashboardView(BaseModel):
    """Vista derivada: totales del rango y lista mostrada."""
    time_range: TimeRange
    category: str
    stats: Stats
    transactions: List[Transaction]


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    # naive = hora local
    return now if now.tzinfo is not None else now.astimezone()


def _as_zone(value: datetime, reference: datetime) -> datetime:
    # Las fechas sin zona vienen del servidor en UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(reference.tzinfo)


def filter_by_time_range(
    transactions: Iterable[Transaction],
    time_range: Union[TimeRange, str],
    now: Optional[datetime] = None,
) -> List[Transaction]:
    """
    Filtra por ventana de tiempo, evaluada en la zona horaria de `now`.

    daily: mismo día calendario; monthly: mismo mes y año;
    yearly: mismo año; all: sin filtro.
    """
    time_range = TimeRange(time_range)
    transactions = list(transactions)
    if time_range is TimeRange.ALL:
        return transactions

    now = _resolve_now(now)
    result = []
    for item in transactions:
        item_date = _as_zone(item.date, now)
        if time_range is TimeRange.DAILY:
            keep = item_date.date() == now.date()
        elif time_range is TimeRange.MONTHLY:
            keep = (item_date.year, item_date.month) == (now.year, now.month)
        else:
            keep = item_date.year == now.year
        if keep:
            result.append(item)
    return result


def filter_by_category(transactions: Iterable[Transaction], category: Optional[str]) -> List[Transaction]:
    if not category or category == ALL_CATEGORIES:
        return list(transactions)
    return [item for item in transactions if item.category == category]


def compute_stats(transactions: Iterable[Transaction]) -> Stats:
    totals = {"income": 0.0, "expense": 0.0, "investment": 0.0, "withdrawal": 0.0}
    for item in transactions:
        # Tipos fuera de la enumeración no suman a ningún total
        if item.type in totals:
            totals[item.type] += item.amount

    return Stats(
        total_income=totals["income"],
        total_expense=totals["expense"],
        total_invested=totals["investment"],
        total_withdrawn=totals["withdrawal"],
        total_balance=totals["income"] + totals["withdrawal"] - totals["expense"] - totals["investment"],
    )


def build_dashboard(
    transactions: Iterable[Transaction],
    time_range: Union[TimeRange, str] = TimeRange.MONTHLY,
    category: str = ALL_CATEGORIES,
    now: Optional[datetime] = None,
) -> DashboardView:
    in_range = filter_by_time_range(transactions, time_range, now=now)
    return DashboardView(
        time_range=TimeRange(time_range),
        category=category or ALL_CATEGORIES,
        stats=compute_stats(in_range),
        transactions=filter_by_category(in_range, category),
    )


def format_amount(value: float) -> str:
    """Formato de presentación: dos decimales."""
    return f"{value:.2f}"
