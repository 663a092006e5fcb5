"""Configuración del cliente leída del entorno (.env)."""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

API_MODES = ("http", "mock")


class ClientSettings(BaseModel):
    """Parámetros del cliente; se eligen al arrancar, no en el código fuente."""
    api_url: str = "http://localhost:5000/api"
    api_mode: str = "http"
    timeout: float = Field(10.0, gt=0)
    session_file: Path = Path.home() / ".expense_tracker" / "session.json"
    # Solo modo mock: donde se guardan las transacciones de demo
    mock_store_file: Path = Path.home() / ".expense_tracker" / "mock_expenses.json"


def load_settings() -> ClientSettings:
    """Construye ClientSettings desde variables de entorno."""
    load_dotenv()

    api_mode = os.getenv("EXPENSE_API_MODE", "http").strip().lower()
    if api_mode not in API_MODES:
        logger.warning(f"Unknown EXPENSE_API_MODE '{api_mode}', using 'http'.")
        api_mode = "http"

    defaults = ClientSettings()
    return ClientSettings(
        api_url=os.getenv("EXPENSE_API_URL", defaults.api_url),
        api_mode=api_mode,
        timeout=float(os.getenv("EXPENSE_API_TIMEOUT", defaults.timeout)),
        session_file=Path(os.getenv("EXPENSE_SESSION_FILE", str(defaults.session_file))).expanduser(),
        mock_store_file=Path(os.getenv("EXPENSE_MOCK_STORE_FILE", str(defaults.mock_store_file))).expanduser(),
    )
