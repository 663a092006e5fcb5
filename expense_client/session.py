"""Sesión del usuario (perfil + token) y su persistencia entre ejecuciones."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """Usuario autenticado y el token firmado que lo acredita."""
    id: str
    name: str
    email: str
    token: str

    @property
    def auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


class SessionStore:
    """
    Guarda la sesión como JSON hasta que el usuario cierre sesión.
    load() devuelve None si no hay sesión o el archivo está dañado.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        if not self.path.exists():
            return None
        try:
            return Session.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json(), encoding="utf-8")
        logger.info(f"Session saved for {session.email}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
