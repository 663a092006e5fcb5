"""Errores de la API. Todos se serializan como {"error": <mensaje>}."""

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    """Entrada faltante o mal formada."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DuplicateEmail(HTTPException):
    def __init__(self, detail: str = "User already exists"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidCredentials(HTTPException):
    """
    Email desconocido o contraseña incorrecta.
    Ambos casos comparten mensaje para no revelar qué emails están registrados.
    """

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Unauthorized(HTTPException):
    """Token ausente, inválido o expirado."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ServerError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
