"""
Excepciones del motor de matching.
"""

from typing import Optional


class MatchingError(Exception):
    """Error base del paquete."""


class NotFoundError(MatchingError):
    """El perfil solicitado no existe."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} no encontrado: {entity_id}")


class UpstreamFetchError(MatchingError):
    """Falla de transporte al consultar una fuente de datos externa."""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        self.source = source
        self.cause = cause
        message = f"Error obteniendo datos de {source}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class PersistenceWarning(MatchingError):
    """
    No se pudo leer o guardar learning data.

    El motor la registra en el log y continúa con el matching.
    """
