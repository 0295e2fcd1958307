"""
Cliente de Supabase.

Hay dos conexiones cacheadas: la de lectura (anon key, sujeta a RLS)
para perfiles e historial, y la admin (service key) para escribir
learning data.
"""

from functools import lru_cache

import structlog
from supabase import create_client, Client

from maidmatch.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper del cliente de Supabase."""

    def __init__(self, client: Client, admin: bool = False):
        self._client = client
        self.admin = admin

    @property
    def client(self) -> Client:
        return self._client

    def table(self, name: str):
        return self._client.table(name)


@lru_cache
def get_supabase_client(admin: bool = False) -> SupabaseClient:
    """
    Obtiene el cliente de Supabase (cacheado por tipo de conexión).

    Args:
        admin: Usar SUPABASE_SERVICE_KEY en lugar de la anon key

    Raises:
        ValueError: Si faltan las credenciales necesarias
    """
    settings = get_settings()

    if not settings.supabase_url:
        raise ValueError("SUPABASE_URL es requerido. Configura las variables de entorno.")

    if admin:
        key = settings.supabase_service_key
        if not key:
            raise ValueError("SUPABASE_SERVICE_KEY es requerido para escribir learning data.")
    else:
        key = settings.supabase_key or settings.supabase_service_key
        if not key:
            raise ValueError("SUPABASE_KEY es requerido. Configura las variables de entorno.")

    client = create_client(settings.supabase_url, key)
    logger.info("Cliente de Supabase inicializado", url=settings.supabase_url, admin=admin)

    return SupabaseClient(client, admin=admin)
