"""
Stores de learning data.

El motor solo necesita load() y save(); cualquier almacenamiento
durable que guarde el JSON de LearningData sirve.
"""

from pathlib import Path
from typing import Optional, Protocol

import structlog
from pydantic import ValidationError

from maidmatch.config import Settings, get_settings
from maidmatch.exceptions import PersistenceWarning
from maidmatch.models import LearningData

logger = structlog.get_logger()


class LearningStore(Protocol):
    def load(self) -> LearningData: ...

    def save(self, data: LearningData) -> None: ...


class InMemoryLearningStore:
    """Store en memoria del proceso (tests y ejecuciones efímeras)."""

    def __init__(self, data: Optional[LearningData] = None):
        self._data = data.model_copy(deep=True) if data else LearningData()

    def load(self) -> LearningData:
        return self._data.model_copy(deep=True)

    def save(self, data: LearningData) -> None:
        self._data = data.model_copy(deep=True)


class JsonFileLearningStore:
    """Guarda learning data como un archivo JSON."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> LearningData:
        """
        Lee el archivo.

        Returns:
            LearningData vacío si el archivo todavía no existe

        Raises:
            PersistenceWarning: Si el archivo no se puede leer o parsear
        """
        if not self.path.exists():
            return LearningData()

        try:
            return LearningData.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise PersistenceWarning(f"No se pudo leer {self.path}: {e}") from e

    def save(self, data: LearningData) -> None:
        """Escribe a un archivo temporal y lo reemplaza para no dejar JSON a medias."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceWarning(f"No se pudo guardar {self.path}: {e}") from e

        logger.debug("Learning data guardado", path=str(self.path))


def get_learning_store(settings: Optional[Settings] = None) -> LearningStore:
    """
    Crea el store configurado en LEARNING_STORE.

    Raises:
        ValueError: Si el backend no existe
    """
    settings = settings or get_settings()
    backend = settings.learning_store.lower()

    if backend == "file":
        return JsonFileLearningStore(settings.learning_data_path)
    if backend == "supabase":
        from maidmatch.database import LearningDataRepository

        return LearningDataRepository()

    raise ValueError(f"Backend de learning data no soportado: {settings.learning_store}")
