# ==============================================================================
# REPOSITORIO BASE - Colecciones ordenadas sobre un almacén clave-valor
# ==============================================================================

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from gestor_lite.repositories.interfaces import IKeyValueStore

logger = logging.getLogger(__name__)


class ListRepository(ABC):
    """
    Clase base para colecciones almacenadas como lista JSON bajo una clave.

    Ejemplo: clave "sales" → '[{...}, {...}]'

    Las subclases definen `key` y cómo construir una entidad desde su dict.
    """

    key: str = ''

    def __init__(self, store: IKeyValueStore):
        """
        Inicializa el repositorio.

        Args:
            store: Almacén clave-valor donde vive el blob
        """
        self.store = store

    @abstractmethod
    def _from_dict(self, data: Dict[str, Any]) -> Any:
        """
        Construye una entidad desde su diccionario persistido.

        Raises:
            ValueError: Si el registro está incompleto o mal tipado
        """
        pass

    def load(self) -> List[Any]:
        """
        Carga la colección completa.

        Un blob ausente es una colección vacía. Un blob ilegible (JSON
        inválido, no es lista, registro mal formado) también: se registra
        un warning y la app continúa con la colección vacía.

        Returns:
            Lista de entidades en orden de inserción
        """
        try:
            raw = self.store.get(self.key)
        except OSError as e:
            logger.warning("No se pudo leer la colección %r: %s", self.key, e)
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"se esperaba una lista, se obtuvo {type(data).__name__}")
            return [self._from_dict(item) for item in data]
        except (ValueError, TypeError, AttributeError) as e:
            # json.JSONDecodeError es subclase de ValueError
            logger.warning("Colección %r corrupta, se usa vacía: %s", self.key, e)
            return []

    def save(self, records: Sequence[Any]) -> None:
        """
        Guarda todos los registros (reemplazo completo).

        Args:
            records: Entidades con to_dict()
        """
        payload = [record.to_dict() for record in records]
        self.store.set(self.key, json.dumps(payload, indent=2, ensure_ascii=False))
        logger.debug("Colección %r guardada (%d registros)", self.key, len(payload))
