# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos de la capa de persistencia. Los servicios dependen de estas
# interfaces, no de las implementaciones concretas:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - IKeyValueStore: get(key) → texto o None, set(key, texto)
#    - Cambiar archivos JSON → otro backend solo requiere una nueva clase
#
# 2. TESTING
#    - MemoryStore implementa IKeyValueStore sin tocar disco
#
# ==============================================================================

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class IKeyValueStore(Protocol):
    """
    Almacén clave-valor local.
    Cada clave guarda un blob de texto (JSON serializado).
    """

    def get(self, key: str) -> Optional[str]:
        """Retorna el blob guardado o None si la clave no existe."""
        ...

    def set(self, key: str, value: str) -> None:
        """Reemplaza el blob de la clave."""
        ...


@runtime_checkable
class ICollectionRepository(Protocol):
    """
    Repositorio de una colección ordenada de entidades.
    Usado por: productos, ventas, gastos.
    """

    key: str

    def load(self) -> List[Any]:
        """Carga la colección completa (vacía si no existe o está corrupta)."""
        ...

    def save(self, records: Sequence[Any]) -> None:
        """Serializa y guarda la colección completa."""
        ...
