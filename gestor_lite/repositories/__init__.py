# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (blobs JSON por clave).
# Los servicios solo ven entidades; nunca texto JSON ni archivos.
#
# ESTRUCTURA:
# ├── interfaces.py            → Protocolos (IKeyValueStore, ICollectionRepository)
# ├── store.py                 → Almacenes: JsonFileStore, MemoryStore
# ├── base.py                  → ListRepository (serialización + fallback a vacío)
# ├── inventory_repository.py  → Blob "products"
# ├── sales_repository.py      → Blob "sales"
# └── expense_repository.py    → Blob "expenses"
# ==============================================================================

# Interfaces
from .interfaces import IKeyValueStore, ICollectionRepository

# Almacenes
from .store import KeyValueStore, JsonFileStore, MemoryStore

# Repositorios
from .base import ListRepository
from .inventory_repository import InventoryRepository
from .sales_repository import SalesRepository
from .expense_repository import ExpenseRepository

__all__ = [
    # Interfaces
    'IKeyValueStore',
    'ICollectionRepository',

    # Almacenes
    'KeyValueStore',
    'JsonFileStore',
    'MemoryStore',

    # Repositorios
    'ListRepository',
    'InventoryRepository',
    'SalesRepository',
    'ExpenseRepository',
]
