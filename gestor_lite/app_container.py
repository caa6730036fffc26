# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto central para obtener almacén, repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (MemoryStore o carpeta temporal por app)
#   - Cambiar el almacenamiento sin tocar servicios ni rutas
#
# Un contenedor por app Flask, guardado en app.extensions['gestor_lite'].
# Las rutas lo obtienen con get_container().
# ==============================================================================

import logging
from typing import Any, Mapping, Optional

from gestor_lite.performance_logger import profile_function

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from gestor_lite.repositories import (
    ExpenseRepository,
    InventoryRepository,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    SalesRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from gestor_lite.services import BusinessState, StatsService, persist_with

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'gestor_lite'


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Crea cada pieza la primera vez que se pide (lazy loading) y la reutiliza.

    Uso:
        container = AppContainer(app.config)
        state = container.state
        stats = container.stats_service
    """

    def __init__(self, config: Mapping[str, Any], store: Optional[KeyValueStore] = None):
        """
        Inicializa el contenedor.

        Args:
            config: Configuración (STORAGE_BACKEND, DATA_DIR, ...)
            store: Almacén ya construido (tiene prioridad sobre la config)
        """
        self._config = config
        self._store = store

        self._inventory_repo: Optional[InventoryRepository] = None
        self._sales_repo: Optional[SalesRepository] = None
        self._expense_repo: Optional[ExpenseRepository] = None

        self._state: Optional[BusinessState] = None
        self._stats_service: Optional[StatsService] = None

    # =========================================================================
    # PERSISTENCIA
    # =========================================================================

    @property
    def store(self) -> KeyValueStore:
        """Almacén clave-valor según STORAGE_BACKEND."""
        if self._store is None:
            backend = str(self._config.get('STORAGE_BACKEND', 'json')).lower()
            if backend == 'memory':
                self._store = MemoryStore()
            elif backend == 'json':
                self._store = JsonFileStore(self._config['DATA_DIR'])
            else:
                raise ValueError(f"STORAGE_BACKEND desconocido: {backend!r}")
            logger.info("Almacenamiento: %s", backend)
        return self._store

    @property
    def inventory_repo(self) -> InventoryRepository:
        if self._inventory_repo is None:
            self._inventory_repo = InventoryRepository(self.store)
        return self._inventory_repo

    @property
    def sales_repo(self) -> SalesRepository:
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(self.store)
        return self._sales_repo

    @property
    def expense_repo(self) -> ExpenseRepository:
        if self._expense_repo is None:
            self._expense_repo = ExpenseRepository(self.store)
        return self._expense_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @profile_function(name="Cargar estado")
    def _load_state(self) -> BusinessState:
        state = BusinessState(
            products=self.inventory_repo.load(),
            sales=self.sales_repo.load(),
            expenses=self.expense_repo.load(),
        )
        state.on_commit(persist_with({
            self.inventory_repo.key: self.inventory_repo,
            self.sales_repo.key: self.sales_repo,
            self.expense_repo.key: self.expense_repo,
        }))
        logger.info(
            "Estado cargado: %d productos, %d ventas, %d gastos",
            len(state.products), len(state.sales), len(state.expenses)
        )
        return state

    @property
    def state(self) -> BusinessState:
        """Estado del negocio, persistido en cada commit."""
        if self._state is None:
            self._state = self._load_state()
        return self._state

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(lambda: self.state.snapshot())
        return self._stats_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Descarta el estado en memoria; el próximo acceso recarga del almacén.
        """
        self._inventory_repo = None
        self._sales_repo = None
        self._expense_repo = None
        self._state = None
        self._stats_service = None


def get_container(app=None) -> AppContainer:
    """
    Obtiene el contenedor de la app (por defecto, la app actual).
    """
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions[EXTENSION_KEY]
