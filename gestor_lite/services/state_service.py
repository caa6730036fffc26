# ==============================================================================
# SERVICIO DE ESTADO DEL NEGOCIO
# ==============================================================================
# Único dueño de las tres colecciones en memoria (productos, ventas, gastos).
# Toda mutación pasa por aquí; las pantallas solo leen y llaman operaciones.
#
# REGLAS:
# - Stock nunca negativo: una venta mayor al stock se rechaza sin cambios
# - Un producto con ventas no se elimina
# - Operar sobre un ID inexistente es un no-op silencioso
# - Tras cada mutación exitosa se llaman los hooks on_commit por cada
#   colección afectada (la app registra el guardado en repositorios)
# - Cada mutación corre completa bajo un RLock: las peticiones concurrentes
#   de Flask se aplican una tras otra
# ==============================================================================

import logging
import threading
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from gestor_lite.models import Expense, Product, Sale, utc_now_iso
from gestor_lite.repositories.interfaces import ICollectionRepository

logger = logging.getLogger(__name__)

# Claves de colección (coinciden con las claves del almacén)
PRODUCTS = 'products'
SALES = 'sales'
EXPENSES = 'expenses'

CommitHook = Callable[[str, Tuple[Any, ...]], None]


def _new_id() -> str:
    return uuid.uuid4().hex


class BusinessState:
    """
    Contenedor del estado del dominio.

    Responsabilidades:
    - Mantener productos, ventas y gastos en orden de inserción
    - Aplicar las reglas de negocio de cada operación
    - Notificar cada commit a los hooks registrados

    Las operaciones retornan un dict de resultado:
    - ok: True/False
    - error: mensaje para el usuario si fue rechazada
    - changed: False si fue un no-op (ID inexistente)
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        sales: Iterable[Sale] = (),
        expenses: Iterable[Expense] = (),
        clock: Callable[[], str] = None,
        id_factory: Callable[[], str] = None
    ):
        """
        Inicializa el estado.

        Args:
            products: Productos iniciales (normalmente cargados del repositorio)
            sales: Ventas iniciales
            expenses: Gastos iniciales
            clock: Función que retorna el timestamp ISO actual
            id_factory: Función que genera identificadores nuevos
        """
        self._products: List[Product] = list(products)
        self._sales: List[Sale] = list(sales)
        self._expenses: List[Expense] = list(expenses)
        self._clock = clock or utc_now_iso
        self._id_factory = id_factory or _new_id
        self._hooks: List[CommitHook] = []
        self._lock = threading.RLock()

    # =========================================================================
    # LECTURA
    # =========================================================================

    @property
    def products(self) -> Tuple[Product, ...]:
        return tuple(self._products)

    @property
    def sales(self) -> Tuple[Sale, ...]:
        return tuple(self._sales)

    @property
    def expenses(self) -> Tuple[Expense, ...]:
        return tuple(self._expenses)

    def snapshot(self) -> Tuple[Tuple[Product, ...], Tuple[Sale, ...], Tuple[Expense, ...]]:
        """Las tres colecciones actuales (para las estadísticas)."""
        with self._lock:
            return self.products, self.sales, self.expenses

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def _product_index(self, product_id: str) -> Optional[int]:
        for i, product in enumerate(self._products):
            if product.id == product_id:
                return i
        return None

    def is_product_referenced(self, product_id: str) -> bool:
        """True si alguna venta referencia al producto."""
        return any(sale.product_id == product_id for sale in self._sales)

    # =========================================================================
    # HOOKS DE COMMIT
    # =========================================================================

    def on_commit(self, hook: CommitHook) -> None:
        """
        Registra un hook llamado tras cada mutación exitosa.

        Args:
            hook: callable(clave_coleccion, registros) por colección afectada
        """
        self._hooks.append(hook)

    def _commit(self, *keys: str) -> None:
        collections = {
            PRODUCTS: self.products,
            SALES: self.sales,
            EXPENSES: self.expenses,
        }
        for key in keys:
            records = collections[key]
            for hook in self._hooks:
                hook(key, records)

    # =========================================================================
    # OPERACIONES DE INVENTARIO
    # =========================================================================

    def add_product(
        self,
        name: str,
        quantity: int,
        purchase_price: float,
        selling_price: float
    ) -> Dict[str, Any]:
        """
        Crea un producto con ID y fecha nuevos y lo agrega al final.

        Raises:
            ValueError: Si la cantidad o algún precio es negativo
        """
        if quantity < 0:
            raise ValueError("La cantidad inicial no puede ser negativa")
        if purchase_price < 0 or selling_price < 0:
            raise ValueError("Los precios no pueden ser negativos")

        with self._lock:
            product = Product(
                id=self._id_factory(),
                name=name,
                quantity=int(quantity),
                purchase_price=purchase_price,
                selling_price=selling_price,
                added_date=self._clock(),
            )
            self._products.append(product)
            self._commit(PRODUCTS)
        logger.info("Producto creado: %s (%s) stock=%d", product.name, product.id, product.quantity)
        return {'ok': True, 'product': product}

    def add_stock(self, product_id: str, quantity: int) -> Dict[str, Any]:
        """
        Suma stock a un producto. ID inexistente → no-op silencioso.

        Raises:
            ValueError: Si quantity no es positiva
        """
        if quantity <= 0:
            raise ValueError("La cantidad a agregar debe ser mayor que 0")

        with self._lock:
            index = self._product_index(product_id)
            if index is None:
                return {'ok': True, 'changed': False}

            current = self._products[index]
            updated = replace(current, quantity=current.quantity + int(quantity))
            self._products[index] = updated
            self._commit(PRODUCTS)
        logger.info("Stock de %s: %d → %d", updated.name, current.quantity, updated.quantity)
        return {'ok': True, 'changed': True, 'product': updated}

    def remove_product(self, product_id: str) -> Dict[str, Any]:
        """
        Elimina un producto si ninguna venta lo referencia.
        ID inexistente → no-op silencioso.
        """
        with self._lock:
            index = self._product_index(product_id)
            if index is None:
                return {'ok': True, 'changed': False}

            product = self._products[index]
            if self.is_product_referenced(product_id):
                return {
                    'ok': False,
                    'error': (
                        f"El producto '{product.name}' no puede eliminarse porque tiene "
                        "ventas registradas. Considere dejar su stock en cero."
                    )
                }

            del self._products[index]
            self._commit(PRODUCTS)
        logger.info("Producto eliminado: %s (%s)", product.name, product.id)
        return {'ok': True, 'changed': True, 'product': product}

    # =========================================================================
    # OPERACIONES DE VENTAS
    # =========================================================================

    def record_sale(
        self,
        product_id: str,
        quantity_sold: int,
        unit_price: float,
        total_amount: float
    ) -> Dict[str, Any]:
        """
        Registra una venta y descuenta el stock del producto.

        El nombre y el precio de compra del producto se copian en la venta
        en este momento.

        Returns:
            Dict con resultado:
            - ok: True/False
            - error: mensaje si fue rechazada (producto inexistente o sin stock)
            - sale: venta creada
            - product: producto con el stock actualizado

        Raises:
            ValueError: Si quantity_sold no es positiva
        """
        if quantity_sold <= 0:
            raise ValueError("La cantidad vendida debe ser mayor que 0")

        with self._lock:
            index = self._product_index(product_id)
            if index is None:
                return {'ok': False, 'error': 'Producto no encontrado.'}

            product = self._products[index]
            if quantity_sold > product.quantity:
                return {
                    'ok': False,
                    'error': (
                        f"Stock insuficiente para {product.name}. "
                        f"Disponible: {product.quantity}"
                    )
                }

            sale = Sale(
                id=self._id_factory(),
                product_id=product.id,
                product_name=product.name,
                quantity_sold=int(quantity_sold),
                unit_price=unit_price,
                total_amount=total_amount,
                purchase_price_at_sale=product.purchase_price,
                date=self._clock(),
            )
            updated = replace(product, quantity=product.quantity - int(quantity_sold))

            self._products[index] = updated
            self._sales.append(sale)
            self._commit(PRODUCTS, SALES)
        logger.info(
            "Venta %s: %d x %s = %.2f", sale.id, sale.quantity_sold, sale.product_name, sale.total_amount
        )
        return {'ok': True, 'sale': sale, 'product': updated}

    # =========================================================================
    # OPERACIONES DE GASTOS
    # =========================================================================

    def add_expense(self, description: str, amount: float) -> Dict[str, Any]:
        """
        Registra un gasto.

        Raises:
            ValueError: Si la descripción está vacía o el monto no es positivo
        """
        if not description or not description.strip():
            raise ValueError("La descripción del gasto es requerida")
        if amount <= 0:
            raise ValueError("El monto del gasto debe ser mayor que 0")

        with self._lock:
            expense = Expense(
                id=self._id_factory(),
                description=description,
                amount=amount,
                date=self._clock(),
            )
            self._expenses.append(expense)
            self._commit(EXPENSES)
        logger.info("Gasto registrado: %s %.2f", expense.description, expense.amount)
        return {'ok': True, 'expense': expense}

    def remove_expense(self, expense_id: str) -> Dict[str, Any]:
        """Elimina un gasto. ID inexistente → no-op silencioso."""
        with self._lock:
            remaining = [e for e in self._expenses if e.id != expense_id]
            if len(remaining) == len(self._expenses):
                return {'ok': True, 'changed': False}

            self._expenses = remaining
            self._commit(EXPENSES)
        logger.info("Gasto eliminado: %s", expense_id)
        return {'ok': True, 'changed': True}


def persist_with(repositories: Dict[str, ICollectionRepository]) -> CommitHook:
    """
    Hook de commit que guarda la colección afectada en su repositorio.

    Args:
        repositories: {clave_coleccion: repositorio con save(records)}
    """
    def _persist(key: str, records: Sequence[Any]) -> None:
        repositories[key].save(records)
    return _persist
