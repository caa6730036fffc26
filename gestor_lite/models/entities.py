# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un registro persistido en su colección.
# Los nombres de campo en el JSON (camelCase) son el formato de almacenamiento;
# en Python se usan atributos snake_case.
# ==============================================================================

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def utc_now_iso() -> str:
    """Timestamp ISO-8601 en UTC (formato de todos los campos de fecha)."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parsea una fecha ISO-8601.
    Retorna None si no puede parsear. Las fechas sin zona se asumen UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"Campo requerido ausente: {key}")
    return data[key]


def _as_int(value: Any, key: str) -> int:
    # bool es subclase de int; no es una cantidad válida
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Campo {key} debe ser entero")
    return value


def _as_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Campo {key} debe ser numérico")
    return value


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Campo {key} debe ser texto")
    return value


# ==============================================================================
# NAVEGACIÓN - Pantallas disponibles
# ==============================================================================

class AppView(str, Enum):
    """Pantallas de la aplicación. DASHBOARD es la inicial y el fallback."""
    DASHBOARD = "DASHBOARD"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    EXPENSES = "EXPENSES"

    @classmethod
    def resolve(cls, name: Optional[str]) -> 'AppView':
        """Convierte un nombre (ej: 'sales') en vista; desconocido → DASHBOARD."""
        if not name:
            return cls.DASHBOARD
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            return cls.DASHBOARD

    @property
    def slug(self) -> str:
        return self.value.lower()


# ==============================================================================
# ENTIDADES DE INVENTARIO
# ==============================================================================

@dataclass(frozen=True)
class Product:
    """
    Producto del inventario.

    Attributes:
        id: Identificador único (opaco)
        name: Nombre del producto
        quantity: Stock disponible (nunca negativo)
        purchase_price: Precio de compra unitario
        selling_price: Precio de venta unitario
        added_date: Fecha de alta (ISO-8601), inmutable
    """
    id: str
    name: str
    quantity: int
    purchase_price: float
    selling_price: float
    added_date: str

    @property
    def stock_value(self) -> float:
        """Valor del stock a precio de compra."""
        return self.purchase_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'quantity': self.quantity,
            'purchasePrice': self.purchase_price,
            'sellingPrice': self.selling_price,
            'addedDate': self.added_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """
        Crea instancia desde diccionario.

        Raises:
            ValueError: Si falta un campo o tiene tipo inválido
        """
        return cls(
            id=_as_str(_require(data, 'id'), 'id'),
            name=_as_str(_require(data, 'name'), 'name'),
            quantity=_as_int(_require(data, 'quantity'), 'quantity'),
            purchase_price=_as_number(_require(data, 'purchasePrice'), 'purchasePrice'),
            selling_price=_as_number(_require(data, 'sellingPrice'), 'sellingPrice'),
            added_date=_as_str(_require(data, 'addedDate'), 'addedDate'),
        )


# ==============================================================================
# ENTIDADES DE VENTAS
# ==============================================================================

@dataclass(frozen=True)
class Sale:
    """
    Venta registrada. Append-only: nunca se edita ni se elimina.

    product_name y purchase_price_at_sale son una copia del producto al
    momento de la venta; cambios posteriores del producto no los afectan.

    Attributes:
        id: Identificador único
        product_id: Referencia al producto vendido
        product_name: Nombre del producto al vender
        quantity_sold: Unidades vendidas (> 0)
        unit_price: Precio unitario cobrado
        total_amount: unit_price × quantity_sold
        purchase_price_at_sale: Costo unitario al vender (para el COGS)
        date: Fecha de la venta (ISO-8601)
    """
    id: str
    product_id: str
    product_name: str
    quantity_sold: int
    unit_price: float
    total_amount: float
    purchase_price_at_sale: float
    date: str

    @property
    def cost_of_goods(self) -> float:
        return self.purchase_price_at_sale * self.quantity_sold

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'productId': self.product_id,
            'productName': self.product_name,
            'quantitySold': self.quantity_sold,
            'unitPrice': self.unit_price,
            'totalAmount': self.total_amount,
            'purchasePriceAtSale': self.purchase_price_at_sale,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        """Crea instancia desde diccionario."""
        return cls(
            id=_as_str(_require(data, 'id'), 'id'),
            product_id=_as_str(_require(data, 'productId'), 'productId'),
            product_name=_as_str(_require(data, 'productName'), 'productName'),
            quantity_sold=_as_int(_require(data, 'quantitySold'), 'quantitySold'),
            unit_price=_as_number(_require(data, 'unitPrice'), 'unitPrice'),
            total_amount=_as_number(_require(data, 'totalAmount'), 'totalAmount'),
            purchase_price_at_sale=_as_number(
                _require(data, 'purchasePriceAtSale'), 'purchasePriceAtSale'
            ),
            date=_as_str(_require(data, 'date'), 'date'),
        )


# ==============================================================================
# ENTIDADES DE GASTOS
# ==============================================================================

@dataclass(frozen=True)
class Expense:
    """Gasto del negocio (alquiler, servicios, etc.)."""
    id: str
    description: str
    amount: float
    date: str

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'description': self.description,
            'amount': self.amount,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        """Crea instancia desde diccionario."""
        return cls(
            id=_as_str(_require(data, 'id'), 'id'),
            description=_as_str(_require(data, 'description'), 'description'),
            amount=_as_number(_require(data, 'amount'), 'amount'),
            date=_as_str(_require(data, 'date'), 'date'),
        )
