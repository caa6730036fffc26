# ==============================================================================
# SERVICIO DE ESTADÍSTICAS FINANCIERAS
# ==============================================================================
# Funciones puras sobre las colecciones; se recalculan en cada llamada
# (sin caché).
#
# DEFINICIONES:
# - Ingresos (revenue)       = Σ totalAmount de ventas
# - Costo de lo vendido (COGS) = Σ purchasePriceAtSale × quantitySold
# - Ganancia bruta           = ingresos − COGS
# - Flujo de caja neto       = ingresos − gastos (NO resta el COGS)
# ==============================================================================

import calendar
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from gestor_lite.models import Expense, Product, Sale, parse_timestamp


# ==============================================================================
# TOTALES
# ==============================================================================

def total_revenue(sales: Iterable[Sale]) -> float:
    return sum((sale.total_amount for sale in sales), 0.0)


def total_cost_of_goods_sold(sales: Iterable[Sale]) -> float:
    return sum((sale.cost_of_goods for sale in sales), 0.0)


def gross_profit(sales: Sequence[Sale]) -> float:
    return total_revenue(sales) - total_cost_of_goods_sold(sales)


def total_expenses(expenses: Iterable[Expense]) -> float:
    return sum((expense.amount for expense in expenses), 0.0)


def net_cash_flow(sales: Sequence[Sale], expenses: Sequence[Expense]) -> float:
    """Dinero que entró por ventas menos el que salió por gastos."""
    return total_revenue(sales) - total_expenses(expenses)


def total_inventory_items(products: Iterable[Product]) -> int:
    return sum(product.quantity for product in products)


def total_inventory_value(products: Iterable[Product]) -> float:
    return sum((product.stock_value for product in products), 0.0)


# ==============================================================================
# DESGLOSE MENSUAL
# ==============================================================================

def month_label(year: int, month: int) -> str:
    """Etiqueta de mes abreviada, ej: 'Jan 2024'."""
    return f"{calendar.month_abbr[month]} {year}"


def _month_key(timestamp: str):
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return None
    return (parsed.year, parsed.month)


def monthly_rollup(sales: Iterable[Sale], expenses: Iterable[Expense]) -> List[Dict[str, Any]]:
    """
    Agrupa ventas y gastos por mes calendario.

    Returns:
        Lista ordenada cronológicamente:
        [{'month': 'Jan 2024', 'revenue': float, 'expense': float,
          'estimated_profit': float}]
        estimated_profit = ingresos − COGS del mes − gastos del mes.
        Un mes con actividad en un solo lado aparece con el otro en 0.
    """
    sales_by_month = defaultdict(lambda: {'revenue': 0.0, 'cost': 0.0})
    expenses_by_month = defaultdict(float)

    for sale in sales:
        key = _month_key(sale.date)
        if key is None:
            continue
        sales_by_month[key]['revenue'] += sale.total_amount
        sales_by_month[key]['cost'] += sale.cost_of_goods

    for expense in expenses:
        key = _month_key(expense.date)
        if key is None:
            continue
        expenses_by_month[key] += expense.amount

    rollup = []
    # (año, mes) ordena igual que parsear "día 1 de <etiqueta>"
    for year, month in sorted(set(sales_by_month) | set(expenses_by_month)):
        month_sales = sales_by_month.get((year, month), {'revenue': 0.0, 'cost': 0.0})
        revenue = month_sales['revenue']
        cost = month_sales['cost']
        expense = expenses_by_month.get((year, month), 0.0)
        rollup.append({
            'month': month_label(year, month),
            'revenue': revenue,
            'expense': expense,
            'estimated_profit': revenue - cost - expense,
        })
    return rollup


# ==============================================================================
# LISTADOS PARA PANTALLAS
# ==============================================================================

def low_stock_products(products: Iterable[Product], threshold: int = 5) -> List[Product]:
    """Productos con stock igual o menor al umbral."""
    return [p for p in products if p.quantity <= threshold]


def available_products(products: Iterable[Product]) -> List[Product]:
    """Productos con stock, los únicos vendibles."""
    return [p for p in products if p.quantity > 0]


def newest_first(records: Iterable[Any]) -> List[Any]:
    """Ventas o gastos ordenados por fecha, más reciente primero."""
    def _sort_key(record):
        parsed = parse_timestamp(record.date)
        return parsed.timestamp() if parsed else float('-inf')
    return sorted(records, key=_sort_key, reverse=True)


# ==============================================================================
# RESUMEN COMPLETO
# ==============================================================================

def summarize(
    products: Sequence[Product],
    sales: Sequence[Sale],
    expenses: Sequence[Expense]
) -> Dict[str, Any]:
    """
    Calcula todas las métricas del dashboard.

    Returns:
        {
            'total_revenue': float,
            'total_cost_of_goods_sold': float,
            'gross_profit': float,
            'total_expenses': float,
            'net_cash_flow': float,
            'total_inventory_items': int,
            'total_inventory_value': float,
            'monthly': [...]   # ver monthly_rollup
        }
    """
    revenue = total_revenue(sales)
    cogs = total_cost_of_goods_sold(sales)
    spent = total_expenses(expenses)
    return {
        'total_revenue': revenue,
        'total_cost_of_goods_sold': cogs,
        'gross_profit': revenue - cogs,
        'total_expenses': spent,
        'net_cash_flow': revenue - spent,
        'total_inventory_items': total_inventory_items(products),
        'total_inventory_value': total_inventory_value(products),
        'monthly': monthly_rollup(sales, expenses),
    }


class StatsService:
    """
    Servicio de estadísticas para el dashboard.

    No guarda estado propio: cada llamada pide las colecciones al loader.
    """

    def __init__(self, loader: Callable[[], Tuple[Sequence[Product], Sequence[Sale], Sequence[Expense]]]):
        """
        Args:
            loader: Función que retorna (productos, ventas, gastos)
        """
        self._loader = loader

    def summary(self) -> Dict[str, Any]:
        products, sales, expenses = self._loader()
        return summarize(products, sales, expenses)

    def low_stock(self, threshold: int = 5) -> List[Product]:
        products, _, _ = self._loader()
        return low_stock_products(products, threshold)
