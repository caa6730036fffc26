# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses inmutables.
# Cada una sabe convertirse a/desde el formato JSON persistido (to_dict/from_dict),
# independiente del mecanismo de almacenamiento.
# ==============================================================================

from .entities import (
    # Navegación
    AppView,

    # Inventario
    Product,

    # Ventas
    Sale,

    # Gastos
    Expense,

    # Utilidades de fecha
    utc_now_iso,
    parse_timestamp,
)

__all__ = [
    'AppView',
    'Product',
    'Sale',
    'Expense',
    'utc_now_iso',
    'parse_timestamp',
]
