# ==============================================================================
# REPOSITORIO DE VENTAS
# ==============================================================================
# Encapsula el acceso al blob "sales".
# Las ventas se almacenan como lista: [{venta1}, {venta2}, ...]
# ==============================================================================

from typing import Any, Dict

from gestor_lite.models import Sale
from gestor_lite.repositories.base import ListRepository


class SalesRepository(ListRepository):
    """
    Repositorio de ventas.

    Formato de datos en "sales":
    [
        {
            "id": "9c1e...",
            "productId": "3f2a...",
            "productName": "Widget",
            "quantitySold": 3,
            "unitPrice": 9.0,
            "totalAmount": 27.0,
            "purchasePriceAtSale": 5.0,
            "date": "2024-01-15T14:30:00+00:00"
        }
    ]
    """

    key = 'sales'

    def _from_dict(self, data: Dict[str, Any]) -> Sale:
        return Sale.from_dict(data)
