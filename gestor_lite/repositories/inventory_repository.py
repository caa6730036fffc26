# ==============================================================================
# REPOSITORIO DE INVENTARIO
# ==============================================================================
# Encapsula el acceso al blob "products".
# Los productos se almacenan como lista ordenada: [{producto1}, {producto2}, ...]
# ==============================================================================

from typing import Any, Dict

from gestor_lite.models import Product
from gestor_lite.repositories.base import ListRepository


class InventoryRepository(ListRepository):
    """
    Repositorio de productos.

    Formato de datos en "products":
    [
        {
            "id": "3f2a...",
            "name": "Widget",
            "quantity": 10,
            "purchasePrice": 5.0,
            "sellingPrice": 9.0,
            "addedDate": "2024-01-01T10:00:00+00:00"
        }
    ]
    """

    key = 'products'

    def _from_dict(self, data: Dict[str, Any]) -> Product:
        return Product.from_dict(data)
