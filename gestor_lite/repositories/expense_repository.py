# ==============================================================================
# REPOSITORIO DE GASTOS
# ==============================================================================
# Encapsula el acceso al blob "expenses".
# ==============================================================================

from typing import Any, Dict

from gestor_lite.models import Expense
from gestor_lite.repositories.base import ListRepository


class ExpenseRepository(ListRepository):
    """
    Repositorio de gastos.

    Formato de datos en "expenses":
    [
        {"id": "b7d0...", "description": "Alquiler", "amount": 1200.0,
         "date": "2024-02-01T09:00:00+00:00"}
    ]
    """

    key = 'expenses'

    def _from_dict(self, data: Dict[str, Any]) -> Expense:
        return Expense.from_dict(data)
