# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
#
# PRINCIPIOS:
# 1. BusinessState es el único que modifica productos, ventas y gastos
# 2. Las rutas (controllers) validan el formulario y llaman a servicios
# 3. Los servicios NO conocen el tipo de almacenamiento; la persistencia
#    se engancha con hooks de commit desde app_container.py
#
# ESTRUCTURA:
# ├── state_service.py → Estado del dominio y reglas de negocio
# └── stats_service.py → Totales y desglose mensual (funciones puras)
# ==============================================================================

from gestor_lite.services.state_service import BusinessState, persist_with
from gestor_lite.services.stats_service import StatsService, summarize, monthly_rollup

__all__ = [
    'BusinessState',
    'persist_with',
    'StatsService',
    'summarize',
    'monthly_rollup',
]
