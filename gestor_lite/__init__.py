"""GestorLite: inventario, ventas y gastos de un pequeño negocio."""

__version__ = "1.0.0"
