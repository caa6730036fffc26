# ==============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ==============================================================================
# Valores por defecto para desarrollo local. En producción se definen por
# variables de entorno:
#   export GESTOR_SECRET_KEY="clave_larga_y_aleatoria"
#   export GESTOR_DATA_DIR="/var/lib/gestor_lite"
# create_app(overrides) permite sobrescribir cualquier clave (tests).
# ==============================================================================

from __future__ import annotations

import os

BASE = os.path.dirname(os.path.abspath(__file__))

DEFAULT_SECRET_KEY = "gestor_lite_dev_secret_key_change_in_production"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("GESTOR_SECRET_KEY", DEFAULT_SECRET_KEY)

    # Persistencia: "json" (un archivo por colección) o "memory"
    STORAGE_BACKEND = os.environ.get("GESTOR_STORAGE", "json")
    DATA_DIR = os.environ.get("GESTOR_DATA_DIR", os.path.join(BASE, "data"))

    # Logging y profiling
    LOG_LEVEL = os.environ.get("GESTOR_LOG_LEVEL", "INFO")
    ENABLE_PROFILING = _env_flag("GESTOR_PROFILING", True)
    LOGS_DIR = os.environ.get("GESTOR_LOGS_DIR", os.path.join(BASE, "logs"))

    CSRF_ENABLED = True

    # Presentación
    LOW_STOCK_THRESHOLD = 5
    CURRENCY_SYMBOL = "R$"

    # Cookies de sesión (HTTP local)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_SAMESITE = "Lax"
