# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Guarda logs legibles en LOGS_DIR para análisis humano.
#
# ACTIVAR/DESACTIVAR: ENABLE_PROFILING en la configuración de cada app.
# La configuración vive en app.extensions['profiling'], una por app.
# ==============================================================================

import logging
import os
import threading
import time
from datetime import datetime
from functools import wraps

from flask import current_app, g, has_app_context, request

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

EXTENSION_KEY = 'profiling'

PERFORMANCE_LOG_NAME = 'performance.log'
SLOW_ROUTES_LOG_NAME = 'slow_routes.log'
SLOW_FUNCTIONS_LOG_NAME = 'slow_functions.log'

# Nombres legibles de cada ruta para los logs
ROUTE_NAMES = {
    'GET /': 'Ver dashboard',
    'GET /<view_name>': 'Ver pantalla',
    'POST /inventory/products': 'Crear producto',
    'POST /inventory/products/<product_id>/stock': 'Agregar stock',
    'POST /inventory/products/<product_id>/delete': 'Eliminar producto',
    'POST /sales/record': 'Registrar venta',
    'GET /export/sales': 'Exportar ventas CSV',
    'POST /expenses': 'Registrar gasto',
    'POST /expenses/<expense_id>/delete': 'Eliminar gasto',
    'GET /api/summary': 'Resumen financiero JSON',
}

_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# ESCRITURA DE LOGS
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(logs_dir, filename, content):
    """Agrega contenido a un archivo de log (thread-safe)"""
    try:
        with _write_lock:
            with open(os.path.join(logs_dir, filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        logger.warning("No se pudo escribir %s: %s", filename, e)


def _route_name(method, path, rule):
    """Nombre legible por ruta exacta o por regla de Flask; si no, la ruta raw."""
    for key in (f"{method} {path}", f"{method} {rule}"):
        if key in ROUTE_NAMES:
            return ROUTE_NAMES[key]
    return f"{method} {path}"


def _active_logs_dir():
    """LOGS_DIR de la app actual si tiene el profiling activo, si no None."""
    if not has_app_context():
        return None
    settings = current_app.extensions.get(EXTENSION_KEY)
    if not settings or not settings['enabled']:
        return None
    return settings['logs_dir']


# ═══════════════════════════════════════════════════════════════════════════
# PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(logs_dir, method, path, rule, time_ms):
    """
    Registra una petición en performance.log y, si fue lenta, en slow_routes.log

    Args:
        logs_dir: Carpeta de logs de la app
        method: GET, POST, etc.
        path: Ruta solicitada (/sales/record)
        rule: Regla de Flask (/expenses/<expense_id>/delete)
        time_ms: Tiempo en milisegundos
    """
    action_name = _route_name(method, path, rule)

    _write_log(logs_dir, PERFORMANCE_LOG_NAME, f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {action_name}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
""")

    if time_ms < THRESHOLD_WARNING:
        return
    level = 'CRITICAL' if time_ms >= THRESHOLD_CRITICAL else 'WARNING'
    severity = 'MUY LENTA' if level == 'CRITICAL' else 'LENTA'
    threshold = THRESHOLD_CRITICAL if level == 'CRITICAL' else THRESHOLD_WARNING

    _write_log(logs_dir, SLOW_ROUTES_LOG_NAME, f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {action_name}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
""")


def init_profiling(app):
    """
    Registra los hooks before_request/after_request de la app.

    Lee de app.config:
        ENABLE_PROFILING: bool
        LOGS_DIR: carpeta de los archivos de log
    """
    settings = {
        'enabled': bool(app.config.get('ENABLE_PROFILING')),
        'logs_dir': app.config.get('LOGS_DIR'),
    }
    app.extensions[EXTENSION_KEY] = settings
    if not settings['enabled']:
        return

    os.makedirs(settings['logs_dir'], exist_ok=True)

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not hasattr(g, 'start_time') or request.path.startswith('/static'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        rule = str(request.url_rule) if request.url_rule else request.path
        log_route_performance(settings['logs_dir'], request.method, request.path, rule, elapsed)
        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador que registra en slow_functions.log las llamadas lentas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Cargar estado")
        def load_state():
            ...

    Solo mide dentro de una app con ENABLE_PROFILING activo.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            logs_dir = _active_logs_dir()
            if logs_dir is None:
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(logs_dir, func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(logs_dir, func_name, time_ms):
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    _write_log(logs_dir, SLOW_FUNCTIONS_LOG_NAME, f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
""")


__all__ = [
    'init_profiling',
    'profile_function',
    'log_route_performance',
]
