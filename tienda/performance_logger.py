# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Guarda logs legibles en LOGS_DIR para análisis humano:
#   performance.log     → cada request (acción, usuario, tiempo)
#   slow_routes.log     → requests que superan los umbrales
#   slow_functions.log  → llamadas lentas a funciones con @profile_function
#
# ACTIVAR/DESACTIVAR: app.config['PROFILING_ENABLED']
# ==============================================================================

import logging
import os
import threading
import time
from functools import wraps

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

performance_log = logging.getLogger('tienda.performance')
slow_routes_log = logging.getLogger('tienda.performance.slow_routes')
slow_functions_log = logging.getLogger('tienda.performance.slow_functions')

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Autenticación
    'POST /register': 'Registrarse',
    'POST /login': 'Iniciar sesión',
    'GET /logout': 'Cerrar sesión',
    'POST /logout': 'Cerrar sesión',

    # Tienda
    'GET /products': 'Ver catálogo',
    'GET /products/<int:pid>': 'Ver producto',
    'POST /products/<int:pid>/buy': 'Comprar ahora',

    # Carrito
    'GET /cart': 'Ver carrito',
    'POST /cart/add': 'Agregar al carrito',
    'POST /cart/remove': 'Eliminar del carrito',
    'POST /cart/update': 'Cambiar cantidad',
    'POST /cart/clear': 'Vaciar carrito',
    'POST /checkout': 'Confirmar compra',

    # Pedidos
    'GET /orders': 'Ver mis pedidos',
    'GET /orders/<int:order_id>': 'Ver pedido',

    # Administración
    'POST /admin/products': 'Crear producto',
    'POST /admin/products/<int:pid>': 'Editar producto',
    'POST /admin/products/<int:pid>/delete': 'Eliminar producto',
    'GET /admin/orders': 'Ver todos los pedidos',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria, por proceso)
# ═══════════════════════════════════════════════════════════════════════════

# {nombre: [llamadas, errores, ms acumulados, ms máximo]}
_function_stats = {}
_stats_lock = threading.Lock()


def _get_route_name(method, rule):
    """Nombre legible de una ruta; si no está mapeada, la ruta raw."""
    return ROUTE_NAMES.get(f"{method} {rule}", f"{method} {rule}")


def _file_handler(path):
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s'))
    return handler


def _attach(logger, path):
    """Agrega un FileHandler al logger una sola vez por archivo."""
    path = os.path.abspath(path)
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == path:
            return
    logger.addHandler(_file_handler(path))
    logger.setLevel(logging.INFO)


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Uso:
        from tienda.performance_logger import init_profiling
        init_profiling(app)
    """
    if not app.config.get('PROFILING_ENABLED', True):
        return

    logs_dir = app.config.get('LOGS_DIR')
    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        _attach(performance_log, os.path.join(logs_dir, 'performance.log'))
        _attach(slow_routes_log, os.path.join(logs_dir, 'slow_routes.log'))
        _attach(slow_functions_log, os.path.join(logs_dir, 'slow_functions.log'))

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time') or request.path.startswith(('/static', '/uploads')):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        rule = str(request.url_rule) if request.url_rule else request.path
        action = _get_route_name(request.method, rule)
        user = session.get('login') or 'anónimo'

        performance_log.info(
            "%s | usuario=%s | %s %s | %d | %.0f ms",
            action, user, request.method, request.path, response.status_code, elapsed
        )

        if elapsed >= THRESHOLD_CRITICAL:
            slow_routes_log.critical(
                "Ruta MUY LENTA: %s | usuario=%s | %.0f ms (umbral: %d ms)",
                action, user, elapsed, THRESHOLD_CRITICAL
            )
        elif elapsed >= THRESHOLD_WARNING:
            slow_routes_log.warning(
                "Ruta LENTA: %s | usuario=%s | %.0f ms (umbral: %d ms)",
                action, user, elapsed, THRESHOLD_WARNING
            )

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def _record(func_name, elapsed_ms, failed):
    with _stats_lock:
        entry = _function_stats.setdefault(func_name, [0, 0, 0.0, 0.0])
        entry[0] += 1
        entry[1] += 1 if failed else 0
        entry[2] += elapsed_ms
        entry[3] = max(entry[3], elapsed_ms)

    if elapsed_ms >= THRESHOLD_CRITICAL:
        slow_functions_log.critical("Función: %s | %.0f ms", func_name, elapsed_ms)
    elif elapsed_ms >= THRESHOLD_WARNING:
        slow_functions_log.warning("Función: %s | %.0f ms", func_name, elapsed_ms)


def profile_function(func=None, name=None):
    """
    Mide cada llamada a una función y acumula sus estadísticas.

    Uso:
        @profile_function
        def listar():
            ...

        @profile_function(name="Confirmar compra")
        def checkout(self, user_id, items):
            ...

    Las llamadas que terminan en excepción también se miden y se cuentan
    como errores; la excepción se propaga sin cambios.
    """
    def decorator(fn):
        label = name or fn.__name__

        @wraps(fn)
        def timed(*args, **kwargs):
            started = time.perf_counter()
            failed = True
            try:
                result = fn(*args, **kwargs)
                failed = False
                return result
            finally:
                _record(label, (time.perf_counter() - started) * 1000, failed)

        return timed

    return decorator(func) if func is not None else decorator


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Estadísticas de las funciones perfiladas, las más lentas primero.

    Returns:
        dict: {nombre: {calls, errors, avg_time, max_time}} (tiempos en ms)
    """
    with _stats_lock:
        snapshot = {k: list(v) for k, v in _function_stats.items()}

    report = {
        label: {
            'calls': calls,
            'errors': errors,
            'avg_time': round(total / calls, 2) if calls else 0,
            'max_time': round(peak, 2),
        }
        for label, (calls, errors, total, peak) in snapshot.items()
    }
    return dict(sorted(report.items(), key=lambda kv: kv[1]['avg_time'], reverse=True))


def reset_stats():
    """Borra las estadísticas acumuladas."""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
