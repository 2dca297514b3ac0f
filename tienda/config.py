# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Todo valor sensible o dependiente del entorno se lee de variables de entorno.
#
# SECRET_KEY: En producción DEBE definirse via variable de entorno
# Comando: export TIENDA_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
# ==============================================================================

import os

BASE = os.path.dirname(os.path.abspath(__file__))

_DEFAULT_SECRET = "tienda_dev_secret_key_change_in_production"


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on', 'si', 'sí')


class Config:
    """Configuración por defecto, sobreescribible con app.config.update()."""

    # True = exige TIENDA_SECRET_KEY y cookies seguras
    PRODUCTION_MODE = _env_flag('TIENDA_PRODUCTION')

    SECRET_KEY = os.environ.get('TIENDA_SECRET_KEY') or _DEFAULT_SECRET

    # Persistencia
    DATABASE = os.environ.get('TIENDA_DATABASE') or os.path.join(BASE, 'instance', 'tienda.db')
    DB_TIMEOUT = float(os.environ.get('TIENDA_DB_TIMEOUT') or 10)

    # Imágenes de productos
    UPLOAD_DIR = os.environ.get('TIENDA_UPLOAD_DIR') or os.path.join(BASE, 'static', 'productos')
    ALLOWED_EXTENSIONS = frozenset(['png', 'jpg', 'jpeg', 'gif', 'webp'])
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5 MB

    # Logs y profiling
    LOGS_DIR = os.environ.get('TIENDA_LOGS_DIR') or os.path.join(BASE, 'logs')
    PROFILING_ENABLED = _env_flag('TIENDA_PROFILING', default=True)

    # Protección CSRF por token en sesión
    CSRF_ENABLED = True

    # Configuración de cookies de sesión
    SESSION_COOKIE_HTTPONLY = True      # Protege contra XSS
    SESSION_COOKIE_SECURE = PRODUCTION_MODE
    SESSION_COOKIE_SAMESITE = 'Lax'     # Protección CSRF básica
    PERMANENT_SESSION_LIFETIME = 86400  # 24 horas
