# ==============================================================================
# ERRORES DE NEGOCIO
# ==============================================================================
# Los servicios lanzan estas excepciones; las rutas NO las capturan una por
# una: un único errorhandler en main.py las convierte en
# {"ok": False, "error": mensaje} con el código HTTP correspondiente.
# ==============================================================================

from typing import Any, Dict, Optional


class ShopError(Exception):
    """Error de negocio recuperable, visible para el usuario."""

    status_code = 400
    default_message = 'Operación no válida'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {'ok': False, 'error': self.message}


class ValidationError(ShopError):
    """Campos faltantes o con formato inválido."""
    status_code = 400
    default_message = 'Datos inválidos'


class Conflict(ShopError):
    """Login o email ya registrados."""
    status_code = 409
    default_message = 'El usuario o el correo ya están registrados'


class InvalidCredentials(ShopError):
    """Login inexistente o contraseña incorrecta (mismo mensaje en ambos casos)."""
    status_code = 401
    default_message = 'Usuario o contraseña incorrecta'


class NotFound(ShopError):
    """La operación apunta a un ID que no existe."""
    status_code = 404
    default_message = 'No encontrado'


class Unauthorized(ShopError):
    """Usuario sin permisos de administrador."""
    status_code = 403
    default_message = 'Permiso denegado'


class InsufficientStock(ShopError):
    """Se pidió más de lo disponible. Nunca se recorta la cantidad."""
    status_code = 409

    def __init__(
        self,
        product_id: int,
        requested: int,
        available: int,
        product_name: Optional[str] = None
    ):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or f'producto {product_id}'
        super().__init__(
            f'Stock insuficiente para {label}. '
            f'Solicitado: {requested}, Disponible: {available}'
        )

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            'product_id': self.product_id,
            'requested': self.requested,
            'available': self.available,
        })
        return d
