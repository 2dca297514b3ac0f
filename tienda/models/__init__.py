# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Beneficios:
#   - Type hints para mejor documentación y autocompletado
#   - Independiente del mecanismo de persistencia (SQLite)
#   - Fácil serialización a JSON para las respuestas de la API
# ==============================================================================

from .entities import (
    # Usuarios
    User,

    # Catálogo
    Product,

    # Carrito
    CartItem,

    # Pedidos
    Order,
    OrderLine,
    CheckoutResult,
    CheckoutState,
)

__all__ = [
    # Usuarios
    'User',

    # Catálogo
    'Product',

    # Carrito
    'CartItem',

    # Pedidos
    'Order',
    'OrderLine',
    'CheckoutResult',
    'CheckoutState',
]
