# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
# 4. Los errores de negocio son excepciones (errors.py); las rutas no las
#    capturan, lo hace un único errorhandler
#
# ESTRUCTURA:
# ├── errors.py            → ValidationError, Conflict, NotFound, ...
# ├── user_service.py      → Registro, autenticación, flag de admin
# ├── catalog_service.py   → Productos, validación de precios/stock
# ├── image_service.py     → Imágenes de productos en disco
# ├── cart_service.py      → Carrito en la sesión
# ├── checkout_service.py  → Carrito → pedido (transacción atómica)
# └── order_service.py     → Historial de pedidos
# ==============================================================================

from tienda.services.errors import (
    ShopError,
    ValidationError,
    Conflict,
    InvalidCredentials,
    NotFound,
    Unauthorized,
    InsufficientStock,
)
from tienda.services.image_service import ImageStorage
from tienda.services.catalog_service import CatalogService
from tienda.services.user_service import UserService
from tienda.services.cart_service import CartService
from tienda.services.checkout_service import CheckoutService
from tienda.services.order_service import OrderService

__all__ = [
    'ShopError',
    'ValidationError',
    'Conflict',
    'InvalidCredentials',
    'NotFound',
    'Unauthorized',
    'InsufficientStock',
    'ImageStorage',
    'CatalogService',
    'UserService',
    'CartService',
    'CheckoutService',
    'OrderService',
]
