# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (SQLite).
# Todas las consultas son parametrizadas.
#
# ESTRUCTURA:
# ├── interfaces.py          → Protocolos/Interfaces (contratos)
# ├── base.py                → Database (conexiones, transacciones, esquema)
# ├── product_repository.py  → Tabla products (descuento de stock atómico)
# ├── user_repository.py     → Tabla users
# └── order_repository.py    → Tablas orders y order_lines
# ==============================================================================

# Interfaces
from .interfaces import (
    IDatabase,
    IProductRepository,
    IUserRepository,
    IOrderRepository,
)

# Implementaciones concretas (SQLite)
from .base import BaseRepository, Database
from .product_repository import ProductRepository
from .user_repository import UserRepository
from .order_repository import OrderRepository

__all__ = [
    # Interfaces
    'IDatabase',
    'IProductRepository',
    'IUserRepository',
    'IOrderRepository',

    # Base
    'BaseRepository',
    'Database',

    # Implementaciones SQLite
    'ProductRepository',
    'UserRepository',
    'OrderRepository',
]
