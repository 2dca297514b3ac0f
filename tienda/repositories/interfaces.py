# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Este archivo define las interfaces (protocolos) que todos los repositorios
# deben implementar. Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar SQLite → MySQL solo requiere nueva implementación
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# MIGRACIÓN A OTRO MOTOR:
# 1. Crear nuevas clases: MySQLProductRepository, etc.
# 2. Hacer que implementen estas interfaces
# 3. Cambiar instanciación en app_container.py
# 4. Los servicios NO requieren cambios
#
# ==============================================================================

from typing import Any, ContextManager, Dict, List, Optional, Protocol, runtime_checkable

from tienda.models import Order, OrderLine, Product, User


# ==============================================================================
# INTERFAZ BASE
# ==============================================================================

@runtime_checkable
class IDatabase(Protocol):
    """
    Acceso a la base de datos.
    `transaction()` debe ser todo-o-nada: ROLLBACK ante cualquier excepción.
    """

    def connection(self) -> ContextManager[Any]:
        ...

    def transaction(self) -> ContextManager[Any]:
        ...

    def init_schema(self) -> None:
        ...


# ==============================================================================
# INTERFACES ESPECÍFICAS POR DOMINIO
# ==============================================================================

@runtime_checkable
class IProductRepository(Protocol):
    """Contrato del catálogo de productos."""

    def list_products(self) -> List[Product]:
        ...

    def get_product(self, pid: int, conn: Any = None) -> Optional[Product]:
        ...

    def get_products(self, pids: List[int], conn: Any = None) -> Dict[int, Product]:
        ...

    def create_product(self, data: Dict[str, Any]) -> Product:
        ...

    def update_product(self, pid: int, data: Dict[str, Any]) -> bool:
        ...

    def delete_product(self, pid: int) -> bool:
        ...

    def decrement_stock(self, pid: int, quantity: int, conn: Any = None) -> bool:
        """Descuenta solo si stock >= quantity, en una operación atómica."""
        ...


@runtime_checkable
class IUserRepository(Protocol):
    """Contrato del almacén de cuentas."""

    def get_user(self, user_id: int) -> Optional[User]:
        ...

    def get_by_login(self, login: str) -> Optional[User]:
        ...

    def exists(self, login: str, email: str) -> bool:
        ...

    def create_user(
        self, name: str, surname: str, login: str, email: str,
        password_hash: str, is_admin: bool = False
    ) -> Optional[User]:
        """Retorna None si el login o el email ya existen."""
        ...

    def set_admin(self, login: str, is_admin: bool) -> bool:
        ...


@runtime_checkable
class IOrderRepository(Protocol):
    """Contrato del almacén de pedidos."""

    def insert_order(self, conn: Any, user_id: int, total: float) -> int:
        ...

    def insert_lines(self, conn: Any, order_id: int, lines: List[OrderLine]) -> None:
        ...

    def get_order(self, order_id: int, conn: Any = None) -> Optional[Order]:
        ...

    def list_by_user(self, user_id: int) -> List[Order]:
        ...

    def list_all(self) -> List[Order]:
        ...
