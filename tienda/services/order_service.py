# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Historial de pedidos: los propios para clientes, todos para administradores.
# ==============================================================================

from typing import List, Optional

from tienda.models import Order
from tienda.repositories.interfaces import IOrderRepository
from tienda.services.errors import NotFound


class OrderService:
    """Consultas de pedidos confirmados (solo lectura)."""

    def __init__(self, order_repo: IOrderRepository):
        self.order_repo = order_repo

    def list_orders_for_user(self, user_id: int) -> List[Order]:
        """Pedidos del usuario, los más recientes primero."""
        return self.order_repo.list_by_user(user_id)

    def list_all_orders(self) -> List[Order]:
        """Todos los pedidos con el login de su dueño."""
        return self.order_repo.list_all()

    def get_order(self, order_id: int, user_id: Optional[int] = None) -> Order:
        """
        Obtiene un pedido.

        Args:
            order_id: ID del pedido
            user_id: Si se indica, el pedido debe pertenecerle (None = admin)

        Raises:
            NotFound: Si no existe o pertenece a otro usuario
        """
        order = self.order_repo.get_order(order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise NotFound('Pedido no encontrado')
        return order
