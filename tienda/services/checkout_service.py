# ==============================================================================
# SERVICIO DE CHECKOUT
# ==============================================================================
# Centraliza la confirmación de compras: carrito → pedido.
# Esta es la ÚNICA función que crea pedidos y descuenta stock.
#
# ESTADOS:
#   EMPTY     → carrito vacío, no se crea nada
#   PENDING   → dentro de la transacción, validando stock
#   COMMITTED → pedido + líneas + descuentos confirmados
#   REJECTED  → stock insuficiente, ROLLBACK, carrito intacto
#
# ATOMICIDAD: cabecera, líneas y descuentos se escriben en UNA transacción
# (BEGIN IMMEDIATE). Si algo falla a mitad de camino no queda stock
# descontado sin pedido ni pedido sin stock descontado.
# ==============================================================================

import logging
from typing import Any, Dict, Mapping, MutableMapping

from tienda.models import CheckoutResult, CheckoutState, Order, OrderLine
from tienda.performance_logger import profile_function
from tienda.repositories.interfaces import IDatabase, IOrderRepository, IProductRepository
from tienda.services.cart_service import CartService
from tienda.services.errors import InsufficientStock, NotFound, ValidationError

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Servicio de confirmación de compras.

    Responsabilidades:
    - Validar stock de todo el carrito en el momento de la compra
    - Crear el pedido capturando el precio unitario vigente
    - Descontar stock con actualización condicional atómica
    - Vaciar el carrito solo después del COMMIT
    """

    def __init__(
        self,
        db: IDatabase,
        product_repo: IProductRepository,
        order_repo: IOrderRepository,
        cart_service: CartService
    ):
        """
        Args:
            db: Base de datos (provee la transacción)
            product_repo: Repositorio de productos
            order_repo: Repositorio de pedidos
            cart_service: Servicio de carrito (para vaciarlo al confirmar)
        """
        self.db = db
        self.product_repo = product_repo
        self.order_repo = order_repo
        self.cart_service = cart_service

    def _normalize(self, items: Mapping[Any, Any]) -> Dict[int, int]:
        requested: Dict[int, int] = {}
        for pid, qty in items.items():
            try:
                pid, qty = int(pid), int(qty)
            except (TypeError, ValueError):
                raise ValidationError('Carrito inválido')
            if qty <= 0:
                raise ValidationError('Cantidad debe ser mayor a 0')
            requested[pid] = requested.get(pid, 0) + qty
        return requested

    @profile_function(name="Confirmar compra")
    def checkout(self, user_id: int, items: Mapping[Any, Any]) -> CheckoutResult:
        """
        Convierte los items en un pedido confirmado.

        Args:
            user_id: Dueño del pedido
            items: {product_id: cantidad}

        Returns:
            CheckoutResult con estado EMPTY o COMMITTED (y el pedido)

        Raises:
            InsufficientStock: Algún producto no alcanza (estado REJECTED)
            NotFound: Algún producto ya no existe
        """
        if not items:
            return CheckoutResult(state=CheckoutState.EMPTY)

        requested = self._normalize(items)

        try:
            with self.db.transaction() as conn:
                # PENDING: leer stock actual de todos los productos
                products = self.product_repo.get_products(list(requested), conn=conn)
                lines = []
                for pid, qty in requested.items():
                    product = products.get(pid)
                    if product is None:
                        raise NotFound(f'Producto {pid} no encontrado')
                    if qty > product.stock:
                        raise InsufficientStock(pid, qty, product.stock, product.name)
                    lines.append(OrderLine(
                        product_id=pid,
                        product_name=product.name,
                        quantity=qty,
                        unit_price=product.price,
                    ))

                # COMMITTED: pedido, líneas y descuentos en la misma transacción
                total = Order.compute_total(lines)
                order_id = self.order_repo.insert_order(conn, user_id, total)
                self.order_repo.insert_lines(conn, order_id, lines)

                for line in lines:
                    if not self.product_repo.decrement_stock(line.product_id, line.quantity, conn=conn):
                        current = self.product_repo.get_product(line.product_id, conn=conn)
                        raise InsufficientStock(
                            line.product_id,
                            line.quantity,
                            current.stock if current else 0,
                            line.product_name,
                        )

                order = self.order_repo.get_order(order_id, conn=conn)
        except InsufficientStock as e:
            logger.warning(
                "Compra rechazada (usuario %s): producto %s solicitado %s disponible %s",
                user_id, e.product_id, e.requested, e.available
            )
            raise

        logger.info(
            "Pedido #%s confirmado (usuario %s) - Total: %.2f - %d líneas",
            order.id, user_id, order.total, len(order.lines)
        )
        return CheckoutResult(state=CheckoutState.COMMITTED, order=order)

    def checkout_cart(self, store: MutableMapping[str, Any], user_id: int) -> CheckoutResult:
        """
        Confirma el carrito de la sesión. Lo vacía solo si el pedido se confirmó;
        si la compra es rechazada el carrito queda intacto.
        """
        result = self.checkout(user_id, self.cart_service.get_items(store))
        if result.committed:
            self.cart_service.clear_cart(store)
        return result

    def buy_now(self, user_id: int, product_id: Any) -> CheckoutResult:
        """
        Compra inmediata de UNA unidad, sin pasar por el carrito.

        Usa el mismo camino atómico que el checkout, por lo que también
        queda registrada como pedido. Con stock 0 se rechaza sin cambios.
        """
        try:
            pid = int(product_id)
        except (TypeError, ValueError):
            raise ValidationError('ID de producto inválido')
        return self.checkout(user_id, {pid: 1})
