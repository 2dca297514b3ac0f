# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# Encapsula todo el acceso a las tablas orders y order_lines.
# Un pedido y sus líneas se crean juntos, dentro de la transacción del
# checkout (ver CheckoutService); nunca existe un pedido parcial.
# ==============================================================================

import sqlite3
from typing import Dict, List, Optional

from tienda.models import Order, OrderLine
from tienda.repositories.base import BaseRepository


class OrderRepository(BaseRepository):
    """
    Repositorio para gestión de pedidos.

    orders:      id, user_id, total, created_at
    order_lines: id, order_id, position, product_id, product_name, quantity, unit_price
    """

    _SELECT_ORDERS = (
        "SELECT o.id, o.user_id, o.total, o.created_at, u.login AS user_login "
        "FROM orders o JOIN users u ON u.id = o.user_id"
    )

    def insert_order(self, conn: sqlite3.Connection, user_id: int, total: float) -> int:
        """
        Inserta la cabecera del pedido.

        Args:
            conn: Conexión de la transacción del checkout
            user_id: Dueño del pedido
            total: Total ya calculado

        Returns:
            ID del pedido
        """
        cur = conn.execute(
            "INSERT INTO orders (user_id, total) VALUES (?, ?)", (user_id, total)
        )
        return cur.lastrowid

    def insert_lines(self, conn: sqlite3.Connection, order_id: int, lines: List[OrderLine]) -> None:
        """
        Inserta las líneas del pedido en el orden recibido.

        Args:
            conn: Conexión de la transacción del checkout
            order_id: ID del pedido
            lines: Líneas con el precio capturado
        """
        conn.executemany(
            "INSERT INTO order_lines "
            "(order_id, position, product_id, product_name, quantity, unit_price) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                (order_id, pos, line.product_id, line.product_name, line.quantity, line.unit_price)
                for pos, line in enumerate(lines)
            ],
        )

    def _lines_for(self, conn: sqlite3.Connection, order_ids: List[int]) -> Dict[int, List[OrderLine]]:
        result: Dict[int, List[OrderLine]] = {oid: [] for oid in order_ids}
        if not order_ids:
            return result
        placeholders = ','.join('?' for _ in order_ids)
        rows = conn.execute(
            f"SELECT * FROM order_lines WHERE order_id IN ({placeholders}) "
            "ORDER BY order_id, position",
            tuple(order_ids),
        ).fetchall()
        for r in rows:
            result[r['order_id']].append(OrderLine.from_row(r))
        return result

    def _load(self, conn: sqlite3.Connection, where: str = '', params: tuple = ()) -> List[Order]:
        rows = conn.execute(
            f"{self._SELECT_ORDERS} {where} ORDER BY o.id DESC", params
        ).fetchall()
        lines = self._lines_for(conn, [r['id'] for r in rows])
        return [Order.from_row(r, lines[r['id']]) for r in rows]

    def get_order(self, order_id: int, conn: sqlite3.Connection = None) -> Optional[Order]:
        """
        Obtiene un pedido con sus líneas.

        Returns:
            Pedido o None
        """
        with self._conn(conn) as c:
            orders = self._load(c, "WHERE o.id = ?", (order_id,))
        return orders[0] if orders else None

    def list_by_user(self, user_id: int) -> List[Order]:
        """
        Pedidos de un usuario, los más recientes primero.
        """
        with self._conn() as conn:
            return self._load(conn, "WHERE o.user_id = ?", (user_id,))

    def list_all(self) -> List[Order]:
        """
        Todos los pedidos con el login del dueño, los más recientes primero.
        """
        with self._conn() as conn:
            return self._load(conn)

    def count_orders(self) -> int:
        with self._conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]
