# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a la tabla products.
# El descuento de stock es SIEMPRE una actualización condicional atómica
# (compare-and-decrement), nunca leer-comparar-escribir por separado.
# ==============================================================================

import sqlite3
from typing import Any, Dict, List, Optional

from tienda.models import Product
from tienda.repositories.base import BaseRepository


class ProductRepository(BaseRepository):
    """
    Repositorio para gestión del catálogo de productos.

    Columnas: id, name, price, wholesale_price, retail_price, stock, image
    """

    # Campos que se pueden escribir desde el servicio
    FIELDS = ('name', 'price', 'wholesale_price', 'retail_price', 'stock', 'image')

    def list_products(self) -> List[Product]:
        """
        Obtiene todos los productos, los más nuevos primero.

        Returns:
            Lista de productos
        """
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM products ORDER BY id DESC").fetchall()
        return [Product.from_row(r) for r in rows]

    def get_product(self, pid: int, conn: sqlite3.Connection = None) -> Optional[Product]:
        """
        Obtiene un producto por su ID.

        Args:
            pid: ID del producto
            conn: Conexión de una transacción en curso (opcional)

        Returns:
            Producto o None si no existe
        """
        with self._conn(conn) as c:
            row = c.execute("SELECT * FROM products WHERE id = ?", (pid,)).fetchone()
        return Product.from_row(row) if row else None

    def get_products(self, pids: List[int], conn: sqlite3.Connection = None) -> Dict[int, Product]:
        """
        Obtiene varios productos a la vez.

        Returns:
            Diccionario {pid: producto}; los IDs inexistentes no aparecen
        """
        if not pids:
            return {}
        placeholders = ','.join('?' for _ in pids)
        with self._conn(conn) as c:
            rows = c.execute(
                f"SELECT * FROM products WHERE id IN ({placeholders})", tuple(pids)
            ).fetchall()
        return {r['id']: Product.from_row(r) for r in rows}

    def create_product(self, data: Dict[str, Any]) -> Product:
        """
        Crea un nuevo producto.

        Args:
            data: Campos del producto (ver FIELDS)

        Returns:
            Producto creado con su ID
        """
        with self._conn() as conn:
            cur = conn.execute(
                "INSERT INTO products (name, price, wholesale_price, retail_price, stock, image) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                tuple(data.get(f) for f in self.FIELDS),
            )
            row = conn.execute("SELECT * FROM products WHERE id = ?", (cur.lastrowid,)).fetchone()
        return Product.from_row(row)

    def update_product(self, pid: int, data: Dict[str, Any]) -> bool:
        """
        Reemplaza los campos indicados de un producto.

        Args:
            pid: ID del producto
            data: Campos a escribir (solo se usan los de FIELDS)

        Returns:
            True si se actualizó, False si el producto no existe
        """
        updates = {k: v for k, v in data.items() if k in self.FIELDS}
        if not updates:
            return self.get_product(pid) is not None
        assignments = ', '.join(f"{k} = ?" for k in updates)
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE products SET {assignments} WHERE id = ?",
                tuple(updates.values()) + (pid,),
            )
        return cur.rowcount == 1

    def delete_product(self, pid: int) -> bool:
        """
        Elimina un producto.

        Returns:
            True si se eliminó
        """
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM products WHERE id = ?", (pid,))
        return cur.rowcount == 1

    def decrement_stock(self, pid: int, quantity: int, conn: sqlite3.Connection = None) -> bool:
        """
        Descuenta stock solo si alcanza (stock >= quantity), en una sola sentencia.

        Args:
            pid: ID del producto
            quantity: Unidades a descontar
            conn: Conexión de una transacción en curso (opcional)

        Returns:
            True si se descontó, False si no había stock suficiente o no existe
        """
        with self._conn(conn) as c:
            cur = c.execute(
                "UPDATE products SET stock = stock - ? WHERE id = ? AND stock >= ?",
                (quantity, pid, quantity),
            )
        return cur.rowcount == 1
