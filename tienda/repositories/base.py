# ==============================================================================
# REPOSITORIO BASE - Conexión SQLite y transacciones
# ==============================================================================
# Reemplaza el acceso a archivos JSON protegido con locks por una base SQLite:
#   - Cada operación abre su propia conexión (una unidad de trabajo por request)
#   - Los locks se reemplazan por transacciones de BD (BEGIN IMMEDIATE)
#   - Todas las consultas son parametrizadas (nunca concatenar SQL)
# ==============================================================================

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    name          TEXT NOT NULL,
    surname       TEXT NOT NULL,
    login         TEXT NOT NULL UNIQUE,
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    is_admin      INTEGER NOT NULL DEFAULT 0,
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS products (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    price           REAL NOT NULL CHECK (price >= 0),
    wholesale_price REAL CHECK (wholesale_price IS NULL OR wholesale_price >= 0),
    retail_price    REAL CHECK (retail_price IS NULL OR retail_price >= 0),
    stock           INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0),
    image           TEXT,
    created_at      TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS orders (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id    INTEGER NOT NULL REFERENCES users(id),
    total      REAL NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS order_lines (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id     INTEGER NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
    position     INTEGER NOT NULL,
    product_id   INTEGER REFERENCES products(id) ON DELETE SET NULL,
    product_name TEXT NOT NULL,
    quantity     INTEGER NOT NULL CHECK (quantity > 0),
    unit_price   REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orders_user ON orders(user_id);
CREATE INDEX IF NOT EXISTS idx_order_lines_order ON order_lines(order_id);
"""


class Database:
    """
    Punto de acceso único a la base SQLite.

    Uso:
        db = Database('/ruta/tienda.db')
        db.init_schema()

        with db.connection() as conn:        # lecturas / escrituras simples
            conn.execute("SELECT ...", (...,))

        with db.transaction() as conn:       # varias escrituras atómicas
            conn.execute("INSERT ...", (...,))
            conn.execute("UPDATE ...", (...,))
    """

    def __init__(self, path: str, timeout: float = 10.0):
        """
        Args:
            path: Ruta al archivo SQLite
            timeout: Segundos de espera cuando otra transacción tiene el lock
        """
        self.path = path
        self.timeout = timeout
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: las transacciones se abren explícitamente
        conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Conexión en modo autocommit: cada sentencia es atómica por sí sola."""
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Abre una transacción con BEGIN IMMEDIATE.

        Toma el lock de escritura al inicio, así dos compras concurrentes
        se serializan en vez de fallar a mitad de camino. Si el bloque lanza
        cualquier excepción se hace ROLLBACK y la excepción se propaga.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Crea las tablas si no existen."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        logger.info("Esquema inicializado en %s", self.path)


class BaseRepository:
    """
    Clase base para todos los repositorios.

    Los métodos que participan de una transacción mayor reciben la conexión
    abierta (`conn`); el resto abre la suya con `self.db.connection()`.
    """

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def _conn(self, conn: sqlite3.Connection = None) -> Iterator[sqlite3.Connection]:
        """Reutiliza la conexión recibida o abre una nueva."""
        if conn is not None:
            yield conn
            return
        with self.db.connection() as own:
            yield own
