# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula todo el acceso a la tabla users.
# login y email son únicos (restricción UNIQUE en la tabla).
# ==============================================================================

import sqlite3
from typing import Optional

from tienda.models import User
from tienda.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """
    Repositorio para gestión de usuarios.

    Columnas: id, name, surname, login, email, password_hash, is_admin
    """

    def get_user(self, user_id: int) -> Optional[User]:
        """
        Obtiene un usuario por su ID.

        Args:
            user_id: ID del usuario

        Returns:
            Usuario o None
        """
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User.from_row(row) if row else None

    def get_by_login(self, login: str) -> Optional[User]:
        """
        Obtiene un usuario por su nombre de usuario.

        Args:
            login: Nombre de usuario

        Returns:
            Usuario o None
        """
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE login = ?", (login,)).fetchone()
        return User.from_row(row) if row else None

    def exists(self, login: str, email: str) -> bool:
        """
        Verifica si ya hay un usuario con ese login o ese email.

        Returns:
            True si alguno de los dos está en uso
        """
        with self._conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM users WHERE login = ? OR email = ? LIMIT 1",
                (login, email),
            ).fetchone()
        return row is not None

    def create_user(
        self,
        name: str,
        surname: str,
        login: str,
        email: str,
        password_hash: str,
        is_admin: bool = False
    ) -> Optional[User]:
        """
        Crea un nuevo usuario.

        Args:
            name: Nombre
            surname: Apellido
            login: Nombre de usuario
            email: Correo
            password_hash: Hash de la contraseña
            is_admin: Permisos de administrador

        Returns:
            Usuario creado, o None si el login o el email ya existían
        """
        try:
            with self._conn() as conn:
                cur = conn.execute(
                    "INSERT INTO users (name, surname, login, email, password_hash, is_admin) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (name, surname, login, email, password_hash, int(is_admin)),
                )
                row = conn.execute("SELECT * FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
        except sqlite3.IntegrityError:
            return None
        return User.from_row(row)

    def set_admin(self, login: str, is_admin: bool) -> bool:
        """
        Cambia el flag de administrador.

        Returns:
            True si se actualizó
        """
        with self._conn() as conn:
            cur = conn.execute(
                "UPDATE users SET is_admin = ? WHERE login = ?", (int(is_admin), login)
            )
        return cur.rowcount == 1

    def count_users(self) -> int:
        with self._conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]

    # NOTA: La validación de credenciales se hace SOLO en UserService
    # usando check_password_hash.
    # El repositorio solo maneja persistencia, no lógica de autenticación.
