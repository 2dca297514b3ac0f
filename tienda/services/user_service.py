# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con cuentas:
# registro, autenticación y el flag de administrador.
#
# REGLA CRÍTICA - FLAG DE ADMINISTRADOR:
# El registro público NUNCA crea administradores, aunque el formulario
# envíe un campo para eso. El flag solo se otorga desde la línea de comandos
# (create-admin / set-admin). Estas validaciones se hacen AQUÍ, no en rutas.
# ==============================================================================

import logging
import re
from typing import Any

from werkzeug.security import generate_password_hash, check_password_hash

from tienda.models import User
from tienda.repositories.interfaces import IUserRepository
from tienda.services.errors import Conflict, InvalidCredentials, NotFound, ValidationError

logger = logging.getLogger(__name__)


EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Registro con login y email únicos
    - Autenticación (hash salado con werkzeug)
    - Gestión del flag de administrador

    Los repositorios solo hacen persistencia; las rutas solo orquestan
    request → service → response.
    """

    MIN_PASSWORD_LENGTH = 6
    MAX_FIELD_LENGTH = 100

    def __init__(self, user_repo: IUserRepository):
        """
        Args:
            user_repo: Repositorio de usuarios
        """
        self.user_repo = user_repo

    # =========================================================================
    # VALIDACIONES
    # =========================================================================

    def _text(self, value: Any, label: str) -> str:
        """Texto recibido tal cual; JSON puede traer números, listas, etc."""
        if value is None:
            return ''
        if not isinstance(value, str):
            raise ValidationError(f'{label} inválido')
        return value

    def _clean(self, value: Any, label: str) -> str:
        value = self._text(value, label).strip()
        if not value:
            raise ValidationError(f'{label} requerido')
        if len(value) > self.MAX_FIELD_LENGTH:
            raise ValidationError(f'{label} demasiado largo')
        return value

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def register(
        self,
        name: str,
        surname: str,
        login: str,
        email: str,
        password: str
    ) -> User:
        """
        Registra un cliente nuevo (nunca administrador).

        Args:
            name: Nombre
            surname: Apellido
            login: Nombre de usuario
            email: Correo electrónico
            password: Contraseña en texto plano

        Returns:
            Usuario creado

        Raises:
            ValidationError: Campos faltantes o inválidos
            Conflict: Login o email ya registrados (no se crea nada)
        """
        return self._create(name, surname, login, email, password, is_admin=False)

    def create_admin(
        self,
        name: str,
        surname: str,
        login: str,
        email: str,
        password: str
    ) -> User:
        """
        Crea un administrador. Solo se usa desde la línea de comandos.
        """
        return self._create(name, surname, login, email, password, is_admin=True)

    def _create(self, name, surname, login, email, password, is_admin: bool) -> User:
        name = self._clean(name, 'Nombre')
        surname = self._clean(surname, 'Apellido')
        login = self._clean(login, 'Usuario')
        email = self._clean(email, 'Correo').lower()
        if not EMAIL_RE.match(email):
            raise ValidationError('Correo electrónico inválido')
        password = self._text(password, 'Contraseña')
        if len(password) < self.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f'La contraseña debe tener al menos {self.MIN_PASSWORD_LENGTH} caracteres'
            )

        if self.user_repo.exists(login, email):
            logger.info("Registro rechazado, login/email en uso: %s", login)
            raise Conflict()

        password_hash = generate_password_hash(password)
        user = self.user_repo.create_user(name, surname, login, email, password_hash, is_admin)
        if user is None:
            # Otro registro ganó la carrera entre el chequeo y el INSERT
            raise Conflict()

        logger.info("Usuario registrado: %s (admin=%s)", login, is_admin)
        return user

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, login: str, password: str) -> User:
        """
        Autentica un usuario.

        Args:
            login: Nombre de usuario
            password: Contraseña en texto plano

        Returns:
            Usuario autenticado

        Raises:
            InvalidCredentials: Usuario inexistente o contraseña incorrecta
        """
        login = self._text(login, 'Usuario').strip()
        password = self._text(password, 'Contraseña')
        if not login or not password:
            raise ValidationError('Usuario y contraseña requeridos')

        user = self.user_repo.get_by_login(login)
        if user is None or not check_password_hash(user.password_hash, password):
            logger.warning("Login fallido para '%s'", login)
            raise InvalidCredentials()

        logger.info("Inicio de sesión: %s", login)
        return user

    # =========================================================================
    # CONSULTAS Y ROLES
    # =========================================================================

    def get_user(self, user_id: int) -> User:
        """
        Raises:
            NotFound: Si el usuario no existe
        """
        user = self.user_repo.get_user(user_id)
        if user is None:
            raise NotFound('Usuario no encontrado')
        return user

    def set_admin(self, login: str, is_admin: bool) -> None:
        """
        Otorga o quita el flag de administrador.

        Raises:
            NotFound: Si el usuario no existe
        """
        if not self.user_repo.set_admin(login, is_admin):
            raise NotFound('Usuario no encontrado')
        logger.info("Flag admin de %s → %s", login, is_admin)
