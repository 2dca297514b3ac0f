# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se puede reiniciar con otra base / carpeta de imágenes)
#   - Migración gradual (cambiar repos sin tocar servicios)
#
# Para cambiar SQLite por otro motor: crear repositorios que implementen
# las interfaces de repositories/interfaces.py y cambiarlos aquí.
# Los servicios NO requieren cambios.
# ==============================================================================

from typing import Any, Mapping, Optional

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from tienda.repositories import (
    Database,
    ProductRepository,
    UserRepository,
    OrderRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from tienda.services import (
    ImageStorage,
    CatalogService,
    UserService,
    CartService,
    CheckoutService,
    OrderService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(app.config)
        catalog = container.catalog_service
        checkout = container.checkout_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, config: Mapping[str, Any] = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config: Mapping[str, Any] = None):
        """
        Inicializa el contenedor.

        Args:
            config: Configuración (app.config): DATABASE, DB_TIMEOUT,
                    UPLOAD_DIR, ALLOWED_EXTENSIONS
        """
        if self._initialized:
            return

        if config is None:
            from tienda.config import Config
            config = {k: getattr(Config, k) for k in dir(Config) if k.isupper()}
        self._config = dict(config)

        # Inicializar repositorios (lazy loading)
        self._database: Optional[Database] = None
        self._product_repo: Optional[ProductRepository] = None
        self._user_repo: Optional[UserRepository] = None
        self._order_repo: Optional[OrderRepository] = None

        # Inicializar servicios (lazy loading)
        self._images: Optional[ImageStorage] = None
        self._catalog_service: Optional[CatalogService] = None
        self._user_service: Optional[UserService] = None
        self._cart_service: Optional[CartService] = None
        self._checkout_service: Optional[CheckoutService] = None
        self._order_service: Optional[OrderService] = None

        self._initialized = True

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def database(self) -> Database:
        """Base de datos (singleton). Crea las tablas que falten al abrirla."""
        if self._database is None:
            self._database = Database(
                self._config['DATABASE'],
                timeout=float(self._config.get('DB_TIMEOUT', 10)),
            )
            self._database.init_schema()
        return self._database

    @property
    def product_repo(self) -> ProductRepository:
        """Repositorio de productos (singleton)."""
        if self._product_repo is None:
            self._product_repo = ProductRepository(self.database)
        return self._product_repo

    @property
    def user_repo(self) -> UserRepository:
        """Repositorio de usuarios (singleton)."""
        if self._user_repo is None:
            self._user_repo = UserRepository(self.database)
        return self._user_repo

    @property
    def order_repo(self) -> OrderRepository:
        """Repositorio de pedidos (singleton)."""
        if self._order_repo is None:
            self._order_repo = OrderRepository(self.database)
        return self._order_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def images(self) -> ImageStorage:
        """Almacén de imágenes (singleton)."""
        if self._images is None:
            kwargs = {}
            if self._config.get('ALLOWED_EXTENSIONS'):
                kwargs['allowed_extensions'] = self._config['ALLOWED_EXTENSIONS']
            self._images = ImageStorage(self._config['UPLOAD_DIR'], **kwargs)
        return self._images

    @property
    def catalog_service(self) -> CatalogService:
        """Servicio de catálogo (singleton)."""
        if self._catalog_service is None:
            self._catalog_service = CatalogService(self.product_repo, self.images)
        return self._catalog_service

    @property
    def user_service(self) -> UserService:
        """Servicio de usuarios (singleton)."""
        if self._user_service is None:
            self._user_service = UserService(self.user_repo)
        return self._user_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.product_repo)
        return self._cart_service

    @property
    def checkout_service(self) -> CheckoutService:
        """Servicio de checkout (singleton)."""
        if self._checkout_service is None:
            self._checkout_service = CheckoutService(
                self.database,
                self.product_repo,
                self.order_repo,
                self.cart_service
            )
        return self._checkout_service

    @property
    def order_service(self) -> OrderService:
        """Servicio de pedidos (singleton)."""
        if self._order_service is None:
            self._order_service = OrderService(self.order_repo)
        return self._order_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar configuración.
        """
        self._database = None
        self._product_repo = None
        self._user_repo = None
        self._order_repo = None

        self._images = None
        self._catalog_service = None
        self._user_service = None
        self._cart_service = None
        self._checkout_service = None
        self._order_service = None

    @classmethod
    def get_instance(cls, config: Mapping[str, Any] = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            config: Configuración (solo se usa en la primera llamada)
        """
        if cls._instance is None:
            return cls(config)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(config: Mapping[str, Any] = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        config: Configuración de la app (app.config)

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(config)
