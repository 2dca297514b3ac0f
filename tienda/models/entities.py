# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia:
# los repositorios construyen estas entidades a partir de filas SQLite.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


# ==============================================================================
# ENUMERACIONES - Estados válidos
# ==============================================================================

class CheckoutState(str, Enum):
    """
    Estados del proceso de compra (carrito → pedido).

    PENDING es transitorio: dura lo que la transacción del checkout y nunca
    se devuelve en un CheckoutResult. El llamador solo ve EMPTY, COMMITTED
    o REJECTED (este último como InsufficientStock).
    """
    EMPTY = "EMPTY"          # Carrito vacío, no se crea pedido
    PENDING = "PENDING"      # Transitorio, solo dentro de la transacción
    COMMITTED = "COMMITTED"  # Pedido creado y stock descontado
    REJECTED = "REJECTED"    # Stock insuficiente, sin efectos


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Representa un usuario de la tienda.

    Attributes:
        id: Identificador (clave subrogada)
        name: Nombre
        surname: Apellido
        login: Nombre de usuario único
        email: Correo único
        password_hash: Hash de la contraseña (nunca almacenar en texto plano)
        is_admin: Permite gestionar el catálogo
    """
    id: Optional[int]
    name: str
    surname: str
    login: str
    email: str
    password_hash: str = field(default='', repr=False)
    is_admin: bool = False
    created_at: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario público (sin hash de contraseña)."""
        return {
            'id': self.id,
            'name': self.name,
            'surname': self.surname,
            'login': self.login,
            'email': self.email,
            'is_admin': self.is_admin,
        }

    @classmethod
    def from_row(cls, row: Any) -> 'User':
        """Crea instancia desde una fila de la tabla users."""
        return cls(
            id=row['id'],
            name=row['name'],
            surname=row['surname'],
            login=row['login'],
            email=row['email'],
            password_hash=row['password_hash'],
            is_admin=bool(row['is_admin']),
            created_at=row['created_at'],
        )


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador del producto
        name: Nombre visible
        price: Precio unitario de venta
        stock: Unidades disponibles (nunca negativo)
        wholesale_price: Precio por mayor (opcional)
        retail_price: Precio por menor (opcional)
        image: Nombre del archivo de imagen (opcional)
    """
    id: Optional[int]
    name: str
    price: float
    stock: int = 0
    wholesale_price: Optional[float] = None
    retail_price: Optional[float] = None
    image: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para respuestas JSON."""
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'stock': self.stock,
            'in_stock': self.in_stock,
            'wholesale_price': self.wholesale_price,
            'retail_price': self.retail_price,
            'image': self.image,
        }

    @classmethod
    def from_row(cls, row: Any) -> 'Product':
        """Crea instancia desde una fila de la tabla products."""
        return cls(
            id=row['id'],
            name=row['name'],
            price=row['price'],
            stock=row['stock'],
            wholesale_price=row['wholesale_price'],
            retail_price=row['retail_price'],
            image=row['image'],
            created_at=row['created_at'],
        )


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Línea del carrito con los datos actuales del producto.

    El precio mostrado es el vigente; el precio definitivo se captura
    recién al confirmar la compra.
    """
    product_id: int
    quantity: int
    name: Optional[str] = None
    unit_price: Optional[float] = None
    stock: Optional[int] = None

    @property
    def missing(self) -> bool:
        """True si el producto ya no existe en el catálogo."""
        return self.name is None

    @property
    def subtotal(self) -> float:
        if self.unit_price is None:
            return 0.0
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'quantity': self.quantity,
            'name': self.name,
            'unit_price': self.unit_price,
            'stock': self.stock,
            'subtotal': self.subtotal,
            'missing': self.missing,
        }


# ==============================================================================
# ENTIDADES DE PEDIDOS
# ==============================================================================

@dataclass
class OrderLine:
    """
    Línea de un pedido.
    Guarda el precio unitario y el nombre del producto al momento de la compra.
    """
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: float
    id: Optional[int] = None

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'subtotal': self.subtotal,
        }

    @classmethod
    def from_row(cls, row: Any) -> 'OrderLine':
        return cls(
            id=row['id'],
            product_id=row['product_id'],
            product_name=row['product_name'],
            quantity=row['quantity'],
            unit_price=row['unit_price'],
        )


@dataclass
class Order:
    """
    Pedido confirmado. Es dueño exclusivo de sus líneas.

    Invariante: total == suma de subtotales de las líneas.
    """
    id: Optional[int]
    user_id: int
    total: float
    created_at: Optional[str] = None
    lines: List[OrderLine] = field(default_factory=list)
    user_login: Optional[str] = None

    @staticmethod
    def compute_total(lines: List[OrderLine]) -> float:
        """Total del pedido a partir de los subtotales de sus líneas."""
        return round(sum(line.subtotal for line in lines), 2)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'user_id': self.user_id,
            'total': self.total,
            'created_at': self.created_at,
            'total_items': self.total_items,
            'lines': [line.to_dict() for line in self.lines],
        }
        if self.user_login is not None:
            d['user_login'] = self.user_login
        return d

    @classmethod
    def from_row(cls, row: Any, lines: List[OrderLine] = None) -> 'Order':
        keys = row.keys()
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            total=row['total'],
            created_at=row['created_at'],
            lines=lines or [],
            user_login=row['user_login'] if 'user_login' in keys else None,
        )


@dataclass
class CheckoutResult:
    """Resultado de un intento de compra."""
    state: CheckoutState
    order: Optional[Order] = None

    @property
    def committed(self) -> bool:
        return self.state == CheckoutState.COMMITTED
