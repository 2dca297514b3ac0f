# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con el carrito de compras.
# El carrito vive en la sesión del usuario, pero el servicio NO importa la
# sesión de Flask: cada método recibe el `store` (session en producción,
# un dict en tests) y guarda el carrito en store['carrito'].
#
# Formato: {"<product_id>": cantidad}  (claves string por la sesión JSON)
# ==============================================================================

from typing import Any, Dict, List, MutableMapping

from tienda.models import CartItem
from tienda.repositories.interfaces import IProductRepository
from tienda.services.errors import NotFound, ValidationError


CART_KEY = 'carrito'


def _to_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{label} inválido')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} inválido')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'{label} inválido')
    return number


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar items del carrito
    - Calcular totales con los precios vigentes
    - Limpiar carrito

    El stock NO se valida al agregar: solo es definitivo al confirmar la compra.
    """

    def __init__(self, product_repo: IProductRepository):
        """
        Args:
            product_repo: Repositorio de productos
        """
        self.product_repo = product_repo

    def _get_cart(self, store: MutableMapping[str, Any]) -> Dict[str, int]:
        return dict(store.get(CART_KEY) or {})

    def _save_cart(self, store: MutableMapping[str, Any], cart: Dict[str, int]) -> None:
        store[CART_KEY] = cart
        # Flask no detecta cambios dentro de objetos mutables de la sesión
        if hasattr(store, 'modified'):
            store.modified = True

    def get_items(self, store: MutableMapping[str, Any]) -> Dict[int, int]:
        """
        Items del carrito.

        Returns:
            {product_id: cantidad} en el orden en que se agregaron
        """
        return {int(pid): qty for pid, qty in self._get_cart(store).items()}

    def add_item(self, store: MutableMapping[str, Any], product_id: Any, quantity: Any = 1) -> Dict[int, int]:
        """
        Agrega un producto al carrito, sumando si ya estaba.

        Args:
            store: Sesión del usuario
            product_id: ID del producto
            quantity: Cantidad a agregar (> 0)

        Returns:
            Items del carrito actualizados

        Raises:
            ValidationError: ID o cantidad inválidos
            NotFound: El producto no existe
        """
        pid = _to_int(product_id, 'ID de producto')
        qty = _to_int(quantity, 'Cantidad')
        if qty <= 0:
            raise ValidationError('Cantidad debe ser mayor a 0')

        if self.product_repo.get_product(pid) is None:
            raise NotFound('Producto no encontrado')

        cart = self._get_cart(store)
        key = str(pid)
        cart[key] = cart.get(key, 0) + qty
        self._save_cart(store, cart)
        return self.get_items(store)

    def remove_item(self, store: MutableMapping[str, Any], product_id: Any) -> Dict[int, int]:
        """
        Elimina un producto del carrito. Si no estaba, no hace nada.
        """
        pid = _to_int(product_id, 'ID de producto')
        cart = self._get_cart(store)
        if cart.pop(str(pid), None) is not None:
            self._save_cart(store, cart)
        return self.get_items(store)

    def update_quantity(self, store: MutableMapping[str, Any], product_id: Any, quantity: Any) -> Dict[int, int]:
        """
        Fija la cantidad de un producto. Cantidad <= 0 lo elimina.

        Raises:
            NotFound: El producto no existe
        """
        pid = _to_int(product_id, 'ID de producto')
        qty = _to_int(quantity, 'Cantidad')
        if qty <= 0:
            return self.remove_item(store, pid)

        if self.product_repo.get_product(pid) is None:
            raise NotFound('Producto no encontrado')

        cart = self._get_cart(store)
        cart[str(pid)] = qty
        self._save_cart(store, cart)
        return self.get_items(store)

    def clear_cart(self, store: MutableMapping[str, Any]) -> None:
        """Vacía el carrito completamente."""
        self._save_cart(store, {})

    def get_cart(self, store: MutableMapping[str, Any]) -> Dict[str, Any]:
        """
        Obtiene el carrito con los datos vigentes del catálogo y totales.

        Los productos borrados del catálogo se informan como `missing`
        en vez de descartarse en silencio.

        Returns:
            Dict con items, total_items, total_amount, items_count
        """
        items = self.get_items(store)
        products = self.product_repo.get_products(list(items))

        lines: List[CartItem] = []
        for pid, qty in items.items():
            product = products.get(pid)
            if product is None:
                lines.append(CartItem(product_id=pid, quantity=qty))
            else:
                lines.append(CartItem(
                    product_id=pid,
                    quantity=qty,
                    name=product.name,
                    unit_price=product.price,
                    stock=product.stock,
                ))

        return {
            'items': [line.to_dict() for line in lines],
            'total_items': sum(line.quantity for line in lines),
            'total_amount': round(sum(line.subtotal for line in lines), 2),
            'items_count': len(lines),
        }
