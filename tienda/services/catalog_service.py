# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos:
# validación de campos, CRUD y ciclo de vida de la imagen asociada.
# ==============================================================================

import logging
from typing import Any, Dict, List, Mapping, Optional

from werkzeug.datastructures import FileStorage

from tienda.models import Product
from tienda.repositories.interfaces import IProductRepository
from tienda.services.errors import NotFound, ValidationError
from tienda.services.image_service import ImageStorage

logger = logging.getLogger(__name__)


MAX_NAME_LENGTH = 200


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_price(value: Any, label: str, required: bool = True) -> Optional[float]:
    """
    Convierte un precio recibido del formulario.

    Returns:
        Precio redondeado a 2 decimales, o None si es opcional y vino vacío

    Raises:
        ValidationError: Si falta, no es numérico o es negativo
    """
    if _blank(value):
        if required:
            raise ValidationError(f'{label} requerido')
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} debe ser numérico')
    if price != price or price in (float('inf'), float('-inf')):
        raise ValidationError(f'{label} debe ser numérico')
    if price < 0:
        raise ValidationError(f'{label} no puede ser negativo')
    return round(price, 2)


def parse_quantity(value: Any, label: str) -> int:
    """
    Convierte una cantidad entera no negativa.

    Raises:
        ValidationError: Si falta, no es entera o es negativa
    """
    if _blank(value) or isinstance(value, bool):
        raise ValidationError(f'{label} requerido')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f'{label} debe ser un número entero')
        value = int(value)
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} debe ser un número entero')
    if qty < 0:
        raise ValidationError(f'{label} no puede ser negativo')
    return qty


class CatalogService:
    """
    Servicio para gestión del catálogo.

    Responsabilidades:
    - Listar y consultar productos
    - Crear / actualizar / eliminar (solo admin, el chequeo se hace en la ruta)
    - Validar precios y stock
    - Guardar y liberar la imagen del producto
    """

    def __init__(self, product_repo: IProductRepository, images: ImageStorage):
        """
        Args:
            product_repo: Repositorio de productos
            images: Almacén de imágenes
        """
        self.product_repo = product_repo
        self.images = images

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self) -> List[Product]:
        """Todos los productos, los más nuevos primero."""
        return self.product_repo.list_products()

    def get_product(self, pid: int) -> Product:
        """
        Obtiene un producto por su ID.

        Raises:
            NotFound: Si no existe
        """
        product = self.product_repo.get_product(pid)
        if product is None:
            raise NotFound('Producto no encontrado')
        return product

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate_fields(self, fields: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
        """
        Valida y normaliza los campos de un producto.

        Args:
            fields: Datos recibidos (formulario o dict)
            partial: True en actualizaciones: solo se validan los campos presentes

        Returns:
            Diccionario con los campos normalizados

        Raises:
            ValidationError: Ante el primer campo inválido
        """
        data: Dict[str, Any] = {}

        if not partial or 'name' in fields:
            name = (fields.get('name') or '').strip()
            if not name:
                raise ValidationError('Nombre requerido')
            if len(name) > MAX_NAME_LENGTH:
                raise ValidationError(f'El nombre no puede superar {MAX_NAME_LENGTH} caracteres')
            data['name'] = name

        if not partial or 'price' in fields:
            data['price'] = parse_price(fields.get('price'), 'Precio')

        if not partial or 'stock' in fields:
            data['stock'] = parse_quantity(fields.get('stock'), 'Stock')

        # Precios por mayor / por menor: vacío significa "sin precio"
        for key, label in (('wholesale_price', 'Precio por mayor'),
                           ('retail_price', 'Precio por menor')):
            if key in fields:
                data[key] = parse_price(fields.get(key), label, required=False)

        return data

    # =========================================================================
    # OPERACIONES DE ADMINISTRACIÓN
    # =========================================================================

    def create_product(self, fields: Mapping[str, Any], image: FileStorage = None) -> Product:
        """
        Crea un producto.

        Args:
            fields: name, price, stock, wholesale_price, retail_price
            image: Imagen subida (opcional)

        Returns:
            Producto creado
        """
        data = self.validate_fields(fields)
        if image is not None and image.filename:
            data['image'] = self.images.save(image)

        try:
            product = self.product_repo.create_product(data)
        except Exception:
            # No dejar archivos huérfanos si la fila no se pudo crear
            self.images.release(data.get('image'))
            raise

        logger.info("Producto creado: #%s %s", product.id, product.name)
        return product

    def update_product(
        self,
        pid: int,
        fields: Mapping[str, Any],
        image: FileStorage = None
    ) -> Product:
        """
        Actualiza un producto.

        Los campos presentes reemplazan a los guardados; los ausentes se
        mantienen. Sin imagen nueva se conserva la actual; con imagen nueva
        se reemplaza la referencia y se libera el archivo anterior.

        Raises:
            NotFound: Si el producto no existe
            ValidationError: Si algún campo es inválido
        """
        before = self.get_product(pid)
        data = self.validate_fields(fields, partial=True)

        new_image = None
        if image is not None and image.filename:
            new_image = self.images.save(image)
            data['image'] = new_image

        try:
            updated = self.product_repo.update_product(pid, data)
        except Exception:
            self.images.release(new_image)
            raise
        if not updated:
            self.images.release(new_image)
            raise NotFound('Producto no encontrado')

        if new_image and before.image:
            self.images.release(before.image)

        logger.info("Producto actualizado: #%s campos=%s", pid, sorted(data))
        return self.get_product(pid)

    def delete_product(self, pid: int) -> Product:
        """
        Elimina un producto y libera su imagen (si tenía).

        Returns:
            Producto eliminado

        Raises:
            NotFound: Si el producto no existe
        """
        product = self.get_product(pid)
        if not self.product_repo.delete_product(pid):
            raise NotFound('Producto no encontrado')
        if product.image:
            self.images.release(product.image)
        logger.info("Producto eliminado: #%s %s", pid, product.name)
        return product
