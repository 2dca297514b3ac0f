# ==============================================================================
# SERVICIO DE IMÁGENES
# ==============================================================================
# Guarda y libera las imágenes de productos en UPLOAD_DIR.
# El producto solo guarda el nombre del archivo, nunca una ruta absoluta.
# ==============================================================================

import logging
import os
import uuid
from typing import Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from tienda.services.errors import ValidationError

logger = logging.getLogger(__name__)


DEFAULT_EXTENSIONS = frozenset(['png', 'jpg', 'jpeg', 'gif', 'webp'])


class ImageStorage:
    """
    Almacén de imágenes en disco.

    Nombres generados: <uuid hex>_<nombre seguro>, así dos subidas con el
    mismo nombre nunca se pisan.
    """

    def __init__(self, upload_dir: str, allowed_extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        """
        Args:
            upload_dir: Carpeta donde se guardan las imágenes
            allowed_extensions: Extensiones aceptadas (sin punto, minúsculas)
        """
        self.upload_dir = os.path.abspath(upload_dir)
        self.allowed_extensions = frozenset(e.lower() for e in allowed_extensions)
        os.makedirs(self.upload_dir, exist_ok=True)

    def allowed_file(self, filename: str) -> bool:
        return "." in filename and filename.rsplit(".", 1)[1].lower() in self.allowed_extensions

    def path_for(self, filename: str) -> Optional[str]:
        """
        Ruta absoluta de una imagen, o None si el nombre intenta salir de UPLOAD_DIR.
        """
        if not filename:
            return None
        path = os.path.abspath(os.path.join(self.upload_dir, filename))
        if os.path.dirname(path) != self.upload_dir:
            return None
        return path

    def save(self, file: FileStorage) -> str:
        """
        Guarda una imagen subida.

        Args:
            file: Archivo recibido en request.files

        Returns:
            Nombre del archivo guardado

        Raises:
            ValidationError: Si no hay archivo o la extensión no está permitida
        """
        if file is None or not file.filename:
            raise ValidationError('No se recibió ninguna imagen')
        if not self.allowed_file(file.filename):
            raise ValidationError('Formato de imagen no permitido')

        filename = secure_filename(file.filename)
        unique_name = f"{uuid.uuid4().hex}_{filename}"
        file.save(os.path.join(self.upload_dir, unique_name))
        logger.info("Imagen guardada: %s", unique_name)
        return unique_name

    def release(self, filename: Optional[str]) -> bool:
        """
        Elimina una imagen del disco.

        Args:
            filename: Nombre guardado en el producto (puede ser None)

        Returns:
            True si se borró un archivo; False si no había nada que borrar
        """
        path = self.path_for(filename)
        if path is None or not os.path.isfile(path):
            return False
        os.remove(path)
        logger.info("Imagen liberada: %s", filename)
        return True
