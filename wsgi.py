# ==============================================================================
# WSGI Entry Point - servidor de producción
# ==============================================================================
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT --workers 2
#
# Variables de entorno mínimas en producción:
#   TIENDA_PRODUCTION=1
#   TIENDA_SECRET_KEY=<clave larga y aleatoria>
#   TIENDA_DATABASE=/ruta/persistente/tienda.db
#   TIENDA_UPLOAD_DIR=/ruta/persistente/productos
#
# Primer arranque (crea tablas y un administrador):
#   flask --app tienda.main init-db
#   flask --app tienda.main create-admin
# ==============================================================================

from tienda.main import app

if __name__ == '__main__':
    # Solo desarrollo local
    app.run(debug=True, host='127.0.0.1', port=5000)
