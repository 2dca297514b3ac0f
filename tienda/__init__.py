# ==============================================================================
# TIENDA - Tienda online de demostración (Flask + SQLite)
# ==============================================================================
# Punto de entrada WSGI: wsgi.py (gunicorn wsgi:app)
# Comandos: flask --app tienda.main init-db | create-admin | set-admin
# ==============================================================================
