from flask import Flask, request, redirect, url_for, session, send_from_directory
from functools import wraps
from werkzeug.exceptions import HTTPException
import click
import logging
import os
import uuid

from tienda.app_container import get_container
from tienda.config import Config
from tienda.performance_logger import init_profiling
from tienda.services import InsufficientStock, ShopError, Unauthorized

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y funciones. Logs en LOGS_DIR
# Para desactivar: TIENDA_PROFILING=0
init_profiling(app)

if app.config['PRODUCTION_MODE'] and not os.environ.get('TIENDA_SECRET_KEY'):
    logger.warning("PRODUCTION_MODE activo sin TIENDA_SECRET_KEY definida")


def container():
    """Contenedor de servicios construido con la configuración de la app."""
    return get_container(app.config)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def request_data():
    """Datos del request: JSON para llamadas AJAX, formulario en otro caso."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form


def current_user_id():
    return session.get("user_id")


def current_user_is_admin():
    return session.get("is_admin") is True


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            if request.path.startswith('/api/'):
                return {"ok": False, "error": "Debes iniciar sesión."}, 401
            return redirect(url_for("login"))
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    """El flag se vuelve a verificar en el servidor en CADA operación de admin."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not current_user_is_admin():
            logger.warning("Acceso de admin denegado a '%s' en %s",
                           session.get("login"), request.path)
            raise Unauthorized()
        return f(*args, **kwargs)
    return wrapper


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == 'POST' and app.config.get('CSRF_ENABLED', True):
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not form_token and request.is_json:
                json_data = request.get_json(silent=True) or {}
                form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                return {"ok": False, "error": "Sesión expirada. Por favor intenta de nuevo."}, 403
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES - Todo error se devuelve como {"ok": False, "error": ...}
# ═══════════════════════════════════════════════════════════════════════════════

@app.errorhandler(ShopError)
def handle_shop_error(e):
    body = e.to_dict()
    if isinstance(e, InsufficientStock):
        body["state"] = "REJECTED"
    return body, e.status_code


@app.errorhandler(HTTPException)
def handle_http_error(e):
    if e.code == 413:
        return {"ok": False, "error": "Archivo demasiado grande (máximo 5 MB)."}, 413
    return {"ok": False, "error": e.description}, e.code


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception("Error no controlado en %s %s", request.method, request.path)
    return {"ok": False, "error": "Error interno. Por favor intenta de nuevo."}, 500


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════════
# COMANDOS DE CONSOLA
# ═══════════════════════════════════════════════════════════════════════════════
# Los administradores solo se crean desde aquí, nunca desde el registro público.

@app.cli.command("init-db")
def init_db_command():
    """Crea las tablas de la base de datos."""
    container().database.init_schema()
    click.echo(f"Base de datos lista: {app.config['DATABASE']}")


@app.cli.command("create-admin")
@click.option("--name", prompt="Nombre")
@click.option("--surname", prompt="Apellido")
@click.option("--login", "login_name", prompt="Usuario")
@click.option("--email", prompt="Correo")
@click.password_option()
def create_admin_command(name, surname, login_name, email, password):
    """Crea un usuario administrador."""
    try:
        user = container().user_service.create_admin(name, surname, login_name, email, password)
    except ShopError as e:
        raise click.ClickException(e.message)
    click.echo(f"Administrador '{user.login}' creado (id {user.id}).")


@app.cli.command("set-admin")
@click.argument("login_name")
@click.option("--revoke", is_flag=True, help="Quitar el flag de administrador.")
def set_admin_command(login_name, revoke):
    """Otorga (o quita con --revoke) el flag de administrador."""
    try:
        container().user_service.set_admin(login_name, not revoke)
    except ShopError as e:
        raise click.ClickException(e.message)
    click.echo(f"Usuario '{login_name}': admin={'no' if revoke else 'sí'}")


# ═══════════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/csrf")
def csrf_token():
    return {"ok": True, "csrf_token": generate_csrf_token()}


@app.route("/register", methods=["POST"])
@verify_csrf
def register():
    data = request_data()
    # Un campo is_admin en el formulario se ignora: el registro nunca crea admins
    user = container().user_service.register(
        data.get("name"),
        data.get("surname"),
        data.get("login"),
        data.get("email"),
        data.get("password"),
    )
    return {"ok": True, "mensaje": "Usuario registrado correctamente.", "user": user.to_dict()}, 201


@app.route("/login", methods=["GET", "POST"])
@verify_csrf
def login():
    if request.method == "GET":
        return {
            "ok": True,
            "authenticated": "user_id" in session,
            "csrf_token": generate_csrf_token(),
        }

    data = request_data()
    user = container().user_service.authenticate(data.get("login"), data.get("password"))

    # Sesión nueva para evitar fijación de sesión
    session.clear()
    session.permanent = True
    session["user_id"] = user.id
    session["login"] = user.login
    session["is_admin"] = user.is_admin
    return {
        "ok": True,
        "mensaje": f"Bienvenido, {user.display_name}.",
        "user": user.to_dict(),
        "csrf_token": generate_csrf_token(),
    }


@app.route("/logout", methods=["GET", "POST"])
@login_required
def logout():
    login_name = session.get("login")
    session.clear()
    logger.info("Cierre de sesión: %s", login_name)
    return {"ok": True, "mensaje": "Sesión cerrada."}


@app.route("/api/me")
@login_required
def me():
    user = container().user_service.get_user(current_user_id())
    return {"ok": True, "user": user.to_dict()}


# ═══════════════════════════════════════════════════════════════════════════════
# TIENDA
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/products")
@login_required
def list_products():
    products = container().catalog_service.list_products()
    return {"ok": True, "products": [p.to_dict() for p in products]}


@app.route("/products/<int:pid>")
@login_required
def get_product(pid):
    product = container().catalog_service.get_product(pid)
    return {"ok": True, "product": product.to_dict()}


@app.route("/products/<int:pid>/buy", methods=["POST"])
@login_required
@verify_csrf
def buy_product(pid):
    result = container().checkout_service.buy_now(current_user_id(), pid)
    order = result.order
    return {
        "ok": True,
        "state": result.state.value,
        "mensaje": f"Compra realizada: {order.lines[0].product_name}",
        "order": order.to_dict(),
    }, 201


@app.route("/uploads/<path:filename>")
def uploaded_image(filename):
    return send_from_directory(container().images.upload_dir, filename)


# ═══════════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/cart")
@login_required
def view_cart():
    return {"ok": True, "carrito": container().cart_service.get_cart(session)}


@app.route("/cart/add", methods=["POST"])
@login_required
@verify_csrf
def cart_add():
    data = request_data()
    cart = container().cart_service
    cart.add_item(session, data.get("product_id"), data.get("quantity", 1))
    return {"ok": True, "mensaje": "Producto agregado al carrito", "carrito": cart.get_cart(session)}


@app.route("/cart/remove", methods=["POST"])
@login_required
@verify_csrf
def cart_remove():
    data = request_data()
    cart = container().cart_service
    cart.remove_item(session, data.get("product_id"))
    return {"ok": True, "mensaje": "Producto eliminado del carrito", "carrito": cart.get_cart(session)}


@app.route("/cart/update", methods=["POST"])
@login_required
@verify_csrf
def cart_update():
    data = request_data()
    cart = container().cart_service
    cart.update_quantity(session, data.get("product_id"), data.get("quantity"))
    return {"ok": True, "mensaje": "Cantidad actualizada", "carrito": cart.get_cart(session)}


@app.route("/cart/clear", methods=["POST"])
@login_required
@verify_csrf
def cart_clear():
    cart = container().cart_service
    cart.clear_cart(session)
    return {"ok": True, "mensaje": "Carrito vaciado", "carrito": cart.get_cart(session)}


@app.route("/checkout", methods=["POST"])
@login_required
@verify_csrf
def checkout():
    result = container().checkout_service.checkout_cart(session, current_user_id())
    if not result.committed:
        return {"ok": False, "state": result.state.value, "error": "El carrito está vacío"}, 400

    order = result.order
    return {
        "ok": True,
        "state": result.state.value,
        "mensaje": f"Pedido #{order.id} registrado - Total: {order.total:.2f}",
        "order": order.to_dict(),
    }, 201


# ═══════════════════════════════════════════════════════════════════════════════
# PEDIDOS
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/orders")
@login_required
def my_orders():
    orders = container().order_service.list_orders_for_user(current_user_id())
    return {"ok": True, "orders": [o.to_dict() for o in orders]}


@app.route("/orders/<int:order_id>")
@login_required
def order_detail(order_id):
    owner = None if current_user_is_admin() else current_user_id()
    order = container().order_service.get_order(order_id, owner)
    return {"ok": True, "order": order.to_dict()}


# ═══════════════════════════════════════════════════════════════════════════════
# ADMINISTRACIÓN DE PRODUCTOS (solo admin)
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/admin/products", methods=["POST"])
@login_required
@verify_csrf
@admin_required
def create_product():
    product = container().catalog_service.create_product(request.form, request.files.get("image"))
    logger.info("'%s' creó el producto #%s", session.get("login"), product.id)
    return {"ok": True, "mensaje": f"Producto '{product.name}' creado.", "product": product.to_dict()}, 201


@app.route("/admin/products/<int:pid>", methods=["POST"])
@login_required
@verify_csrf
@admin_required
def edit_product(pid):
    product = container().catalog_service.update_product(pid, request.form, request.files.get("image"))
    logger.info("'%s' editó el producto #%s", session.get("login"), pid)
    return {"ok": True, "mensaje": "Producto actualizado.", "product": product.to_dict()}


@app.route("/admin/products/<int:pid>/delete", methods=["POST"])
@login_required
@verify_csrf
@admin_required
def delete_product(pid):
    product = container().catalog_service.delete_product(pid)
    logger.info("'%s' eliminó el producto #%s", session.get("login"), pid)
    return {"ok": True, "mensaje": f"Producto '{product.name}' eliminado."}


@app.route("/admin/orders")
@login_required
@admin_required
def all_orders():
    orders = container().order_service.list_all_orders()
    return {"ok": True, "orders": [o.to_dict() for o in orders]}
