import os

import pytest

# Los tests no escriben logs de rendimiento en la carpeta del paquete
os.environ.setdefault('TIENDA_PROFILING', '0')

from tienda.app_container import AppContainer, get_container
from tienda.main import app as flask_app


class ShopClient:
    """Cliente de pruebas que agrega el token CSRF de la sesión a cada POST."""

    def __init__(self, client):
        self.client = client

    def csrf(self):
        r = self.client.get('/api/csrf')
        assert r.status_code == 200
        return r.get_json()['csrf_token']

    def post(self, url, data=None, **kwargs):
        # Los archivos van como tupla (stream, nombre); el resto como texto
        data = {k: v if isinstance(v, tuple) else str(v) for k, v in (data or {}).items()}
        data['csrf_token'] = self.csrf()
        return self.client.post(url, data=data, **kwargs)

    def post_json(self, url, payload=None):
        return self.client.post(url, json=payload or {}, headers={'X-CSRF-Token': self.csrf()})

    def register(self, login='cliente', password='secreto1', email=None, **extra):
        data = {
            'name': 'Ana',
            'surname': 'Pérez',
            'login': login,
            'email': email or f'{login}@example.com',
            'password': password,
        }
        data.update(extra)
        return self.post('/register', data)

    def login(self, login='cliente', password='secreto1'):
        return self.post('/login', {'login': login, 'password': password})


@pytest.fixture
def app(tmp_path):
    AppContainer.reset_instance()
    flask_app.config.update(
        TESTING=True,
        DATABASE=str(tmp_path / 'tienda.db'),
        UPLOAD_DIR=str(tmp_path / 'productos'),
        LOGS_DIR=str(tmp_path / 'logs'),
    )
    yield flask_app
    AppContainer.reset_instance()


@pytest.fixture
def container(app):
    return get_container(app.config)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def shop(client):
    return ShopClient(client)


@pytest.fixture
def customer(shop):
    r = shop.register()
    assert r.status_code == 201
    r = shop.login()
    assert r.status_code == 200
    return r.get_json()['user']


@pytest.fixture
def admin(container, shop):
    container.user_service.create_admin('Admin', 'Tienda', 'admin', 'admin@example.com', 'adminpass')
    r = shop.login('admin', 'adminpass')
    assert r.status_code == 200
    return r.get_json()['user']


@pytest.fixture
def make_product(container):
    def _make(name='Producto', price=10.0, stock=5, **extra):
        fields = {'name': name, 'price': price, 'stock': stock}
        fields.update(extra)
        return container.catalog_service.create_product(fields)
    return _make


@pytest.fixture
def make_user(container):
    def _make(login):
        return container.user_service.register('Nombre', 'Apellido', login, f'{login}@example.com', 'secreto1')
    return _make
