# -*- coding: utf-8 -*-
"""
Tests de autenticación - registro, login, logout y protección de rutas
"""
import pytest
from werkzeug.security import check_password_hash

from tienda.services import Conflict, InvalidCredentials, ValidationError


def test_register_creates_customer(shop, container):
    r = shop.register()
    assert r.status_code == 201
    body = r.get_json()
    assert body['ok'] is True
    assert body['user']['login'] == 'cliente'
    assert body['user']['is_admin'] is False
    assert 'password_hash' not in body['user']


def test_register_ignores_admin_field(shop, container):
    r = shop.register(is_admin='1')
    assert r.status_code == 201
    assert container.user_repo.get_by_login('cliente').is_admin is False


def test_password_is_stored_hashed(shop, container):
    shop.register(password='secreto1')
    user = container.user_repo.get_by_login('cliente')
    assert user.password_hash != 'secreto1'
    assert check_password_hash(user.password_hash, 'secreto1')


@pytest.mark.parametrize('login,email', [
    ('cliente', 'otro@example.com'),
    ('otro', 'cliente@example.com'),
])
def test_register_duplicate_is_rejected(shop, container, login, email):
    assert shop.register().status_code == 201
    r = shop.register(login=login, email=email)
    assert r.status_code == 409
    assert r.get_json()['ok'] is False
    assert container.user_repo.count_users() == 1


@pytest.mark.parametrize('overrides', [
    {'password': '12345'},
    {'email': 'no-es-un-correo'},
    {'name': ''},
    {'login': '   '},
])
def test_register_validation(shop, container, overrides):
    r = shop.register(**overrides)
    assert r.status_code == 400
    assert container.user_repo.count_users() == 0


def test_login_and_me(shop, customer):
    r = shop.client.get('/api/me')
    assert r.status_code == 200
    assert r.get_json()['user']['login'] == 'cliente'


def test_login_wrong_password_and_unknown_user_share_message(shop):
    shop.register()
    wrong = shop.login(password='incorrecta')
    unknown = shop.login(login='nadie')
    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.get_json()['error'] == unknown.get_json()['error']


def test_logout_destroys_session(shop, customer):
    r = shop.client.get('/logout')
    assert r.status_code == 200
    assert shop.client.get('/api/me').status_code == 401


def test_anonymous_is_redirected_to_login(client):
    r = client.get('/products')
    assert r.status_code == 302
    assert r.headers['Location'].endswith('/login')


def test_post_without_csrf_token_is_rejected(client, container):
    r = client.post('/register', data={
        'name': 'Ana', 'surname': 'Pérez', 'login': 'cliente',
        'email': 'cliente@example.com', 'password': 'secreto1',
    })
    assert r.status_code == 403
    assert container.user_repo.count_users() == 0


def test_security_headers(client):
    r = client.get('/api/csrf')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


def test_unknown_route_returns_json_404(client):
    r = client.get('/no-existe')
    assert r.status_code == 404
    assert r.get_json()['ok'] is False


# ═══════════════════════════════════════════════════════════════════════════════
# Servicio de usuarios
# ═══════════════════════════════════════════════════════════════════════════════

def test_service_email_is_normalized(container):
    user = container.user_service.register('Ana', 'Pérez', 'ana', 'Ana@Example.COM', 'secreto1')
    assert user.email == 'ana@example.com'
    with pytest.raises(Conflict):
        container.user_service.register('Otra', 'Ana', 'ana2', 'ana@example.com', 'secreto1')


def test_service_authenticate(container):
    container.user_service.register('Ana', 'Pérez', 'ana', 'ana@example.com', 'secreto1')
    assert container.user_service.authenticate('ana', 'secreto1').login == 'ana'
    with pytest.raises(InvalidCredentials):
        container.user_service.authenticate('ana', 'otra-clave')
    with pytest.raises(ValidationError):
        container.user_service.authenticate('', '')


# ═══════════════════════════════════════════════════════════════════════════════
# Comandos de consola
# ═══════════════════════════════════════════════════════════════════════════════

def test_cli_create_admin_and_revoke(app, container):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        'create-admin', '--name', 'Jefa', '--surname', 'Tienda', '--login', 'jefa',
        '--email', 'jefa@example.com', '--password', 'clave123',
    ])
    assert result.exit_code == 0, result.output
    assert container.user_repo.get_by_login('jefa').is_admin is True

    result = runner.invoke(args=['set-admin', 'jefa', '--revoke'])
    assert result.exit_code == 0, result.output
    assert container.user_repo.get_by_login('jefa').is_admin is False


def test_cli_set_admin_unknown_user(app, container):
    result = app.test_cli_runner().invoke(args=['set-admin', 'nadie'])
    assert result.exit_code != 0
    assert 'Usuario no encontrado' in result.output


def test_cli_init_db(app, container):
    result = app.test_cli_runner().invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'Base de datos lista' in result.output


@pytest.mark.parametrize('overrides', [
    {'password': 1234567},
    {'login': 42},
    {'email': ['cliente@example.com']},
])
def test_register_json_non_text_fields(shop, container, overrides):
    payload = {
        'name': 'Ana', 'surname': 'Pérez', 'login': 'cliente',
        'email': 'cliente@example.com', 'password': 'secreto1',
    }
    payload.update(overrides)
    r = shop.post_json('/register', payload)
    assert r.status_code == 400
    assert r.get_json()['ok'] is False
    assert container.user_repo.count_users() == 0


@pytest.mark.parametrize('payload', [
    {'login': 'cliente', 'password': 1234567},
    {'login': 42, 'password': 'secreto1'},
])
def test_login_json_non_text_fields(shop, payload):
    shop.register()
    r = shop.post_json('/login', payload)
    assert r.status_code == 400
    assert r.get_json()['ok'] is False
