# -*- coding: utf-8 -*-
"""
Tests del checkout - compra atómica, stock nunca negativo, historial de pedidos
"""
import threading

import pytest

from tienda.models import CheckoutState
from tienda.services import InsufficientStock, NotFound


def stock_of(container, pid):
    return container.product_repo.get_product(pid).stock


# ═══════════════════════════════════════════════════════════════════════════════
# Servicio
# ═══════════════════════════════════════════════════════════════════════════════

def test_checkout_creates_order_and_decrements_stock(container, make_product, make_user):
    user = make_user('ana')
    a = make_product('A', price=10.0, stock=5)
    b = make_product('B', price=5.0, stock=10)

    result = container.checkout_service.checkout(user.id, {a.id: 2, b.id: 1})

    assert result.state == CheckoutState.COMMITTED
    order = result.order
    assert order.total == 25.0
    assert order.user_id == user.id
    assert [(l.product_name, l.quantity, l.unit_price) for l in order.lines] == [
        ('A', 2, 10.0),
        ('B', 1, 5.0),
    ]
    assert stock_of(container, a.id) == 3
    assert stock_of(container, b.id) == 9


def test_checkout_exact_stock_reaches_zero(container, make_product, make_user):
    user = make_user('ana')
    product = make_product(stock=3)
    container.checkout_service.checkout(user.id, {product.id: 3})
    assert stock_of(container, product.id) == 0


def test_checkout_insufficient_stock_changes_nothing(container, make_product, make_user):
    user = make_user('ana')
    a = make_product('A', stock=5)
    b = make_product('B', stock=1)

    with pytest.raises(InsufficientStock) as exc:
        container.checkout_service.checkout(user.id, {a.id: 2, b.id: 2})

    assert exc.value.product_id == b.id
    assert exc.value.requested == 2
    assert exc.value.available == 1
    assert stock_of(container, a.id) == 5
    assert stock_of(container, b.id) == 1
    assert container.order_repo.count_orders() == 0


def test_checkout_empty_cart(container, make_user):
    user = make_user('ana')
    result = container.checkout_service.checkout(user.id, {})
    assert result.state == CheckoutState.EMPTY
    assert result.order is None
    assert container.order_repo.count_orders() == 0


def test_checkout_deleted_product(container, make_product, make_user):
    user = make_user('ana')
    product = make_product()
    container.catalog_service.delete_product(product.id)
    with pytest.raises(NotFound):
        container.checkout_service.checkout(user.id, {product.id: 1})
    assert container.order_repo.count_orders() == 0


def test_failure_mid_checkout_rolls_back(container, make_product, make_user, monkeypatch):
    user = make_user('ana')
    a = make_product('A', stock=5)
    b = make_product('B', stock=5)

    repo = container.product_repo
    original = repo.decrement_stock
    calls = []

    def failing_decrement(pid, quantity, conn=None):
        calls.append(pid)
        if len(calls) == 2:
            raise RuntimeError('disco lleno')
        return original(pid, quantity, conn=conn)

    monkeypatch.setattr(repo, 'decrement_stock', failing_decrement)

    with pytest.raises(RuntimeError):
        container.checkout_service.checkout(user.id, {a.id: 1, b.id: 1})

    assert len(calls) == 2
    assert stock_of(container, a.id) == 5
    assert stock_of(container, b.id) == 5
    assert container.order_repo.count_orders() == 0


def test_order_keeps_price_at_purchase_time(container, make_product, make_user):
    user = make_user('ana')
    product = make_product(price=10.0)
    order = container.checkout_service.checkout(user.id, {product.id: 1}).order

    container.catalog_service.update_product(product.id, {'price': '99'})
    container.catalog_service.delete_product(product.id)

    stored = container.order_service.get_order(order.id)
    assert stored.total == 10.0
    assert stored.lines[0].unit_price == 10.0
    assert stored.lines[0].product_name == 'Producto'
    assert stored.lines[0].product_id is None


def test_concurrent_checkouts_never_oversell(container, make_product, make_user):
    product = make_product(stock=5)
    users = [make_user(f'user{i}') for i in range(10)]
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(users))

    def buy(user):
        barrier.wait()
        try:
            container.checkout_service.checkout(user.id, {product.id: 1})
            outcome = 'ok'
        except InsufficientStock:
            outcome = 'rejected'
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=buy, args=(u,)) for u in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count('ok') == 5
    assert results.count('rejected') == 5
    assert stock_of(container, product.id) == 0
    assert container.order_repo.count_orders() == 5


def test_two_buyers_competing_for_last_units(container, make_product, make_user):
    product = make_product(stock=3)
    buyers = [make_user('ana'), make_user('beto')]
    committed, rejected = [], []
    barrier = threading.Barrier(2)

    def buy(user):
        barrier.wait()
        try:
            committed.append(container.checkout_service.checkout(user.id, {product.id: 2}).order)
        except InsufficientStock as e:
            rejected.append(e)

    threads = [threading.Thread(target=buy, args=(u,)) for u in buyers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(committed) == 1
    assert len(rejected) == 1
    assert committed[0].lines[0].quantity == 2
    assert rejected[0].available == 1
    assert stock_of(container, product.id) == 1
    assert container.order_repo.count_orders() == 1


def test_buy_now_is_single_unit_order(container, make_product, make_user):
    user = make_user('ana')
    product = make_product(stock=1)

    result = container.checkout_service.buy_now(user.id, product.id)
    assert result.committed
    assert result.order.total_items == 1
    assert stock_of(container, product.id) == 0

    with pytest.raises(InsufficientStock):
        container.checkout_service.buy_now(user.id, product.id)
    assert stock_of(container, product.id) == 0
    assert container.order_repo.count_orders() == 1


# ═══════════════════════════════════════════════════════════════════════════════
# Rutas
# ═══════════════════════════════════════════════════════════════════════════════

def test_checkout_route_clears_cart(shop, customer, container, make_product):
    a = make_product('A', price=10.0, stock=5)
    b = make_product('B', price=2.5, stock=10)
    shop.post('/cart/add', {'product_id': a.id, 'quantity': 2})
    shop.post('/cart/add', {'product_id': b.id, 'quantity': 2})

    r = shop.post('/checkout')
    assert r.status_code == 201
    body = r.get_json()
    assert body['state'] == 'COMMITTED'
    assert body['order']['total'] == 25.0
    assert shop.client.get('/cart').get_json()['carrito']['items'] == []

    orders = shop.client.get('/orders').get_json()['orders']
    assert [o['id'] for o in orders] == [body['order']['id']]


def test_checkout_route_rejected_keeps_cart(shop, customer, container, make_product):
    product = make_product(stock=1)
    shop.post('/cart/add', {'product_id': product.id, 'quantity': 2})

    r = shop.post('/checkout')
    assert r.status_code == 409
    body = r.get_json()
    assert body['ok'] is False
    assert body['state'] == 'REJECTED'
    assert body['available'] == 1
    assert shop.client.get('/cart').get_json()['carrito']['total_items'] == 2
    assert stock_of(container, product.id) == 1


def test_checkout_route_empty_cart(shop, customer, container):
    r = shop.post('/checkout')
    assert r.status_code == 400
    assert r.get_json()['state'] == 'EMPTY'
    assert container.order_repo.count_orders() == 0


def test_buy_route(shop, customer, container, make_product):
    product = make_product(stock=2)
    r = shop.post(f'/products/{product.id}/buy')
    assert r.status_code == 201
    assert r.get_json()['order']['lines'][0]['quantity'] == 1
    assert stock_of(container, product.id) == 1


def test_buy_route_out_of_stock(shop, customer, container, make_product):
    product = make_product(stock=0)
    r = shop.post(f'/products/{product.id}/buy')
    assert r.status_code == 409
    assert container.order_repo.count_orders() == 0


def test_order_visibility(shop, customer, container, make_product, make_user):
    product = make_product(stock=5)
    other = make_user('otro')
    foreign = container.checkout_service.checkout(other.id, {product.id: 1}).order

    assert shop.client.get(f'/orders/{foreign.id}').status_code == 404
    assert shop.client.get('/orders').get_json()['orders'] == []
    assert shop.client.get('/admin/orders').status_code == 403


def test_admin_sees_all_orders(shop, admin, container, make_product, make_user):
    product = make_product(stock=5)
    ana = make_user('ana')
    order = container.checkout_service.checkout(ana.id, {product.id: 2}).order

    r = shop.client.get('/admin/orders')
    assert r.status_code == 200
    orders = r.get_json()['orders']
    assert orders[0]['id'] == order.id
    assert orders[0]['user_login'] == 'ana'

    r = shop.client.get(f'/orders/{order.id}')
    assert r.status_code == 200


def test_pending_state_is_never_returned(container, make_product, make_user):
    user = make_user('ana')
    product = make_product(stock=2)
    states = [
        container.checkout_service.checkout(user.id, {}).state,
        container.checkout_service.checkout(user.id, {product.id: 1}).state,
        container.checkout_service.buy_now(user.id, product.id).state,
    ]
    assert states == [CheckoutState.EMPTY, CheckoutState.COMMITTED, CheckoutState.COMMITTED]
    assert CheckoutState.PENDING not in states
