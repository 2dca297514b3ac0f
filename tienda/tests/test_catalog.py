# -*- coding: utf-8 -*-
"""
Tests del catálogo - consulta, administración de productos e imágenes
"""
import os
from io import BytesIO

import pytest

from tienda.services import NotFound, ValidationError


PNG_BYTES = b'\x89PNG\r\n\x1a\nfake-image-data'


def image(name='foto.png', data=PNG_BYTES):
    return (BytesIO(data), name)


def uploaded_files(container):
    return sorted(os.listdir(container.images.upload_dir))


# ═══════════════════════════════════════════════════════════════════════════════
# Consultas
# ═══════════════════════════════════════════════════════════════════════════════

def test_list_products_newest_first(shop, customer, make_product):
    make_product('Primero')
    make_product('Segundo')
    r = shop.client.get('/products')
    assert r.status_code == 200
    names = [p['name'] for p in r.get_json()['products']]
    assert names == ['Segundo', 'Primero']


def test_get_product_not_found(shop, customer):
    r = shop.client.get('/products/999')
    assert r.status_code == 404
    assert r.get_json()['ok'] is False


# ═══════════════════════════════════════════════════════════════════════════════
# Validación
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize('fields', [
    {'name': '', 'price': '10', 'stock': '1'},
    {'name': 'x' * 201, 'price': '10', 'stock': '1'},
    {'name': 'Mate', 'price': '-1', 'stock': '1'},
    {'name': 'Mate', 'price': 'gratis', 'stock': '1'},
    {'name': 'Mate', 'price': '10', 'stock': '1.5'},
    {'name': 'Mate', 'price': '10', 'stock': '-3'},
    {'name': 'Mate', 'price': '10'},
])
def test_invalid_product_fields(container, fields):
    with pytest.raises(ValidationError):
        container.catalog_service.create_product(fields)
    assert container.product_repo.list_products() == []


def test_price_tiers_are_optional(container):
    product = container.catalog_service.create_product({
        'name': 'Yerba', 'price': '2.999', 'stock': '7',
        'wholesale_price': '', 'retail_price': '4',
    })
    assert product.price == 3.0
    assert product.stock == 7
    assert product.wholesale_price is None
    assert product.retail_price == 4.0


# ═══════════════════════════════════════════════════════════════════════════════
# Administración (rutas)
# ═══════════════════════════════════════════════════════════════════════════════

def test_customer_cannot_manage_products(shop, customer, make_product, container):
    product = make_product()
    r = shop.post('/admin/products', {'name': 'Nuevo', 'price': '1', 'stock': '1'})
    assert r.status_code == 403
    r = shop.post(f'/admin/products/{product.id}/delete')
    assert r.status_code == 403
    assert container.product_repo.get_product(product.id) is not None


def test_anonymous_cannot_manage_products(client, container):
    r = client.post('/admin/products', data={'name': 'Nuevo', 'price': '1', 'stock': '1'})
    assert r.status_code == 302
    assert container.product_repo.list_products() == []


def test_admin_creates_product_with_image(shop, admin, container):
    r = shop.post('/admin/products', {
        'name': 'Termo', 'price': '25.5', 'stock': '3', 'image': image(),
    })
    assert r.status_code == 201
    product = r.get_json()['product']
    assert product['name'] == 'Termo'
    assert product['image'].endswith('_foto.png')
    assert uploaded_files(container) == [product['image']]

    served = shop.client.get(f"/uploads/{product['image']}")
    assert served.status_code == 200
    assert served.data == PNG_BYTES


def test_admin_create_rejects_bad_extension(shop, admin, container):
    r = shop.post('/admin/products', {
        'name': 'Termo', 'price': '25.5', 'stock': '3', 'image': image('script.exe'),
    })
    assert r.status_code == 400
    assert container.product_repo.list_products() == []
    assert uploaded_files(container) == []


def test_admin_create_invalid_fields_leaves_no_file(shop, admin, container):
    r = shop.post('/admin/products', {
        'name': 'Termo', 'price': '-5', 'stock': '3', 'image': image(),
    })
    assert r.status_code == 400
    assert uploaded_files(container) == []


def test_partial_update_keeps_absent_fields(shop, admin, make_product):
    product = make_product('Mate', price=10.0, stock=4)
    r = shop.post(f'/admin/products/{product.id}', {'price': '12'})
    assert r.status_code == 200
    updated = r.get_json()['product']
    assert updated['price'] == 12.0
    assert updated['stock'] == 4
    assert updated['name'] == 'Mate'


def test_update_with_new_image_releases_old_one(shop, admin, container):
    r = shop.post('/admin/products', {'name': 'Termo', 'price': '1', 'stock': '1', 'image': image('a.png')})
    product = r.get_json()['product']
    old_image = product['image']

    r = shop.post(f"/admin/products/{product['id']}", {'image': image('b.jpg')})
    assert r.status_code == 200
    new_image = r.get_json()['product']['image']
    assert new_image != old_image
    assert uploaded_files(container) == [new_image]


def test_update_without_image_keeps_current(shop, admin, container):
    r = shop.post('/admin/products', {'name': 'Termo', 'price': '1', 'stock': '1', 'image': image()})
    product = r.get_json()['product']
    r = shop.post(f"/admin/products/{product['id']}", {'name': 'Termo grande'})
    assert r.get_json()['product']['image'] == product['image']
    assert uploaded_files(container) == [product['image']]


def test_update_unknown_product(shop, admin):
    r = shop.post('/admin/products/999', {'price': '1'})
    assert r.status_code == 404


def test_delete_product_releases_image(shop, admin, container):
    r = shop.post('/admin/products', {'name': 'Termo', 'price': '1', 'stock': '1', 'image': image()})
    pid = r.get_json()['product']['id']

    r = shop.post(f'/admin/products/{pid}/delete')
    assert r.status_code == 200
    assert uploaded_files(container) == []
    assert shop.client.get(f'/products/{pid}').status_code == 404


def test_delete_product_without_image(container, make_product):
    product = make_product()
    deleted = container.catalog_service.delete_product(product.id)
    assert deleted.id == product.id
    with pytest.raises(NotFound):
        container.catalog_service.delete_product(product.id)


# ═══════════════════════════════════════════════════════════════════════════════
# Almacén de imágenes
# ═══════════════════════════════════════════════════════════════════════════════

def test_image_release_is_noop_for_missing_file(container):
    assert container.images.release(None) is False
    assert container.images.release('no-existe.png') is False


def test_image_path_cannot_escape_upload_dir(container):
    assert container.images.path_for('../tienda.db') is None
    assert container.images.release('../tienda.db') is False

