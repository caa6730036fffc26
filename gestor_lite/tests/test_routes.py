import os

import pytest

from gestor_lite.app_container import AppContainer, get_container
from gestor_lite.main import create_app, format_currency, to_float, to_int
from gestor_lite.repositories import MemoryStore


def _flashes(client):
    with client.session_transaction() as sess:
        return list(sess.get('_flashes', []))


def _add_product(client, name='Widget', quantity='10', purchase_price='5', selling_price='9'):
    return client.post('/inventory/products', data={
        'name': name,
        'quantity': quantity,
        'purchase_price': purchase_price,
        'selling_price': selling_price,
    })


def _only_product(app):
    (product,) = get_container(app).state.products
    return product


# ==============================================================================
# FILTROS Y CONVERSIONES
# ==============================================================================

@pytest.mark.parametrize('value, expected', [
    (0, 'R$ 0,00'),
    (27, 'R$ 27,00'),
    (1234.5, 'R$ 1.234,50'),
    (-12.3, '-R$ 12,30'),
    (None, 'R$ 0,00'),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_form_number_parsing():
    assert to_int(' 7 ') == 7
    assert to_int('7.5') is None
    assert to_float('9,90') == pytest.approx(9.9)
    assert to_float('nan') is None
    assert to_float('abc') is None


# ==============================================================================
# PANTALLAS
# ==============================================================================

@pytest.mark.parametrize('path, heading', [
    ('/', '<h2>Dashboard</h2>'),
    ('/dashboard', '<h2>Dashboard</h2>'),
    ('/inventory', '<h2>Control de inventario</h2>'),
    ('/sales', '<h2>Registro de ventas</h2>'),
    ('/expenses', '<h2>Control de gastos</h2>'),
])
def test_each_view_renders(client, path, heading):
    response = client.get(path)
    assert response.status_code == 200
    assert heading in response.get_data(as_text=True)


def test_unknown_view_falls_back_to_dashboard(client):
    response = client.get('/reports')
    assert response.status_code == 200
    assert '<h2>Dashboard</h2>' in response.get_data(as_text=True)


def test_security_headers(client):
    response = client.get('/')
    assert response.headers['X-Frame-Options'] == 'DENY'
    assert response.headers['X-Content-Type-Options'] == 'nosniff'


# ==============================================================================
# INVENTARIO
# ==============================================================================

def test_add_product_flow(app, client):
    response = _add_product(client)

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/inventory')
    assert _flashes(client) == [('success', "Producto 'Widget' agregado.")]
    product = _only_product(app)
    assert (product.quantity, product.purchase_price, product.selling_price) == (10, 5.0, 9.0)


@pytest.mark.parametrize('fields, message', [
    ({'name': ''}, 'Por favor, completa todos los campos.'),
    ({'quantity': ''}, 'Por favor, completa todos los campos.'),
    ({'selling_price': 'abc'}, 'Cantidad y precios deben ser numéricos.'),
    ({'quantity': '-1'}, 'Cantidad y precios no pueden ser negativos.'),
])
def test_add_product_validation(app, client, fields, message):
    _add_product(client, **fields)
    assert _flashes(client) == [('warning', message)]
    assert get_container(app).state.products == ()


def test_add_stock_flow(app, client):
    _add_product(client)
    product = _only_product(app)

    client.post(f'/inventory/products/{product.id}/stock', data={'quantity': '5'})

    assert _only_product(app).quantity == 15
    assert ('success', 'Se añadieron 5 a Widget.') in _flashes(client)


@pytest.mark.parametrize('quantity', ['', '0', '-3', 'x'])
def test_add_stock_ignores_non_positive_quantity(app, client, quantity):
    _add_product(client)
    product = _only_product(app)
    response = client.post(f'/inventory/products/{product.id}/stock', data={'quantity': quantity})
    assert response.status_code == 302
    assert _only_product(app).quantity == 10


def test_delete_product_flow(app, client):
    _add_product(client)
    product = _only_product(app)

    client.post(f'/inventory/products/{product.id}/delete')

    assert get_container(app).state.products == ()
    assert ('info', "Producto 'Widget' eliminado.") in _flashes(client)


def test_delete_product_with_sales_is_refused(app, client):
    _add_product(client)
    product = _only_product(app)
    client.post('/sales/record', data={'product_id': product.id, 'quantity': '1'})

    client.post(f'/inventory/products/{product.id}/delete')

    category, message = _flashes(client)[-1]
    assert category == 'danger'
    assert 'ventas registradas' in message
    assert _only_product(app).id == product.id


def test_low_stock_rows_are_marked(client):
    _add_product(client, name='Casi', quantity='2')
    html = client.get('/inventory').get_data(as_text=True)
    assert '<td class="low-stock">2</td>' in html


# ==============================================================================
# VENTAS
# ==============================================================================

def test_record_sale_flow(app, client):
    _add_product(client)
    product = _only_product(app)

    response = client.post('/sales/record', data={'product_id': product.id, 'quantity': '3'})

    assert response.headers['Location'].endswith('/sales')
    (sale,) = get_container(app).state.sales
    assert sale.quantity_sold == 3
    assert sale.unit_price == 9.0
    assert sale.total_amount == pytest.approx(27.0)
    assert sale.purchase_price_at_sale == 5.0
    assert _only_product(app).quantity == 7
    assert ('success', 'Venta registrada: 3 x Widget = R$ 27,00') in _flashes(client)


@pytest.mark.parametrize('quantity, message', [
    ('', 'Selecciona un producto e informa la cantidad.'),
    ('0', 'La cantidad debe ser mayor que cero.'),
    ('abc', 'La cantidad debe ser mayor que cero.'),
    ('11', 'Cantidad insuficiente en stock. Disponible: 10'),
])
def test_record_sale_validation(app, client, quantity, message):
    _add_product(client)
    product = _only_product(app)

    client.post('/sales/record', data={'product_id': product.id, 'quantity': quantity})

    assert _flashes(client)[-1] == ('warning', message)
    assert get_container(app).state.sales == ()
    assert _only_product(app).quantity == 10


def test_record_sale_unknown_product(app, client):
    client.post('/sales/record', data={'product_id': 'missing', 'quantity': '1'})
    assert _flashes(client) == [('warning', 'Producto no encontrado.')]


def test_sales_screen_lists_only_products_with_stock(client):
    _add_product(client, name='Agotado', quantity='0')
    _add_product(client, name='Disponible', quantity='3')
    html = client.get('/sales').get_data(as_text=True)
    assert 'Disponible (Stock: 3)' in html
    assert 'Agotado (Stock' not in html


def test_sales_form_carries_prices_for_total_preview(client):
    _add_product(client, selling_price='9,5')
    html = client.get('/sales').get_data(as_text=True)
    assert 'data-price="9.5"' in html
    assert 'id="sale-total">R$ 0,00<' in html
    assert 'option.dataset.price' in html


def test_export_sales_csv(app, client):
    _add_product(client)
    product = _only_product(app)
    client.post('/sales/record', data={'product_id': product.id, 'quantity': '2'})

    response = client.get('/export/sales')

    assert response.mimetype == 'text/csv'
    assert 'ventas.csv' in response.headers['Content-Disposition']
    lines = response.get_data(as_text=True).strip().splitlines()
    assert lines[0] == 'id,date,productId,productName,quantitySold,unitPrice,totalAmount,purchasePriceAtSale'
    assert lines[1].endswith(f',{product.id},Widget,2,9.00,18.00,5.00')


# ==============================================================================
# GASTOS
# ==============================================================================

def test_add_and_delete_expense_flow(app, client):
    client.post('/expenses', data={'description': 'Alquiler', 'amount': '1200,50'})
    (expense,) = get_container(app).state.expenses
    assert expense.amount == pytest.approx(1200.5)
    assert ('success', 'Gasto registrado.') in _flashes(client)

    client.post(f'/expenses/{expense.id}/delete')
    assert get_container(app).state.expenses == ()
    assert ('info', 'Gasto eliminado.') in _flashes(client)


@pytest.mark.parametrize('data, message', [
    ({'description': '', 'amount': '10'}, 'Completa la descripción y el monto del gasto.'),
    ({'description': 'Luz', 'amount': '0'}, 'El monto debe ser un número mayor que cero.'),
    ({'description': 'Luz', 'amount': 'diez'}, 'El monto debe ser un número mayor que cero.'),
])
def test_add_expense_validation(app, client, data, message):
    client.post('/expenses', data=data)
    assert _flashes(client) == [('warning', message)]
    assert get_container(app).state.expenses == ()


# ==============================================================================
# DASHBOARD Y API
# ==============================================================================

def test_dashboard_shows_widget_totals(app, client):
    _add_product(client)
    product = _only_product(app)
    client.post('/sales/record', data={'product_id': product.id, 'quantity': '3'})
    client.post('/expenses', data={'description': 'Luz', 'amount': '4'})

    html = client.get('/').get_data(as_text=True)

    assert 'id="total-revenue">R$ 27,00<' in html
    assert 'id="total-expenses">R$ 4,00<' in html
    assert 'id="gross-profit">R$ 12,00<' in html
    assert 'id="inventory-items">7<' in html
    assert 'id="inventory-value">R$ 35,00<' in html
    assert '<table id="monthly">' in html


def test_api_summary(app, client):
    _add_product(client)
    product = _only_product(app)
    client.post('/sales/record', data={'product_id': product.id, 'quantity': '3'})
    client.post('/expenses', data={'description': 'Luz', 'amount': '4'})

    payload = client.get('/api/summary').get_json()

    assert payload['ok'] is True
    summary = payload['summary']
    assert summary['total_revenue'] == pytest.approx(27.0)
    assert summary['net_cash_flow'] == pytest.approx(23.0)
    assert summary['gross_profit'] == pytest.approx(12.0)
    assert len(summary['monthly']) == 1


# ==============================================================================
# PERSISTENCIA, CSRF Y PROFILING
# ==============================================================================

def test_state_survives_reload_from_disk(app, client):
    _add_product(client)
    product = _only_product(app)
    client.post('/sales/record', data={'product_id': product.id, 'quantity': '4'})
    client.post('/expenses', data={'description': 'Luz', 'amount': '80'})

    reloaded = AppContainer(app.config).state

    assert reloaded.snapshot() == get_container(app).state.snapshot()
    assert reloaded.get_product(product.id).quantity == 6
    assert os.path.exists(os.path.join(app.config['DATA_DIR'], 'products.json'))


def test_corrupt_data_file_starts_empty(tmp_path):
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    (data_dir / 'products.json').write_text('{roto', encoding='utf-8')

    app = create_app({'TESTING': True, 'DATA_DIR': str(data_dir), 'ENABLE_PROFILING': False})

    assert app.test_client().get('/inventory').status_code == 200
    assert get_container(app).state.products == ()


def test_memory_store_can_be_injected():
    store = MemoryStore()
    app = create_app({'TESTING': True, 'ENABLE_PROFILING': False, 'CSRF_ENABLED': False}, store=store)
    _add_product(app.test_client())
    assert 'Widget' in store.get('products')


@pytest.fixture
def csrf_client(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'ENABLE_PROFILING': False,
        'CSRF_ENABLED': True,
    })
    with app.test_client() as c:
        yield app, c


def test_post_without_csrf_token_is_rejected(csrf_client):
    app, client = csrf_client

    response = _add_product(client)

    assert response.status_code == 302
    assert _flashes(client) == [('warning', 'Sesión expirada. Por favor intenta de nuevo.')]
    assert get_container(app).state.products == ()


def test_post_with_csrf_token_is_accepted(csrf_client):
    app, client = csrf_client
    client.get('/inventory')
    with client.session_transaction() as sess:
        token = sess['csrf_token']

    client.post('/inventory/products', data={
        'csrf_token': token, 'name': 'Widget', 'quantity': '1',
        'purchase_price': '1', 'selling_price': '2',
    })

    assert _only_product(app).name == 'Widget'


def test_profiling_writes_performance_log(tmp_path):
    logs_dir = tmp_path / 'logs'
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': str(logs_dir),
        'ENABLE_PROFILING': True,
    })

    app.test_client().get('/')

    content = (logs_dir / 'performance.log').read_text(encoding='utf-8')
    assert 'Ver dashboard' in content
    assert 'GET /' in content
