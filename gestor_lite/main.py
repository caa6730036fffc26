import csv
import io
import logging
import math
import uuid
from functools import wraps

from flask import (
    Flask, Response, current_app, flash, jsonify, redirect, render_template, request, session, url_for
)

from gestor_lite import logger as app_logger
from gestor_lite.app_container import EXTENSION_KEY, AppContainer, get_container
from gestor_lite.config import DEFAULT_SECRET_KEY, Config
from gestor_lite.models import AppView, parse_timestamp
from gestor_lite.performance_logger import init_profiling
from gestor_lite.services import stats_service

logger = logging.getLogger(__name__)

# Plantilla de cada pantalla
VIEW_TEMPLATES = {
    AppView.DASHBOARD: 'dashboard.html',
    AppView.INVENTORY: 'inventory.html',
    AppView.SALES: 'sales.html',
    AppView.EXPENSES: 'expenses.html',
}

# Menú lateral: (vista, etiqueta)
NAV_ITEMS = [
    (AppView.DASHBOARD, 'Dashboard'),
    (AppView.INVENTORY, 'Inventario'),
    (AppView.SALES, 'Ventas'),
    (AppView.EXPENSES, 'Gastos'),
]


# ═══════════════════════════════════════════════════════════════════════════
# CONVERSIÓN DE FORMULARIOS
# ═══════════════════════════════════════════════════════════════════════════

def to_int(v, default=None):
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default


def to_float(v, default=None):
    try:
        # Acepta coma decimal ("9,90")
        number = float(str(v).strip().replace(',', '.'))
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


# ═══════════════════════════════════════════════════════════════════════════
# FILTROS DE PLANTILLA
# ═══════════════════════════════════════════════════════════════════════════

def format_number(value, decimals=0):
    """1234.5 → '1.234' / '1.234,50' (separadores pt-BR)."""
    text = f"{float(value or 0):,.{decimals}f}"
    return text.replace(',', '_').replace('.', ',').replace('_', '.')


def format_currency(value, symbol='R$'):
    amount = float(value or 0)
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol} {format_number(abs(amount), 2)}"


def format_datetime_short(value):
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ''
    return parsed.strftime('%d/%m/%Y %H:%M')


# ═══════════════════════════════════════════════════════════════════════════
# CSRF
# ═══════════════════════════════════════════════════════════════════════════

def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == 'POST' and current_app.config.get('CSRF_ENABLED', True):
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token')
            )
            if not token or not form_token or token != form_token:
                if request.path.startswith('/api/'):
                    return {"ok": False, "error": "CSRF token inválido"}, 403
                flash('Sesión expirada. Por favor intenta de nuevo.', 'warning')
                return redirect(url_for('show_view'))
        return f(*args, **kwargs)
    return wrapper


def redirect_to(view: AppView):
    return redirect(url_for('show_view', view_name=view.slug))


# ═══════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APP
# ═══════════════════════════════════════════════════════════════════════════

def create_app(overrides=None, store=None) -> Flask:
    """
    Crea la app Flask.

    Args:
        overrides: Claves de configuración que reemplazan a Config
        store: Almacén clave-valor ya construido (tests)
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app_logger.set_level(app.config['LOG_LEVEL'])
    if app.config['SECRET_KEY'] == DEFAULT_SECRET_KEY and not app.config.get('TESTING'):
        logger.warning("Usando SECRET_KEY de desarrollo; define GESTOR_SECRET_KEY en producción")

    app.extensions[EXTENSION_KEY] = AppContainer(app.config, store=store)

    init_profiling(app)

    app.add_template_filter(format_number, 'number')
    app.add_template_filter(format_datetime_short, 'datetime_short')

    @app.template_filter('currency')
    def _currency(value):
        return format_currency(value, app.config['CURRENCY_SYMBOL'])

    @app.context_processor
    def inject_globals():
        return {
            'csrf_token': generate_csrf_token(),
            'nav_items': NAV_ITEMS,
        }

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        return response

    register_routes(app)
    return app


# ═══════════════════════════════════════════════════════════════════════════
# RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def _screen_context(view: AppView):
    """Datos que necesita cada pantalla (solo lectura del estado)."""
    container = get_container()
    state = container.state
    threshold = current_app.config['LOW_STOCK_THRESHOLD']

    if view == AppView.INVENTORY:
        low_stock_ids = {p.id for p in container.stats_service.low_stock(threshold)}
        return {'products': state.products, 'low_stock_ids': low_stock_ids}
    if view == AppView.SALES:
        return {
            'available_products': stats_service.available_products(state.products),
            'sales': stats_service.newest_first(state.sales),
        }
    if view == AppView.EXPENSES:
        return {'expenses': stats_service.newest_first(state.expenses)}
    return {'summary': container.stats_service.summary()}


def register_routes(app: Flask) -> None:

    # ── Pantallas ────────────────────────────────────────────────────────────

    @app.route('/', defaults={'view_name': None})
    @app.route('/<view_name>')
    def show_view(view_name):
        # Nombre desconocido → dashboard (sin 404)
        view = AppView.resolve(view_name)
        return render_template(VIEW_TEMPLATES[view], current_view=view, **_screen_context(view))

    # ── Inventario ───────────────────────────────────────────────────────────

    @app.route('/inventory/products', methods=['POST'])
    @verify_csrf
    def add_product():
        name = (request.form.get('name') or '').strip()
        raw_fields = [request.form.get(k) for k in ('quantity', 'purchase_price', 'selling_price')]
        if not name or any(not (v or '').strip() for v in raw_fields):
            flash('Por favor, completa todos los campos.', 'warning')
            return redirect_to(AppView.INVENTORY)

        quantity = to_int(raw_fields[0])
        purchase_price = to_float(raw_fields[1])
        selling_price = to_float(raw_fields[2])
        if quantity is None or purchase_price is None or selling_price is None:
            flash('Cantidad y precios deben ser numéricos.', 'warning')
            return redirect_to(AppView.INVENTORY)
        if quantity < 0 or purchase_price < 0 or selling_price < 0:
            flash('Cantidad y precios no pueden ser negativos.', 'warning')
            return redirect_to(AppView.INVENTORY)

        result = get_container().state.add_product(name, quantity, purchase_price, selling_price)
        flash(f"Producto '{result['product'].name}' agregado.", 'success')
        return redirect_to(AppView.INVENTORY)

    @app.route('/inventory/products/<product_id>/stock', methods=['POST'])
    @verify_csrf
    def add_stock(product_id):
        quantity = to_int(request.form.get('quantity'), 0)
        # Cantidad vacía o no positiva: se ignora sin mensaje
        if quantity > 0:
            result = get_container().state.add_stock(product_id, quantity)
            if result.get('changed'):
                flash(f"Se añadieron {quantity} a {result['product'].name}.", 'success')
        return redirect_to(AppView.INVENTORY)

    @app.route('/inventory/products/<product_id>/delete', methods=['POST'])
    @verify_csrf
    def remove_product(product_id):
        result = get_container().state.remove_product(product_id)
        if not result['ok']:
            flash(result['error'], 'danger')
        elif result.get('changed'):
            flash(f"Producto '{result['product'].name}' eliminado.", 'info')
        return redirect_to(AppView.INVENTORY)

    # ── Ventas ───────────────────────────────────────────────────────────────

    @app.route('/sales/record', methods=['POST'])
    @verify_csrf
    def record_sale():
        product_id = (request.form.get('product_id') or '').strip()
        raw_quantity = (request.form.get('quantity') or '').strip()
        if not product_id or not raw_quantity:
            flash('Selecciona un producto e informa la cantidad.', 'warning')
            return redirect_to(AppView.SALES)

        state = get_container().state
        product = state.get_product(product_id)
        if product is None:
            flash('Producto no encontrado.', 'warning')
            return redirect_to(AppView.SALES)

        quantity = to_int(raw_quantity)
        if quantity is None or quantity <= 0:
            flash('La cantidad debe ser mayor que cero.', 'warning')
            return redirect_to(AppView.SALES)
        if quantity > product.quantity:
            flash(f'Cantidad insuficiente en stock. Disponible: {product.quantity}', 'warning')
            return redirect_to(AppView.SALES)

        result = state.record_sale(
            product_id,
            quantity,
            unit_price=product.selling_price,
            total_amount=product.selling_price * quantity,
        )
        if not result['ok']:
            flash(result['error'], 'danger')
        else:
            sale = result['sale']
            flash(
                f"Venta registrada: {sale.quantity_sold} x {sale.product_name} = "
                f"{format_currency(sale.total_amount, app.config['CURRENCY_SYMBOL'])}",
                'success'
            )
        return redirect_to(AppView.SALES)

    @app.route('/export/sales')
    def export_sales():
        """Historial de ventas en CSV (más reciente primero)."""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([
            'id', 'date', 'productId', 'productName', 'quantitySold',
            'unitPrice', 'totalAmount', 'purchasePriceAtSale',
        ])
        for sale in stats_service.newest_first(get_container().state.sales):
            writer.writerow([
                sale.id, sale.date, sale.product_id, sale.product_name, sale.quantity_sold,
                f"{sale.unit_price:.2f}", f"{sale.total_amount:.2f}", f"{sale.purchase_price_at_sale:.2f}",
            ])
        return Response(
            output.getvalue(),
            mimetype='text/csv',
            headers={'Content-Disposition': 'attachment; filename=ventas.csv'}
        )

    # ── Gastos ───────────────────────────────────────────────────────────────

    @app.route('/expenses', methods=['POST'])
    @verify_csrf
    def add_expense():
        description = (request.form.get('description') or '').strip()
        raw_amount = (request.form.get('amount') or '').strip()
        if not description or not raw_amount:
            flash('Completa la descripción y el monto del gasto.', 'warning')
            return redirect_to(AppView.EXPENSES)

        amount = to_float(raw_amount)
        if amount is None or amount <= 0:
            flash('El monto debe ser un número mayor que cero.', 'warning')
            return redirect_to(AppView.EXPENSES)

        get_container().state.add_expense(description, amount)
        flash('Gasto registrado.', 'success')
        return redirect_to(AppView.EXPENSES)

    @app.route('/expenses/<expense_id>/delete', methods=['POST'])
    @verify_csrf
    def remove_expense(expense_id):
        result = get_container().state.remove_expense(expense_id)
        if result.get('changed'):
            flash('Gasto eliminado.', 'info')
        return redirect_to(AppView.EXPENSES)

    # ── API JSON ─────────────────────────────────────────────────────────────

    @app.route('/api/summary')
    def api_summary():
        return jsonify({'ok': True, 'summary': get_container().stats_service.summary()})
