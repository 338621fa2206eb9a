"""
HTTP routes, one blueprint per resource.
"""
from workshop.routers.auth import auth_bp, system_bp
from workshop.routers.users import users_bp
from workshop.routers.vehicles import vehicles_bp
from workshop.routers.job_cards import job_cards_bp, parts_requests_bp
from workshop.routers.inventory import inventory_bp
from workshop.routers.invoices import invoices_bp
from workshop.routers.purchasing import suppliers_bp, purchase_orders_bp
from workshop.routers.reports import reports_bp

BLUEPRINTS = (
    auth_bp, system_bp, users_bp, vehicles_bp, job_cards_bp, parts_requests_bp,
    inventory_bp, invoices_bp, suppliers_bp, purchase_orders_bp, reports_bp,
)


def register_routers(app, prefix="/api"):
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=f"{prefix}{blueprint.url_prefix}")
