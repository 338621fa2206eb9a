import os
import sys
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from workshop import create_app
from workshop.auth import CSRF_HEADER, RequestContext
from workshop.database import db
from workshop.models import InventoryItem, User, UserRole, Vehicle

PASSWORD = "Passw0rd!"

STAFF = {
    "admin": ("System Administrator", UserRole.ADMIN),
    "manager": ("Wanjiku Manager", UserRole.WORKSHOP_MANAGER),
    "advisor": ("Otieno Advisor", UserRole.SERVICE_ADVISOR),
    "mechanic": ("Kamau Mechanic", UserRole.MECHANIC),
    "mechanic2": ("Achieng Mechanic", UserRole.MECHANIC),
    "parts": ("Mutua Parts", UserRole.PARTS_MANAGER),
    "supervisor": ("Njeri Supervisor", UserRole.SUPERVISOR),
    "driver": ("Juma Driver", UserRole.DRIVER),
    "driver2": ("Akinyi Driver", UserRole.DRIVER),
}


def make_app(database_uri):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": database_uri,
        "BCRYPT_LOG_ROUNDS": 4,
        "JWT_SECRET_KEY": "test-jwt-secret",
        "DEADLOCK_BACKOFF_SECONDS": 0,
    })


def seed(app):
    """Users for every role, one vehicle and a few stocked parts."""
    with app.app_context():
        users = {}
        for username, (full_name, role) in STAFF.items():
            user = User(
                username=username,
                email=f"{username}@workshop.test",
                full_name=full_name,
                role=role,
            )
            user.set_password(PASSWORD)
            db.session.add(user)
            users[username] = user
        db.session.flush()

        vehicle = Vehicle(
            make="Toyota",
            model="Probox",
            registration_number="KCA 123A",
            year=2016,
            driver_id=users["driver"].id,
        )
        items = [
            InventoryItem(item_number="BRK-001", name="Brake Pads", category="Brakes",
                          quantity_on_hand=4, unit_price=Decimal("2500.00")),
            InventoryItem(item_number="OIL-001", name="Engine Oil 5L", category="Lubricants",
                          quantity_on_hand=20, unit_price=Decimal("3200.00")),
            InventoryItem(item_number="FLT-001", name="Oil Filter", category="Filters",
                          quantity_on_hand=10, unit_price=Decimal("800.00")),
        ]
        db.session.add(vehicle)
        db.session.add_all(items)
        db.session.commit()

        return {
            "users": {name: user.id for name, user in users.items()},
            "vehicle_id": vehicle.id,
            "items": {item.item_number: item.id for item in items},
        }


@pytest.fixture
def app():
    app = make_app("sqlite:///:memory:")
    with app.app_context():
        db.create_all()
        db.session.expire_on_commit = False
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded(app):
    return seed(app)


@pytest.fixture
def ctx_for(seeded):
    """Build the caller context a request from ``username`` would get."""

    def build(username):
        role = STAFF[username][1]
        return RequestContext(user_id=seeded["users"][username], user_type=role)

    return build


@pytest.fixture
def item_id(seeded):
    def lookup(item_number):
        return seeded["items"][item_number]

    return lookup


@pytest.fixture
def stock(seeded):
    """Current on-hand count, read fresh from the database."""

    def read(item_number):
        db.session.expire_all()
        return InventoryItem.query.filter_by(item_number=item_number).one().quantity_on_hand

    return read


@pytest.fixture
def client(app, seeded):
    return app.test_client()


@pytest.fixture
def login(client):
    """Log ``username`` in and return headers carrying its token and CSRF token."""

    def do_login(username):
        response = client.post(
            "/api/auth/login", json={"username": username, "password": PASSWORD}
        )
        assert response.status_code == 200, response.get_json()
        data = response.get_json()
        return {
            "Authorization": f"Bearer {data['access_token']}",
            CSRF_HEADER: data["csrf_token"],
        }

    return do_login


@pytest.fixture
def open_job(ctx_for, seeded):
    """Open a pending job card on the seeded vehicle, optionally with labor cost."""
    from workshop.services import job_cards, status_engine

    def create(labor_cost=None, issue="Brakes squealing on the front axle"):
        job = job_cards.create_job_card(ctx_for("advisor"), seeded["vehicle_id"], issue)
        if labor_cost is not None:
            job = status_engine.update_job_card(
                ctx_for("advisor"), job.id, "pending", labor_cost
            )
        return job

    return create
