"""
Vehicle registry.
"""
from workshop.database import db
from workshop.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from workshop.models import STAFF_ROLES, User, UserRole, Vehicle
from workshop.services.transactions import transactional


def get_vehicle(ctx, vehicle_id):
    vehicle = db.session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError('Vehicle not found.')
    if ctx.user_type == UserRole.DRIVER and vehicle.driver_id != ctx.user_id:
        raise NotFoundError('Vehicle not found.')
    return vehicle


def list_vehicles(ctx, search=None):
    query = Vehicle.query
    if ctx.user_type == UserRole.DRIVER:
        query = query.filter(Vehicle.driver_id == ctx.user_id)
    if search:
        query = query.filter(Vehicle.registration_number.ilike(f'%{search.strip()}%'))
    return query.order_by(Vehicle.registration_number).all()


def check_driver(driver_id):
    if driver_id is None:
        return
    driver = db.session.get(User, driver_id)
    if driver is None or driver.role != UserRole.DRIVER:
        raise ValidationError('Invalid driver selected.')


@transactional
def register_vehicle(ctx, make, model, registration_number, year=None, color=None, mileage=0,
                     driver_id=None, engine_number=None, chassis_number=None, fuel_type=None,
                     notes=None):
    ctx.require_role(UserRole.DRIVER, *STAFF_ROLES)
    if ctx.user_type == UserRole.DRIVER:
        driver_id = ctx.user_id
    check_driver(driver_id)

    registration_number = (registration_number or '').strip().upper()
    if not registration_number:
        raise ValidationError('Registration number is required.')
    if Vehicle.query.filter_by(registration_number=registration_number).first():
        raise ConflictError('A vehicle with this registration number already exists.')
    if mileage is not None and mileage < 0:
        raise ValidationError('Mileage cannot be negative.')

    vehicle = Vehicle(
        make=make.strip(),
        model=model.strip(),
        registration_number=registration_number,
        year=year,
        color=color,
        mileage=mileage or 0,
        driver_id=driver_id,
        engine_number=engine_number,
        chassis_number=chassis_number,
        fuel_type=fuel_type,
        notes=notes,
    )
    db.session.add(vehicle)
    db.session.flush()
    return vehicle


@transactional
def update_vehicle(ctx, vehicle_id, mileage=None, color=None, driver_id=None, notes=None):
    """Mileage, colour, notes and (staff only) ownership."""
    vehicle = get_vehicle(ctx, vehicle_id)

    if mileage is not None:
        if mileage < vehicle.mileage:
            raise ValidationError('Mileage cannot go backwards.')
        vehicle.mileage = mileage
    if color is not None:
        vehicle.color = color
    if notes is not None:
        vehicle.notes = notes
    if driver_id is not None and driver_id != vehicle.driver_id:
        if ctx.user_type not in STAFF_ROLES:
            raise AuthorizationError('Only workshop staff can change vehicle ownership.')
        check_driver(driver_id)
        vehicle.driver_id = driver_id
    return vehicle
