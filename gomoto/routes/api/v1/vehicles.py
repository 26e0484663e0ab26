from flask import Blueprint, request
from flask_login import login_required

from gomoto.decorators import role_required
from gomoto.errors import ValidationError
from gomoto.responses import api_response, json_body, page_args, paginated_payload
from gomoto.serializers import serialize_vehicle
from gomoto.services import VehicleService

api_vehicle_bp = Blueprint("api_vehicle", __name__)


def _bool_arg(name):
    raw = request.args.get(name)
    if raw is None:
        return None
    if raw.lower() not in {"true", "false"}:
        raise ValidationError(f"{name} must be true or false.")
    return raw.lower() == "true"


@api_vehicle_bp.get("/all")
def list_vehicles():
    page, limit = page_args()
    paginated = VehicleService.list_vehicles(
        page=page,
        per_page=limit,
        vehicle_type=request.args.get("type"),
        is_available=_bool_arg("isAvailable"),
        status=request.args.get("status"),
    )
    return api_response(paginated_payload("vehicles", paginated, serialize_vehicle), "Vehicles fetched successfully")


@api_vehicle_bp.get("/available")
def list_available_vehicles():
    page, limit = page_args()
    paginated = VehicleService.list_available(page=page, per_page=limit, vehicle_type=request.args.get("type"))
    return api_response(
        paginated_payload("vehicles", paginated, serialize_vehicle),
        "Available vehicles fetched successfully",
    )


@api_vehicle_bp.get("/type/<vehicle_type>")
def list_vehicles_by_type(vehicle_type):
    page, limit = page_args()
    paginated = VehicleService.list_by_type(vehicle_type, page=page, per_page=limit)
    return api_response(
        paginated_payload("vehicles", paginated, serialize_vehicle),
        f"{vehicle_type}s fetched successfully",
    )


@api_vehicle_bp.get("/<int:vehicle_id>")
def get_vehicle(vehicle_id):
    vehicle = VehicleService.get_vehicle(vehicle_id)
    return api_response(serialize_vehicle(vehicle), "Vehicle fetched successfully")


@api_vehicle_bp.post("")
@login_required
@role_required("admin")
def create_vehicle():
    payload = json_body()
    vehicle = VehicleService.create_vehicle(payload)
    return api_response(serialize_vehicle(vehicle), "Vehicle created successfully", 201)


@api_vehicle_bp.put("/<int:vehicle_id>")
@login_required
@role_required("admin")
def update_vehicle(vehicle_id):
    payload = json_body()
    vehicle = VehicleService.update_vehicle(vehicle_id, payload)
    return api_response(serialize_vehicle(vehicle), "Vehicle updated successfully")


@api_vehicle_bp.delete("/<int:vehicle_id>")
@login_required
@role_required("admin")
def delete_vehicle(vehicle_id):
    VehicleService.delete_vehicle(vehicle_id)
    return api_response({}, "Vehicle deleted successfully")


@api_vehicle_bp.patch("/<int:vehicle_id>/availability")
@login_required
@role_required("admin")
def update_availability(vehicle_id):
    payload = json_body()
    vehicle = VehicleService.set_availability(vehicle_id, payload.get("isAvailable"))
    state = "available" if vehicle.is_available else "unavailable"
    return api_response(serialize_vehicle(vehicle), f"Vehicle marked as {state}")
