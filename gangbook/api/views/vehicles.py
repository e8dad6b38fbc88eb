from django.shortcuts import get_object_or_404

from gangbook.api.schemas import SellParams, VehicleAssignParams, VehicleUpdateParams
from gangbook.api.views.common import api_view, json_response, parse_body
from gangbook.core.handlers import (
    handle_assign_vehicle,
    handle_delete_vehicle,
    handle_sell_vehicle,
    handle_unassign_vehicle,
    handle_update_vehicle,
)
from gangbook.core.models import EventNoun, EventVerb, Fighter, Vehicle, log_event
from gangbook.core.queries import serialize_vehicle


def _get_vehicle(id) -> Vehicle:
    return get_object_or_404(
        Vehicle.objects.select_related("gang", "vehicle_type", "fighter"), pk=id
    )


def _vehicle_response(result):
    return json_response(
        {
            "vehicle": serialize_vehicle(result.vehicle),
            "gang_credits": result.gang_credits,
            "gang_rating": result.gang_rating,
            "rating_delta": result.rating_delta,
        }
    )


def _removal_response(result, **extra):
    return json_response(
        {
            "deleted": result.vehicle_id,
            "gang_credits": result.gang_credits,
            "gang_rating": result.gang_rating,
            "rating_delta": result.rating_delta,
            **extra,
        }
    )


@api_view("PATCH", "DELETE")
def vehicle_detail(request, id):
    vehicle = _get_vehicle(id)

    if request.method == "DELETE":
        result = handle_delete_vehicle(user=request.user, vehicle=vehicle)
        log_event(
            user=request.user,
            noun=EventNoun.VEHICLE,
            verb=EventVerb.DELETE,
            request=request,
            vehicle_id=result.vehicle_id,
            vehicle_name=result.vehicle_name,
        )
        return _removal_response(result)

    params = parse_body(request, VehicleUpdateParams)
    result = handle_update_vehicle(
        user=request.user,
        vehicle=vehicle,
        name=params.name,
        special_rules=params.special_rules,
    )
    log_event(
        user=request.user,
        noun=EventNoun.VEHICLE,
        verb=EventVerb.UPDATE,
        object=result.vehicle,
        request=request,
        fields=sorted(params.model_fields_set),
    )
    return _vehicle_response(result)


@api_view("POST")
def vehicle_assign(request, id):
    vehicle = _get_vehicle(id)
    params = parse_body(request, VehicleAssignParams)
    fighter = get_object_or_404(Fighter, pk=params.fighter_id)
    result = handle_assign_vehicle(user=request.user, vehicle=vehicle, fighter=fighter)
    log_event(
        user=request.user,
        noun=EventNoun.VEHICLE,
        verb=EventVerb.ASSIGN,
        object=result.vehicle,
        request=request,
        fighter_id=fighter.pk,
    )
    return _vehicle_response(result)


@api_view("POST")
def vehicle_unassign(request, id):
    vehicle = _get_vehicle(id)
    result = handle_unassign_vehicle(user=request.user, vehicle=vehicle)
    log_event(
        user=request.user,
        noun=EventNoun.VEHICLE,
        verb=EventVerb.UNASSIGN,
        object=result.vehicle,
        request=request,
    )
    return _vehicle_response(result)


@api_view("POST")
def vehicle_sell(request, id):
    vehicle = _get_vehicle(id)
    params = parse_body(request, SellParams)
    result = handle_sell_vehicle(
        user=request.user, vehicle=vehicle, manual_cost=params.manual_cost
    )
    log_event(
        user=request.user,
        noun=EventNoun.VEHICLE,
        verb=EventVerb.SELL,
        request=request,
        vehicle_id=result.vehicle_id,
        vehicle_name=result.vehicle_name,
        value=result.credits_delta,
    )
    return _removal_response(result, sell_value=result.credits_delta)
