from django.shortcuts import get_object_or_404

from gangbook.api.schemas import SellParams, UnstashParams
from gangbook.api.views.common import api_view, json_response, parse_body
from gangbook.core.handlers import (
    handle_equipment_deletion,
    handle_equipment_sale,
    handle_move_from_stash,
    handle_move_to_stash,
    handle_stash_deletion,
    handle_stash_sale,
)
from gangbook.core.handlers.equipment import stash_sale_value
from gangbook.core.models import (
    EventNoun,
    EventVerb,
    Fighter,
    FighterEquipment,
    Vehicle,
    log_event,
)
from gangbook.core.queries import serialize_equipment


def _get_item(id) -> FighterEquipment:
    return get_object_or_404(
        FighterEquipment.objects.select_related(
            "gang", "equipment", "fighter", "vehicle"
        ),
        pk=id,
    )


def _stash_payload(result, **extra):
    return {
        "gang_credits": result.gang_credits,
        "gang_rating": result.gang_rating,
        "stash_value": result.stash_value,
        **extra,
    }


@api_view("DELETE")
def equipment_detail(request, id):
    item = _get_item(id)
    name = item.equipment.name

    if item.gang_stash:
        result = handle_stash_deletion(user=request.user, item=item)
        payload = _stash_payload(result, deleted=id)
    else:
        result = handle_equipment_deletion(user=request.user, item=item)
        payload = {
            "deleted": result.item_id,
            "gang_credits": result.gang_credits,
            "gang_rating": result.gang_rating,
            "rating_delta": result.rating_delta,
        }

    log_event(
        user=request.user,
        noun=EventNoun.EQUIPMENT,
        verb=EventVerb.DELETE,
        request=request,
        item_id=id,
        equipment=name,
    )
    return json_response(payload)


@api_view("POST")
def equipment_sell(request, id):
    item = _get_item(id)
    name = item.equipment.name
    params = parse_body(request, SellParams)

    if item.gang_stash:
        result = handle_stash_sale(
            user=request.user, item=item, manual_cost=params.manual_cost
        )
        payload = _stash_payload(
            result, sell_value=stash_sale_value(params.manual_cost)
        )
    else:
        result = handle_equipment_sale(
            user=request.user, item=item, manual_cost=params.manual_cost
        )
        payload = {
            "sell_value": result.credits_delta,
            "gang_credits": result.gang_credits,
            "gang_rating": result.gang_rating,
            "rating_delta": result.rating_delta,
        }

    log_event(
        user=request.user,
        noun=EventNoun.EQUIPMENT,
        verb=EventVerb.SELL,
        request=request,
        item_id=id,
        equipment=name,
        value=payload["sell_value"],
    )
    return json_response(payload)


@api_view("POST")
def equipment_stash(request, id):
    item = _get_item(id)
    result = handle_move_to_stash(user=request.user, item=item)
    log_event(
        user=request.user,
        noun=EventNoun.EQUIPMENT,
        verb=EventVerb.UNASSIGN,
        object=result.item,
        request=request,
        equipment=result.item.equipment.name,
    )
    return json_response(
        _stash_payload(result, equipment=serialize_equipment(result.item))
    )


@api_view("POST")
def equipment_unstash(request, id):
    item = _get_item(id)
    params = parse_body(request, UnstashParams)
    fighter = (
        get_object_or_404(Fighter, pk=params.fighter_id) if params.fighter_id else None
    )
    vehicle = (
        get_object_or_404(Vehicle, pk=params.vehicle_id) if params.vehicle_id else None
    )
    result = handle_move_from_stash(
        user=request.user, item=item, fighter=fighter, vehicle=vehicle
    )
    log_event(
        user=request.user,
        noun=EventNoun.EQUIPMENT,
        verb=EventVerb.ASSIGN,
        object=result.item,
        request=request,
        equipment=result.item.equipment.name,
    )
    return json_response(
        _stash_payload(
            result,
            equipment=serialize_equipment(result.item),
            created_beast_ids=[beast.pk for beast in result.created_beasts],
        )
    )
