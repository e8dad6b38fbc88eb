from django.shortcuts import get_object_or_404

from gangbook.api.schemas import (
    CreditsParams,
    EquipmentPurchaseParams,
    FighterCreateParams,
    GangCopyParams,
    GangCreateParams,
    GangUpdateParams,
    VehicleCreateParams,
)
from gangbook.api.views.common import api_view, json_response, parse_body
from gangbook.content.models import (
    ContentEquipment,
    ContentFighterType,
    ContentGangLineage,
    ContentGangType,
    ContentVehicleType,
)
from gangbook.core.handlers import (
    UNSET,
    SelectedEquipment,
    handle_add_fighter,
    handle_add_vehicle,
    handle_copy_gang,
    handle_create_gang,
    handle_delete_gang,
    handle_equipment_purchase,
    handle_gang_credits,
    handle_recalculate_rating,
    handle_update_gang,
)
from gangbook.core.models import EventNoun, EventVerb, Fighter, Gang, Vehicle, log_event
from gangbook.core.queries import (
    available_equipment,
    gang_logs,
    get_fighter_details,
    get_gang_details,
    serialize_effect,
    serialize_equipment,
    serialize_vehicle,
    user_gangs,
)


def _optional(model, pk, **filters):
    return get_object_or_404(model, pk=pk, **filters) if pk is not None else None


@api_view("GET", "POST")
def gangs(request):
    if request.method == "GET":
        return json_response({"gangs": user_gangs(request.user)})

    params = parse_body(request, GangCreateParams)
    result = handle_create_gang(
        user=request.user,
        name=params.name,
        gang_type=get_object_or_404(ContentGangType, pk=params.gang_type_id),
        alignment=params.alignment,
        affiliation=_optional(ContentGangLineage, params.affiliation_id),
        note=params.note,
    )
    log_event(
        user=request.user,
        noun=EventNoun.GANG,
        verb=EventVerb.CREATE,
        object=result.gang,
        request=request,
        gang_name=result.gang.name,
    )
    return json_response(get_gang_details(result.gang.pk), status=201)


@api_view("GET", "PATCH", "DELETE")
def gang_detail(request, id):
    gang = get_object_or_404(Gang, pk=id)

    if request.method == "GET":
        return json_response(get_gang_details(gang.pk))

    if request.method == "DELETE":
        gang_name = gang.name
        gang_id = handle_delete_gang(user=request.user, gang=gang)
        log_event(
            user=request.user,
            noun=EventNoun.GANG,
            verb=EventVerb.DELETE,
            request=request,
            gang_id=gang_id,
            gang_name=gang_name,
        )
        return json_response({"deleted": gang_id})

    params = parse_body(request, GangUpdateParams)
    affiliation = UNSET
    if "affiliation_id" in params.model_fields_set:
        affiliation = _optional(ContentGangLineage, params.affiliation_id)

    result = handle_update_gang(
        user=request.user,
        gang=gang,
        name=params.name,
        alignment=params.alignment,
        reputation=params.reputation,
        note=params.note,
        affiliation=affiliation,
        archived=params.archived,
    )
    verb = EventVerb.UPDATE
    if params.archived is not None:
        verb = EventVerb.ARCHIVE if params.archived else EventVerb.RESTORE
    log_event(
        user=request.user,
        noun=EventNoun.GANG,
        verb=verb,
        object=result.gang,
        request=request,
        fields=sorted(params.model_fields_set),
    )
    return json_response(get_gang_details(result.gang.pk))


@api_view("POST")
def gang_copy(request, id):
    gang = get_object_or_404(Gang, pk=id)
    params = parse_body(request, GangCopyParams)
    result = handle_copy_gang(user=request.user, gang=gang, name=params.name)
    log_event(
        user=request.user,
        noun=EventNoun.GANG,
        verb=EventVerb.CLONE,
        object=result.gang,
        request=request,
        source_gang_id=gang.pk,
        fighters=result.fighter_count,
    )
    return json_response(get_gang_details(result.gang.pk), status=201)


@api_view("POST")
def gang_credits(request, id):
    gang = get_object_or_404(Gang, pk=id)
    params = parse_body(request, CreditsParams)
    result = handle_gang_credits(
        user=request.user,
        gang=gang,
        amount=params.amount,
        operation=params.operation,
        description=params.description,
    )
    log_event(
        user=request.user,
        noun=EventNoun.GANG,
        verb=EventVerb.UPDATE,
        object=result.gang,
        request=request,
        credits_delta=result.log.credits_delta,
    )
    return json_response({"credits": result.gang.credits})


@api_view("POST")
def gang_rating(request, id):
    gang = get_object_or_404(Gang, pk=id)
    result = handle_recalculate_rating(user=request.user, gang=gang)
    return json_response(
        {
            "rating": result.rating,
            "previous_rating": result.previous_rating,
            "stash_value": result.stash_value,
            "previous_stash_value": result.previous_stash_value,
            "changed": result.changed,
        }
    )


@api_view("GET")
def gang_log_list(request, id):
    gang = get_object_or_404(Gang, pk=id)
    return json_response({"logs": gang_logs(gang)})


@api_view("POST")
def gang_fighters(request, id):
    gang = get_object_or_404(Gang, pk=id)
    params = parse_body(request, FighterCreateParams)
    fighter_type = get_object_or_404(ContentFighterType, pk=params.fighter_type_id)
    selected = [
        SelectedEquipment(
            equipment=get_object_or_404(ContentEquipment, pk=choice.equipment_id),
            cost=choice.cost,
            quantity=choice.quantity,
        )
        for choice in params.selected_equipment
    ]

    result = handle_add_fighter(
        user=request.user,
        gang=gang,
        fighter_type=fighter_type,
        name=params.name,
        manual_cost=params.cost,
        use_base_cost_for_rating=params.use_base_cost_for_rating,
        selected_equipment=selected,
        legacy=_optional(ContentGangLineage, params.legacy_id),
    )
    log_event(
        user=request.user,
        noun=EventNoun.FIGHTER,
        verb=EventVerb.CREATE,
        object=result.fighter,
        request=request,
        gang_id=gang.pk,
        fighter_type=fighter_type.name,
        cost=result.fighter_cost,
    )
    return json_response(
        {
            "fighter": get_fighter_details(result.fighter.pk),
            "fighter_cost": result.fighter_cost,
            "rating_cost": result.rating_cost,
            "gang_credits": result.gang_credits,
            "gang_rating": result.gang_rating,
            "created_beast_ids": [beast.pk for beast in result.created_beasts],
        },
        status=201,
    )


@api_view("GET", "POST")
def gang_equipment(request, id):
    gang = get_object_or_404(Gang, pk=id)

    if request.method == "GET":
        fighter = _optional(Fighter, request.GET.get("fighter") or None, gang=gang)
        return json_response({"equipment": available_equipment(gang, fighter)})

    params = parse_body(request, EquipmentPurchaseParams)
    equipment = get_object_or_404(ContentEquipment, pk=params.equipment_id)
    result = handle_equipment_purchase(
        user=request.user,
        gang=gang,
        equipment=equipment,
        fighter=_optional(Fighter, params.fighter_id),
        vehicle=_optional(Vehicle, params.vehicle_id),
        buy_for_gang_stash=params.buy_for_gang_stash,
        manual_cost=params.manual_cost,
        master_crafted=params.master_crafted,
        use_base_cost_for_rating=params.use_base_cost_for_rating,
        selected_effect_ids=params.selected_effect_ids,
        selected_grant_equipment_ids=params.selected_grant_equipment_ids,
    )
    log_event(
        user=request.user,
        noun=EventNoun.EQUIPMENT,
        verb=EventVerb.BUY,
        object=result.item,
        request=request,
        gang_id=gang.pk,
        equipment=equipment.name,
        cost=result.purchase_cost,
        stash=params.buy_for_gang_stash,
    )
    return json_response(
        {
            "equipment": serialize_equipment(result.item),
            "gang_credits": result.gang_credits,
            "purchase_cost": result.purchase_cost,
            "rating_cost": result.rating_cost,
            "gang_rating_delta": result.gang_rating_delta,
            "applied_effects": [serialize_effect(e) for e in result.applied_effects],
            "granted_equipment": [
                serialize_equipment(item) for item in result.granted_items
            ],
            "created_beast_ids": [beast.pk for beast in result.created_beasts],
            "fighter_total_cost": result.fighter_total_cost,
        },
        status=201,
    )


@api_view("POST")
def gang_vehicles(request, id):
    gang = get_object_or_404(Gang, pk=id)
    params = parse_body(request, VehicleCreateParams)
    vehicle_type = ContentVehicleType.objects.filter(pk=params.vehicle_type_id).first()
    if vehicle_type is None:
        return json_response({"error": "Vehicle type not found"}, status=404)

    result = handle_add_vehicle(
        user=request.user,
        gang=gang,
        vehicle_type=vehicle_type,
        name=params.name,
        manual_cost=params.cost,
        base_cost=params.base_cost,
    )
    log_event(
        user=request.user,
        noun=EventNoun.VEHICLE,
        verb=EventVerb.ADD,
        object=result.vehicle,
        request=request,
        gang_id=gang.pk,
        vehicle_type=vehicle_type.name,
        cost=-result.credits_delta,
    )
    return json_response(
        {
            "vehicle": serialize_vehicle(result.vehicle),
            "gang_credits": result.gang_credits,
            "payment_cost": -result.credits_delta,
            "base_cost": result.vehicle.cost,
        },
        status=201,
    )
