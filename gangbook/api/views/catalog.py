"""Read-only catalog lookups used to fill in gang, fighter and vehicle forms."""

from django.core.exceptions import ValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404

from gangbook.api.views.common import api_view, json_response
from gangbook.content.models import (
    ContentFighterType,
    ContentGangType,
    ContentVehicleType,
)


@api_view("GET")
def gang_types(request):
    return json_response(
        {
            "gang_types": [
                {
                    "id": gang_type.id,
                    "name": gang_type.name,
                    "alignment": gang_type.alignment,
                    "starting_credits": gang_type.starting_credits,
                    "image_url": gang_type.image_url,
                }
                for gang_type in ContentGangType.objects.all()
            ]
        }
    )


@api_view("GET")
def fighter_types(request):
    gang_type_id = request.GET.get("gang_type")
    if not gang_type_id:
        raise ValidationError("gang_type is required")
    gang_type = get_object_or_404(ContentGangType, pk=gang_type_id)

    types = (
        ContentFighterType.objects.available_to(gang_type)
        .hireable()
        .prefetch_related("default_equipment__equipment")
    )
    return json_response(
        {
            "fighter_types": [
                {
                    "id": fighter_type.id,
                    "name": fighter_type.name,
                    "fighter_class": fighter_type.fighter_class,
                    "sub_type": fighter_type.sub_type,
                    "cost": fighter_type.cost_for_gang_type(gang_type),
                    "base_cost": fighter_type.cost,
                    "stats": fighter_type.statline(),
                    "special_rules": fighter_type.special_rules,
                    "free_skill": fighter_type.free_skill,
                    "default_equipment": [
                        default.equipment.name
                        for default in fighter_type.default_equipment.all()
                    ],
                }
                for fighter_type in types
            ]
        }
    )


@api_view("GET")
def vehicle_types(request):
    types = ContentVehicleType.objects.all()
    gang_type_id = request.GET.get("gang_type")
    if gang_type_id:
        types = types.filter(Q(gang_type_id=gang_type_id) | Q(gang_type__isnull=True))
    return json_response(
        {
            "vehicle_types": [
                {
                    "id": vehicle_type.id,
                    "name": vehicle_type.name,
                    "gang_type_id": vehicle_type.gang_type_id,
                    "cost": vehicle_type.cost,
                    "stats": vehicle_type.statline(),
                    "special_rules": vehicle_type.special_rules,
                }
                for vehicle_type in types
            ]
        }
    )
