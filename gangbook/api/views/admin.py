"""
Staff-only CRUD over the reference catalog.

Every resource is served from one URL: GET lists rows (or returns one with
``?id=``), POST creates, PUT/PATCH ``?id=`` update and DELETE ``?id=``
removes. An update validates the stored row with the request body merged on
top. Nested rows (weapon profiles, discounts, modifiers and so on) are only
replaced when their key is present in the body.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import ProtectedError, RestrictedError
from django.shortcuts import get_object_or_404

from gangbook.api import admin_schemas as schemas
from gangbook.api.views.common import api_view, json_response, read_json
from gangbook.content.models import (
    ContentCampaignTriumph,
    ContentCampaignType,
    ContentEffectType,
    ContentEffectTypeModifier,
    ContentEquipment,
    ContentEquipmentAvailability,
    ContentEquipmentDiscount,
    ContentEquipmentGrant,
    ContentFighterDefaultEquipment,
    ContentFighterType,
    ContentFighterTypeGangCost,
    ContentGangLineage,
    ContentGangType,
    ContentScenario,
    ContentSkill,
    ContentSkillType,
    ContentTerritory,
    ContentVehicleType,
    ContentWeaponProfile,
)
from gangbook.core.cache import CONTENT_TAG, invalidate_on_commit
from gangbook.core.models import EventNoun, EventVerb, log_event
from gangbook.models import FIGHTER_STATS, VEHICLE_STATS, FighterClassChoices
from gangbook.tracker import track

logger = logging.getLogger(__name__)


def _values(obj, fields) -> dict:
    return {"id": obj.pk, **{field: getattr(obj, field) for field in fields}}


def _save(obj, user):
    """Validate ``obj`` against the database (foreign keys, uniqueness) and save it."""
    obj.full_clean()
    obj._history_user = user
    obj.save()
    return obj


class Resource:
    model = None
    schema = None
    label = ""
    fields = ()
    filters = ()
    select_related = ()
    prefetch_related = ()

    def queryset(self):
        return (
            self.model.objects.all()
            .select_related(*self.select_related)
            .prefetch_related(*self.prefetch_related)
        )

    def serialize(self, obj) -> dict:
        return _values(obj, self.fields)

    def save_related(self, obj, params, provided, user):
        pass


class EquipmentResource(Resource):
    model = ContentEquipment
    schema = schemas.EquipmentParams
    label = "equipment"
    fields = (
        "name",
        "category_id",
        "equipment_type",
        "cost",
        "availability",
        "faction",
        "variants",
        "trading_post",
        "core_equipment",
        "grant_selection",
        "grant_max_selections",
    )
    filters = ("category_id", "equipment_type")
    prefetch_related = (
        "weapon_profiles",
        "discounts",
        "default_for",
        "availabilities",
        "grants",
    )

    profile_fields = tuple(schemas.WeaponProfileParams.model_fields)

    def serialize(self, obj) -> dict:
        return {
            **_values(obj, self.fields),
            "weapon_profiles": [
                _values(profile, self.profile_fields)
                for profile in obj.weapon_profiles.all()
            ],
            "discounts": [
                _values(d, ("gang_type_id", "fighter_type_id", "adjusted_cost"))
                for d in obj.discounts.all()
            ],
            "fighter_type_ids": [d.fighter_type_id for d in obj.default_for.all()],
            "availabilities": [
                _values(a, ("gang_type_id", "availability"))
                for a in obj.availabilities.all()
            ],
            "grants": [
                _values(g, ("granted_equipment_id", "additional_cost"))
                for g in obj.grants.all()
            ],
        }

    def save_related(self, obj, params, provided, user):
        if "weapon_profiles" in provided:
            obj.weapon_profiles.all().delete()
            for profile in params.weapon_profiles:
                _save(ContentWeaponProfile(equipment=obj, **profile.model_dump()), user)

        if "discounts" in provided:
            obj.discounts.all().delete()
            for discount in params.discounts:
                _save(ContentEquipmentDiscount(equipment=obj, **discount.model_dump()), user)

        if "fighter_type_ids" in provided:
            obj.default_for.all().delete()
            for fighter_type_id in params.fighter_type_ids:
                _save(
                    ContentFighterDefaultEquipment(
                        equipment=obj, fighter_type_id=fighter_type_id
                    ),
                    user,
                )

        if "availabilities" in provided:
            obj.availabilities.all().delete()
            self._save_availabilities(obj, params.availabilities)

        if "grants" in provided:
            obj.grants.all().delete()
            for grant in params.grants:
                _save(ContentEquipmentGrant(equipment=obj, **grant.model_dump()), user)

    def _save_availabilities(self, obj, availabilities):
        # A bad availability row never blocks saving the equipment itself
        for row in availabilities:
            try:
                with transaction.atomic():
                    availability = ContentEquipmentAvailability(
                        equipment=obj,
                        gang_type_id=row.gang_type_id,
                        availability=row.availability,
                    )
                    availability.full_clean()
                    availability.save()
            except (DatabaseError, ValidationError) as e:
                logger.warning(
                    f"Could not save availability {row.availability} for gang type "
                    f"{row.gang_type_id} on {obj.name}: {e}"
                )
                track(
                    "equipment_availability_failed",
                    equipment=obj,
                    gang_type=str(row.gang_type_id),
                )


class FighterTypeResource(Resource):
    model = ContentFighterType
    schema = schemas.FighterTypeParams
    label = "fighter type"
    fields = (
        "name",
        "gang_type_id",
        "fighter_class",
        "sub_type",
        "cost",
        "special_rules",
        "free_skill",
        *FIGHTER_STATS,
    )
    filters = ("gang_type_id", "fighter_class")
    prefetch_related = ("gang_costs", "default_equipment")

    def serialize(self, obj) -> dict:
        return {
            **_values(obj, self.fields),
            "gang_costs": [
                _values(cost, ("gang_type_id", "adjusted_cost"))
                for cost in obj.gang_costs.all()
            ],
            "default_equipment_ids": [
                default.equipment_id for default in obj.default_equipment.all()
            ],
        }

    def save_related(self, obj, params, provided, user):
        if "gang_costs" in provided:
            obj.gang_costs.all().delete()
            for cost in params.gang_costs:
                _save(ContentFighterTypeGangCost(fighter_type=obj, **cost.model_dump()), user)

        if "default_equipment_ids" in provided:
            obj.default_equipment.all().delete()
            for equipment_id in params.default_equipment_ids:
                _save(
                    ContentFighterDefaultEquipment(
                        fighter_type=obj, equipment_id=equipment_id
                    ),
                    user,
                )


class GangTypeResource(Resource):
    model = ContentGangType
    schema = schemas.GangTypeParams
    label = "gang type"
    fields = ("name", "alignment", "starting_credits", "image_url")


class GangLineageResource(Resource):
    model = ContentGangLineage
    schema = schemas.GangLineageParams
    label = "gang lineage"
    fields = ("name", "lineage_type", "fighter_type_id")
    filters = ("lineage_type",)
    prefetch_related = ("fighter_type_access",)

    def serialize(self, obj) -> dict:
        return {
            **_values(obj, self.fields),
            "fighter_type_access_ids": [ft.pk for ft in obj.fighter_type_access.all()],
        }

    def save_related(self, obj, params, provided, user):
        if "fighter_type_access_ids" not in provided:
            return
        ids = set(params.fighter_type_access_ids)
        fighter_types = list(ContentFighterType.objects.filter(pk__in=ids))
        if len(fighter_types) != len(ids):
            raise ValidationError("Unknown fighter type in fighter_type_access_ids")
        obj.fighter_type_access.set(fighter_types)


class CampaignTypeResource(Resource):
    model = ContentCampaignType
    schema = schemas.CampaignTypeParams
    label = "campaign type"
    fields = ("name", "image_url")


class CampaignTriumphResource(Resource):
    model = ContentCampaignTriumph
    schema = schemas.CampaignTriumphParams
    label = "campaign triumph"
    fields = ("name", "criteria", "campaign_type_id")
    filters = ("campaign_type_id",)


class TerritoryResource(Resource):
    model = ContentTerritory
    schema = schemas.TerritoryParams
    label = "territory"
    fields = ("name", "campaign_type_id")
    filters = ("campaign_type_id",)


class ScenarioResource(Resource):
    model = ContentScenario
    schema = schemas.ScenarioParams
    label = "scenario"
    fields = ("name", "description")


class VehicleTypeResource(Resource):
    model = ContentVehicleType
    schema = schemas.VehicleTypeParams
    label = "vehicle type"
    fields = (
        "name",
        "gang_type_id",
        "cost",
        "special_rules",
        *VEHICLE_STATS,
        "body_slots",
        "drive_slots",
        "engine_slots",
    )
    filters = ("gang_type_id",)


class EffectTypeResource(Resource):
    model = ContentEffectType
    schema = schemas.EffectTypeParams
    label = "fighter effect"
    fields = ("name", "category_id", "equipment_id", "type_specific_data")
    filters = ("category_id", "equipment_id")
    prefetch_related = ("modifiers",)

    def serialize(self, obj) -> dict:
        return {
            **_values(obj, self.fields),
            "modifiers": [
                _values(m, ("stat_name", "default_numeric_value"))
                for m in obj.modifiers.all()
            ],
        }

    def save_related(self, obj, params, provided, user):
        if "modifiers" in provided:
            obj.modifiers.all().delete()
            for modifier in params.modifiers:
                _save(ContentEffectTypeModifier(effect_type=obj, **modifier.model_dump()), user)


class SkillResource(Resource):
    model = ContentSkill
    schema = schemas.SkillParams
    label = "skill"
    fields = ("name", "skill_type_id")
    filters = ("skill_type_id",)


class SkillTypeResource(Resource):
    model = ContentSkillType
    schema = schemas.SkillTypeParams
    label = "skill type"
    fields = ("name",)


def _fields_of(resource, params) -> dict:
    return params.model_dump(include=set(resource.fields))


def _list(request, resource):
    rows = resource.queryset()
    filters = {
        name: request.GET[name] for name in resource.filters if request.GET.get(name)
    }
    if filters:
        rows = rows.filter(**filters)
    return json_response([resource.serialize(obj) for obj in rows])


def _log(request, resource, verb, obj=None, **context):
    invalidate_on_commit(CONTENT_TAG)
    log_event(
        user=request.user,
        noun=EventNoun.CONTENT,
        verb=verb,
        object=obj,
        request=request,
        resource=resource.label,
        **context,
    )
    track(f"content_{verb.value}", resource=resource.label)


def _create(request, resource):
    body = read_json(request)
    params = resource.schema.model_validate(body)
    with transaction.atomic():
        obj = _save(resource.model(**_fields_of(resource, params)), request.user)
        resource.save_related(obj, params, set(body), request.user)
        _log(request, resource, EventVerb.CREATE, obj, name=str(obj))
    return json_response(resource.serialize(resource.queryset().get(pk=obj.pk)), status=201)


def _update(request, resource, obj):
    body = read_json(request)
    current = {field: getattr(obj, field) for field in resource.fields}
    params = resource.schema.model_validate({**current, **body})
    with transaction.atomic():
        for field, value in _fields_of(resource, params).items():
            setattr(obj, field, value)
        _save(obj, request.user)
        resource.save_related(obj, params, set(body), request.user)
        _log(request, resource, EventVerb.UPDATE, obj, fields=sorted(body))
    return json_response(resource.serialize(resource.queryset().get(pk=obj.pk)))


def _delete(request, resource, obj):
    object_id = obj.pk
    name = str(obj)
    try:
        with transaction.atomic():
            obj._history_user = request.user
            obj.delete()
    except (ProtectedError, RestrictedError):
        raise ValidationError(f"Cannot delete {name}: it is still in use")
    _log(request, resource, EventVerb.DELETE, object_id=object_id, name=name)
    return json_response({"deleted": object_id})


def resource_view(resource: Resource, name: str):
    def view(request):
        object_id = request.GET.get("id")
        if request.method == "GET" and not object_id:
            return _list(request, resource)
        if request.method == "POST":
            return _create(request, resource)

        if not object_id:
            raise ValidationError(f"{resource.label.capitalize()} ID is required")
        obj = get_object_or_404(resource.queryset(), pk=object_id)

        if request.method == "GET":
            return json_response(resource.serialize(obj))
        if request.method == "DELETE":
            return _delete(request, resource, obj)
        return _update(request, resource, obj)

    view.__name__ = name
    return api_view(
        "GET", "POST", "PUT", "PATCH", "DELETE", staff=True, failure=resource.label
    )(view)


equipment = resource_view(EquipmentResource(), "admin_equipment")
fighter_types = resource_view(FighterTypeResource(), "admin_fighter_types")
gang_types = resource_view(GangTypeResource(), "admin_gang_types")
gang_lineages = resource_view(GangLineageResource(), "admin_gang_lineages")
campaign_types = resource_view(CampaignTypeResource(), "admin_campaign_types")
campaign_triumphs = resource_view(CampaignTriumphResource(), "admin_campaign_triumphs")
territories = resource_view(TerritoryResource(), "admin_territories")
scenarios = resource_view(ScenarioResource(), "admin_scenarios")
vehicle_types = resource_view(VehicleTypeResource(), "admin_vehicle_types")
fighter_effects = resource_view(EffectTypeResource(), "admin_fighter_effects")
skills = resource_view(SkillResource(), "admin_skills")
skill_types = resource_view(SkillTypeResource(), "admin_skill_types")


@api_view("GET", staff=True, failure="fighter classes")
def fighter_classes(request):
    return json_response(
        [
            {"id": value, "class_name": label}
            for value, label in FighterClassChoices.choices
        ]
    )
