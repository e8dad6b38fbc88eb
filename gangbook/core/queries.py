"""
Read-side aggregation: cost calculations and the composite view-models the
API serves.

Cost rules
----------
- An equipment item adds its ``purchase_cost``.
- Effects and skills add their ``credits_increase``.
- A fighter's total cost is its recorded credits, equipment, skills, effects,
  crewed vehicles and ``cost_adjustment``, plus the cost of the exotic beasts
  it owns that are still active.
- An owned beast reports a total cost of 0; its cost is part of its owner's.
- Each fighter that counts for rating holds a share of the gang rating equal
  to its total cost, floored at 0. Gang rating is the sum of those shares.
"""

import logging
from collections import defaultdict
from typing import Optional

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404

from gangbook.content.models import ContentEquipment
from gangbook.core.cache import (
    CONTENT_TAG,
    campaign_tag,
    fighter_tag,
    gang_tag,
    get_or_build,
)
from gangbook.core.models import (
    Campaign,
    Fighter,
    FighterEffect,
    FighterEquipment,
    Gang,
    GangLog,
    Vehicle,
)
from gangbook.tracing import traced

logger = logging.getLogger(__name__)

EQUIPMENT_PREFETCH = [
    "equipment__equipment__category",
    "equipment__equipment__weapon_profiles",
]
EFFECT_PREFETCH = ["effects__modifiers", "effects__effect_type__category"]


def equipment_cost(items) -> int:
    return sum(item.purchase_cost for item in items)


def effects_cost(effects) -> int:
    return sum(effect.credits_increase for effect in effects)


def vehicle_total_cost(vehicle: Vehicle) -> int:
    return (
        vehicle.cost
        + equipment_cost(vehicle.equipment.all())
        + effects_cost(vehicle.effects.all())
    )


def _own_cost(fighter: Fighter) -> int:
    return (
        fighter.credits
        + equipment_cost(fighter.equipment.all())
        + sum(skill.credits_increase for skill in fighter.skills.all())
        + effects_cost(fighter.effects.all())
        + fighter.cost_adjustment
    )


def beast_cost(beast: Fighter) -> int:
    """What an exotic beast adds to its owner's cost."""
    return beast.fighter_type.cost + _own_cost(beast)


def fighter_total_cost(fighter: Fighter) -> int:
    if fighter.is_owned_beast:
        return 0

    return (
        _own_cost(fighter)
        + sum(vehicle_total_cost(vehicle) for vehicle in fighter.vehicles.all())
        + sum(
            beast_cost(ownership.beast)
            for ownership in fighter.owned_beasts.all()
            if ownership.beast.is_active
        )
    )


def rating_holder(fighter: Fighter) -> Fighter:
    """The fighter whose rating share ``fighter``'s costs land in."""
    ownership = fighter.ownership
    return ownership.owner_fighter if ownership else fighter


def rating_share(fighter: Fighter) -> int:
    if fighter.is_owned_beast or not fighter.counts_for_rating():
        return 0
    return max(0, fighter_total_cost(fighter))


def _fresh_holder(fighter: Fighter) -> Fighter:
    return Fighter.objects.select_related("fighter_type").get(
        pk=rating_holder(fighter).pk
    )


def fighter_rating_contribution(fighter: Fighter) -> int:
    """
    How much of the gang rating this fighter accounts for right now. For an
    owned beast this is its owner's share, which the beast's cost is part of.
    """
    return rating_share(_fresh_holder(fighter))


def settle_rating_delta(fighter: Optional[Fighter], raw_delta: int) -> int:
    """
    Convert a change of ``raw_delta`` to the total cost of ``fighter``,
    already saved, into the change to the gang rating.

    The holder's share never drops below 0, so part or all of the change is
    absorbed while its total is negative.
    """
    if fighter is None or not raw_delta:
        return raw_delta
    total = fighter_total_cost(_fresh_holder(fighter))
    return max(0, total) - max(0, total - raw_delta)


def carrier(item: FighterEquipment) -> Optional[Fighter]:
    """The fighter carrying ``item``, directly or as a vehicle's crew."""
    if item.fighter_id:
        return item.fighter
    if item.vehicle_id:
        return item.vehicle.fighter
    return None


def equipment_rating_parts(item: FighterEquipment) -> dict:
    """
    The cost an equipment item puts into fighter totals, keyed by the fighter
    whose rating share holds it.

    Its purchase cost, granted effects and granted items count while it is
    carried by a counting holder; the beasts it spawned count through their
    owner.
    """
    parts = defaultdict(int)
    if item.counts_for_rating():
        parts[rating_holder(carrier(item))] += (
            item.purchase_cost
            + effects_cost(item.effects.all())
            + equipment_cost(item.granted_items.all())
        )
    for ownership in item.granted_beasts.select_related(
        "beast__fighter_type", "owner_fighter"
    ):
        if ownership.beast.counts_for_rating():
            parts[ownership.owner_fighter] += beast_cost(ownership.beast)
    return parts


def settle_rating_removal(parts: dict) -> int:
    """The rating change once the cost in ``parts`` has left fighter totals."""
    return sum(settle_rating_delta(holder, -cost) for holder, cost in parts.items())


def modified_stats(fighter: Fighter) -> dict:
    """The fighter's statline with every effect modifier applied."""
    stats = fighter.statline()
    for effect in fighter.effects.all():
        for modifier in effect.modifiers.all():
            if modifier.stat_name in stats:
                stats[modifier.stat_name] += modifier.numeric_value
    return stats


def _fighters_for_costing(gang):
    return (
        Fighter.objects.filter(gang=gang)
        .select_related(
            "fighter_type", "beast_ownership", "beast_ownership__owner_fighter"
        )
        .prefetch_related(
            "equipment",
            "skills",
            "effects",
            "vehicles__equipment",
            "vehicles__effects",
            "owned_beasts__beast__fighter_type",
            "owned_beasts__beast__equipment",
            "owned_beasts__beast__skills",
            "owned_beasts__beast__effects",
        )
    )


@traced("calculate_gang_rating")
def calculate_gang_rating(gang: Gang) -> int:
    return sum(rating_share(fighter) for fighter in _fighters_for_costing(gang))


def calculate_stash_value(gang: Gang) -> int:
    return equipment_cost(FighterEquipment.objects.filter(gang=gang, gang_stash=True))


def serialize_weapon_profile(profile) -> dict:
    return {
        "id": profile.id,
        "name": profile.name,
        "range_short": profile.range_short,
        "range_long": profile.range_long,
        "accuracy_short": profile.accuracy_short,
        "accuracy_long": profile.accuracy_long,
        "strength": profile.strength,
        "armour_piercing": profile.armour_piercing,
        "damage": profile.damage,
        "ammo": profile.ammo,
        "traits": profile.traits,
        "is_default_profile": profile.is_default_profile,
    }


def serialize_equipment(item: FighterEquipment) -> dict:
    equipment = item.equipment
    return {
        "id": item.id,
        "equipment_id": equipment.id,
        "name": equipment.name,
        "equipment_type": equipment.equipment_type,
        "category": equipment.category.name if equipment.category_id else None,
        "original_cost": item.original_cost,
        "purchase_cost": item.purchase_cost,
        "is_master_crafted": item.is_master_crafted,
        "gang_stash": item.gang_stash,
        "fighter_id": item.fighter_id,
        "vehicle_id": item.vehicle_id,
        "granted_by_id": item.granted_by_id,
        "weapon_profiles": [
            serialize_weapon_profile(profile)
            for profile in equipment.weapon_profiles.all()
        ],
    }


def serialize_effect(effect: FighterEffect) -> dict:
    return {
        "id": effect.id,
        "name": effect.name,
        "effect_type_id": effect.effect_type_id,
        "category": effect.category_name,
        "credits_increase": effect.credits_increase,
        "type_specific_data": effect.type_specific_data,
        "fighter_equipment_id": effect.fighter_equipment_id,
        "modifiers": [
            {"stat_name": m.stat_name, "numeric_value": m.numeric_value}
            for m in effect.modifiers.all()
        ],
    }


def serialize_vehicle(vehicle: Vehicle) -> dict:
    return {
        "id": vehicle.id,
        "name": vehicle.name,
        "vehicle_type_id": vehicle.vehicle_type_id,
        "vehicle_type": vehicle.vehicle_type.name,
        "fighter_id": vehicle.fighter_id,
        "cost": vehicle.cost,
        "total_cost": vehicle_total_cost(vehicle),
        "stats": vehicle.statline(),
        "slots": {
            "body": [vehicle.body_slots_occupied, vehicle.body_slots],
            "drive": [vehicle.drive_slots_occupied, vehicle.drive_slots],
            "engine": [vehicle.engine_slots_occupied, vehicle.engine_slots],
        },
        "special_rules": vehicle.special_rules,
        "equipment": [serialize_equipment(item) for item in vehicle.equipment.all()],
        "effects": [serialize_effect(effect) for effect in vehicle.effects.all()],
    }


def serialize_fighter(fighter: Fighter) -> dict:
    effects = defaultdict(list)
    for effect in fighter.effects.all():
        effects[effect.category_name].append(serialize_effect(effect))

    ownership = fighter.ownership
    return {
        "id": fighter.id,
        "gang_id": fighter.gang_id,
        "name": fighter.name,
        "fighter_type_id": fighter.fighter_type_id,
        "fighter_type": fighter.fighter_type.name,
        "fighter_class": fighter.fighter_class,
        "credits": fighter.credits,
        "cost_adjustment": fighter.cost_adjustment,
        "total_cost": fighter_total_cost(fighter),
        "xp": fighter.xp,
        "kills": fighter.kills,
        "killed": fighter.killed,
        "retired": fighter.retired,
        "enslaved": fighter.enslaved,
        "captured": fighter.captured,
        "stats": fighter.statline(),
        "modified_stats": modified_stats(fighter),
        "special_rules": fighter.special_rules,
        "legacy_id": fighter.legacy_id,
        "note": fighter.note,
        "owner_fighter_id": ownership.owner_fighter_id if ownership else None,
        "owned_beast_ids": [o.beast_id for o in fighter.owned_beasts.all()],
        "equipment": [serialize_equipment(item) for item in fighter.equipment.all()],
        "skills": [
            {
                "id": skill.id,
                "skill_id": skill.skill_id,
                "name": skill.skill.name,
                "credits_increase": skill.credits_increase,
                "xp_cost": skill.xp_cost,
            }
            for skill in fighter.skills.all()
        ],
        "effects": dict(effects),
        "vehicles": [serialize_vehicle(vehicle) for vehicle in fighter.vehicles.all()],
    }


def _vehicle_prefetch():
    return [
        "vehicle_type",
        *(f"equipment__equipment__{p}" for p in ["category", "weapon_profiles"]),
        "effects__modifiers",
        "effects__effect_type__category",
    ]


def _fighter_queryset():
    return Fighter.objects.select_related(
        "fighter_type", "beast_ownership", "beast_ownership__owner_fighter"
    ).prefetch_related(
        *EQUIPMENT_PREFETCH,
        *EFFECT_PREFETCH,
        "skills__skill",
        Prefetch(
            "vehicles",
            queryset=Vehicle.objects.prefetch_related(*_vehicle_prefetch()),
        ),
        "owned_beasts__beast__fighter_type",
        "owned_beasts__beast__equipment",
        "owned_beasts__beast__skills",
        "owned_beasts__beast__effects",
    )


def _build_gang_details(gang_id) -> dict:
    gang = get_object_or_404(
        Gang.objects.select_related("gang_type", "owner", "affiliation"), pk=gang_id
    )
    fighters = list(_fighter_queryset().filter(gang=gang))
    stash = (
        FighterEquipment.objects.filter(gang=gang, gang_stash=True)
        .select_related("equipment__category")
        .prefetch_related("equipment__weapon_profiles")
    )
    unassigned = (
        Vehicle.objects.filter(gang=gang, fighter__isnull=True)
        .prefetch_related(*_vehicle_prefetch())
        .order_by("created")
    )
    unassigned_vehicles = [serialize_vehicle(vehicle) for vehicle in unassigned]
    unassigned_value = sum(v["total_cost"] for v in unassigned_vehicles)

    campaigns = [
        {
            "campaign_id": entry.campaign_id,
            "campaign_name": entry.campaign.name,
            "status": entry.status,
        }
        for entry in gang.campaign_entries.select_related("campaign")
    ]

    return {
        "id": gang.id,
        "name": gang.name,
        "owner_id": gang.owner_id,
        "username": gang.owner.username if gang.owner_id else None,
        "gang_type_id": gang.gang_type_id,
        "gang_type": gang.gang_type.name,
        "alignment": gang.alignment,
        "credits": gang.credits,
        "reputation": gang.reputation,
        "rating": gang.rating,
        "stash_value": gang.stash_value,
        "wealth": gang.wealth + unassigned_value,
        "affiliation": gang.affiliation.name if gang.affiliation_id else None,
        "note": gang.note,
        "archived": gang.archived,
        "fighters": [serialize_fighter(fighter) for fighter in fighters],
        "stash": [serialize_equipment(item) for item in stash],
        "vehicles": unassigned_vehicles,
        "campaigns": campaigns,
        "counts": {
            "fighters": sum(1 for f in fighters if not f.is_owned_beast),
            "active_fighters": sum(
                1 for f in fighters if not f.is_owned_beast and f.is_active
            ),
            "beasts": sum(1 for f in fighters if f.is_owned_beast),
            "vehicles": len(unassigned_vehicles)
            + sum(len(f.vehicles.all()) for f in fighters),
            "stash": len(stash),
        },
    }


@traced("get_gang_details")
def get_gang_details(gang_id) -> dict:
    """The full gang view-model, cached under the gang's tag."""
    return get_or_build(
        "gang_details",
        gang_id,
        [gang_tag(gang_id), CONTENT_TAG],
        lambda: _build_gang_details(gang_id),
    )


@traced("get_fighter_details")
def get_fighter_details(fighter_id) -> dict:
    fighter = get_object_or_404(Fighter.objects.only("id", "gang_id"), pk=fighter_id)

    def build():
        return serialize_fighter(_fighter_queryset().get(pk=fighter_id))

    return get_or_build(
        "fighter_details",
        fighter_id,
        [fighter_tag(fighter_id), gang_tag(fighter.gang_id), CONTENT_TAG],
        build,
    )


def _build_campaign_details(campaign: Campaign) -> dict:
    entries = list(
        campaign.campaign_gangs.select_related("gang__gang_type", "gang__owner")
    )
    territories = campaign.territories.select_related("gang", "territory")
    battles = campaign.battles.select_related(
        "attacker", "defender", "winner", "scenario", "territory"
    )
    triumphs = (
        list(campaign.campaign_type.triumphs.all()) if campaign.campaign_type_id else []
    )

    return {
        "id": campaign.id,
        "name": campaign.name,
        "status": campaign.status,
        "description": campaign.description,
        "campaign_type_id": campaign.campaign_type_id,
        "campaign_type": campaign.campaign_type.name
        if campaign.campaign_type_id
        else None,
        "members": [
            {
                "id": member.id,
                "user_id": member.user_id,
                "username": member.user.username,
                "role": member.role,
            }
            for member in campaign.members.select_related("user")
        ],
        "gangs": [
            {
                "id": entry.id,
                "gang_id": entry.gang_id,
                "name": entry.gang.name,
                "gang_type": entry.gang.gang_type.name,
                "owner": entry.gang.owner.username if entry.gang.owner_id else None,
                "rating": entry.gang.rating,
                "reputation": entry.gang.reputation,
                "status": entry.status,
            }
            for entry in entries
        ],
        "territories": [
            {
                "id": territory.id,
                "name": territory.name,
                "territory_id": territory.territory_id,
                "gang_id": territory.gang_id,
                "gang_name": territory.gang.name if territory.gang_id else None,
                "ruined": territory.ruined,
                "default_gang_territory": territory.default_gang_territory,
            }
            for territory in territories
        ],
        "battles": [
            {
                "id": battle.id,
                "created": battle.created,
                "scenario": battle.scenario_name
                or (battle.scenario.name if battle.scenario_id else ""),
                "attacker_id": battle.attacker_id,
                "defender_id": battle.defender_id,
                "winner_id": battle.winner_id,
                "note": battle.note,
                "participants": battle.participants,
                "territory_id": battle.territory_id,
            }
            for battle in battles
        ],
        "triumphs": [
            {"id": triumph.id, "name": triumph.name, "criteria": triumph.criteria}
            for triumph in triumphs
        ],
    }


@traced("get_campaign_details")
def get_campaign_details(campaign_id) -> dict:
    campaign = get_object_or_404(
        Campaign.objects.select_related("campaign_type"), pk=campaign_id
    )
    gang_ids = campaign.campaign_gangs.values_list("gang_id", flat=True)
    return get_or_build(
        "campaign_details",
        campaign_id,
        [
            campaign_tag(campaign_id),
            CONTENT_TAG,
            *(gang_tag(gang_id) for gang_id in gang_ids),
        ],
        lambda: _build_campaign_details(campaign),
    )


def gang_logs(gang: Gang, limit: int = 100) -> list[dict]:
    return [
        {
            "id": log.id,
            "created": log.created,
            "action_type": log.action_type,
            "description": log.description,
            "user": log.user.username if log.user_id else None,
            "credits_before": log.credits_before,
            "credits_delta": log.credits_delta,
            "rating_before": log.rating_before,
            "rating_delta": log.rating_delta,
            "stash_before": log.stash_before,
            "stash_delta": log.stash_delta,
        }
        for log in GangLog.objects.filter(gang=gang).select_related("user")[:limit]
    ]


def available_equipment(gang: Gang, fighter: Fighter = None) -> list[dict]:
    """The trading post for a gang, priced for ``fighter`` when given."""
    items = (
        ContentEquipment.objects.filter(trading_post=True)
        .with_adjusted_cost(
            gang_type=gang.gang_type,
            fighter_type=fighter.fighter_type if fighter else None,
        )
        .select_related("category")
        .prefetch_related(
            "weapon_profiles", "effect_types", "grants__granted_equipment"
        )
    )
    return [
        {
            "id": item.id,
            "name": item.name,
            "equipment_type": item.equipment_type,
            "category": item.category.name if item.category_id else None,
            "availability": item.availability,
            "cost": item.cost,
            "adjusted_cost": item.adjusted_cost,
            "weapon_profiles": [
                serialize_weapon_profile(p) for p in item.weapon_profiles.all()
            ],
            "effect_types": [
                {"id": et.id, "name": et.name, "credits_increase": et.credits_increase}
                for et in item.effect_types.all()
            ],
            "grants": {
                "selection": item.grant_selection,
                "max_selections": item.grant_max_selections,
                "options": [
                    {
                        "equipment_id": grant.granted_equipment_id,
                        "name": grant.granted_equipment.name,
                        "additional_cost": grant.additional_cost,
                    }
                    for grant in item.grants.all()
                ],
            },
        }
        for item in items
    ]


def user_gangs(user) -> list[dict]:
    return [
        {
            "id": gang.id,
            "name": gang.name,
            "gang_type": gang.gang_type.name,
            "credits": gang.credits,
            "rating": gang.rating,
            "reputation": gang.reputation,
            "archived": gang.archived,
        }
        for gang in Gang.objects.filter(owner=user).select_related("gang_type")
    ]
