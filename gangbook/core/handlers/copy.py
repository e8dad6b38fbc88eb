"""
Business logic handlers for copying a fighter, within its gang or into
another one, and for copying a whole gang.

Copies are free: no credits change hands. The copied cost is added to the
rating of the gang receiving it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Q

from gangbook.core.cache import invalidate_gang
from gangbook.core.handlers.common import can_manage_gang, lock_gang_for
from gangbook.core.handlers.fighter import FIGHTER_STATUSES
from gangbook.core.models import (
    CampaignGangStatus,
    Fighter,
    FighterEffect,
    FighterEffectModifier,
    FighterEquipment,
    FighterExoticBeast,
    FighterSkill,
    Gang,
    GangLog,
    GangLogType,
    Vehicle,
)
from gangbook.core.queries import (
    calculate_gang_rating,
    calculate_stash_value,
    fighter_rating_contribution,
)
from gangbook.models import FIGHTER_STATS, VEHICLE_STATS, format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track

logger = logging.getLogger(__name__)

FIGHTER_COPY_FIELDS = (
    "fighter_type_id",
    "fighter_class",
    "credits",
    "cost_adjustment",
    "xp",
    "kills",
    "legacy_id",
    "note",
    *FIGHTER_STATS,
)

VEHICLE_COPY_FIELDS = (
    "vehicle_type_id",
    "name",
    "cost",
    "body_slots",
    "drive_slots",
    "engine_slots",
    "body_slots_occupied",
    "drive_slots_occupied",
    "engine_slots_occupied",
    *VEHICLE_STATS,
)


@dataclass
class FighterCopyResult:
    fighter: Fighter
    source: Fighter
    rating_delta: int
    gang_rating: int
    log: Optional[GangLog] = None


@dataclass
class GangCopyResult:
    gang: Gang
    source: Gang
    fighter_count: int
    vehicle_count: int
    log: Optional[GangLog] = None


def _copy_name(name: Optional[str], source_name: str) -> str:
    return (name or "").strip() or f"{source_name} (Copy)"


def _values(obj, fields) -> dict:
    return {field: getattr(obj, field) for field in fields}


def copy_fighter_row(
    source: Fighter, *, gang: Gang, name: str, keep_status: bool = False
) -> Fighter:
    values = _values(source, FIGHTER_COPY_FIELDS)
    if keep_status:
        values.update(_values(source, FIGHTER_STATUSES))
    return Fighter.objects.create(
        gang=gang,
        owner=gang.owner,
        name=name,
        special_rules=list(source.special_rules or []),
        **values,
    )


def copy_equipment(items, *, gang: Gang, fighters: dict, vehicles: dict) -> dict:
    """
    Copy ``items`` into ``gang``. Holders are looked up in ``fighters`` and
    ``vehicles``, which map source ids to their copies.

    Returns a map of source item ids to the copied items. Granted items are
    linked to the copy of the item they came with.
    """
    copies = {}
    # Parents first, so granted items can point at their copies
    for item in sorted(items, key=lambda item: item.granted_by_id is not None):
        copies[item.pk] = FighterEquipment.objects.create(
            gang=gang,
            owner=gang.owner,
            fighter=fighters.get(item.fighter_id),
            vehicle=vehicles.get(item.vehicle_id),
            equipment_id=item.equipment_id,
            original_cost=item.original_cost,
            purchase_cost=item.purchase_cost,
            is_master_crafted=item.is_master_crafted,
            gang_stash=item.gang_stash,
            granted_by=copies.get(item.granted_by_id),
        )
    return copies


def copy_skills(skills, *, fighters: dict):
    FighterSkill.objects.bulk_create(
        [
            FighterSkill(
                fighter=fighters[skill.fighter_id],
                skill_id=skill.skill_id,
                credits_increase=skill.credits_increase,
                xp_cost=skill.xp_cost,
            )
            for skill in skills
        ]
    )


def copy_effects(effects, *, fighters: dict, vehicles: dict, equipment: dict):
    for effect in effects.prefetch_related("modifiers"):
        item = equipment.get(effect.fighter_equipment_id)
        copy = FighterEffect.objects.create(
            fighter=fighters.get(effect.fighter_id),
            vehicle=vehicles.get(effect.vehicle_id),
            effect_type_id=effect.effect_type_id,
            name=effect.name,
            type_specific_data=dict(effect.type_specific_data or {}),
            fighter_equipment=item,
        )
        FighterEffectModifier.objects.bulk_create(
            [
                FighterEffectModifier(
                    effect=copy,
                    stat_name=modifier.stat_name,
                    numeric_value=modifier.numeric_value,
                )
                for modifier in effect.modifiers.all()
            ]
        )


def _campaign_ids(gang: Gang) -> set:
    return set(
        gang.campaign_entries.filter(status=CampaignGangStatus.ACCEPTED).values_list(
            "campaign_id", flat=True
        )
    )


def _ensure_can_copy_to(user, source_gang: Gang, target_gang: Gang):
    if target_gang.pk == source_gang.pk:
        return
    if not user.is_staff:
        raise PermissionDenied("Only admins can copy fighters to other gangs")

    source_campaigns = _campaign_ids(source_gang)
    target_campaigns = _campaign_ids(target_gang)
    if (
        source_campaigns
        and target_campaigns
        and not source_campaigns & target_campaigns
    ):
        raise ValidationError("Gangs must be in the same campaign")


@traced("handle_copy_fighter")
@transaction.atomic
def handle_copy_fighter(
    *,
    user,
    fighter: Fighter,
    target_gang: Optional[Gang] = None,
    name: Optional[str] = None,
) -> FighterCopyResult:
    """
    Copy a fighter into its own gang or, for admins, into another gang.

    This handler performs the following operations atomically:
    1. Checks the user manages the source gang and may copy into the target
    2. Locks the target gang
    3. Creates the copy with the source's characteristics, credits and
       experience, and with every status flag cleared
    4. Copies the fighter's equipment, skills and effects
    5. Adds the copy's cost to the target gang's rating and writes its log

    Vehicles and exotic beasts the fighter owns are not copied, and exotic
    beasts cannot be copied on their own. No credits are charged.

    Args:
        user: User making the copy
        fighter: Fighter being copied
        target_gang: Gang receiving the copy, defaults to the fighter's gang
        name: Name for the copy, defaults to the source name with " (Copy)"

    Returns:
        FighterCopyResult with the new fighter and the rating change

    Raises:
        PermissionDenied: If the user may not copy from or into these gangs
        ValidationError: If the fighter is an exotic beast, or the gangs play
            in different campaigns
    """
    source_gang = fighter.gang
    target_gang = target_gang or source_gang
    if not can_manage_gang(user, source_gang):
        raise PermissionDenied("Not authorized to access this gang")
    if fighter.is_owned_beast:
        raise ValidationError(
            f"{fighter.name} is an exotic beast and is copied with its owner"
        )
    _ensure_can_copy_to(user, source_gang, target_gang)
    gang = lock_gang_for(user, target_gang)

    copy = copy_fighter_row(
        fighter, gang=gang, name=_copy_name(name, fighter.name)
    )
    fighters = {fighter.pk: copy}
    equipment = copy_equipment(
        fighter.equipment.all(), gang=gang, fighters=fighters, vehicles={}
    )
    copy_skills(fighter.skills.all(), fighters=fighters)
    copy_effects(
        FighterEffect.objects.filter(fighter=fighter),
        fighters=fighters,
        vehicles={},
        equipment=equipment,
    )

    rating_delta = fighter_rating_contribution(copy)
    log = gang.create_action(
        user=user,
        action_type=GangLogType.COPY_FIGHTER,
        description=f"Copied {fighter.name} as {copy.name} ({format_cost_display(rating_delta)})",
        rating_delta=rating_delta,
        subject=copy,
    )

    invalidate_gang(gang)
    track(
        "fighter_copied",
        source=fighter,
        fighter=copy,
        gang=gang,
        cross_gang=gang.pk != source_gang.pk,
    )

    return FighterCopyResult(
        fighter=copy,
        source=fighter,
        rating_delta=rating_delta,
        gang_rating=gang.rating,
        log=log,
    )


@traced("handle_copy_gang")
@transaction.atomic
def handle_copy_gang(*, user, gang: Gang, name: Optional[str] = None) -> GangCopyResult:
    """
    Copy a gang, with its fighters, vehicles, equipment, skills and effects,
    into a new gang owned by ``user``.

    Fighters keep their status, exotic beasts stay with the copies of their
    owners and vehicles with the copies of their crew. The new gang starts
    with the source's credits, and its opening log entry carries the copied
    rating and stash value. Campaign entries are not copied.
    """
    source = gang
    new_gang = Gang.objects.create_with_user(
        user=user,
        owner=user,
        name=_copy_name(name, source.name),
        gang_type=source.gang_type,
        alignment=source.alignment,
        affiliation=source.affiliation,
        reputation=source.reputation,
        note=source.note,
        credits=0,
        rating=0,
        stash_value=0,
    )

    fighters = {
        fighter.pk: copy_fighter_row(
            fighter, gang=new_gang, name=fighter.name, keep_status=True
        )
        for fighter in Fighter.objects.filter(gang=source)
    }
    vehicles = {
        vehicle.pk: Vehicle.objects.create(
            gang=new_gang,
            owner=new_gang.owner,
            fighter=fighters.get(vehicle.fighter_id),
            special_rules=list(vehicle.special_rules or []),
            **_values(vehicle, VEHICLE_COPY_FIELDS),
        )
        for vehicle in Vehicle.objects.filter(gang=source)
    }
    equipment = copy_equipment(
        FighterEquipment.objects.filter(gang=source),
        gang=new_gang,
        fighters=fighters,
        vehicles=vehicles,
    )
    FighterExoticBeast.objects.bulk_create(
        [
            FighterExoticBeast(
                owner_fighter=fighters[ownership.owner_fighter_id],
                beast=fighters[ownership.beast_id],
                fighter_equipment=equipment[ownership.fighter_equipment_id],
            )
            for ownership in FighterExoticBeast.objects.filter(
                owner_fighter__gang=source
            )
        ]
    )
    copy_skills(FighterSkill.objects.filter(fighter__gang=source), fighters=fighters)
    copy_effects(
        FighterEffect.objects.filter(Q(fighter__gang=source) | Q(vehicle__gang=source)),
        fighters=fighters,
        vehicles=vehicles,
        equipment=equipment,
    )

    log = new_gang.create_action(
        user=user,
        action_type=GangLogType.CREATE_GANG,
        description=f"Copied from {source.name}",
        rating_delta=calculate_gang_rating(new_gang),
        stash_delta=calculate_stash_value(new_gang),
        credits_delta=source.credits,
        subject=new_gang,
    )

    logger.info(
        f"Copied gang {source.pk} to {new_gang.pk}: "
        f"{len(fighters)} fighters, {len(vehicles)} vehicles"
    )
    track("gang_copied", source=source, gang=new_gang, fighters=len(fighters))

    return GangCopyResult(
        gang=new_gang,
        source=source,
        fighter_count=len(fighters),
        vehicle_count=len(vehicles),
        log=log,
    )
