"""
Business logic handlers for fighters: hiring, editing, status changes,
removal and skills.

Every handler locks the gang row, keeps the cached rating in step with the
change and writes a gang log.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.content.models import (
    ContentEquipment,
    ContentFighterType,
    ContentGangLineage,
    ContentSkill,
)
from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import (
    create_exotic_beasts,
    give_default_equipment,
    give_fixed_grants,
    give_free_equipment,
    hire_from_type,
    lock_gang_for,
)
from gangbook.core.models import (
    Fighter,
    FighterEquipment,
    FighterSkill,
    Gang,
    GangLog,
    GangLogType,
)
from gangbook.core.queries import (
    beast_cost,
    fighter_rating_contribution,
    rating_holder,
    settle_rating_delta,
)
from gangbook.models import FIGHTER_STATS, format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track

logger = logging.getLogger(__name__)

FIGHTER_STATUSES = ("killed", "retired", "enslaved", "captured")
MAX_STAT_VALUE = 32767


@dataclass
class SelectedEquipment:
    """Equipment picked when hiring, paid for as part of the fighter."""

    equipment: ContentEquipment
    cost: Optional[int] = None
    quantity: int = 1


@dataclass
class AddFighterResult:
    fighter: Fighter
    fighter_cost: int
    rating_cost: int
    gang_credits: int
    gang_rating: int
    created_beasts: list[Fighter] = field(default_factory=list)
    granted_items: list[FighterEquipment] = field(default_factory=list)
    log: Optional[GangLog] = None


@dataclass
class FighterUpdateResult:
    fighter: Fighter
    rating_delta: int
    gang_rating: int
    log: Optional[GangLog] = None


@dataclass
class FighterRemovalResult:
    fighter_id: UUID
    fighter_name: str
    rating_delta: int
    gang_rating: int
    log: Optional[GangLog] = None


@dataclass
class SkillResult:
    fighter: Fighter
    skill: ContentSkill
    remaining_xp: int
    rating_delta: int
    log: Optional[GangLog] = None


def _selected_equipment_cost(
    gang: Gang, fighter_type: ContentFighterType, selected: list[SelectedEquipment]
) -> int:
    total = 0
    for choice in selected:
        cost = choice.cost
        if cost is None:
            cost = choice.equipment.adjusted_cost(
                gang_type=gang.gang_type, fighter_type=fighter_type
            )
        total += cost * choice.quantity
    return total


@traced("handle_add_fighter")
@transaction.atomic
def handle_add_fighter(
    *,
    user,
    gang: Gang,
    fighter_type: ContentFighterType,
    name: str,
    manual_cost: Optional[int] = None,
    use_base_cost_for_rating: bool = True,
    selected_equipment: Optional[list[SelectedEquipment]] = None,
    legacy: Optional[ContentGangLineage] = None,
) -> AddFighterResult:
    """
    Hire a new fighter into a gang.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Validates the fighter type and the optional legacy
    3. Calculates the hire cost (gang-specific price, else the type cost,
       unless a manual cost is given) and the rating cost
    4. Checks the gang can afford the hire
    5. Creates the fighter with the type's statline, recording the rating
       cost as its credits
    6. Gives it the type's default equipment and the selected equipment for
       free, with the items fixed grants bring along, and creates the
       exotic beasts that equipment grants
    7. Debits credits, applies the rating delta and writes the gang log

    Args:
        user: User hiring the fighter
        gang: Gang hiring
        fighter_type: The fighter type to hire
        name: Fighter name
        manual_cost: Price actually paid, overriding the hire cost
        use_base_cost_for_rating: Rate the fighter at its hire cost plus
            selected equipment rather than at the price paid
        selected_equipment: Extra equipment bought with the fighter
        legacy: Optional gang legacy for the fighter

    Returns:
        AddFighterResult with the new fighter and updated gang totals
    """
    gang = lock_gang_for(user, gang)
    selected_equipment = selected_equipment or []

    name = (name or "").strip()
    if not name:
        raise ValidationError("Fighter name is required")

    available = ContentFighterType.objects.available_to(gang.gang_type).hireable()
    if not available.filter(pk=fighter_type.pk).exists():
        raise ValidationError("This fighter type is not available to the gang")

    if legacy is not None and not legacy.allows(fighter_type):
        raise ValidationError(f"{legacy.name} is not available to {fighter_type.name}")

    adjusted_cost = fighter_type.cost_for_gang_type(gang.gang_type)
    fighter_cost = manual_cost if manual_cost is not None else adjusted_cost
    if use_base_cost_for_rating:
        rating_cost = adjusted_cost + _selected_equipment_cost(
            gang, fighter_type, selected_equipment
        )
    else:
        rating_cost = fighter_cost

    gang.ensure_credits(fighter_cost)

    fighter = hire_from_type(
        gang=gang,
        fighter_type=fighter_type,
        name=name,
        credits=rating_cost,
        legacy=legacy,
    )
    items = give_default_equipment(fighter)
    for choice in selected_equipment:
        items += give_free_equipment(fighter, [choice.equipment] * choice.quantity)
    granted_items = give_fixed_grants(items)

    created_beasts = []
    for item in items:
        created_beasts += create_exotic_beasts(item)

    rating_delta = settle_rating_delta(
        fighter,
        rating_cost
        + sum(item.purchase_cost for item in granted_items)
        + sum(beast_cost(beast) for beast in created_beasts),
    )
    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_FIGHTER,
        description=f"Hired {fighter.name} ({fighter_type.name}) for {format_cost_display(fighter_cost)}",
        rating_delta=rating_delta,
        credits_delta=-fighter_cost,
        subject=fighter,
    )

    invalidate_gang(gang)
    track("fighter_hired", gang=gang, fighter_type=fighter_type, cost=fighter_cost)

    return AddFighterResult(
        fighter=fighter,
        fighter_cost=fighter_cost,
        rating_cost=rating_cost,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        created_beasts=created_beasts,
        granted_items=granted_items,
        log=log,
    )


def _apply_contribution_change(
    *, user, gang: Gang, fighter: Fighter, before: int, description: str
) -> FighterUpdateResult:
    rating_delta = fighter_rating_contribution(fighter) - before
    log = gang.create_action(
        user=user,
        action_type=GangLogType.UPDATE_FIGHTER,
        description=description,
        rating_delta=rating_delta,
        subject=fighter,
    )
    invalidate_gang(gang, fighter_tag(fighter.pk))
    return FighterUpdateResult(
        fighter=fighter, rating_delta=rating_delta, gang_rating=gang.rating, log=log
    )


@traced("handle_update_fighter")
@transaction.atomic
def handle_update_fighter(
    *,
    user,
    fighter: Fighter,
    name: Optional[str] = None,
    note: Optional[str] = None,
    xp: Optional[int] = None,
    kills: Optional[int] = None,
    credits: Optional[int] = None,
    cost_adjustment: Optional[int] = None,
    stats: Optional[dict] = None,
) -> FighterUpdateResult:
    """
    Edit a fighter. Fields left as None are unchanged.

    Changes to ``credits`` or ``cost_adjustment`` move the gang rating by the
    change in the fighter's contribution.
    """
    gang = lock_gang_for(user, fighter.gang)
    before = fighter_rating_contribution(fighter)

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Fighter name is required")
        fighter.name = name
    if note is not None:
        fighter.note = note
    if xp is not None:
        fighter.xp = xp
    if kills is not None:
        fighter.kills = kills
    if credits is not None:
        fighter.credits = credits
    if cost_adjustment is not None:
        fighter.cost_adjustment = cost_adjustment
    for stat, value in (stats or {}).items():
        if stat not in FIGHTER_STATS:
            raise ValidationError(f"Unknown stat: {stat}")
        if not 0 <= value <= MAX_STAT_VALUE:
            raise ValidationError(
                f"{stat} must be between 0 and {MAX_STAT_VALUE}, got {value}"
            )
        setattr(fighter, stat, value)

    fighter.save_with_user(user=user)
    result = _apply_contribution_change(
        user=user,
        gang=gang,
        fighter=fighter,
        before=before,
        description=f"Updated {fighter.name}",
    )
    track("fighter_updated", fighter=fighter, rating_delta=result.rating_delta)
    return result


@traced("handle_fighter_status_change")
@transaction.atomic
def handle_fighter_status_change(*, user, fighter: Fighter, **statuses) -> FighterUpdateResult:
    """
    Set any of ``killed``, ``retired``, ``enslaved`` and ``captured``.

    A fighter that stops counting toward rating takes its whole contribution
    (including crewed vehicles and owned beasts) with it; one that returns
    adds it back.
    """
    unknown = set(statuses) - set(FIGHTER_STATUSES)
    if unknown:
        raise ValidationError(f"Unknown status: {', '.join(sorted(unknown))}")

    gang = lock_gang_for(user, fighter.gang)
    before = fighter_rating_contribution(fighter)

    changed = []
    for status, value in statuses.items():
        if value is None:
            continue
        setattr(fighter, status, bool(value))
        changed.append(f"{status}={'yes' if value else 'no'}")

    fighter.save_with_user(user=user)
    result = _apply_contribution_change(
        user=user,
        gang=gang,
        fighter=fighter,
        before=before,
        description=f"Changed status of {fighter.name}: {', '.join(changed) or 'no change'}",
    )
    track("fighter_status_changed", fighter=fighter, rating_delta=result.rating_delta)
    return result


@traced("handle_delete_fighter")
@transaction.atomic
def handle_delete_fighter(*, user, fighter: Fighter) -> FighterRemovalResult:
    """
    Remove a fighter from its gang.

    Equipment, effects and skills are deleted with the fighter, crewed
    vehicles become unassigned and owned beasts are deleted. The gang rating
    falls by the fighter's contribution; a beast only takes its part of its
    owner's share. There is no refund.
    """
    gang = lock_gang_for(user, fighter.gang)
    holder = rating_holder(fighter)
    before = fighter_rating_contribution(fighter)
    fighter_id = fighter.pk
    fighter_name = fighter.name

    fighter._history_user = user
    fighter.delete()

    if holder.pk == fighter_id:
        rating_delta = -before
    else:
        rating_delta = fighter_rating_contribution(holder) - before

    log = gang.create_action(
        user=user,
        action_type=GangLogType.REMOVE_FIGHTER,
        description=f"Removed {fighter_name}",
        rating_delta=rating_delta,
    )
    invalidate_gang(gang, fighter_tag(fighter_id))
    track("fighter_deleted", gang=gang, rating_delta=rating_delta)

    return FighterRemovalResult(
        fighter_id=fighter_id,
        fighter_name=fighter_name,
        rating_delta=rating_delta,
        gang_rating=gang.rating,
        log=log,
    )


@traced("handle_add_fighter_skill")
@transaction.atomic
def handle_add_fighter_skill(
    *,
    user,
    fighter: Fighter,
    skill: ContentSkill,
    xp_cost: int = 0,
    credits_increase: int = 0,
) -> SkillResult:
    """Give a fighter a skill, spending ``xp_cost`` of its XP."""
    gang = lock_gang_for(user, fighter.gang)

    if fighter.skills.filter(skill=skill).exists():
        raise ValidationError(f"{fighter.name} already has {skill.name}")
    if fighter.xp < xp_cost:
        raise ValidationError(
            f"Fighter has insufficient XP. Required: {xp_cost}, Available: {fighter.xp}"
        )

    FighterSkill.objects.create(
        fighter=fighter,
        skill=skill,
        xp_cost=xp_cost,
        credits_increase=credits_increase,
    )
    fighter.xp -= xp_cost
    fighter.save_with_user(user=user, update_fields=["xp", "modified"])

    rating_delta = settle_rating_delta(
        fighter, credits_increase if fighter.counts_for_rating() else 0
    )
    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_SKILL,
        description=f"{fighter.name} learned {skill.name}",
        rating_delta=rating_delta,
        subject=fighter,
    )
    invalidate_gang(gang, fighter_tag(fighter.pk))
    track("fighter_skill_added", fighter=fighter, skill=skill)

    return SkillResult(
        fighter=fighter,
        skill=skill,
        remaining_xp=fighter.xp,
        rating_delta=rating_delta,
        log=log,
    )


@traced("handle_remove_fighter_skill")
@transaction.atomic
def handle_remove_fighter_skill(*, user, fighter: Fighter, skill: ContentSkill) -> SkillResult:
    """Remove a skill from a fighter, refunding the XP it cost."""
    gang = lock_gang_for(user, fighter.gang)

    fighter_skill = fighter.skills.filter(skill=skill).first()
    if fighter_skill is None:
        raise ValidationError(f"{fighter.name} does not have {skill.name}")

    rating_delta = (
        -fighter_skill.credits_increase if fighter.counts_for_rating() else 0
    )
    fighter.xp += fighter_skill.xp_cost
    fighter_skill.delete()
    fighter.save_with_user(user=user, update_fields=["xp", "modified"])
    rating_delta = settle_rating_delta(fighter, rating_delta)

    log = gang.create_action(
        user=user,
        action_type=GangLogType.REMOVE_SKILL,
        description=f"{fighter.name} lost {skill.name}",
        rating_delta=rating_delta,
        subject=fighter,
    )
    invalidate_gang(gang, fighter_tag(fighter.pk))
    track("fighter_skill_removed", fighter=fighter, skill=skill)

    return SkillResult(
        fighter=fighter,
        skill=skill,
        remaining_xp=fighter.xp,
        rating_delta=rating_delta,
        log=log,
    )
