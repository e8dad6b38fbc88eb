"""
Handlers for effects applied directly to fighters and vehicles: injuries,
characteristic advancements and lasting vehicle damage.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.content.models import ContentEffectType
from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import create_effect, lock_gang_for
from gangbook.core.models import (
    Fighter,
    FighterEffect,
    GangLog,
    GangLogType,
    Vehicle,
)
from gangbook.core.queries import settle_rating_delta
from gangbook.tracing import traced
from gangbook.tracker import track


@dataclass
class EffectResult:
    effect_id: UUID
    effect_name: str
    rating_delta: int
    gang_rating: int
    effect: Optional[FighterEffect] = None
    remaining_xp: Optional[int] = None
    log: Optional[GangLog] = None


def _effect_target(fighter, vehicle):
    if fighter is None and vehicle is None:
        raise ValidationError("Either fighter_id or vehicle_id must be provided")
    if fighter is not None and vehicle is not None:
        raise ValidationError("Cannot provide both fighter_id and vehicle_id")
    return fighter or vehicle


def _crew(fighter: Optional[Fighter], vehicle: Optional[Vehicle]) -> Optional[Fighter]:
    if fighter is not None:
        return fighter
    return vehicle.fighter if vehicle is not None else None


def _tags(fighter_id, vehicle: Optional[Vehicle]):
    fighter_id = fighter_id or (vehicle.fighter_id if vehicle is not None else None)
    return [fighter_tag(fighter_id)] if fighter_id else []


@traced("handle_add_effect")
@transaction.atomic
def handle_add_effect(
    *,
    user,
    effect_type: ContentEffectType,
    fighter: Optional[Fighter] = None,
    vehicle: Optional[Vehicle] = None,
) -> EffectResult:
    """
    Apply an effect type to a fighter or a vehicle with its default modifiers.

    The gang rating grows by the effect's ``credits_increase`` when the target
    counts toward rating.
    """
    target = _effect_target(fighter, vehicle)
    gang = lock_gang_for(user, target.gang)

    effect = create_effect(effect_type=effect_type, fighter=fighter, vehicle=vehicle)
    rating_delta = settle_rating_delta(
        _crew(fighter, vehicle),
        effect.credits_increase if target.counts_for_rating() else 0,
    )

    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_EFFECT,
        description=f"Applied {effect.name} to {target.name}",
        rating_delta=rating_delta,
        subject=effect,
    )
    invalidate_gang(gang, *_tags(fighter.pk if fighter else None, vehicle))
    track("effect_added", effect_type=effect_type, target=target)

    return EffectResult(
        effect_id=effect.pk,
        effect_name=effect.name,
        rating_delta=rating_delta,
        gang_rating=gang.rating,
        effect=effect,
        log=log,
    )


@traced("handle_add_advancement")
@transaction.atomic
def handle_add_advancement(
    *,
    user,
    fighter: Fighter,
    effect_type: ContentEffectType,
    xp_cost: int = 0,
    credits_increase: int = 0,
) -> EffectResult:
    """
    Improve a fighter's characteristic with an advancement effect type.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Checks the effect type modifies a characteristic and the fighter has
       the XP
    3. Applies the effect, recording ``xp_cost``, ``credits_increase`` and
       how many times the fighter has taken it
    4. Spends the XP
    5. Adds ``credits_increase`` to rating when the fighter counts and writes
       the gang log

    Removing the effect later refunds the XP.
    """
    gang = lock_gang_for(user, fighter.gang)

    if not effect_type.modifiers.exists():
        raise ValidationError(f"{effect_type.name} does not modify a characteristic")
    if xp_cost < 0 or credits_increase < 0:
        raise ValidationError("XP cost and credits increase cannot be negative")
    if fighter.xp < xp_cost:
        raise ValidationError(
            f"Fighter has insufficient XP. Required: {xp_cost}, Available: {fighter.xp}"
        )

    times_increased = fighter.effects.filter(effect_type=effect_type).count() + 1
    effect = create_effect(effect_type=effect_type, fighter=fighter)
    effect.type_specific_data.update(
        times_increased=times_increased,
        xp_cost=xp_cost,
        credits_increase=credits_increase,
    )
    effect.save(update_fields=["type_specific_data", "modified"])

    fighter.xp -= xp_cost
    fighter.save_with_user(user=user, update_fields=["xp", "modified"])

    rating_delta = settle_rating_delta(
        fighter, credits_increase if fighter.counts_for_rating() else 0
    )
    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_ADVANCEMENT,
        description=f"{fighter.name} advanced {effect.name} for {xp_cost} XP",
        rating_delta=rating_delta,
        subject=effect,
    )
    invalidate_gang(gang, fighter_tag(fighter.pk))
    track("advancement_added", fighter=fighter, effect_type=effect_type, xp_cost=xp_cost)

    return EffectResult(
        effect_id=effect.pk,
        effect_name=effect.name,
        rating_delta=rating_delta,
        gang_rating=gang.rating,
        effect=effect,
        remaining_xp=fighter.xp,
        log=log,
    )


@traced("handle_remove_effect")
@transaction.atomic
def handle_remove_effect(*, user, effect: FighterEffect) -> EffectResult:
    """
    Remove an effect from its fighter or vehicle. An advancement gives back
    the XP spent on it.
    """
    target = effect.fighter or effect.vehicle
    gang = lock_gang_for(user, target.gang)

    effect_id = effect.pk
    effect_name = effect.name
    raw_delta = -effect.credits_increase if target.counts_for_rating() else 0
    refund = int((effect.type_specific_data or {}).get("xp_cost") or 0)
    effect.delete()

    remaining_xp = None
    if effect.fighter is not None:
        fighter = effect.fighter
        if refund:
            fighter.xp += refund
            fighter.save_with_user(user=user, update_fields=["xp", "modified"])
        remaining_xp = fighter.xp
    rating_delta = settle_rating_delta(_crew(effect.fighter, effect.vehicle), raw_delta)

    log = gang.create_action(
        user=user,
        action_type=GangLogType.REMOVE_EFFECT,
        description=f"Removed {effect_name} from {target.name}",
        rating_delta=rating_delta,
    )
    invalidate_gang(gang, *_tags(effect.fighter_id, effect.vehicle))
    track("effect_removed", target=target)

    return EffectResult(
        effect_id=effect_id,
        effect_name=effect_name,
        rating_delta=rating_delta,
        gang_rating=gang.rating,
        remaining_xp=remaining_xp,
        log=log,
    )
