"""
Business logic handlers for the gang stash: selling and deleting stash
items, and moving items between the stash and fighters or vehicles.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import (
    create_exotic_beasts,
    ensure_same_gang,
    lock_gang_for,
)
from gangbook.core.models import (
    Fighter,
    FighterEquipment,
    GangLog,
    GangLogType,
    Vehicle,
)
from gangbook.core.queries import (
    beast_cost,
    carrier,
    effects_cost,
    equipment_cost,
    equipment_rating_parts,
    settle_rating_delta,
    settle_rating_removal,
)
from gangbook.models import format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track

MINIMUM_STASH_SALE_VALUE = 5


@dataclass
class StashResult:
    item: FighterEquipment
    gang_credits: int
    gang_rating: int
    stash_value: int
    log: Optional[GangLog]
    created_beasts: list[Fighter] = field(default_factory=list)


def stash_sale_value(manual_cost) -> int:
    """Stash items sell for the price given, rounded down, and never under 5."""
    return max(MINIMUM_STASH_SALE_VALUE, math.floor(manual_cost or 0))


def _ensure_in_stash(item: FighterEquipment):
    if not item.gang_stash:
        raise ValidationError("Equipment is not in the gang stash")


def _ensure_moves_alone(item: FighterEquipment):
    if item.granted_by_id:
        raise ValidationError(
            f"{item.equipment.name} came with {item.granted_by.equipment.name} "
            "and moves with it"
        )


def _with_granted(item: FighterEquipment) -> int:
    return item.purchase_cost + equipment_cost(item.granted_items.all())


def _stash_removal(*, user, item, credits_delta, action_type, description):
    gang = lock_gang_for(user, item.gang)
    _ensure_in_stash(item)

    stash_delta = -_with_granted(item)
    # Beasts the item spawned while carried go with it
    parts = equipment_rating_parts(item)
    item.delete()
    rating_delta = settle_rating_removal(parts)

    log = gang.create_action(
        user=user,
        action_type=action_type,
        description=description,
        rating_delta=rating_delta,
        stash_delta=stash_delta,
        credits_delta=credits_delta,
    )
    invalidate_gang(gang)
    return StashResult(
        item=item,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        stash_value=gang.stash_value,
        log=log,
    )


@traced("handle_stash_sale")
@transaction.atomic
def handle_stash_sale(*, user, item: FighterEquipment, manual_cost=None) -> StashResult:
    """Sell a stash item for ``manual_cost``, with a minimum of 5 credits."""
    sell_value = stash_sale_value(manual_cost)
    result = _stash_removal(
        user=user,
        item=item,
        credits_delta=sell_value,
        action_type=GangLogType.SELL_EQUIPMENT,
        description=f"Sold {item.equipment.name} from the stash for {format_cost_display(sell_value)}",
    )
    track("stash_item_sold", gang=item.gang_id, value=sell_value)
    return result


@traced("handle_stash_deletion")
@transaction.atomic
def handle_stash_deletion(*, user, item: FighterEquipment) -> StashResult:
    result = _stash_removal(
        user=user,
        item=item,
        credits_delta=0,
        action_type=GangLogType.REMOVE_EQUIPMENT,
        description=f"Removed {item.equipment.name} from the stash",
    )
    track("stash_item_deleted", gang=item.gang_id)
    return result


@traced("handle_move_to_stash")
@transaction.atomic
def handle_move_to_stash(*, user, item: FighterEquipment) -> StashResult:
    """
    Move an item from its fighter or vehicle into the gang stash.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Takes the item and the effects it granted out of rating
    3. Deletes the effects it granted
    4. Clears the holder and marks the item, and the items it granted, as
       stashed
    5. Adds them to the stash value and writes the gang log

    Exotic beasts granted by the item stay with their owner. Granted items
    only move with the item that granted them.
    """
    gang = lock_gang_for(user, item.gang)
    if item.gang_stash:
        raise ValidationError("Equipment is already in gang stash")
    _ensure_moves_alone(item)

    holder = item.holder
    fighter_id = item.fighter_id
    carried_by = carrier(item)
    raw_delta = 0
    if item.counts_for_rating():
        raw_delta = -(_with_granted(item) + effects_cost(item.effects.all()))

    item.effects.all().delete()
    item.granted_items.update(fighter=None, vehicle=None, gang_stash=True)
    item.fighter = None
    item.vehicle = None
    item.gang_stash = True
    item.save_with_user(user=user)
    rating_delta = settle_rating_delta(carried_by, raw_delta)

    log = gang.create_action(
        user=user,
        action_type=GangLogType.MOVE_TO_STASH,
        description=f"Moved {item.equipment.name} from {holder.name} to the stash",
        rating_delta=rating_delta,
        stash_delta=_with_granted(item),
        subject=item,
    )

    extra_tags = [fighter_tag(fighter_id)] if fighter_id else []
    invalidate_gang(gang, *extra_tags)
    track("equipment_moved_to_stash", gang=gang, item=item)

    return StashResult(
        item=item,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        stash_value=gang.stash_value,
        log=log,
    )


@traced("handle_move_from_stash")
@transaction.atomic
def handle_move_from_stash(
    *,
    user,
    item: FighterEquipment,
    fighter: Optional[Fighter] = None,
    vehicle: Optional[Vehicle] = None,
) -> StashResult:
    """
    Give a stash item to a fighter or a vehicle of the same gang.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Validates that exactly one target in the same gang was given
    3. Assigns the item with the items it granted, adding their cost to
       rating when the target counts
    4. Creates the exotic beasts the item grants, unless it already has them
    5. Takes them out of the stash value and writes the gang log
    """
    gang = lock_gang_for(user, item.gang)
    _ensure_in_stash(item)
    _ensure_moves_alone(item)

    if fighter is None and vehicle is None:
        raise ValidationError("Either fighter_id or vehicle_id must be provided")
    if fighter is not None and vehicle is not None:
        raise ValidationError("Cannot provide both fighter_id and vehicle_id")
    ensure_same_gang(gang, fighter, vehicle)

    item.fighter = fighter
    item.vehicle = vehicle
    item.gang_stash = False
    item.save_with_user(user=user)
    item.granted_items.update(fighter=fighter, vehicle=vehicle, gang_stash=False)

    counts = item.counts_for_rating()
    created_beasts = []
    if fighter is not None and not item.granted_beasts.exists():
        created_beasts = create_exotic_beasts(item)

    raw_delta = 0
    if counts:
        raw_delta = _with_granted(item) + sum(
            beast_cost(beast) for beast in created_beasts
        )
    rating_delta = settle_rating_delta(carrier(item), raw_delta)

    log = gang.create_action(
        user=user,
        action_type=GangLogType.MOVE_FROM_STASH,
        description=f"Moved {item.equipment.name} from the stash to {item.holder.name}",
        rating_delta=rating_delta,
        stash_delta=-_with_granted(item),
        subject=item,
    )

    extra_tags = [fighter_tag(fighter.pk)] if fighter is not None else []
    invalidate_gang(gang, *extra_tags)
    track("equipment_moved_from_stash", gang=gang, item=item)

    return StashResult(
        item=item,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        stash_value=gang.stash_value,
        log=log,
        created_beasts=created_beasts,
    )
