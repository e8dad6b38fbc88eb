"""
Business logic handlers for deleting and selling equipment carried by a
fighter or a vehicle.

All handlers are transactional and raise ValidationError on failure.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import lock_gang_for
from gangbook.core.models import FighterEquipment, GangLog, GangLogType
from gangbook.core.queries import (
    equipment_cost,
    equipment_rating_parts,
    settle_rating_removal,
)
from gangbook.models import format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track


@dataclass
class EquipmentRemovalResult:
    """Result of deleting or selling an equipment item."""

    item_id: UUID
    equipment_name: str
    gang_credits: int
    gang_rating: int
    rating_delta: int
    credits_delta: int
    log: Optional[GangLog]


def _remove(*, user, item: FighterEquipment, credits_delta: int, action_type, verb):
    gang = lock_gang_for(user, item.gang)
    if item.gang_stash:
        raise ValidationError("Equipment is in the gang stash")

    item_id = item.pk
    name = item.equipment.name
    holder = item.holder
    parts = equipment_rating_parts(item)

    # Granted effects and items cascade; granted beasts go through their
    # ownership rows
    item.delete()
    rating_delta = settle_rating_removal(parts)

    description = f"{verb} {name} from {holder.name}"
    if credits_delta:
        description += f" for {format_cost_display(credits_delta)}"

    log = gang.create_action(
        user=user,
        action_type=action_type,
        description=description,
        rating_delta=rating_delta,
        credits_delta=credits_delta,
    )

    extra_tags = [fighter_tag(item.fighter_id)] if item.fighter_id else []
    invalidate_gang(gang, *extra_tags)

    return EquipmentRemovalResult(
        item_id=item_id,
        equipment_name=name,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        rating_delta=rating_delta,
        credits_delta=credits_delta,
        log=log,
    )


@traced("handle_equipment_deletion")
@transaction.atomic
def handle_equipment_deletion(*, user, item: FighterEquipment) -> EquipmentRemovalResult:
    """
    Delete an equipment item from a fighter or vehicle without a refund.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Calculates the rating the item accounts for, including everything it
       granted
    3. Deletes the item and everything it granted
    4. Applies the negative rating delta and writes the gang log
    """
    result = _remove(
        user=user,
        item=item,
        credits_delta=0,
        action_type=GangLogType.REMOVE_EQUIPMENT,
        verb="Removed",
    )
    track("equipment_deleted", item=result.item_id, rating_delta=result.rating_delta)
    return result


@traced("handle_equipment_sale")
@transaction.atomic
def handle_equipment_sale(
    *, user, item: FighterEquipment, manual_cost: Optional[int] = None
) -> EquipmentRemovalResult:
    """
    Sell an equipment item carried by a fighter or vehicle.

    Works as :func:`handle_equipment_deletion` and credits the gang with
    ``manual_cost``. Without a price it sells for its purchase cost plus what
    the items it granted cost.
    """
    sell_value = manual_cost
    if sell_value is None:
        sell_value = item.purchase_cost + equipment_cost(item.granted_items.all())
    result = _remove(
        user=user,
        item=item,
        credits_delta=sell_value,
        action_type=GangLogType.SELL_EQUIPMENT,
        verb="Sold",
    )
    track("equipment_sold", item=result.item_id, value=sell_value)
    return result
