"""
Business logic handler for buying equipment from the trading post.

The handler is transactional: the gang row is locked for the duration, and
everything except the optional bonus effects and exotic beasts is rolled back
on failure.
"""

from dataclasses import dataclass, field
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.content.models import ContentEffectType, ContentEquipment
from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import (
    create_equipment_effects,
    create_exotic_beasts,
    give_granted_equipment,
    ensure_same_gang,
    lock_gang_for,
)
from gangbook.core.models import (
    Fighter,
    FighterEffect,
    FighterEquipment,
    Gang,
    GangLog,
    GangLogType,
    Vehicle,
)
from gangbook.core.queries import (
    beast_cost,
    carrier,
    fighter_total_cost,
    settle_rating_delta,
)
from gangbook.models import format_cost_display, master_crafted_cost
from gangbook.tracing import traced
from gangbook.tracker import track


@dataclass
class EquipmentPurchaseResult:
    """Result of a successful equipment purchase."""

    item: FighterEquipment
    gang_credits: int
    purchase_cost: int
    rating_cost: int
    gang_rating_delta: int
    applied_effects: list[FighterEffect] = field(default_factory=list)
    created_beasts: list[Fighter] = field(default_factory=list)
    granted_items: list[FighterEquipment] = field(default_factory=list)
    fighter_total_cost: Optional[int] = None
    log: Optional[GangLog] = None


def purchase_costs(
    *,
    gang: Gang,
    equipment: ContentEquipment,
    fighter: Optional[Fighter],
    manual_cost: Optional[int],
    master_crafted: bool,
    use_base_cost_for_rating: bool,
) -> tuple[int, int, int]:
    """
    Return ``(base_cost, final_purchase_cost, rating_cost)``.

    The final cost is what the gang pays. The rating cost is what the item
    adds to rating: the discounted price unless told to use the paid one,
    with the master-crafted premium for weapons.
    """
    base_cost = equipment.cost
    adjusted = equipment.adjusted_cost(
        gang_type=gang.gang_type,
        fighter_type=fighter.fighter_type if fighter is not None else None,
    )
    final_cost = manual_cost if manual_cost is not None else adjusted
    rating_cost = adjusted if use_base_cost_for_rating else final_cost
    if master_crafted and equipment.is_weapon:
        rating_cost = master_crafted_cost(rating_cost)
    return base_cost, final_cost, rating_cost


@traced("handle_equipment_purchase")
@transaction.atomic
def handle_equipment_purchase(
    *,
    user,
    gang: Gang,
    equipment: ContentEquipment,
    fighter: Optional[Fighter] = None,
    vehicle: Optional[Vehicle] = None,
    buy_for_gang_stash: bool = False,
    manual_cost: Optional[int] = None,
    master_crafted: bool = False,
    use_base_cost_for_rating: bool = True,
    selected_effect_ids=None,
    selected_grant_equipment_ids=None,
) -> EquipmentPurchaseResult:
    """
    Buy ``equipment`` for a fighter, a vehicle or the gang stash.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Validates the target, the bonus effects and the granted equipment
       choice
    3. Calculates the purchase and rating costs, adding the additional cost
       of each granted item
    4. Checks the gang can afford the purchase
    5. Creates the equipment record and the items it grants
    6. Applies the selected bonus effects (skipped individually on failure)
    7. Creates the exotic beasts the equipment grants (likewise)
    8. Debits credits, applies the rating delta and writes the gang log

    Args:
        user: User making the purchase
        gang: Gang paying for the equipment
        equipment: The item being bought
        fighter: Fighter receiving the item
        vehicle: Vehicle receiving the item
        buy_for_gang_stash: Put the item in the stash instead
        manual_cost: Price actually paid, overriding the trading post price
        master_crafted: Whether a weapon is master-crafted
        use_base_cost_for_rating: Rate the item at its discounted list price
            rather than at the price paid
        selected_effect_ids: Bonus effect types chosen with the purchase
        selected_grant_equipment_ids: The granted equipment picked when the
            item offers a single or multiple selection

    Returns:
        EquipmentPurchaseResult with the new item and the updated totals

    Raises:
        PermissionDenied: If the user does not own the gang
        ValidationError: If the target is invalid or credits are insufficient
    """
    gang = lock_gang_for(user, gang)

    if buy_for_gang_stash:
        fighter = vehicle = None
    elif fighter is None and vehicle is None:
        raise ValidationError("Either fighter_id or vehicle_id must be provided")
    elif fighter is not None and vehicle is not None:
        raise ValidationError("Cannot provide both fighter_id and vehicle_id")
    ensure_same_gang(gang, fighter, vehicle)

    effect_types = []
    if selected_effect_ids and not buy_for_gang_stash:
        effect_types = list(
            ContentEffectType.objects.granted_by(equipment)
            .filter(pk__in=selected_effect_ids)
            .prefetch_related("modifiers")
        )
        if len(effect_types) != len(set(map(str, selected_effect_ids))):
            raise ValidationError(
                "Selected effects are not available for this equipment"
            )

    # The stash has no choice step, so grants only come with carried items
    grants = []
    if not buy_for_gang_stash:
        grants = equipment.select_grants(selected_grant_equipment_ids)
    grants_cost = sum(grant.additional_cost for grant in grants)

    base_cost, final_cost, rating_cost = purchase_costs(
        gang=gang,
        equipment=equipment,
        fighter=fighter,
        manual_cost=manual_cost,
        master_crafted=master_crafted,
        use_base_cost_for_rating=use_base_cost_for_rating,
    )
    final_cost += grants_cost
    gang.ensure_credits(final_cost)

    item = FighterEquipment.objects.create_with_user(
        user=user,
        gang=gang,
        owner=gang.owner,
        fighter=fighter,
        vehicle=vehicle,
        equipment=equipment,
        original_cost=base_cost,
        purchase_cost=rating_cost,
        is_master_crafted=master_crafted and equipment.is_weapon,
        gang_stash=buy_for_gang_stash,
    )

    counts = item.counts_for_rating()
    granted_items = give_granted_equipment(item, grants)
    applied_effects = create_equipment_effects(item, effect_types)
    created_beasts = create_exotic_beasts(item)

    raw_delta = 0
    if counts:
        raw_delta = (
            rating_cost
            + grants_cost
            + sum(effect.credits_increase for effect in applied_effects)
            + sum(beast_cost(beast) for beast in created_beasts)
        )
    rating_delta = settle_rating_delta(carrier(item), raw_delta)

    holder = "the stash" if buy_for_gang_stash else item.holder.name
    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_EQUIPMENT,
        description=f"Bought {equipment.name} for {holder} ({format_cost_display(final_cost)})",
        rating_delta=rating_delta,
        stash_delta=rating_cost if buy_for_gang_stash else 0,
        credits_delta=-final_cost,
        subject=item,
    )

    extra_tags = [fighter_tag(fighter.pk)] if fighter is not None else []
    invalidate_gang(gang, *extra_tags)
    track(
        "equipment_purchased",
        gang=gang,
        equipment=equipment,
        cost=final_cost,
        stash=buy_for_gang_stash,
    )

    return EquipmentPurchaseResult(
        item=item,
        gang_credits=gang.credits,
        purchase_cost=final_cost,
        rating_cost=rating_cost,
        gang_rating_delta=rating_delta,
        applied_effects=applied_effects,
        created_beasts=created_beasts,
        granted_items=granted_items,
        fighter_total_cost=fighter_total_cost(fighter)
        if fighter is not None
        else None,
        log=log,
    )
