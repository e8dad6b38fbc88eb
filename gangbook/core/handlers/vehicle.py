"""
Business logic handlers for gang vehicles.

A new vehicle has no crew and does not count toward rating. Assigning it to
a fighter that counts brings its total (cost, equipment and effects) into
the rating; unassigning, selling or deleting takes it back out.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction

from gangbook.content.models import ContentVehicleType
from gangbook.core.cache import fighter_tag, invalidate_gang
from gangbook.core.handlers.common import (
    can_manage_gang,
    ensure_same_gang,
    lock_gang_for,
)
from gangbook.core.models import Fighter, Gang, GangLog, GangLogType, Vehicle
from gangbook.core.queries import settle_rating_delta, vehicle_total_cost
from gangbook.models import format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track


@dataclass
class VehicleResult:
    vehicle: Vehicle
    gang_credits: int
    gang_rating: int
    rating_delta: int = 0
    credits_delta: int = 0
    log: Optional[GangLog] = None


@dataclass
class VehicleRemovalResult:
    vehicle_id: UUID
    vehicle_name: str
    vehicle_total_cost: int
    gang_credits: int
    gang_rating: int
    rating_delta: int
    credits_delta: int
    log: Optional[GangLog] = None


def _crew_tags(*fighter_ids):
    return [fighter_tag(fighter_id) for fighter_id in fighter_ids if fighter_id]


@traced("handle_add_vehicle")
@transaction.atomic
def handle_add_vehicle(
    *,
    user,
    gang: Gang,
    vehicle_type: ContentVehicleType,
    name: Optional[str] = None,
    manual_cost: Optional[int] = None,
    base_cost: Optional[int] = None,
) -> VehicleResult:
    """
    Buy a vehicle for a gang.

    This handler performs the following operations atomically:
    1. Authorizes the user and locks the gang row
    2. Works out the price paid (manual cost, else the type cost) and the
       cost stored on the vehicle (``base_cost``, else the price paid)
    3. Checks the gang can afford it
    4. Creates the vehicle without crew, copying the type's statline
    5. Debits credits and writes the gang log
    """
    if not can_manage_gang(user, gang):
        raise PermissionDenied("You do not have permission to add vehicles to this gang")
    gang = lock_gang_for(user, gang)

    if vehicle_type.gang_type_id not in (None, gang.gang_type_id):
        raise ValidationError("Vehicle type not found")

    paid = manual_cost if manual_cost is not None else vehicle_type.cost
    stored = base_cost if base_cost is not None else paid
    gang.ensure_credits(paid)

    vehicle = Vehicle.objects.create_with_user(
        user=user,
        gang=gang,
        owner=gang.owner,
        vehicle_type=vehicle_type,
        name=(name or vehicle_type.name).rstrip(),
        cost=stored,
        special_rules=list(vehicle_type.special_rules or []),
        body_slots=vehicle_type.body_slots,
        drive_slots=vehicle_type.drive_slots,
        engine_slots=vehicle_type.engine_slots,
        **vehicle_type.statline(),
    )

    log = gang.create_action(
        user=user,
        action_type=GangLogType.ADD_VEHICLE,
        description=f"Bought {vehicle.name} for {format_cost_display(paid)}",
        credits_delta=-paid,
        subject=vehicle,
    )
    invalidate_gang(gang)
    track("vehicle_added", gang=gang, vehicle_type=vehicle_type, cost=paid)

    return VehicleResult(
        vehicle=vehicle,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        credits_delta=-paid,
        log=log,
    )


@traced("handle_update_vehicle")
@transaction.atomic
def handle_update_vehicle(
    *,
    user,
    vehicle: Vehicle,
    name: Optional[str] = None,
    special_rules: Optional[list] = None,
) -> VehicleResult:
    gang = lock_gang_for(user, vehicle.gang)
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Vehicle name is required")
        vehicle.name = name
    if special_rules is not None:
        vehicle.special_rules = special_rules
    vehicle.save_with_user(user=user)

    invalidate_gang(gang, *_crew_tags(vehicle.fighter_id))
    return VehicleResult(
        vehicle=vehicle, gang_credits=gang.credits, gang_rating=gang.rating
    )


def _change_crew(*, user, vehicle: Vehicle, fighter: Optional[Fighter], action_type):
    gang = lock_gang_for(user, vehicle.gang)
    ensure_same_gang(gang, fighter)
    if fighter is not None and fighter.is_owned_beast:
        raise ValidationError("Exotic beasts cannot crew vehicles")

    previous_crew = vehicle.fighter
    counted_before = vehicle.counts_for_rating()
    vehicle.fighter = fighter
    vehicle.save_with_user(user=user)
    counted_after = vehicle.counts_for_rating()

    total = vehicle_total_cost(vehicle)
    same_crew = previous_crew is not None and previous_crew == fighter
    if same_crew:
        rating_delta = 0
    else:
        # The vehicle leaves one crew's share and joins the other's
        rating_delta = settle_rating_delta(
            previous_crew, -total if counted_before else 0
        ) + settle_rating_delta(fighter, total if counted_after else 0)
    if fighter is not None:
        description = f"Assigned {vehicle.name} to {fighter.name}"
    else:
        description = f"Unassigned {vehicle.name}"

    log = gang.create_action(
        user=user,
        action_type=action_type,
        description=description,
        rating_delta=rating_delta,
        subject=vehicle,
    )
    invalidate_gang(
        gang,
        *_crew_tags(previous_crew.pk if previous_crew else None, vehicle.fighter_id),
    )

    return VehicleResult(
        vehicle=vehicle,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        rating_delta=rating_delta,
        log=log,
    )


@traced("handle_assign_vehicle")
@transaction.atomic
def handle_assign_vehicle(*, user, vehicle: Vehicle, fighter: Fighter) -> VehicleResult:
    """Make ``fighter`` the crew of ``vehicle``, replacing any previous crew."""
    result = _change_crew(
        user=user,
        vehicle=vehicle,
        fighter=fighter,
        action_type=GangLogType.ASSIGN_VEHICLE,
    )
    track("vehicle_assigned", vehicle=vehicle, fighter=fighter)
    return result


@traced("handle_unassign_vehicle")
@transaction.atomic
def handle_unassign_vehicle(*, user, vehicle: Vehicle) -> VehicleResult:
    if vehicle.fighter_id is None:
        raise ValidationError("Vehicle is not assigned to a fighter")
    result = _change_crew(
        user=user,
        vehicle=vehicle,
        fighter=None,
        action_type=GangLogType.UNASSIGN_VEHICLE,
    )
    track("vehicle_unassigned", vehicle=vehicle)
    return result


def _remove_vehicle(*, user, vehicle: Vehicle, credits_delta: int, action_type, verb):
    gang = lock_gang_for(user, vehicle.gang)

    vehicle_id = vehicle.pk
    vehicle_name = vehicle.name
    crew = vehicle.fighter
    crew_id = vehicle.fighter_id
    total = vehicle_total_cost(vehicle)
    counted = vehicle.counts_for_rating()

    # Equipment and effects on the vehicle are deleted with it
    vehicle._history_user = user
    vehicle.delete()
    rating_delta = settle_rating_delta(crew, -total if counted else 0)

    description = f"{verb} {vehicle_name}"
    if credits_delta:
        description += f" for {format_cost_display(credits_delta)}"
    log = gang.create_action(
        user=user,
        action_type=action_type,
        description=description,
        rating_delta=rating_delta,
        credits_delta=credits_delta,
    )
    invalidate_gang(gang, *_crew_tags(crew_id))

    return VehicleRemovalResult(
        vehicle_id=vehicle_id,
        vehicle_name=vehicle_name,
        vehicle_total_cost=total,
        gang_credits=gang.credits,
        gang_rating=gang.rating,
        rating_delta=rating_delta,
        credits_delta=credits_delta,
        log=log,
    )


@traced("handle_sell_vehicle")
@transaction.atomic
def handle_sell_vehicle(
    *, user, vehicle: Vehicle, manual_cost: Optional[int] = None
) -> VehicleRemovalResult:
    """Sell a vehicle for ``manual_cost``, or its stored cost when not given."""
    sell_value = manual_cost if manual_cost is not None else vehicle.cost
    result = _remove_vehicle(
        user=user,
        vehicle=vehicle,
        credits_delta=sell_value,
        action_type=GangLogType.SELL_VEHICLE,
        verb="Sold",
    )
    track("vehicle_sold", vehicle=result.vehicle_id, value=sell_value)
    return result


@traced("handle_delete_vehicle")
@transaction.atomic
def handle_delete_vehicle(*, user, vehicle: Vehicle) -> VehicleRemovalResult:
    result = _remove_vehicle(
        user=user,
        vehicle=vehicle,
        credits_delta=0,
        action_type=GangLogType.REMOVE_VEHICLE,
        verb="Removed",
    )
    track("vehicle_deleted", vehicle=result.vehicle_id)
    return result
