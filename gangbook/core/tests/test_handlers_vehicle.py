"""Tests for vehicle handlers."""

import pytest
from django.core.exceptions import PermissionDenied, ValidationError

from gangbook.core.handlers import (
    handle_add_vehicle,
    handle_assign_vehicle,
    handle_delete_vehicle,
    handle_equipment_purchase,
    handle_sell_vehicle,
    handle_unassign_vehicle,
    handle_update_vehicle,
)
from gangbook.core.models import FighterEquipment, GangLogType, Vehicle
from gangbook.models import EquipmentTypeChoices


@pytest.fixture
def crewed_vehicle(gang, fighter, make_vehicle):
    """A 155 credit vehicle crewed by Krag; the gang rating is 255."""
    vehicle = make_vehicle(gang, fighter=fighter)
    gang.rating += vehicle.cost
    gang.save(update_fields=["rating"])
    return vehicle


@pytest.mark.django_db
def test_add_vehicle(user, gang, vehicle_type, assert_rating_consistent):
    result = handle_add_vehicle(user=user, gang=gang, vehicle_type=vehicle_type)

    vehicle = result.vehicle
    assert vehicle.name == "Cargo-8 Ridgehauler"
    assert vehicle.cost == 155
    assert vehicle.fighter_id is None
    assert vehicle.statline() == vehicle_type.statline()
    assert (vehicle.body_slots, vehicle.drive_slots, vehicle.engine_slots) == (2, 1, 1)
    assert result.credits_delta == -155
    assert result.gang_credits == 845
    assert result.gang_rating == 0
    assert result.log.action_type == GangLogType.ADD_VEHICLE
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_add_vehicle_with_manual_and_base_cost(user, gang, vehicle_type):
    result = handle_add_vehicle(
        user=user,
        gang=gang,
        vehicle_type=vehicle_type,
        name="Old Faithful ",
        manual_cost=100,
        base_cost=150,
    )

    assert result.vehicle.name == "Old Faithful"
    assert result.vehicle.cost == 150
    assert result.gang_credits == 900


@pytest.mark.django_db
def test_add_vehicle_of_other_gang_type(user, gang, make_vehicle_type, make_gang_type):
    escher_only = make_vehicle_type("Escher Wagon", gang_type=make_gang_type("House Escher"))

    with pytest.raises(ValidationError, match="Vehicle type not found"):
        handle_add_vehicle(user=user, gang=gang, vehicle_type=escher_only)


@pytest.mark.django_db
def test_add_vehicle_open_to_every_gang(user, gang, make_vehicle_type):
    bike = make_vehicle_type("Outrider Quad", cost=80, gang_type=None)

    result = handle_add_vehicle(user=user, gang=gang, vehicle_type=bike)

    assert result.gang_credits == 920


@pytest.mark.django_db
def test_add_vehicle_needs_credits_and_ownership(
    user, other_user, make_gang, gang, vehicle_type
):
    broke = make_gang("Broke Boys", credits=100)
    with pytest.raises(ValidationError, match="insufficient credits"):
        handle_add_vehicle(user=user, gang=broke, vehicle_type=vehicle_type)

    with pytest.raises(PermissionDenied, match="permission to add vehicles"):
        handle_add_vehicle(user=other_user, gang=gang, vehicle_type=vehicle_type)
    assert not Vehicle.objects.exists()


@pytest.mark.django_db
def test_assign_vehicle_brings_it_into_rating(
    user, gang, fighter, make_vehicle, make_equipment, assert_rating_consistent
):
    vehicle = make_vehicle(gang)
    ram = make_equipment("Ram", cost=20, equipment_type=EquipmentTypeChoices.VEHICLE_UPGRADE)
    handle_equipment_purchase(user=user, gang=gang, equipment=ram, vehicle=vehicle)

    result = handle_assign_vehicle(user=user, vehicle=vehicle, fighter=fighter)

    assert result.vehicle.fighter == fighter
    assert result.rating_delta == 175
    assert result.gang_rating == 275
    assert result.log.action_type == GangLogType.ASSIGN_VEHICLE
    assert result.log.description == "Assigned Ridgehauler to Krag"
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_reassign_vehicle_between_counting_fighters(
    user, gang, make_fighter, crewed_vehicle, assert_rating_consistent
):
    other = make_fighter(gang, "Grub", credits=50)

    result = handle_assign_vehicle(user=user, vehicle=crewed_vehicle, fighter=other)

    assert result.rating_delta == 0
    assert result.gang_rating == 305
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_assign_vehicle_to_dead_fighter(
    user, gang, make_fighter, make_vehicle, assert_rating_consistent
):
    dead = make_fighter(gang, "Dead Dave", credits=0, killed=True)

    result = handle_assign_vehicle(user=user, vehicle=make_vehicle(gang), fighter=dead)

    assert result.rating_delta == 0
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_beasts_cannot_crew_vehicles(user, gang, fighter, beast_equipment, make_vehicle):
    beast = handle_equipment_purchase(
        user=user, gang=gang, equipment=beast_equipment, fighter=fighter
    ).created_beasts[0]

    with pytest.raises(ValidationError, match="Exotic beasts cannot crew vehicles"):
        handle_assign_vehicle(user=user, vehicle=make_vehicle(gang), fighter=beast)


@pytest.mark.django_db
def test_assign_vehicle_to_fighter_of_other_gang(
    user, gang, make_gang, make_fighter, make_vehicle
):
    stranger = make_fighter(make_gang("The Others"), "Stranger")

    with pytest.raises(ValidationError, match="does not belong to the same gang"):
        handle_assign_vehicle(user=user, vehicle=make_vehicle(gang), fighter=stranger)


@pytest.mark.django_db
def test_unassign_vehicle(user, gang, crewed_vehicle, assert_rating_consistent):
    result = handle_unassign_vehicle(user=user, vehicle=crewed_vehicle)

    assert result.vehicle.fighter_id is None
    assert result.rating_delta == -155
    assert result.gang_rating == 100
    assert result.log.description == "Unassigned Ridgehauler"
    assert_rating_consistent(gang)

    with pytest.raises(ValidationError, match="Vehicle is not assigned to a fighter"):
        handle_unassign_vehicle(user=user, vehicle=crewed_vehicle)


@pytest.mark.django_db
def test_sell_crewed_vehicle(
    user, gang, crewed_vehicle, make_equipment, assert_rating_consistent
):
    ram = make_equipment("Ram", cost=20, equipment_type=EquipmentTypeChoices.VEHICLE_UPGRADE)
    item = handle_equipment_purchase(
        user=user, gang=gang, equipment=ram, vehicle=crewed_vehicle
    ).item
    item_id = item.pk

    result = handle_sell_vehicle(user=user, vehicle=crewed_vehicle)

    assert result.vehicle_name == "Ridgehauler"
    assert result.vehicle_total_cost == 175
    assert result.rating_delta == -175
    assert result.credits_delta == 155
    assert result.gang_credits == 1000 - 20 + 155
    assert result.gang_rating == 100
    assert result.log.action_type == GangLogType.SELL_VEHICLE
    assert not Vehicle.objects.exists()
    assert not FighterEquipment.objects.filter(pk=item_id).exists()
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_sell_vehicle_at_manual_price(user, gang, make_vehicle):
    result = handle_sell_vehicle(user=user, vehicle=make_vehicle(gang), manual_cost=60)

    assert result.credits_delta == 60
    assert result.rating_delta == 0
    assert result.gang_credits == 1060


@pytest.mark.django_db
def test_delete_vehicle(user, gang, crewed_vehicle, assert_rating_consistent):
    result = handle_delete_vehicle(user=user, vehicle=crewed_vehicle)

    assert result.credits_delta == 0
    assert result.rating_delta == -155
    assert result.gang_credits == 1000
    assert result.log.action_type == GangLogType.REMOVE_VEHICLE
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_update_vehicle(user, crewed_vehicle):
    result = handle_update_vehicle(
        user=user, vehicle=crewed_vehicle, name=" Rust Bucket ", special_rules=["Loud"]
    )

    crewed_vehicle.refresh_from_db()
    assert crewed_vehicle.name == "Rust Bucket"
    assert crewed_vehicle.special_rules == ["Loud"]
    assert result.gang_rating == 255

    with pytest.raises(ValidationError, match="Vehicle name is required"):
        handle_update_vehicle(user=user, vehicle=crewed_vehicle, name=" ")
