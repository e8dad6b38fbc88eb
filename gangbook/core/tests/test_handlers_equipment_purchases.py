"""
Tests for equipment purchase handlers.

These tests call gangbook.core.handlers.equipment.purchase directly, checking
the credit, rating and stash bookkeeping without HTTP machinery.
"""

import pytest
from django.core.exceptions import PermissionDenied, ValidationError

from gangbook.content.models import ContentEquipmentDiscount
from gangbook.core.handlers import handle_equipment_purchase
from gangbook.core.models import (
    FighterEquipment,
    FighterExoticBeast,
    GangLog,
    GangLogType,
)
from gangbook.core.queries import fighter_total_cost
from gangbook.models import EquipmentTypeChoices, FighterClassChoices


@pytest.mark.django_db
def test_purchase_for_fighter(user, gang, fighter, weapon, assert_rating_consistent):
    """Buying for a fighter spends credits and adds the cost to rating."""
    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, fighter=fighter
    )

    assert result.purchase_cost == 15
    assert result.rating_cost == 15
    assert result.gang_rating_delta == 15
    assert result.gang_credits == 985
    assert result.fighter_total_cost == 115
    assert result.item.fighter == fighter
    assert result.item.original_cost == 15
    assert result.item.purchase_cost == 15
    assert not result.item.gang_stash

    log = result.log
    assert log.action_type == GangLogType.ADD_EQUIPMENT
    assert log.credits_before == 1000
    assert log.credits_delta == -15
    assert log.rating_before == 100
    assert log.rating_delta == 15
    assert "Bought Autogun for Krag" in log.description

    gang.refresh_from_db()
    assert gang.credits == 985
    assert gang.rating == 115
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_purchase_uses_gang_type_discount(user, gang, fighter, weapon, gang_type):
    ContentEquipmentDiscount.objects.create(
        equipment=weapon, gang_type=gang_type, adjusted_cost=10
    )

    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, fighter=fighter
    )

    assert result.purchase_cost == 10
    assert result.rating_cost == 10
    assert result.item.original_cost == 15
    assert result.gang_credits == 990


@pytest.mark.django_db
def test_manual_cost_is_paid_but_rating_uses_list_price(
    user, gang, fighter, weapon, assert_rating_consistent
):
    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, fighter=fighter, manual_cost=5
    )

    assert result.purchase_cost == 5
    assert result.rating_cost == 15
    assert result.gang_credits == 995
    gang.refresh_from_db()
    assert gang.rating == 115
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_manual_cost_used_for_rating_when_asked(user, gang, fighter, weapon):
    result = handle_equipment_purchase(
        user=user,
        gang=gang,
        equipment=weapon,
        fighter=fighter,
        manual_cost=5,
        use_base_cost_for_rating=False,
    )

    assert result.purchase_cost == 5
    assert result.rating_cost == 5
    gang.refresh_from_db()
    assert gang.rating == 105


@pytest.mark.django_db
def test_master_crafted_weapon_rating_premium(
    user, gang, fighter, make_equipment, assert_rating_consistent
):
    """The 25% premium is rounded up to 5 and affects rating, not the price."""
    lasgun = make_equipment("Lasgun", cost=30, equipment_type=EquipmentTypeChoices.WEAPON)

    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=lasgun, fighter=fighter, master_crafted=True
    )

    assert result.purchase_cost == 30
    assert result.rating_cost == 40
    assert result.item.is_master_crafted
    assert result.gang_credits == 970
    gang.refresh_from_db()
    assert gang.rating == 140
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_master_crafted_ignored_for_wargear(user, gang, fighter, make_equipment):
    armour = make_equipment("Mesh Armour", cost=15)

    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=armour, fighter=fighter, master_crafted=True
    )

    assert result.rating_cost == 15
    assert not result.item.is_master_crafted


@pytest.mark.django_db
def test_insufficient_credits_leaves_gang_unchanged(user, make_gang, make_fighter, weapon):
    gang = make_gang("Broke Boys", credits=10)
    fighter = make_fighter(gang, "Skint")

    with pytest.raises(ValidationError) as exc:
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=fighter)

    assert "Gang has insufficient credits. Required: 15, Available: 10" in exc.value.messages
    gang.refresh_from_db()
    assert gang.credits == 10
    assert gang.rating == 100
    assert not FighterEquipment.objects.filter(gang=gang).exists()
    assert not GangLog.objects.filter(gang=gang).exists()


@pytest.mark.django_db
def test_purchase_for_stash(user, gang, fighter, weapon, assert_rating_consistent):
    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, buy_for_gang_stash=True
    )

    assert result.item.gang_stash
    assert result.item.fighter is None
    assert result.gang_rating_delta == 0
    assert result.fighter_total_cost is None
    assert result.log.stash_delta == 15

    gang.refresh_from_db()
    assert gang.credits == 985
    assert gang.rating == 100
    assert gang.stash_value == 15
    assert gang.wealth == 100 + 15 + 985
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_stash_purchase_ignores_given_fighter(user, gang, fighter, weapon):
    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, fighter=fighter, buy_for_gang_stash=True
    )

    assert result.item.gang_stash
    assert result.item.fighter_id is None


@pytest.mark.django_db
def test_purchase_requires_exactly_one_target(
    user, gang, fighter, weapon, make_vehicle
):
    with pytest.raises(ValidationError, match="Either fighter_id or vehicle_id"):
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon)

    with pytest.raises(ValidationError, match="Cannot provide both"):
        handle_equipment_purchase(
            user=user,
            gang=gang,
            equipment=weapon,
            fighter=fighter,
            vehicle=make_vehicle(gang),
        )


@pytest.mark.django_db
def test_purchase_for_fighter_of_another_gang(user, gang, make_gang, make_fighter, weapon):
    stranger = make_fighter(make_gang("The Others"), "Stranger")

    with pytest.raises(ValidationError, match="Fighter does not belong to the same gang"):
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=stranger)


@pytest.mark.django_db
def test_purchase_by_non_owner_is_denied(other_user, gang, fighter, weapon):
    with pytest.raises(PermissionDenied):
        handle_equipment_purchase(
            user=other_user, gang=gang, equipment=weapon, fighter=fighter
        )


@pytest.mark.django_db
def test_staff_may_buy_for_any_gang(staff_user, gang, fighter, weapon):
    result = handle_equipment_purchase(
        user=staff_user, gang=gang, equipment=weapon, fighter=fighter
    )

    assert result.log.user == staff_user
    assert result.gang_credits == 985


@pytest.mark.django_db
def test_purchase_for_archived_gang_is_rejected(user, gang, fighter, weapon):
    gang.archive()

    with pytest.raises(ValidationError, match="archived"):
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=fighter)


@pytest.mark.django_db
def test_purchase_with_selected_effects(
    user, gang, fighter, weapon, make_effect_type, assert_rating_consistent
):
    hotshot = make_effect_type(
        "Hotshot Pack",
        credits_increase=10,
        modifiers={"ballistic_skill": -1},
        equipment=weapon,
    )

    result = handle_equipment_purchase(
        user=user,
        gang=gang,
        equipment=weapon,
        fighter=fighter,
        selected_effect_ids=[hotshot.pk],
    )

    assert len(result.applied_effects) == 1
    effect = result.applied_effects[0]
    assert effect.fighter == fighter
    assert effect.fighter_equipment == result.item
    assert effect.credits_increase == 10
    assert [(m.stat_name, m.numeric_value) for m in effect.modifiers.all()] == [
        ("ballistic_skill", -1)
    ]
    assert result.gang_rating_delta == 25
    assert result.fighter_total_cost == 125
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_purchase_rejects_effects_of_other_equipment(
    user, gang, fighter, weapon, make_effect_type
):
    unrelated = make_effect_type("Scope", credits_increase=5)

    with pytest.raises(ValidationError, match="Selected effects are not available"):
        handle_equipment_purchase(
            user=user,
            gang=gang,
            equipment=weapon,
            fighter=fighter,
            selected_effect_ids=[unrelated.pk],
        )
    assert not FighterEquipment.objects.exists()


@pytest.mark.django_db
def test_purchase_creates_exotic_beast(
    user, gang, fighter, beast_equipment, assert_rating_consistent
):
    """The beast is costed through its owner; its own total is 0."""
    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=beast_equipment, fighter=fighter
    )

    assert len(result.created_beasts) == 1
    beast = result.created_beasts[0]
    assert beast.fighter_class == FighterClassChoices.EXOTIC_BEAST
    assert beast.credits == 0
    assert beast.gang_id == gang.pk

    ownership = FighterExoticBeast.objects.get(beast=beast)
    assert ownership.owner_fighter == fighter
    assert ownership.fighter_equipment == result.item

    assert result.purchase_cost == 50
    assert result.gang_rating_delta == 100
    assert fighter_total_cost(beast) == 0
    assert result.fighter_total_cost == 200
    gang.refresh_from_db()
    assert gang.credits == 950
    assert gang.rating == 200
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_purchase_for_unassigned_vehicle_does_not_change_rating(
    user, gang, fighter, make_vehicle, make_equipment, assert_rating_consistent
):
    vehicle = make_vehicle(gang)
    ram = make_equipment(
        "Ram", cost=20, equipment_type=EquipmentTypeChoices.VEHICLE_UPGRADE
    )

    result = handle_equipment_purchase(user=user, gang=gang, equipment=ram, vehicle=vehicle)

    assert result.item.vehicle == vehicle
    assert result.gang_rating_delta == 0
    assert result.gang_credits == 980
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_purchase_for_crewed_vehicle_counts(
    user, gang, fighter, make_vehicle, make_equipment, assert_rating_consistent
):
    vehicle = make_vehicle(gang, fighter=fighter)
    gang.rating += vehicle.cost
    gang.save(update_fields=["rating"])
    ram = make_equipment(
        "Ram", cost=20, equipment_type=EquipmentTypeChoices.VEHICLE_UPGRADE
    )

    result = handle_equipment_purchase(user=user, gang=gang, equipment=ram, vehicle=vehicle)

    assert result.gang_rating_delta == 20
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_purchase_for_dead_fighter_does_not_change_rating(
    user, gang, make_fighter, weapon, assert_rating_consistent
):
    dead = make_fighter(gang, "Dead Dave", credits=0, killed=True)

    result = handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=dead)

    assert result.gang_rating_delta == 0
    assert result.gang_credits == 985
    assert_rating_consistent(gang)
