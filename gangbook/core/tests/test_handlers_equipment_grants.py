"""
Tests for equipment that comes with other equipment: buying it with fixed or
chosen grants, hiring with it, removing it and moving it through the stash.
"""

import pytest
from django.core.exceptions import ValidationError

from gangbook.content.models import (
    ContentEquipmentGrant,
    ContentFighterDefaultEquipment,
)
from gangbook.core.handlers import (
    handle_add_fighter,
    handle_equipment_deletion,
    handle_equipment_purchase,
    handle_equipment_sale,
    handle_move_from_stash,
    handle_move_to_stash,
)
from gangbook.core.models import FighterEquipment
from gangbook.core.queries import fighter_total_cost
from gangbook.models import GrantSelectionChoices


@pytest.fixture
def infra_sight(make_equipment):
    return make_equipment("Infra-sight", cost=40)


@pytest.fixture
def telescopic_sight(make_equipment):
    return make_equipment("Telescopic Sight", cost=25)


@pytest.fixture
def make_grants(infra_sight, telescopic_sight):
    """Let the equipment bring an Infra-sight for free and a Telescopic Sight for 10."""

    def make_grants_(equipment, selection=GrantSelectionChoices.FIXED, max_selections=None):
        equipment.grant_selection = selection
        equipment.grant_max_selections = max_selections
        equipment.save()
        ContentEquipmentGrant.objects.create(
            equipment=equipment, granted_equipment=infra_sight, additional_cost=0
        )
        ContentEquipmentGrant.objects.create(
            equipment=equipment, granted_equipment=telescopic_sight, additional_cost=10
        )
        return equipment

    return make_grants_


@pytest.fixture
def bought_with_grants(user, gang, fighter, weapon, make_grants):
    """An Autogun with both sights bought for Krag: 975 credits, rating 125."""
    make_grants(weapon)
    return handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, fighter=fighter
    )


@pytest.mark.django_db
def test_fixed_grants_come_with_the_purchase(
    gang, fighter, infra_sight, telescopic_sight, bought_with_grants, assert_rating_consistent
):
    result = bought_with_grants

    assert result.purchase_cost == 25
    assert result.gang_credits == 975
    assert result.gang_rating_delta == 25
    assert [
        (granted.equipment, granted.original_cost, granted.purchase_cost)
        for granted in result.granted_items
    ] == [(infra_sight, 40, 0), (telescopic_sight, 25, 10)]
    for granted in result.granted_items:
        assert granted.granted_by == result.item
        assert granted.fighter == fighter
    assert result.fighter_total_cost == 125
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_single_select_grant(
    user, gang, fighter, weapon, telescopic_sight, make_grants, assert_rating_consistent
):
    make_grants(weapon, GrantSelectionChoices.SINGLE_SELECT)

    with pytest.raises(ValidationError, match="Single select requires exactly one option"):
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=fighter)
    with pytest.raises(ValidationError, match="Selected equipment is not granted by Autogun"):
        handle_equipment_purchase(
            user=user,
            gang=gang,
            equipment=weapon,
            fighter=fighter,
            selected_grant_equipment_ids=[weapon.pk],
        )
    assert not FighterEquipment.objects.exists()

    result = handle_equipment_purchase(
        user=user,
        gang=gang,
        equipment=weapon,
        fighter=fighter,
        selected_grant_equipment_ids=[telescopic_sight.pk],
    )

    assert [granted.equipment for granted in result.granted_items] == [telescopic_sight]
    assert result.purchase_cost == 25
    assert result.gang_credits == 975
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_multiple_select_grant_respects_the_limit(
    user, gang, fighter, weapon, infra_sight, telescopic_sight, make_grants
):
    make_grants(weapon, GrantSelectionChoices.MULTIPLE_SELECT, max_selections=1)
    both = [infra_sight.pk, telescopic_sight.pk]

    with pytest.raises(ValidationError, match="At least one option must be selected"):
        handle_equipment_purchase(user=user, gang=gang, equipment=weapon, fighter=fighter)
    with pytest.raises(ValidationError, match="Cannot select more than 1 options"):
        handle_equipment_purchase(
            user=user,
            gang=gang,
            equipment=weapon,
            fighter=fighter,
            selected_grant_equipment_ids=both,
        )

    weapon.grant_max_selections = None
    weapon.save()
    result = handle_equipment_purchase(
        user=user,
        gang=gang,
        equipment=weapon,
        fighter=fighter,
        selected_grant_equipment_ids=both,
    )
    assert len(result.granted_items) == 2
    assert result.purchase_cost == 25


@pytest.mark.django_db
def test_stash_purchase_brings_no_grants(user, gang, weapon, make_grants):
    make_grants(weapon)

    result = handle_equipment_purchase(
        user=user, gang=gang, equipment=weapon, buy_for_gang_stash=True
    )

    assert result.granted_items == []
    assert result.purchase_cost == 15
    assert FighterEquipment.objects.count() == 1


@pytest.mark.django_db
def test_grants_cost_is_checked_against_credits(user, make_gang, make_fighter, weapon, make_grants):
    make_grants(weapon)
    poor = make_gang("Poor Gang", credits=20)

    with pytest.raises(ValidationError, match="Required: 25, Available: 20"):
        handle_equipment_purchase(
            user=user, gang=poor, equipment=weapon, fighter=make_fighter(poor, "Scrag")
        )
    assert not FighterEquipment.objects.exists()


@pytest.mark.django_db
def test_deleting_an_item_removes_what_it_granted(
    user, gang, bought_with_grants, assert_rating_consistent
):
    result = handle_equipment_deletion(user=user, item=bought_with_grants.item)

    assert result.rating_delta == -25
    assert result.gang_rating == 100
    assert not FighterEquipment.objects.exists()
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_selling_an_item_refunds_what_it_granted(
    user, gang, bought_with_grants, assert_rating_consistent
):
    result = handle_equipment_sale(user=user, item=bought_with_grants.item)

    assert result.credits_delta == 25
    assert result.gang_credits == 1000
    assert result.gang_rating == 100
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_granted_item_can_be_removed_on_its_own(
    user, gang, fighter, bought_with_grants, assert_rating_consistent
):
    telescopic = bought_with_grants.granted_items[1]

    result = handle_equipment_deletion(user=user, item=telescopic)

    assert result.rating_delta == -10
    assert fighter_total_cost(fighter) == 115
    assert FighterEquipment.objects.count() == 2
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_granted_items_move_through_the_stash_with_their_item(
    user, gang, fighter, bought_with_grants, assert_rating_consistent
):
    item = bought_with_grants.item
    infra = bought_with_grants.granted_items[0]

    with pytest.raises(ValidationError, match="Infra-sight came with Autogun and moves with it"):
        handle_move_to_stash(user=user, item=infra)

    stashed = handle_move_to_stash(user=user, item=item)
    assert stashed.gang_rating == 100
    assert stashed.stash_value == 25
    assert FighterEquipment.objects.filter(gang_stash=True).count() == 3
    assert_rating_consistent(gang)

    infra.refresh_from_db()
    with pytest.raises(ValidationError, match="Infra-sight came with Autogun and moves with it"):
        handle_move_from_stash(user=user, item=infra, fighter=fighter)

    returned = handle_move_from_stash(user=user, item=stashed.item, fighter=fighter)
    assert returned.gang_rating == 125
    assert returned.stash_value == 0
    assert FighterEquipment.objects.filter(fighter=fighter).count() == 3
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_hiring_brings_fixed_grants_of_default_equipment(
    user, gang, fighter_type, weapon, make_grants, assert_rating_consistent
):
    make_grants(weapon)
    ContentFighterDefaultEquipment.objects.create(fighter_type=fighter_type, equipment=weapon)

    result = handle_add_fighter(user=user, gang=gang, fighter_type=fighter_type, name="Bruiser")

    assert [granted.purchase_cost for granted in result.granted_items] == [0, 10]
    assert result.gang_credits == 880
    assert result.gang_rating == 130
    assert FighterEquipment.objects.filter(fighter=result.fighter).count() == 3
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_hiring_skips_grants_that_need_a_choice(
    user, gang, fighter_type, weapon, make_grants
):
    make_grants(weapon, GrantSelectionChoices.SINGLE_SELECT)
    ContentFighterDefaultEquipment.objects.create(fighter_type=fighter_type, equipment=weapon)

    result = handle_add_fighter(user=user, gang=gang, fighter_type=fighter_type, name="Bruiser")

    assert result.granted_items == []
    assert result.gang_rating == 120
