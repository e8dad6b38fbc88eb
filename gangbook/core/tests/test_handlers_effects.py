"""Tests for effects applied directly to fighters and vehicles."""

import pytest
from django.core.exceptions import ValidationError

from gangbook.core.handlers import (
    handle_add_advancement,
    handle_add_effect,
    handle_remove_effect,
)
from gangbook.core.models import Fighter, FighterEffect, GangLogType
from gangbook.core.queries import modified_stats


@pytest.mark.django_db
def test_add_effect_to_fighter(user, gang, fighter, make_effect_type, assert_rating_consistent):
    advancement = make_effect_type(
        "Toughness Advancement", credits_increase=30, modifiers={"toughness": 1}
    )

    result = handle_add_effect(user=user, effect_type=advancement, fighter=fighter)

    assert result.effect_name == "Toughness Advancement"
    assert result.rating_delta == 30
    assert result.gang_rating == 130
    assert result.log.action_type == GangLogType.ADD_EFFECT
    assert result.effect.type_specific_data == {"credits_increase": 30}
    assert modified_stats(fighter)["toughness"] == fighter.toughness + 1
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_effect_on_inactive_fighter_does_not_change_rating(
    user, gang, make_fighter, make_effect_type, assert_rating_consistent
):
    captive = make_fighter(gang, "Captive", credits=0, captured=True)
    injury = make_effect_type("Spinal Injury", credits_increase=-5, modifiers={"strength": -1})

    result = handle_add_effect(user=user, effect_type=injury, fighter=captive)

    assert result.rating_delta == 0
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_add_effect_to_unassigned_vehicle(
    user, gang, make_vehicle, make_effect_type, assert_rating_consistent
):
    damage = make_effect_type("Damaged Axle", modifiers={"handling": -1})

    result = handle_add_effect(user=user, effect_type=damage, vehicle=make_vehicle(gang))

    assert result.effect.vehicle is not None
    assert result.rating_delta == 0
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_add_effect_requires_one_target(user, fighter, make_vehicle, make_effect_type):
    effect_type = make_effect_type("Scar")

    with pytest.raises(ValidationError, match="Either fighter_id or vehicle_id"):
        handle_add_effect(user=user, effect_type=effect_type)
    with pytest.raises(ValidationError, match="Cannot provide both"):
        handle_add_effect(
            user=user,
            effect_type=effect_type,
            fighter=fighter,
            vehicle=make_vehicle(fighter.gang),
        )


@pytest.mark.django_db
def test_remove_effect(user, gang, fighter, make_effect_type, assert_rating_consistent):
    advancement = make_effect_type("Wounds Advancement", credits_increase=45)
    effect = handle_add_effect(user=user, effect_type=advancement, fighter=fighter).effect

    result = handle_remove_effect(user=user, effect=effect)

    assert result.rating_delta == -45
    assert result.gang_rating == 100
    assert result.log.description == "Removed Wounds Advancement from Krag"
    assert not FighterEffect.objects.exists()
    assert_rating_consistent(gang)


@pytest.fixture
def toughness(make_effect_type):
    return make_effect_type("Toughness", modifiers={"toughness": 1})


@pytest.mark.django_db
def test_add_advancement(user, gang, fighter, toughness, assert_rating_consistent):
    Fighter.objects.filter(pk=fighter.pk).update(xp=20)
    fighter.refresh_from_db()

    first = handle_add_advancement(
        user=user, fighter=fighter, effect_type=toughness, xp_cost=12, credits_increase=30
    )

    assert first.remaining_xp == 8
    assert first.rating_delta == 30
    assert first.gang_rating == 130
    assert first.effect.type_specific_data == {
        "credits_increase": 30,
        "times_increased": 1,
        "xp_cost": 12,
    }
    assert first.log.action_type == GangLogType.ADD_ADVANCEMENT
    assert first.log.description == "Krag advanced Toughness for 12 XP"
    assert modified_stats(fighter)["toughness"] == fighter.toughness + 1
    assert_rating_consistent(gang)

    second = handle_add_advancement(
        user=user, fighter=fighter, effect_type=toughness, xp_cost=8, credits_increase=30
    )
    assert second.remaining_xp == 0
    assert second.effect.type_specific_data["times_increased"] == 2
    assert modified_stats(fighter)["toughness"] == fighter.toughness + 2
    assert_rating_consistent(gang)


@pytest.mark.django_db
def test_advancement_needs_xp(user, gang, fighter, toughness):
    Fighter.objects.filter(pk=fighter.pk).update(xp=5)
    fighter.refresh_from_db()

    with pytest.raises(
        ValidationError, match="Fighter has insufficient XP. Required: 6, Available: 5"
    ):
        handle_add_advancement(user=user, fighter=fighter, effect_type=toughness, xp_cost=6)

    fighter.refresh_from_db()
    assert fighter.xp == 5
    assert not FighterEffect.objects.exists()


@pytest.mark.django_db
def test_advancement_must_modify_a_characteristic(user, fighter, make_effect_type):
    scar = make_effect_type("Scar")

    with pytest.raises(ValidationError, match="Scar does not modify a characteristic"):
        handle_add_advancement(user=user, fighter=fighter, effect_type=scar)


@pytest.mark.django_db
def test_removing_advancement_refunds_xp(
    user, gang, fighter, toughness, assert_rating_consistent
):
    Fighter.objects.filter(pk=fighter.pk).update(xp=12)
    fighter.refresh_from_db()
    effect = handle_add_advancement(
        user=user, fighter=fighter, effect_type=toughness, xp_cost=12, credits_increase=30
    ).effect

    result = handle_remove_effect(user=user, effect=effect)

    assert result.remaining_xp == 12
    assert result.rating_delta == -30
    assert result.gang_rating == 100
    fighter.refresh_from_db()
    assert fighter.xp == 12
    assert_rating_consistent(gang)
