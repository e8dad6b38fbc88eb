import pytest
from django.core.exceptions import PermissionDenied, ValidationError

from gangbook.content.models import AlignmentChoices, ContentGangLineage, LineageTypeChoices
from gangbook.core.handlers import (
    handle_create_gang,
    handle_delete_gang,
    handle_gang_credits,
    handle_recalculate_rating,
    handle_update_gang,
)
from gangbook.core.models import Fighter, Gang, GangLog, GangLogType, Vehicle


@pytest.fixture
def affiliation():
    return ContentGangLineage.objects.create(
        name="The Iron Guild", lineage_type=LineageTypeChoices.AFFILIATION
    )


@pytest.mark.django_db
def test_create_gang(user, make_gang_type):
    gang_type = make_gang_type(
        "Palanite Enforcers", starting_credits=1200, alignment=AlignmentChoices.LAW_ABIDING
    )

    result = handle_create_gang(user=user, name=" Sector Patrol ", gang_type=gang_type)

    gang = result.gang
    assert gang.name == "Sector Patrol"
    assert gang.owner == user
    assert gang.credits == 1200
    assert gang.rating == 0
    assert gang.reputation == 1
    assert gang.alignment == AlignmentChoices.LAW_ABIDING
    assert result.log.action_type == GangLogType.CREATE_GANG
    assert result.log.credits_before == 1200
    assert result.log.credits_delta == 0


@pytest.mark.django_db
def test_create_gang_with_alignment_and_affiliation(user, gang_type, affiliation):
    result = handle_create_gang(
        user=user,
        name="Outcasts",
        gang_type=gang_type,
        alignment=AlignmentChoices.OUTLAW,
        affiliation=affiliation,
    )

    assert result.gang.alignment == AlignmentChoices.OUTLAW
    assert result.gang.affiliation == affiliation


@pytest.mark.django_db
def test_create_gang_validation(user, gang_type):
    legacy = ContentGangLineage.objects.create(name="Wyld Runners")

    with pytest.raises(ValidationError, match="Gang name is required"):
        handle_create_gang(user=user, name="  ", gang_type=gang_type)
    with pytest.raises(ValidationError, match="Wyld Runners is not an affiliation"):
        handle_create_gang(user=user, name="Runners", gang_type=gang_type, affiliation=legacy)
    assert not Gang.objects.exists()


@pytest.mark.django_db
def test_update_gang(user, gang, affiliation):
    result = handle_update_gang(
        user=user, gang=gang, name="The Steel Fists", reputation=5, affiliation=affiliation
    )

    gang.refresh_from_db()
    assert gang.name == "The Steel Fists"
    assert gang.reputation == 5
    assert gang.affiliation == affiliation
    assert result.log.action_type == GangLogType.UPDATE_GANG
    assert result.log.description == "Updated affiliation, name, reputation"

    handle_update_gang(user=user, gang=gang, affiliation=None)
    gang.refresh_from_db()
    assert gang.affiliation is None
    assert gang.name == "The Steel Fists"


@pytest.mark.django_db
def test_update_gang_by_other_user(other_user, gang):
    with pytest.raises(PermissionDenied):
        handle_update_gang(user=other_user, gang=gang, name="Stolen")


@pytest.mark.django_db
def test_archive_and_restore_gang(user, gang, fighter, weapon):
    handle_update_gang(user=user, gang=gang, archived=True)
    gang.refresh_from_db()
    assert gang.archived
    assert gang.archived_at is not None

    with pytest.raises(ValidationError, match="Cannot modify an archived gang."):
        handle_update_gang(user=user, gang=gang, name="Renamed")
    with pytest.raises(ValidationError, match="Cannot modify an archived gang."):
        handle_gang_credits(user=user, gang=gang, amount=10)

    handle_update_gang(user=user, gang=gang, archived=False, name="Back Again")
    gang.refresh_from_db()
    assert not gang.archived
    assert gang.name == "Back Again"


@pytest.mark.django_db
def test_add_and_spend_credits(user, gang):
    added = handle_gang_credits(user=user, gang=gang, amount=250, description="Loot")
    assert added.gang.credits == 1250
    assert added.log.credits_delta == 250
    assert added.log.description == "Loot"

    spent = handle_gang_credits(user=user, gang=gang, amount=50, operation="spend")
    assert spent.gang.credits == 1200
    assert spent.log.action_type == GangLogType.UPDATE_CREDITS
    assert spent.log.credits_before == 1250
    assert spent.log.description == "Spent 50¢"


@pytest.mark.django_db
def test_credits_validation(user, gang):
    with pytest.raises(ValidationError, match="Amount must not be negative"):
        handle_gang_credits(user=user, gang=gang, amount=-5)
    with pytest.raises(ValidationError, match="Operation must be"):
        handle_gang_credits(user=user, gang=gang, amount=5, operation="steal")
    with pytest.raises(ValidationError) as exc:
        handle_gang_credits(user=user, gang=gang, amount=1001, operation="spend")

    assert exc.value.messages == [
        "Gang has insufficient credits. Required: 1001, Available: 1000"
    ]
    gang.refresh_from_db()
    assert gang.credits == 1000
    assert not GangLog.objects.exists()


@pytest.mark.django_db
def test_recalculate_rating_fixes_drift(user, gang, fighter, weapon, make_stash_item):
    make_stash_item(gang, weapon)
    Gang.objects.filter(pk=gang.pk).update(rating=999, stash_value=0)

    result = handle_recalculate_rating(user=user, gang=gang)

    assert result.previous_rating == 999
    assert result.rating == 100
    assert result.previous_stash_value == 0
    assert result.stash_value == 15
    assert result.changed
    assert result.log.action_type == GangLogType.REFRESH_RATING
    assert result.log.rating_delta == -899
    gang.refresh_from_db()
    assert (gang.rating, gang.stash_value) == (100, 15)


@pytest.mark.django_db
def test_recalculate_rating_without_drift(user, gang, fighter):
    result = handle_recalculate_rating(user=user, gang=gang)

    assert not result.changed
    assert result.log is None
    assert not GangLog.objects.exists()


@pytest.mark.django_db
def test_delete_gang(user, gang, fighter, make_vehicle):
    make_vehicle(gang, fighter=fighter)
    expected_id = gang.pk

    gang_id = handle_delete_gang(user=user, gang=gang)

    assert gang_id == expected_id
    assert not Gang.objects.filter(pk=gang_id).exists()
    assert not Fighter.objects.exists()
    assert not Vehicle.objects.exists()


@pytest.mark.django_db
def test_delete_gang_by_other_user(other_user, gang):
    with pytest.raises(PermissionDenied):
        handle_delete_gang(user=other_user, gang=gang)
    assert Gang.objects.filter(pk=gang.pk).exists()
