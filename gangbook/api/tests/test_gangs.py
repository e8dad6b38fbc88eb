import pytest
from django.urls import reverse

from gangbook.content.models import ContentEquipmentDiscount
from gangbook.core.models import Event, EventNoun, EventVerb, Gang, GangLogType


@pytest.mark.django_db
def test_list_own_gangs(api, gang, make_gang, other_user):
    make_gang("Not Mine", owner=other_user)

    response = api.get(reverse("api:gangs"))

    assert response.status_code == 200
    assert [g["name"] for g in response.json()["gangs"]] == ["The Iron Fists"]


@pytest.mark.django_db
def test_create_gang(api, user, gang_type):
    response = api.post(
        reverse("api:gangs"),
        {"name": "Hammerhands", "gang_type_id": str(gang_type.pk)},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Hammerhands"
    assert data["credits"] == 1000
    assert data["rating"] == 0
    assert data["fighters"] == []

    gang = Gang.objects.get(name="Hammerhands")
    assert gang.owner == user
    event = Event.objects.get(noun=EventNoun.GANG)
    assert event.verb == EventVerb.CREATE
    assert event.owner == user
    assert event.object_id == gang.pk
    assert event.context["gang_name"] == "Hammerhands"


@pytest.mark.django_db
def test_gang_detail_readable_by_other_users(client, other_user, gang, fighter):
    client.force_login(other_user)

    response = client.get(reverse("api:gang", args=[gang.pk]))

    assert response.status_code == 200
    assert response.json()["fighters"][0]["name"] == "Krag"


@pytest.mark.django_db
def test_update_and_archive_gang(api, gang):
    url = reverse("api:gang", args=[gang.pk])

    response = api.patch(url, {"name": "Iron Fists Reborn", "reputation": 3})
    assert response.status_code == 200
    assert response.json()["name"] == "Iron Fists Reborn"
    assert response.json()["reputation"] == 3

    response = api.patch(url, {"archived": True})
    assert response.json()["archived"] is True
    assert Event.objects.filter(verb=EventVerb.ARCHIVE).exists()

    response = api.patch(url, {"name": "Too Late"})
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot modify an archived gang."}


@pytest.mark.django_db
def test_delete_gang(api, gang):
    response = api.delete(reverse("api:gang", args=[gang.pk]))

    assert response.status_code == 200
    assert response.json() == {"deleted": str(gang.pk)}
    assert not Gang.objects.exists()


@pytest.mark.django_db
def test_gang_credits(api, gang):
    url = reverse("api:gang-credits", args=[gang.pk])

    assert api.post(url, {"amount": 200}).json() == {"credits": 1200}
    assert api.post(url, {"amount": 50, "operation": "spend"}).json() == {"credits": 1150}

    response = api.post(url, {"amount": -1})
    assert response.status_code == 400
    assert response.json()["error"].startswith("amount: ")


@pytest.mark.django_db
def test_gang_rating_refresh(api, gang, fighter):
    Gang.objects.filter(pk=gang.pk).update(rating=0)

    response = api.post(reverse("api:gang-rating", args=[gang.pk]))

    assert response.json() == {
        "rating": 100,
        "previous_rating": 0,
        "stash_value": 0,
        "previous_stash_value": 0,
        "changed": True,
    }


@pytest.mark.django_db
def test_gang_logs(api, gang):
    api.post(reverse("api:gang-credits", args=[gang.pk]), {"amount": 25})

    logs = api.get(reverse("api:gang-logs", args=[gang.pk])).json()["logs"]

    assert [log["action_type"] for log in logs] == [GangLogType.UPDATE_CREDITS]
    assert logs[0]["credits_before"] == 1000
    assert logs[0]["credits_delta"] == 25


@pytest.mark.django_db
def test_hire_fighter(api, gang, fighter_type, weapon):
    response = api.post(
        reverse("api:gang-fighters", args=[gang.pk]),
        {
            "fighter_type_id": str(fighter_type.pk),
            "name": "Grub",
            "selected_equipment": [{"equipment_id": str(weapon.pk)}],
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["fighter"]["name"] == "Grub"
    assert data["fighter"]["total_cost"] == 135
    assert data["fighter_cost"] == 120
    assert data["rating_cost"] == 135
    assert data["gang_credits"] == 880
    assert data["gang_rating"] == 135
    assert data["created_beast_ids"] == []


@pytest.mark.django_db
def test_hire_unknown_fighter_type(api, gang):
    response = api.post(
        reverse("api:gang-fighters", args=[gang.pk]),
        {"fighter_type_id": "00000000-0000-0000-0000-000000000000", "name": "Ghost"},
    )

    assert response.status_code == 404


@pytest.mark.django_db
def test_trading_post(api, gang, fighter, fighter_type, weapon):
    ContentEquipmentDiscount.objects.create(
        equipment=weapon, fighter_type=fighter_type, adjusted_cost=10
    )
    url = reverse("api:gang-equipment", args=[gang.pk])

    for_gang = api.get(url).json()["equipment"]
    assert [(item["name"], item["adjusted_cost"]) for item in for_gang] == [("Autogun", 15)]

    for_fighter = api.get(url, fighter=str(fighter.pk)).json()["equipment"]
    assert for_fighter[0]["adjusted_cost"] == 10


@pytest.mark.django_db
def test_add_vehicle(api, gang, vehicle_type):
    response = api.post(
        reverse("api:gang-vehicles", args=[gang.pk]),
        {"vehicle_type_id": str(vehicle_type.pk), "cost": 120},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["vehicle"]["name"] == "Cargo-8 Ridgehauler"
    assert data["vehicle"]["fighter_id"] is None
    assert data["gang_credits"] == 880
    assert data["payment_cost"] == 120
    assert data["base_cost"] == 120


@pytest.mark.django_db
def test_add_unknown_vehicle_type(api, gang):
    response = api.post(
        reverse("api:gang-vehicles", args=[gang.pk]),
        {"vehicle_type_id": "00000000-0000-0000-0000-000000000000"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Vehicle type not found"}


@pytest.mark.django_db
def test_copy_gang(client, other_user, gang, fighter):
    client.force_login(other_user)

    response = client.post(
        reverse("api:gang-copy", args=[gang.pk]),
        {"name": "The Bronze Fists"},
        content_type="application/json",
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "The Bronze Fists"
    assert data["credits"] == 1000
    assert data["rating"] == 100
    assert [f["name"] for f in data["fighters"]] == ["Krag"]
    copy = Gang.objects.get(pk=data["id"])
    assert copy.owner == other_user
    assert Event.objects.get(verb=EventVerb.CLONE).noun == EventNoun.GANG
