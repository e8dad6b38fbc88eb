import pytest
from django.urls import reverse

from gangbook.content.models import (
    ContentFighterDefaultEquipment,
    ContentFighterTypeGangCost,
)
from gangbook.models import FighterClassChoices


@pytest.mark.django_db
def test_gang_types(api, gang_type):
    response = api.get(reverse("api:gang-types"))

    assert response.status_code == 200
    assert response.json()["gang_types"] == [
        {
            "id": str(gang_type.pk),
            "name": "House Goliath",
            "alignment": gang_type.alignment,
            "starting_credits": 1000,
            "image_url": gang_type.image_url,
        }
    ]


@pytest.mark.django_db
def test_fighter_types_need_a_gang_type(api):
    response = api.get(reverse("api:fighter-types"))

    assert response.status_code == 400
    assert response.json() == {"error": "gang_type is required"}


@pytest.mark.django_db
def test_fighter_types_for_gang_type(
    api, gang_type, fighter_type, make_gang_type, make_fighter_type, weapon
):
    other_type = make_gang_type("House Escher")
    make_fighter_type("Wyld Runner", gang_type=other_type)
    make_fighter_type("Ratskin Scout", cost=60, gang_type=None)
    make_fighter_type(
        "Cyber-mastiff", gang_type=None, fighter_class=FighterClassChoices.EXOTIC_BEAST
    )
    ContentFighterTypeGangCost.objects.create(
        fighter_type=fighter_type, gang_type=gang_type, adjusted_cost=110
    )
    ContentFighterDefaultEquipment.objects.create(
        fighter_type=fighter_type, equipment=weapon
    )

    response = api.get(reverse("api:fighter-types"), gang_type=str(gang_type.pk))

    types = {t["name"]: t for t in response.json()["fighter_types"]}
    assert set(types) == {"Forge Boss", "Ratskin Scout"}
    assert types["Forge Boss"]["cost"] == 110
    assert types["Forge Boss"]["base_cost"] == 120
    assert types["Forge Boss"]["default_equipment"] == ["Autogun"]
    assert types["Forge Boss"]["stats"]["movement"] == 4
    assert types["Ratskin Scout"]["cost"] == 60


@pytest.mark.django_db
def test_vehicle_types(api, gang_type, vehicle_type, make_gang_type, make_vehicle_type):
    make_vehicle_type("Outrider Quad", gang_type=make_gang_type("House Escher"))
    make_vehicle_type("Ridge Walker", gang_type=None)
    url = reverse("api:vehicle-types")

    everything = api.get(url).json()["vehicle_types"]
    assert len(everything) == 3

    filtered = api.get(url, gang_type=str(gang_type.pk)).json()["vehicle_types"]
    assert {v["name"] for v in filtered} == {"Cargo-8 Ridgehauler", "Ridge Walker"}
