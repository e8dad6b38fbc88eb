import json
from typing import Callable

import pytest
from django.core.cache import cache

from gangbook.content.models import (
    ContentEffectCategory,
    ContentEffectType,
    ContentEffectTypeModifier,
    ContentEquipment,
    ContentExoticBeast,
    ContentFighterType,
    ContentGangType,
    ContentVehicleType,
)
from gangbook.core.models import Fighter, FighterEquipment, Gang, Vehicle
from gangbook.core.queries import calculate_gang_rating, calculate_stash_value
from gangbook.models import EquipmentTypeChoices, FighterClassChoices


@pytest.fixture(autouse=True)
def clear_cache():
    """View-models are cached; start every test from an empty cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(django_user_model) -> Callable[[str, str], object]:
    def make_user_(username: str, password: str = "password", **kwargs) -> object:
        return django_user_model.objects.create_user(
            username=username, password=password, **kwargs
        )

    return make_user_


@pytest.fixture
def user(make_user):
    return make_user("testuser", "password")


@pytest.fixture
def other_user(make_user):
    return make_user("otheruser", "password")


@pytest.fixture
def staff_user(make_user):
    return make_user("staffuser", "password", is_staff=True)


@pytest.fixture
def make_gang_type() -> Callable[[str], ContentGangType]:
    def make_gang_type_(name: str, **kwargs) -> ContentGangType:
        return ContentGangType.objects.create(name=name, **kwargs)

    return make_gang_type_


@pytest.fixture
def gang_type(make_gang_type) -> ContentGangType:
    return make_gang_type("House Goliath", starting_credits=1000)


@pytest.fixture
def make_fighter_type(gang_type) -> Callable[[str], ContentFighterType]:
    def make_fighter_type_(name: str, cost: int = 100, **kwargs) -> ContentFighterType:
        kwargs = {
            "gang_type": gang_type,
            "fighter_class": FighterClassChoices.GANGER,
            "movement": 4,
            "weapon_skill": 4,
            "ballistic_skill": 4,
            "strength": 4,
            "toughness": 4,
            "wounds": 1,
            "initiative": 4,
            "attacks": 1,
            "leadership": 7,
            "cool": 7,
            "willpower": 8,
            "intelligence": 8,
            **kwargs,
        }
        return ContentFighterType.objects.create(name=name, cost=cost, **kwargs)

    return make_fighter_type_


@pytest.fixture
def fighter_type(make_fighter_type) -> ContentFighterType:
    return make_fighter_type("Forge Boss", cost=120, fighter_class=FighterClassChoices.LEADER)


@pytest.fixture
def make_equipment() -> Callable[[str], ContentEquipment]:
    def make_equipment_(name: str, cost: int = 0, **kwargs) -> ContentEquipment:
        return ContentEquipment.objects.create(name=name, cost=cost, **kwargs)

    return make_equipment_


@pytest.fixture
def weapon(make_equipment) -> ContentEquipment:
    return make_equipment(
        "Autogun", cost=15, equipment_type=EquipmentTypeChoices.WEAPON
    )


@pytest.fixture
def make_gang(user, gang_type) -> Callable[[str], Gang]:
    def make_gang_(name: str, **kwargs) -> Gang:
        kwargs = {
            "owner": user,
            "gang_type": gang_type,
            "credits": 1000,
            **kwargs,
        }
        return Gang.objects.create(name=name, **kwargs)

    return make_gang_


@pytest.fixture
def gang(make_gang) -> Gang:
    return make_gang("The Iron Fists")


@pytest.fixture
def make_fighter(fighter_type) -> Callable[[Gang, str], Fighter]:
    """
    Create a fighter directly. Its credits are added to the gang rating so
    the cached rating stays in step with the fighter rows.
    """

    def make_fighter_(gang: Gang, name: str, credits: int = 100, **kwargs) -> Fighter:
        kwargs = {
            "owner": gang.owner,
            "fighter_type": fighter_type,
            **kwargs,
        }
        fighter = Fighter.objects.create(gang=gang, name=name, credits=credits, **kwargs)
        gang.rating += credits
        gang.save(update_fields=["rating"])
        return fighter

    return make_fighter_


@pytest.fixture
def fighter(gang, make_fighter) -> Fighter:
    return make_fighter(gang, "Krag")


@pytest.fixture
def make_stash_item() -> Callable[[Gang, ContentEquipment], FighterEquipment]:
    def make_stash_item_(gang: Gang, equipment: ContentEquipment, cost=None) -> FighterEquipment:
        cost = equipment.cost if cost is None else cost
        item = FighterEquipment.objects.create(
            gang=gang,
            owner=gang.owner,
            equipment=equipment,
            original_cost=equipment.cost,
            purchase_cost=cost,
            gang_stash=True,
        )
        gang.stash_value += cost
        gang.save(update_fields=["stash_value"])
        return item

    return make_stash_item_


@pytest.fixture
def make_vehicle_type(gang_type) -> Callable[[str], ContentVehicleType]:
    def make_vehicle_type_(name: str, cost: int = 100, **kwargs) -> ContentVehicleType:
        kwargs = {
            "gang_type": gang_type,
            "movement": 8,
            "front": 10,
            "side": 9,
            "rear": 8,
            "hull_points": 3,
            "handling": 5,
            "armour_save": 4,
            "body_slots": 2,
            "drive_slots": 1,
            "engine_slots": 1,
            **kwargs,
        }
        return ContentVehicleType.objects.create(name=name, cost=cost, **kwargs)

    return make_vehicle_type_


@pytest.fixture
def vehicle_type(make_vehicle_type) -> ContentVehicleType:
    return make_vehicle_type("Cargo-8 Ridgehauler", cost=155)


@pytest.fixture
def make_vehicle(vehicle_type) -> Callable[[Gang, str], Vehicle]:
    def make_vehicle_(gang: Gang, name: str = "Ridgehauler", cost: int = 155, **kwargs) -> Vehicle:
        return Vehicle.objects.create(
            gang=gang,
            owner=gang.owner,
            vehicle_type=vehicle_type,
            name=name,
            cost=cost,
            **kwargs,
        )

    return make_vehicle_


@pytest.fixture
def make_effect_type() -> Callable[[str], ContentEffectType]:
    def make_effect_type_(
        name: str, credits_increase: int = 0, modifiers=None, **kwargs
    ) -> ContentEffectType:
        category, _ = ContentEffectCategory.objects.get_or_create(name="Advancements")
        effect_type = ContentEffectType.objects.create(
            name=name,
            category=category,
            type_specific_data={"credits_increase": credits_increase},
            **kwargs,
        )
        for stat_name, value in (modifiers or {}).items():
            ContentEffectTypeModifier.objects.create(
                effect_type=effect_type,
                stat_name=stat_name,
                default_numeric_value=value,
            )
        return effect_type

    return make_effect_type_


@pytest.fixture
def beast_equipment(make_equipment, make_fighter_type) -> ContentEquipment:
    """Equipment that grants a Cyber-mastiff costing 50."""
    equipment = make_equipment("Cyber-mastiff", cost=50)
    beast_type = make_fighter_type(
        "Cyber-mastiff",
        cost=50,
        gang_type=None,
        fighter_class=FighterClassChoices.EXOTIC_BEAST,
    )
    ContentExoticBeast.objects.create(equipment=equipment, fighter_type=beast_type)
    return equipment


@pytest.fixture
def assert_rating_consistent() -> Callable[[Gang], None]:
    """Check the cached rating and stash value against a full recalculation."""

    def assert_rating_consistent_(gang: Gang):
        gang.refresh_from_db()
        assert gang.rating == calculate_gang_rating(gang)
        assert gang.stash_value == calculate_stash_value(gang)

    return assert_rating_consistent_


@pytest.fixture
def api(client, user):
    """A logged-in test client with JSON helpers."""
    client.force_login(user)

    class Api:
        def __init__(self, client):
            self.client = client

        def get(self, path, **params):
            return self.client.get(path, params)

        def post(self, path, data=None):
            return self.client.post(
                path, json.dumps(data or {}), content_type="application/json"
            )

        def patch(self, path, data=None):
            return self.client.patch(
                path, json.dumps(data or {}), content_type="application/json"
            )

        def put(self, path, data=None):
            return self.client.put(
                path, json.dumps(data or {}), content_type="application/json"
            )

        def delete(self, path):
            return self.client.delete(path)

    return Api(client)
