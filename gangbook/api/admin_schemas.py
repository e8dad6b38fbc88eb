"""
Request bodies for the staff reference-data API.

Updates are validated against the stored row with the request body merged on
top, so every schema here describes a complete row.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from gangbook.models import (
    EquipmentTypeChoices,
    FighterClassChoices,
    GrantSelectionChoices,
)


class FighterStats(BaseModel):
    movement: int = Field(0, ge=0)
    weapon_skill: int = Field(0, ge=0)
    ballistic_skill: int = Field(0, ge=0)
    strength: int = Field(0, ge=0)
    toughness: int = Field(0, ge=0)
    wounds: int = Field(0, ge=0)
    initiative: int = Field(0, ge=0)
    attacks: int = Field(0, ge=0)
    leadership: int = Field(0, ge=0)
    cool: int = Field(0, ge=0)
    willpower: int = Field(0, ge=0)
    intelligence: int = Field(0, ge=0)


class VehicleStats(BaseModel):
    movement: int = Field(0, ge=0)
    front: int = Field(0, ge=0)
    side: int = Field(0, ge=0)
    rear: int = Field(0, ge=0)
    hull_points: int = Field(0, ge=0)
    handling: int = Field(0, ge=0)
    armour_save: int = Field(0, ge=0)
    body_slots: int = Field(0, ge=0)
    drive_slots: int = Field(0, ge=0)
    engine_slots: int = Field(0, ge=0)


class WeaponProfileParams(BaseModel):
    name: str = ""
    range_short: str = ""
    range_long: str = ""
    accuracy_short: str = ""
    accuracy_long: str = ""
    strength: str = ""
    armour_piercing: str = ""
    damage: str = ""
    ammo: str = ""
    traits: list[str] = []
    weapon_group_id: Optional[uuid.UUID] = None
    is_default_profile: bool = False
    sort_order: int = Field(0, ge=0)


class DiscountParams(BaseModel):
    gang_type_id: Optional[uuid.UUID] = None
    fighter_type_id: Optional[uuid.UUID] = None
    adjusted_cost: int


class AvailabilityParams(BaseModel):
    gang_type_id: uuid.UUID
    availability: str = Field(min_length=1, max_length=20)


class GrantParams(BaseModel):
    granted_equipment_id: uuid.UUID
    additional_cost: int = Field(0, ge=0)


class EquipmentParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category_id: Optional[uuid.UUID] = None
    equipment_type: EquipmentTypeChoices = EquipmentTypeChoices.WARGEAR
    cost: int = 0
    availability: str = Field("", max_length=20)
    faction: str = ""
    variants: str = ""
    trading_post: bool = True
    core_equipment: bool = False
    weapon_profiles: list[WeaponProfileParams] = []
    discounts: list[DiscountParams] = []
    fighter_type_ids: list[uuid.UUID] = []
    availabilities: list[AvailabilityParams] = []
    grant_selection: GrantSelectionChoices = GrantSelectionChoices.FIXED
    grant_max_selections: Optional[int] = Field(None, ge=1)
    grants: list[GrantParams] = []


class GangCostParams(BaseModel):
    gang_type_id: uuid.UUID
    adjusted_cost: int


class FighterTypeParams(FighterStats):
    name: str = Field(min_length=1, max_length=255)
    gang_type_id: Optional[uuid.UUID] = None
    fighter_class: FighterClassChoices = FighterClassChoices.GANGER
    sub_type: str = ""
    cost: int = 0
    special_rules: list[str] = []
    free_skill: bool = False
    gang_costs: list[GangCostParams] = []
    default_equipment_ids: list[uuid.UUID] = []


class GangTypeParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    alignment: str = ""
    starting_credits: int = Field(1000, ge=0)
    image_url: str = ""


class GangLineageParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    lineage_type: str = "legacy"
    fighter_type_id: Optional[uuid.UUID] = None
    fighter_type_access_ids: list[uuid.UUID] = []


class CampaignTypeParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    image_url: str = ""


class CampaignTriumphParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    criteria: str = ""
    campaign_type_id: uuid.UUID


class TerritoryParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    campaign_type_id: Optional[uuid.UUID] = None


class ScenarioParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""


class VehicleTypeParams(VehicleStats):
    name: str = Field(min_length=1, max_length=255)
    gang_type_id: Optional[uuid.UUID] = None
    cost: int = 0
    special_rules: list[str] = []


class ModifierParams(BaseModel):
    stat_name: str
    default_numeric_value: int = 0


class EffectTypeParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category_id: uuid.UUID
    equipment_id: Optional[uuid.UUID] = None
    type_specific_data: dict = {}
    modifiers: list[ModifierParams] = []


class SkillParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    skill_type_id: uuid.UUID


class SkillTypeParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
