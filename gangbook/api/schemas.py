"""Request bodies accepted by the gameplay API."""

import uuid
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Cost = Optional[int]

# Characteristics are stored in PositiveSmallIntegerFields
StatValue = Annotated[int, Field(ge=0, le=32767)]


class GangCreateParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    gang_type_id: uuid.UUID
    alignment: Optional[str] = None
    affiliation_id: Optional[uuid.UUID] = None
    note: str = ""


class GangUpdateParams(BaseModel):
    """Fields left out are unchanged; ``affiliation_id: null`` clears it."""

    name: Optional[str] = Field(None, max_length=255)
    alignment: Optional[str] = None
    reputation: Optional[int] = None
    note: Optional[str] = None
    affiliation_id: Optional[uuid.UUID] = None
    archived: Optional[bool] = None


class CreditsParams(BaseModel):
    amount: int = Field(ge=0)
    operation: Literal["add", "spend"] = "add"
    description: str = ""


class SelectedEquipmentParams(BaseModel):
    equipment_id: uuid.UUID
    cost: Cost = Field(None, ge=0)
    quantity: int = Field(1, ge=1)


class FighterCreateParams(BaseModel):
    fighter_type_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    cost: Cost = Field(None, ge=0)
    use_base_cost_for_rating: bool = True
    selected_equipment: list[SelectedEquipmentParams] = []
    legacy_id: Optional[uuid.UUID] = None


class FighterUpdateParams(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    note: Optional[str] = None
    xp: Optional[int] = Field(None, ge=0)
    kills: Optional[int] = Field(None, ge=0)
    credits: Optional[int] = None
    cost_adjustment: Optional[int] = None
    stats: Optional[dict[str, StatValue]] = None


class FighterStatusParams(BaseModel):
    killed: Optional[bool] = None
    retired: Optional[bool] = None
    enslaved: Optional[bool] = None
    captured: Optional[bool] = None


class SkillParams(BaseModel):
    skill_id: uuid.UUID
    xp_cost: int = Field(0, ge=0)
    credits_increase: int = 0


class EffectParams(BaseModel):
    effect_type_id: uuid.UUID


class AdvancementParams(BaseModel):
    effect_type_id: uuid.UUID
    xp_cost: int = Field(0, ge=0)
    credits_increase: int = Field(0, ge=0)


class FighterCopyParams(BaseModel):
    """``target_gang_id`` defaults to the fighter's own gang."""

    target_gang_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, max_length=255)


class GangCopyParams(BaseModel):
    name: Optional[str] = Field(None, max_length=255)


class EquipmentPurchaseParams(BaseModel):
    equipment_id: uuid.UUID
    fighter_id: Optional[uuid.UUID] = None
    vehicle_id: Optional[uuid.UUID] = None
    buy_for_gang_stash: bool = False
    manual_cost: Cost = Field(None, ge=0)
    master_crafted: bool = False
    use_base_cost_for_rating: bool = True
    selected_effect_ids: list[uuid.UUID] = []
    selected_grant_equipment_ids: list[uuid.UUID] = []


class SellParams(BaseModel):
    manual_cost: Cost = Field(None, ge=0)


class UnstashParams(BaseModel):
    fighter_id: Optional[uuid.UUID] = None
    vehicle_id: Optional[uuid.UUID] = None


class VehicleCreateParams(BaseModel):
    vehicle_type_id: uuid.UUID
    name: Optional[str] = Field(None, max_length=255)
    cost: Cost = Field(None, ge=0)
    base_cost: Cost = Field(None, ge=0)


class VehicleUpdateParams(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    special_rules: Optional[list[str]] = None


class VehicleAssignParams(BaseModel):
    fighter_id: uuid.UUID


class CampaignCreateParams(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    campaign_type_id: Optional[uuid.UUID] = None
    description: str = ""


class CampaignUpdateParams(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    status: Optional[Literal["active", "ended"]] = None


class MemberAddParams(BaseModel):
    username: str
    role: Literal["OWNER", "ARBITRATOR", "MEMBER"] = "MEMBER"


class MemberUpdateParams(BaseModel):
    role: Literal["OWNER", "ARBITRATOR", "MEMBER"]


class CampaignGangParams(BaseModel):
    gang_id: uuid.UUID


class CampaignGangActionParams(BaseModel):
    action: Literal["accept", "decline"]


class TerritoryCreateParams(BaseModel):
    territory_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, max_length=255)


class TerritoryUpdateParams(BaseModel):
    """``gang_id: null`` clears the holder; leaving it out keeps it."""

    gang_id: Optional[uuid.UUID] = None
    ruined: Optional[bool] = None
    default_gang_territory: Optional[bool] = None


class BattleParticipant(BaseModel):
    gang_id: uuid.UUID
    role: Literal["attacker", "defender", "none"] = "none"


class BattleCreateParams(BaseModel):
    attacker_id: Optional[uuid.UUID] = None
    defender_id: Optional[uuid.UUID] = None
    winner_id: Optional[uuid.UUID] = None
    scenario_id: Optional[uuid.UUID] = None
    scenario_name: str = ""
    note: str = ""
    participants: list[BattleParticipant] = []
    claimed_territory_ids: list[uuid.UUID] = []

    @field_validator("scenario_name")
    @classmethod
    def strip_scenario_name(cls, value: str) -> str:
        return value.strip()


class BattleUpdateParams(BaseModel):
    attacker_id: Optional[uuid.UUID] = None
    defender_id: Optional[uuid.UUID] = None
    winner_id: Optional[uuid.UUID] = None
    scenario_name: Optional[str] = None
    note: Optional[str] = None
    participants: Optional[list[BattleParticipant]] = None
