from .base import AppBase
from .campaign import (
    Campaign,
    CampaignBattle,
    CampaignGang,
    CampaignGangStatus,
    CampaignMember,
    CampaignRole,
    CampaignTerritory,
)
from .equipment import FighterEquipment
from .events import Event, EventNoun, EventVerb, log_event
from .fighter import (
    Fighter,
    FighterEffect,
    FighterEffectModifier,
    FighterExoticBeast,
    FighterSkill,
)
from .gang import Gang, GangLog, GangLogType
from .vehicle import Vehicle

__all__ = [
    "AppBase",
    "Campaign",
    "CampaignBattle",
    "CampaignGang",
    "CampaignGangStatus",
    "CampaignMember",
    "CampaignRole",
    "CampaignTerritory",
    "Event",
    "EventNoun",
    "EventVerb",
    "Fighter",
    "FighterEffect",
    "FighterEffectModifier",
    "FighterEquipment",
    "FighterExoticBeast",
    "FighterSkill",
    "Gang",
    "GangLog",
    "GangLogType",
    "Vehicle",
    "log_event",
]
