"""
Content models package.

Reference data maintained by administrators, organized by domain into
separate modules and re-exported here:
    from gangbook.content.models import ContentFighterType
"""

from .base import Content, ContentQuerySet
from .gang import (
    DEFAULT_STARTING_CREDITS,
    AlignmentChoices,
    ContentGangLineage,
    ContentGangType,
    LineageTypeChoices,
)
from .equipment import (
    ContentEquipment,
    ContentEquipmentAvailability,
    ContentEquipmentCategory,
    ContentEquipmentDiscount,
    ContentEquipmentGrant,
    ContentEquipmentQuerySet,
    ContentWeaponProfile,
)
from .fighter import (
    ContentExoticBeast,
    ContentFighterDefaultEquipment,
    ContentFighterType,
    ContentFighterTypeGangCost,
)
from .effect import (
    STAT_CHOICES,
    ContentEffectCategory,
    ContentEffectType,
    ContentEffectTypeModifier,
)
from .skill import ContentSkill, ContentSkillType
from .vehicle import ContentVehicleType
from .campaign import (
    ContentCampaignTriumph,
    ContentCampaignType,
    ContentScenario,
    ContentTerritory,
)

__all__ = [
    "AlignmentChoices",
    "Content",
    "ContentCampaignTriumph",
    "ContentCampaignType",
    "ContentEffectCategory",
    "ContentEffectType",
    "ContentEffectTypeModifier",
    "ContentEquipment",
    "ContentEquipmentAvailability",
    "ContentEquipmentCategory",
    "ContentEquipmentDiscount",
    "ContentEquipmentGrant",
    "ContentEquipmentQuerySet",
    "ContentExoticBeast",
    "ContentFighterDefaultEquipment",
    "ContentFighterType",
    "ContentFighterTypeGangCost",
    "ContentGangLineage",
    "ContentGangType",
    "ContentQuerySet",
    "ContentScenario",
    "ContentSkill",
    "ContentSkillType",
    "ContentTerritory",
    "ContentVehicleType",
    "ContentWeaponProfile",
    "DEFAULT_STARTING_CREDITS",
    "LineageTypeChoices",
    "STAT_CHOICES",
]
