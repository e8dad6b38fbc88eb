"""
Business logic handlers for core operations.

This package contains handlers that encapsulate business logic for various
operations like equipment purchases, fighter hiring, etc. Handlers are designed
to be called from views, management commands or tests and are directly
testable without HTTP machinery.

Each handler is transactional, locks the gang row it changes, keeps the
cached rating, stash value and credits in step through ``Gang.create_action``
and invalidates the cached view-models it affects.
"""

from gangbook.core.handlers.campaign import (
    BattleResult,
    handle_accept_campaign_gang,
    handle_add_campaign_gang,
    handle_add_campaign_member,
    handle_add_campaign_territory,
    handle_create_battle,
    handle_create_campaign,
    handle_decline_campaign_gang,
    handle_delete_battle,
    handle_delete_campaign,
    handle_remove_campaign_gang,
    handle_remove_campaign_member,
    handle_remove_campaign_territory,
    handle_update_battle,
    handle_update_campaign,
    handle_update_campaign_territory,
    handle_update_member_role,
)
from gangbook.core.handlers.copy import (
    FighterCopyResult,
    GangCopyResult,
    handle_copy_fighter,
    handle_copy_gang,
)
from gangbook.core.handlers.effects import (
    EffectResult,
    handle_add_advancement,
    handle_add_effect,
    handle_remove_effect,
)
from gangbook.core.handlers.equipment import (
    EquipmentPurchaseResult,
    EquipmentRemovalResult,
    StashResult,
    handle_equipment_deletion,
    handle_equipment_purchase,
    handle_equipment_sale,
    handle_move_from_stash,
    handle_move_to_stash,
    handle_stash_deletion,
    handle_stash_sale,
)
from gangbook.core.handlers.fighter import (
    AddFighterResult,
    FighterRemovalResult,
    FighterUpdateResult,
    SelectedEquipment,
    SkillResult,
    handle_add_fighter,
    handle_add_fighter_skill,
    handle_delete_fighter,
    handle_fighter_status_change,
    handle_remove_fighter_skill,
    handle_update_fighter,
)
from gangbook.core.handlers.gang import (
    UNSET,
    GangResult,
    RatingRecalculationResult,
    handle_create_gang,
    handle_delete_gang,
    handle_gang_credits,
    handle_recalculate_rating,
    handle_update_gang,
)
from gangbook.core.handlers.vehicle import (
    VehicleRemovalResult,
    VehicleResult,
    handle_add_vehicle,
    handle_assign_vehicle,
    handle_delete_vehicle,
    handle_sell_vehicle,
    handle_unassign_vehicle,
    handle_update_vehicle,
)

__all__ = [
    "AddFighterResult",
    "BattleResult",
    "EffectResult",
    "EquipmentPurchaseResult",
    "EquipmentRemovalResult",
    "FighterCopyResult",
    "FighterRemovalResult",
    "FighterUpdateResult",
    "GangCopyResult",
    "GangResult",
    "RatingRecalculationResult",
    "SelectedEquipment",
    "SkillResult",
    "StashResult",
    "UNSET",
    "VehicleRemovalResult",
    "VehicleResult",
    "handle_accept_campaign_gang",
    "handle_add_campaign_gang",
    "handle_add_campaign_member",
    "handle_add_advancement",
    "handle_add_campaign_territory",
    "handle_add_effect",
    "handle_add_fighter",
    "handle_add_fighter_skill",
    "handle_add_vehicle",
    "handle_assign_vehicle",
    "handle_copy_fighter",
    "handle_copy_gang",
    "handle_create_battle",
    "handle_create_campaign",
    "handle_create_gang",
    "handle_decline_campaign_gang",
    "handle_delete_battle",
    "handle_delete_campaign",
    "handle_delete_fighter",
    "handle_delete_gang",
    "handle_delete_vehicle",
    "handle_equipment_deletion",
    "handle_equipment_purchase",
    "handle_equipment_sale",
    "handle_fighter_status_change",
    "handle_gang_credits",
    "handle_move_from_stash",
    "handle_move_to_stash",
    "handle_recalculate_rating",
    "handle_remove_campaign_gang",
    "handle_remove_campaign_member",
    "handle_remove_campaign_territory",
    "handle_remove_effect",
    "handle_remove_fighter_skill",
    "handle_sell_vehicle",
    "handle_stash_deletion",
    "handle_stash_sale",
    "handle_unassign_vehicle",
    "handle_update_battle",
    "handle_update_campaign",
    "handle_update_campaign_territory",
    "handle_update_fighter",
    "handle_update_gang",
    "handle_update_member_role",
    "handle_update_vehicle",
]
