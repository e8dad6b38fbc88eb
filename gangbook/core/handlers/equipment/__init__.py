"""Equipment operation handlers."""

from gangbook.core.handlers.equipment.purchase import (
    EquipmentPurchaseResult,
    handle_equipment_purchase,
    purchase_costs,
)
from gangbook.core.handlers.equipment.removal import (
    EquipmentRemovalResult,
    handle_equipment_deletion,
    handle_equipment_sale,
)
from gangbook.core.handlers.equipment.stash import (
    StashResult,
    handle_move_from_stash,
    handle_move_to_stash,
    handle_stash_deletion,
    handle_stash_sale,
    stash_sale_value,
)

__all__ = [
    "EquipmentPurchaseResult",
    "EquipmentRemovalResult",
    "StashResult",
    "handle_equipment_deletion",
    "handle_equipment_purchase",
    "handle_equipment_sale",
    "handle_move_from_stash",
    "handle_move_to_stash",
    "handle_stash_deletion",
    "handle_stash_sale",
    "purchase_costs",
    "stash_sale_value",
]
