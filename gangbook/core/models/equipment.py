from django.db import models
from django.db.models import Q

from gangbook.models import format_cost_display

from .base import AppBase


class FighterEquipment(AppBase):
    """
    An owned piece of equipment. It is carried by exactly one of a fighter,
    a vehicle or the gang stash.

    ``original_cost`` is the catalog price at purchase. ``purchase_cost`` is
    the value it adds to rating, after discounts and the master-crafted
    premium. Items granted by another item record the grant's additional
    cost as their ``purchase_cost``.
    """

    gang = models.ForeignKey(
        "Gang", on_delete=models.CASCADE, related_name="equipment", db_index=True
    )
    fighter = models.ForeignKey(
        "Fighter",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="equipment",
    )
    vehicle = models.ForeignKey(
        "Vehicle",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="equipment",
    )
    equipment = models.ForeignKey(
        "content.ContentEquipment",
        on_delete=models.PROTECT,
        related_name="owned",
    )
    original_cost = models.IntegerField(default=0)
    purchase_cost = models.IntegerField(default=0)
    is_master_crafted = models.BooleanField(default=False)
    gang_stash = models.BooleanField(default=False, db_index=True)
    granted_by = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="granted_items",
        help_text="The item this one came with. It is removed with that item.",
    )

    class Meta:
        verbose_name = "fighter equipment"
        verbose_name_plural = "fighter equipment"
        ordering = ["created"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(gang_stash=True, fighter__isnull=True, vehicle__isnull=True)
                    | Q(gang_stash=False, fighter__isnull=False, vehicle__isnull=True)
                    | Q(gang_stash=False, fighter__isnull=True, vehicle__isnull=False)
                ),
                name="fighter_equipment_single_holder",
            )
        ]

    def __str__(self):
        return self.equipment.name

    @property
    def holder(self):
        return self.fighter or self.vehicle

    def counts_for_rating(self) -> bool:
        """Stash items never count; vehicle items count while the crew does."""
        if self.fighter_id:
            return self.fighter.counts_for_rating()
        if self.vehicle_id:
            return self.vehicle.counts_for_rating()
        return False

    def cost_display(self):
        return format_cost_display(self.purchase_cost)
