from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.models import VehicleStatline

from .base import AppBase


class Vehicle(VehicleStatline, AppBase):
    """
    A vehicle owned by a gang. A vehicle with no crew is unassigned and does
    not count toward the gang rating.
    """

    gang = models.ForeignKey(
        "Gang", on_delete=models.CASCADE, related_name="vehicles", db_index=True
    )
    fighter = models.ForeignKey(
        "Fighter",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vehicles",
        help_text="The crew fighter the vehicle is assigned to.",
    )
    vehicle_type = models.ForeignKey(
        "content.ContentVehicleType",
        on_delete=models.PROTECT,
        related_name="vehicles",
    )
    name = models.CharField(max_length=255)
    cost = models.IntegerField(default=0)
    body_slots_occupied = models.PositiveSmallIntegerField(default=0)
    drive_slots_occupied = models.PositiveSmallIntegerField(default=0)
    engine_slots_occupied = models.PositiveSmallIntegerField(default=0)
    special_rules = models.JSONField(default=list, blank=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "vehicle"
        verbose_name_plural = "vehicles"
        ordering = ["created"]

    def __str__(self):
        return self.name

    def counts_for_rating(self) -> bool:
        return self.fighter_id is not None and self.fighter.counts_for_rating()
