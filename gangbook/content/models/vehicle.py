from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.models import VehicleStatline, format_cost_display

from .base import Content


class ContentVehicleType(VehicleStatline, Content):
    name = models.CharField(max_length=255, db_index=True)
    gang_type = models.ForeignKey(
        "ContentGangType",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="vehicle_types",
        help_text="Leave empty for vehicles any gang may buy.",
    )
    cost = models.IntegerField(default=0)
    special_rules = models.JSONField(default=list, blank=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Vehicle Type"
        verbose_name_plural = "Vehicle Types"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def cost_display(self):
        return format_cost_display(self.cost)
