from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.models import FIGHTER_STATS, VEHICLE_STATS

from .base import Content, ContentQuerySet

STAT_CHOICES = [
    (stat, stat.replace("_", " ").title())
    for stat in dict.fromkeys(FIGHTER_STATS + VEHICLE_STATS)
]


class ContentEffectCategory(Content):
    """Groups effect types, e.g. injuries, advancements or bionics."""

    name = models.CharField(max_length=255, unique=True)

    class Meta:
        verbose_name = "Effect Category"
        verbose_name_plural = "Effect Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentEffectTypeQuerySet(ContentQuerySet):
    def granted_by(self, equipment) -> "ContentEffectTypeQuerySet":
        return self.filter(equipment=equipment)


class ContentEffectType(Content):
    """
    A named bundle of stat modifiers applied to a fighter or vehicle.

    ``type_specific_data`` is copied onto every effect created from the type.
    Its ``credits_increase`` key is the rating cost the effect adds.
    """

    name = models.CharField(max_length=255, db_index=True)
    category = models.ForeignKey(
        ContentEffectCategory,
        on_delete=models.PROTECT,
        related_name="effect_types",
    )
    equipment = models.ForeignKey(
        "ContentEquipment",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="effect_types",
        help_text="Set when this effect is an optional bonus of an equipment purchase.",
    )
    type_specific_data = models.JSONField(default=dict, blank=True)

    history = HistoricalRecords()

    objects = ContentEffectTypeQuerySet.as_manager()

    class Meta:
        verbose_name = "Effect Type"
        verbose_name_plural = "Effect Types"
        ordering = ["category__name", "name"]

    def __str__(self):
        return self.name

    @property
    def credits_increase(self) -> int:
        return int((self.type_specific_data or {}).get("credits_increase") or 0)


class ContentEffectTypeModifier(Content):
    effect_type = models.ForeignKey(
        ContentEffectType, on_delete=models.CASCADE, related_name="modifiers"
    )
    stat_name = models.CharField(max_length=50, choices=STAT_CHOICES)
    default_numeric_value = models.IntegerField(default=0)

    class Meta:
        verbose_name = "Effect Type Modifier"
        verbose_name_plural = "Effect Type Modifiers"

    def __str__(self):
        return f"{self.stat_name} {self.default_numeric_value:+d}"
