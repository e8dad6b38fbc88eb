from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.models import FighterClassChoices, FighterStatline, format_cost_display

from .base import Content, ContentQuerySet


class ContentFighterTypeQuerySet(ContentQuerySet):
    def available_to(self, gang_type) -> "ContentFighterTypeQuerySet":
        """Fighter types of this gang type plus the ones open to every gang."""
        return self.filter(
            models.Q(gang_type=gang_type) | models.Q(gang_type__isnull=True)
        )

    def hireable(self) -> "ContentFighterTypeQuerySet":
        return self.exclude(fighter_class=FighterClassChoices.EXOTIC_BEAST)


class ContentFighterType(FighterStatline, Content):
    """
    A fighter archetype: the statline, class and hire cost new fighters copy.
    """

    name = models.CharField(max_length=255, db_index=True)
    gang_type = models.ForeignKey(
        "ContentGangType",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="fighter_types",
        help_text="Leave empty for fighters any gang may hire.",
    )
    fighter_class = models.CharField(
        max_length=20,
        choices=FighterClassChoices.choices,
        default=FighterClassChoices.GANGER,
        db_index=True,
    )
    sub_type = models.CharField(max_length=255, blank=True, default="")
    cost = models.IntegerField(default=0)
    special_rules = models.JSONField(default=list, blank=True)
    free_skill = models.BooleanField(default=False)

    history = HistoricalRecords()

    objects = ContentFighterTypeQuerySet.as_manager()

    class Meta:
        verbose_name = "Fighter Type"
        verbose_name_plural = "Fighter Types"
        ordering = ["gang_type__name", "name"]

    def __str__(self):
        gang_type = self.gang_type.name if self.gang_type else "Any"
        return f"{self.name} ({gang_type})"

    def cost_for_gang_type(self, gang_type) -> int:
        """Hire cost for a gang of ``gang_type``, honouring gang-specific prices."""
        if gang_type is None:
            return self.cost
        override = (
            self.gang_costs.filter(gang_type=gang_type)
            .values_list("adjusted_cost", flat=True)
            .first()
        )
        return self.cost if override is None else override

    def cost_display(self):
        return format_cost_display(self.cost)


class ContentFighterTypeGangCost(Content):
    fighter_type = models.ForeignKey(
        ContentFighterType, on_delete=models.CASCADE, related_name="gang_costs"
    )
    gang_type = models.ForeignKey(
        "ContentGangType", on_delete=models.CASCADE, related_name="fighter_costs"
    )
    adjusted_cost = models.IntegerField()

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Fighter Type Gang Cost"
        verbose_name_plural = "Fighter Type Gang Costs"
        unique_together = ["fighter_type", "gang_type"]

    def __str__(self):
        return f"{self.fighter_type.name} for {self.gang_type.name}: {format_cost_display(self.adjusted_cost)}"


class ContentFighterDefaultEquipment(Content):
    """Equipment every new fighter of a type is given for free."""

    fighter_type = models.ForeignKey(
        ContentFighterType, on_delete=models.CASCADE, related_name="default_equipment"
    )
    equipment = models.ForeignKey(
        "ContentEquipment", on_delete=models.CASCADE, related_name="default_for"
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Fighter Default Equipment"
        verbose_name_plural = "Fighter Default Equipment"

    def __str__(self):
        return f"{self.fighter_type.name}: {self.equipment.name}"


class ContentExoticBeast(Content):
    """
    Links a piece of equipment to the fighter type of the companion creature
    it grants. Buying the equipment for a fighter creates the creature as a
    fighter owned by the buyer.
    """

    equipment = models.ForeignKey(
        "ContentEquipment", on_delete=models.CASCADE, related_name="exotic_beasts"
    )
    fighter_type = models.ForeignKey(
        ContentFighterType, on_delete=models.CASCADE, related_name="granted_by"
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Exotic Beast"
        verbose_name_plural = "Exotic Beasts"

    def __str__(self):
        return f"{self.equipment.name} grants {self.fighter_type.name}"
