from django.db import models
from simple_history.models import HistoricalRecords

from .base import Content

DEFAULT_STARTING_CREDITS = 1000


class AlignmentChoices(models.TextChoices):
    LAW_ABIDING = "law_abiding", "Law Abiding"
    OUTLAW = "outlaw", "Outlaw"


class ContentGangType(Content):
    """
    A gang type (house, faction) that a player's gang is built from.
    """

    name = models.CharField(max_length=255, unique=True, db_index=True)
    alignment = models.CharField(
        max_length=20,
        choices=AlignmentChoices.choices,
        blank=True,
        default="",
        help_text="The default alignment for gangs of this type.",
    )
    starting_credits = models.PositiveIntegerField(
        default=DEFAULT_STARTING_CREDITS,
        help_text="Credits a new gang of this type starts with.",
    )
    image_url = models.URLField(blank=True, default="")

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Gang Type"
        verbose_name_plural = "Gang Types"
        ordering = ["name"]

    def __str__(self):
        return self.name


class LineageTypeChoices(models.TextChoices):
    LEGACY = "legacy", "Legacy"
    AFFILIATION = "affiliation", "Affiliation"


class ContentGangLineage(Content):
    """
    A legacy or affiliation a gang (or a single fighter) can take.

    ``fighter_type_access`` lists the fighter types the lineage opens up.
    """

    name = models.CharField(max_length=255, db_index=True)
    lineage_type = models.CharField(
        max_length=20,
        choices=LineageTypeChoices.choices,
        default=LineageTypeChoices.LEGACY,
    )
    fighter_type = models.ForeignKey(
        "ContentFighterType",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="associated_lineages",
        help_text="The fighter type this lineage is associated with.",
    )
    fighter_type_access = models.ManyToManyField(
        "ContentFighterType",
        blank=True,
        related_name="lineage_access",
        help_text="Fighter types that may take this lineage.",
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Gang Lineage"
        verbose_name_plural = "Gang Lineages"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.get_lineage_type_display()})"

    def allows(self, fighter_type) -> bool:
        return self.fighter_type_access.filter(pk=fighter_type.pk).exists()
