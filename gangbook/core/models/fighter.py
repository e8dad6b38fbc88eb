from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.content.models import STAT_CHOICES
from gangbook.models import Base, FighterClassChoices, FighterStatline

from .base import AppBase


class Fighter(FighterStatline, AppBase):
    """
    A fighter in a gang, hired from a fighter type whose statline it copies.

    ``credits`` is the rating cost recorded at hire. ``cost_adjustment`` is a
    manual correction added on top of the calculated cost.
    """

    gang = models.ForeignKey(
        "Gang", on_delete=models.CASCADE, related_name="fighters", db_index=True
    )
    name = models.CharField(max_length=255)
    fighter_type = models.ForeignKey(
        "content.ContentFighterType",
        on_delete=models.PROTECT,
        related_name="fighters",
    )
    fighter_class = models.CharField(
        max_length=20,
        choices=FighterClassChoices.choices,
        default=FighterClassChoices.GANGER,
    )
    credits = models.IntegerField(default=0)
    cost_adjustment = models.IntegerField(default=0)
    xp = models.IntegerField(default=0)
    kills = models.IntegerField(default=0)

    killed = models.BooleanField(default=False)
    retired = models.BooleanField(default=False)
    enslaved = models.BooleanField(default=False)
    captured = models.BooleanField(default=False)

    special_rules = models.JSONField(default=list, blank=True)
    legacy = models.ForeignKey(
        "content.ContentGangLineage",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="legacy_fighters",
    )
    note = models.TextField(blank=True, default="")

    history = HistoricalRecords()

    class Meta:
        verbose_name = "fighter"
        verbose_name_plural = "fighters"
        ordering = ["created"]

    def __str__(self):
        return self.name

    @property
    def is_active(self) -> bool:
        return not (self.killed or self.retired or self.enslaved or self.captured)

    @property
    def ownership(self):
        """The exotic beast ownership record if this fighter is an owned beast."""
        return getattr(self, "beast_ownership", None)

    @property
    def is_owned_beast(self) -> bool:
        return self.ownership is not None

    def counts_for_rating(self) -> bool:
        """
        Whether this fighter's cost is part of the gang rating.

        An owned beast is counted through its owner, so it counts only while
        both it and its owner do.
        """
        if not self.is_active:
            return False
        ownership = self.ownership
        if ownership is not None:
            return ownership.owner_fighter.counts_for_rating()
        return True


class FighterSkill(Base):
    fighter = models.ForeignKey(
        Fighter, on_delete=models.CASCADE, related_name="skills"
    )
    skill = models.ForeignKey(
        "content.ContentSkill", on_delete=models.PROTECT, related_name="+"
    )
    credits_increase = models.IntegerField(default=0)
    xp_cost = models.IntegerField(default=0)

    class Meta:
        verbose_name = "fighter skill"
        verbose_name_plural = "fighter skills"
        unique_together = ["fighter", "skill"]

    def __str__(self):
        return f"{self.fighter.name}: {self.skill.name}"


class FighterEffect(Base):
    """
    An effect applied to a fighter or a vehicle: an injury, an advancement,
    lasting damage or a bonus granted by equipment.

    Effects granted by equipment point at the equipment instance and are
    deleted with it.
    """

    fighter = models.ForeignKey(
        Fighter,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="effects",
    )
    vehicle = models.ForeignKey(
        "Vehicle",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="effects",
    )
    effect_type = models.ForeignKey(
        "content.ContentEffectType",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    name = models.CharField(max_length=255)
    type_specific_data = models.JSONField(default=dict, blank=True)
    fighter_equipment = models.ForeignKey(
        "FighterEquipment",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="effects",
    )

    class Meta:
        verbose_name = "fighter effect"
        verbose_name_plural = "fighter effects"
        ordering = ["created"]

    def __str__(self):
        return self.name

    @property
    def credits_increase(self) -> int:
        return int((self.type_specific_data or {}).get("credits_increase") or 0)

    @property
    def category_name(self) -> str:
        if self.effect_type_id and self.effect_type.category_id:
            return self.effect_type.category.name
        return "uncategorised"


class FighterEffectModifier(Base):
    effect = models.ForeignKey(
        FighterEffect, on_delete=models.CASCADE, related_name="modifiers"
    )
    stat_name = models.CharField(max_length=50, choices=STAT_CHOICES)
    numeric_value = models.IntegerField(default=0)

    class Meta:
        verbose_name = "fighter effect modifier"
        verbose_name_plural = "fighter effect modifiers"

    def __str__(self):
        return f"{self.stat_name} {self.numeric_value:+d}"


class FighterExoticBeast(Base):
    """
    Ownership of a companion creature. The beast is an ordinary fighter row;
    deleting this record (directly, or through its owner or the granting
    equipment) deletes the beast too.
    """

    owner_fighter = models.ForeignKey(
        Fighter, on_delete=models.CASCADE, related_name="owned_beasts"
    )
    beast = models.OneToOneField(
        Fighter, on_delete=models.CASCADE, related_name="beast_ownership"
    )
    fighter_equipment = models.ForeignKey(
        "FighterEquipment",
        on_delete=models.CASCADE,
        related_name="granted_beasts",
    )

    class Meta:
        verbose_name = "exotic beast"
        verbose_name_plural = "exotic beasts"

    def __str__(self):
        return f"{self.beast.name} (owned by {self.owner_fighter.name})"
