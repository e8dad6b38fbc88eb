from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, OuterRef, Subquery
from django.db.models.functions import Coalesce
from simple_history.models import HistoricalRecords

from gangbook.models import (
    EquipmentTypeChoices,
    GrantSelectionChoices,
    format_cost_display,
)

from .base import Content, ContentQuerySet


class ContentEquipmentCategory(Content):
    name = models.CharField(max_length=255, unique=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Equipment Category"
        verbose_name_plural = "Equipment Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentEquipmentQuerySet(ContentQuerySet):
    """
    Custom QuerySet for ContentEquipment. Provides filtering by type and the
    discount-aware cost annotation used by the trading post and purchases.
    """

    def weapons(self) -> "ContentEquipmentQuerySet":
        return self.filter(equipment_type=EquipmentTypeChoices.WEAPON)

    def non_weapons(self) -> "ContentEquipmentQuerySet":
        return self.exclude(equipment_type=EquipmentTypeChoices.WEAPON)

    def with_adjusted_cost(
        self, gang_type=None, fighter_type=None
    ) -> "ContentEquipmentQuerySet":
        """
        Annotates ``adjusted_cost``: the fighter-type discount if one exists,
        else the gang-type discount, else the list cost.
        """
        candidates = []
        if fighter_type is not None:
            candidates.append(
                Subquery(
                    ContentEquipmentDiscount.objects.filter(
                        equipment=OuterRef("pk"), fighter_type=fighter_type
                    ).values("adjusted_cost")[:1],
                    output_field=models.IntegerField(),
                )
            )
        if gang_type is not None:
            candidates.append(
                Subquery(
                    ContentEquipmentDiscount.objects.filter(
                        equipment=OuterRef("pk"),
                        gang_type=gang_type,
                        fighter_type__isnull=True,
                    ).values("adjusted_cost")[:1],
                    output_field=models.IntegerField(),
                )
            )

        if not candidates:
            return self.annotate(adjusted_cost=F("cost"))
        return self.annotate(
            adjusted_cost=Coalesce(
                *candidates, F("cost"), output_field=models.IntegerField()
            )
        )


class ContentEquipment(Content):
    """
    An item that can be bought from the trading post and carried by fighters,
    vehicles or the gang stash.
    """

    name = models.CharField(max_length=255, db_index=True)
    category = models.ForeignKey(
        ContentEquipmentCategory,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="equipment",
    )
    equipment_type = models.CharField(
        max_length=20,
        choices=EquipmentTypeChoices.choices,
        default=EquipmentTypeChoices.WARGEAR,
        db_index=True,
    )
    cost = models.IntegerField(default=0, help_text="The trading post cost.")
    availability = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Availability code, e.g. C, R9 or I12.",
    )
    faction = models.CharField(max_length=255, blank=True, default="")
    variants = models.CharField(max_length=255, blank=True, default="")
    trading_post = models.BooleanField(
        default=True, help_text="Whether this item appears in the trading post."
    )
    core_equipment = models.BooleanField(default=False)
    grant_selection = models.CharField(
        max_length=20,
        choices=GrantSelectionChoices.choices,
        default=GrantSelectionChoices.FIXED,
        help_text="How the equipment this item grants is chosen at purchase.",
    )
    grant_max_selections = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text="Upper limit for multiple selection. Blank allows every option.",
    )

    history = HistoricalRecords()

    objects = ContentEquipmentQuerySet.as_manager()

    class Meta:
        verbose_name = "Equipment"
        verbose_name_plural = "Equipment"
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def is_weapon(self) -> bool:
        return self.equipment_type == EquipmentTypeChoices.WEAPON

    def adjusted_cost(self, gang_type=None, fighter_type=None) -> int:
        return (
            ContentEquipment.objects.with_adjusted_cost(
                gang_type=gang_type, fighter_type=fighter_type
            )
            .values_list("adjusted_cost", flat=True)
            .get(pk=self.pk)
        )

    def cost_display(self):
        return format_cost_display(self.cost)

    def select_grants(self, selected_ids=None) -> list["ContentEquipmentGrant"]:
        """
        The grants that come with a purchase of this item. Fixed grants all
        apply; otherwise ``selected_ids`` (granted equipment ids) picks them.
        """
        grants = list(self.grants.select_related("granted_equipment"))
        if not grants or self.grant_selection == GrantSelectionChoices.FIXED:
            return grants

        wanted = {str(pk) for pk in selected_ids or []}
        chosen = [g for g in grants if str(g.granted_equipment_id) in wanted]
        if len(chosen) != len(wanted):
            raise ValidationError(f"Selected equipment is not granted by {self.name}")

        if self.grant_selection == GrantSelectionChoices.SINGLE_SELECT:
            if len(chosen) != 1:
                raise ValidationError(
                    "Single select requires exactly one option to be selected"
                )
        else:
            limit = self.grant_max_selections or len(grants)
            if not chosen:
                raise ValidationError("At least one option must be selected")
            if len(chosen) > limit:
                raise ValidationError(f"Cannot select more than {limit} options")
        return chosen


class ContentEquipmentGrant(Content):
    """Another item that comes with ``equipment``, for an additional cost."""

    equipment = models.ForeignKey(
        ContentEquipment, on_delete=models.CASCADE, related_name="grants"
    )
    granted_equipment = models.ForeignKey(
        ContentEquipment, on_delete=models.CASCADE, related_name="granted_with"
    )
    additional_cost = models.IntegerField(default=0)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Equipment Grant"
        verbose_name_plural = "Equipment Grants"
        ordering = ["granted_equipment__name"]
        unique_together = ["equipment", "granted_equipment"]

    def __str__(self):
        return f"{self.equipment.name} grants {self.granted_equipment.name}"

    def clean(self):
        if self.equipment_id and self.equipment_id == self.granted_equipment_id:
            raise ValidationError("Equipment cannot grant itself")


class ContentEquipmentDiscount(Content):
    """
    A reduced (or increased) price for an item, for one gang type or one
    fighter type.
    """

    equipment = models.ForeignKey(
        ContentEquipment, on_delete=models.CASCADE, related_name="discounts"
    )
    gang_type = models.ForeignKey(
        "ContentGangType",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="equipment_discounts",
    )
    fighter_type = models.ForeignKey(
        "ContentFighterType",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="equipment_discounts",
    )
    adjusted_cost = models.IntegerField()

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Equipment Discount"
        verbose_name_plural = "Equipment Discounts"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(gang_type__isnull=False)
                | models.Q(fighter_type__isnull=False),
                name="equipment_discount_has_target",
            )
        ]

    def __str__(self):
        target = self.fighter_type or self.gang_type
        return f"{self.equipment.name} for {target}: {format_cost_display(self.adjusted_cost)}"


class ContentEquipmentAvailability(Content):
    equipment = models.ForeignKey(
        ContentEquipment, on_delete=models.CASCADE, related_name="availabilities"
    )
    gang_type = models.ForeignKey(
        "ContentGangType",
        on_delete=models.CASCADE,
        related_name="equipment_availabilities",
    )
    availability = models.CharField(max_length=20)

    class Meta:
        verbose_name = "Equipment Availability"
        verbose_name_plural = "Equipment Availabilities"
        unique_together = ["equipment", "gang_type"]

    def __str__(self):
        return f"{self.equipment.name} ({self.gang_type.name}): {self.availability}"


class ContentWeaponProfile(Content):
    """A firing or fighting profile of a weapon."""

    equipment = models.ForeignKey(
        ContentEquipment, on_delete=models.CASCADE, related_name="weapon_profiles"
    )
    name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Leave blank for the standard profile.",
    )
    range_short = models.CharField(max_length=10, blank=True, default="")
    range_long = models.CharField(max_length=10, blank=True, default="")
    accuracy_short = models.CharField(max_length=10, blank=True, default="")
    accuracy_long = models.CharField(max_length=10, blank=True, default="")
    strength = models.CharField(max_length=10, blank=True, default="")
    armour_piercing = models.CharField(max_length=10, blank=True, default="")
    damage = models.CharField(max_length=10, blank=True, default="")
    ammo = models.CharField(max_length=10, blank=True, default="")
    traits = models.JSONField(default=list, blank=True)
    weapon_group_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="Profiles sharing a group id are alternatives of one weapon.",
    )
    is_default_profile = models.BooleanField(default=False)
    sort_order = models.PositiveSmallIntegerField(default=0)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Weapon Profile"
        verbose_name_plural = "Weapon Profiles"
        ordering = ["equipment__name", "sort_order", "name"]

    def __str__(self):
        return f"{self.equipment.name} {self.name}".strip()

    def save(self, *args, **kwargs):
        if self.weapon_group_id is None:
            self.weapon_group_id = self.equipment_id
        super().save(*args, **kwargs)
