import math
import uuid

from django.db import models
from django.utils import timezone

MASTER_CRAFTED_MULTIPLIER = 1.25


def is_int(value):
    """Check if a value is a number."""
    try:
        int(value)
        return True
    except (ValueError, TypeError):
        return False


def round_up_to_five(value) -> int:
    """Round a credit value up to the nearest multiple of 5."""
    return int(math.ceil(value / 5) * 5)


def master_crafted_cost(cost: int) -> int:
    """
    Apply the master-crafted premium to a weapon cost.

    >>> master_crafted_cost(100)
    125
    >>> master_crafted_cost(30)
    40
    """
    return round_up_to_five(cost * MASTER_CRAFTED_MULTIPLIER)


def format_cost_display(cost_value, show_sign=False):
    """
    Format a cost value for display with proper sign handling.

    Parameters
    ----------
    cost_value : int or str
        The cost value to format
    show_sign : bool
        Whether to show '+' for positive values (default: False)

    Returns
    -------
    str
        Formatted cost string with '¢' suffix

    Examples
    --------
    >>> format_cost_display(5)
    '5¢'
    >>> format_cost_display(5, show_sign=True)
    '+5¢'
    >>> format_cost_display(-5, show_sign=True)
    '-5¢'
    """
    if isinstance(cost_value, str):
        if not is_int(cost_value):
            return cost_value
        cost_value = int(cost_value)

    if show_sign and cost_value >= 0:
        return f"+{cost_value}¢"

    return f"{cost_value}¢"


class Archived(models.Model):
    """An Archived object is no longer in use."""

    archived = models.BooleanField(default=False, db_index=True)
    archived_at = models.DateTimeField(null=True, blank=True)

    def archive(self):
        self.archived = True
        self.archived_at = timezone.now()
        self.save(update_fields=["archived", "archived_at", "modified"])

    def unarchive(self):
        self.archived = False
        self.archived_at = None
        self.save(update_fields=["archived", "archived_at", "modified"])

    class Meta:
        abstract = True


class Owned(models.Model):
    """An Owned object is owned by a User."""

    owner = models.ForeignKey(
        "auth.User", on_delete=models.CASCADE, null=True, blank=False, db_index=True
    )

    class Meta:
        abstract = True


class Base(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created = models.DateTimeField(auto_now_add=True, db_index=True)
    modified = models.DateTimeField(auto_now=True, db_index=True)

    class Meta:
        abstract = True


class FighterClassChoices(models.TextChoices):
    LEADER = "leader", "Leader"
    CHAMPION = "champion", "Champion"
    GANGER = "ganger", "Ganger"
    JUVE = "juve", "Juve"
    PROSPECT = "prospect", "Prospect"
    SPECIALIST = "specialist", "Specialist"
    CREW = "crew", "Crew"
    BRUTE = "brute", "Brute"
    HANGER_ON = "hanger_on", "Hanger-on"
    HIRED_GUN = "hired_gun", "Hired Gun"
    EXOTIC_BEAST = "exotic_beast", "Exotic Beast"


class EquipmentTypeChoices(models.TextChoices):
    WEAPON = "weapon", "Weapon"
    WARGEAR = "wargear", "Wargear"
    VEHICLE_UPGRADE = "vehicle_upgrade", "Vehicle Upgrade"


class GrantSelectionChoices(models.TextChoices):
    FIXED = "fixed", "Fixed"
    SINGLE_SELECT = "single_select", "Single Select"
    MULTIPLE_SELECT = "multiple_select", "Multiple Select"


FIGHTER_STATS = [
    "movement",
    "weapon_skill",
    "ballistic_skill",
    "strength",
    "toughness",
    "wounds",
    "initiative",
    "attacks",
    "leadership",
    "cool",
    "willpower",
    "intelligence",
]

VEHICLE_STATS = [
    "movement",
    "front",
    "side",
    "rear",
    "hull_points",
    "handling",
    "armour_save",
]


class FighterStatline(models.Model):
    """Characteristics shared by fighter types and the fighters hired from them."""

    movement = models.PositiveSmallIntegerField(default=0)
    weapon_skill = models.PositiveSmallIntegerField(default=0)
    ballistic_skill = models.PositiveSmallIntegerField(default=0)
    strength = models.PositiveSmallIntegerField(default=0)
    toughness = models.PositiveSmallIntegerField(default=0)
    wounds = models.PositiveSmallIntegerField(default=0)
    initiative = models.PositiveSmallIntegerField(default=0)
    attacks = models.PositiveSmallIntegerField(default=0)
    leadership = models.PositiveSmallIntegerField(default=0)
    cool = models.PositiveSmallIntegerField(default=0)
    willpower = models.PositiveSmallIntegerField(default=0)
    intelligence = models.PositiveSmallIntegerField(default=0)

    class Meta:
        abstract = True

    def statline(self) -> dict:
        return {stat: getattr(self, stat) for stat in FIGHTER_STATS}


class VehicleStatline(models.Model):
    movement = models.PositiveSmallIntegerField(default=0)
    front = models.PositiveSmallIntegerField(default=0)
    side = models.PositiveSmallIntegerField(default=0)
    rear = models.PositiveSmallIntegerField(default=0)
    hull_points = models.PositiveSmallIntegerField(default=0)
    handling = models.PositiveSmallIntegerField(default=0)
    armour_save = models.PositiveSmallIntegerField(default=0)
    body_slots = models.PositiveSmallIntegerField(default=0)
    drive_slots = models.PositiveSmallIntegerField(default=0)
    engine_slots = models.PositiveSmallIntegerField(default=0)

    class Meta:
        abstract = True

    def statline(self) -> dict:
        return {stat: getattr(self, stat) for stat in VEHICLE_STATS}
