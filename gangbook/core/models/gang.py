import logging
from functools import cached_property
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.content.models import AlignmentChoices
from gangbook.models import format_cost_display
from gangbook.tracker import track

from .base import AppBase

logger = logging.getLogger(__name__)
User = get_user_model()


class Gang(AppBase):
    """
    A player's gang: fighters, vehicles and stash equipment plus its treasury.

    ``rating`` and ``stash_value`` are cached aggregates maintained by
    handlers through :meth:`create_action`.
    """

    name = models.CharField(max_length=255, db_index=True)
    gang_type = models.ForeignKey(
        "content.ContentGangType",
        on_delete=models.PROTECT,
        related_name="gangs",
    )
    alignment = models.CharField(
        max_length=20, choices=AlignmentChoices.choices, blank=True, default=""
    )
    credits = models.IntegerField(default=0, help_text="Unspent credits.")
    reputation = models.IntegerField(default=1)
    rating = models.PositiveIntegerField(
        default=0,
        help_text="Cached total cost of the fighters counting toward rating.",
    )
    stash_value = models.PositiveIntegerField(
        default=0, help_text="Cached total cost of equipment in the stash."
    )
    affiliation = models.ForeignKey(
        "content.ContentGangLineage",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="affiliated_gangs",
    )
    note = models.TextField(blank=True, default="")

    history = HistoricalRecords()

    class Meta:
        verbose_name = "gang"
        verbose_name_plural = "gangs"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def locked(self) -> "Gang":
        """Re-read this gang holding a row lock until the transaction ends."""
        return Gang.objects.select_for_update().get(pk=self.pk)

    def credits_display(self):
        return format_cost_display(self.credits)

    def rating_display(self):
        return format_cost_display(self.rating)

    def ensure_editable(self):
        if self.archived:
            raise ValidationError("Cannot modify an archived gang.")

    def ensure_credits(self, amount: int, message: Optional[str] = None):
        if amount > 0 and self.credits < amount:
            raise ValidationError(
                message
                or f"Gang has insufficient credits. Required: {amount}, Available: {self.credits}"
            )

    def create_action(
        self,
        *,
        user,
        action_type: str,
        description: str = "",
        rating_delta: int = 0,
        stash_delta: int = 0,
        credits_delta: int = 0,
        subject=None,
    ) -> "GangLog":
        """
        Apply rating, stash and credit deltas to this gang and record them.

        Rating and stash value are clamped at zero. Credits never go negative:
        a debit larger than the balance raises ValidationError and nothing is
        written. Callers hold the row lock from :meth:`locked`.
        """
        if credits_delta < 0:
            self.ensure_credits(-credits_delta)

        log = GangLog.objects.create(
            gang=self,
            user=user,
            owner=self.owner,
            action_type=action_type,
            description=description,
            subject_type=subject._meta.model_name if subject is not None else "",
            subject_id=subject.pk if subject is not None else None,
            rating_before=self.rating,
            rating_delta=rating_delta,
            stash_before=self.stash_value,
            stash_delta=stash_delta,
            credits_before=self.credits,
            credits_delta=credits_delta,
        )

        self.rating = max(0, self.rating + rating_delta)
        self.stash_value = max(0, self.stash_value + stash_delta)
        self.credits += credits_delta
        self.save(update_fields=["rating", "stash_value", "credits", "modified"])

        track(
            "gang_action_created",
            gang=self,
            action_type=action_type,
            rating_delta=rating_delta,
            stash_delta=stash_delta,
            credits_delta=credits_delta,
        )
        return log

    @property
    def wealth(self) -> int:
        return self.rating + self.stash_value + self.credits


class GangLogType(models.TextChoices):
    CREATE_GANG = "CREATE_GANG", "Create Gang"
    UPDATE_GANG = "UPDATE_GANG", "Update Gang"
    UPDATE_CREDITS = "UPDATE_CREDITS", "Update Credits"
    REFRESH_RATING = "REFRESH_RATING", "Refresh Rating"
    ADD_FIGHTER = "ADD_FIGHTER", "Add Fighter"
    UPDATE_FIGHTER = "UPDATE_FIGHTER", "Update Fighter"
    REMOVE_FIGHTER = "REMOVE_FIGHTER", "Remove Fighter"
    COPY_FIGHTER = "COPY_FIGHTER", "Copy Fighter"
    ADD_EQUIPMENT = "ADD_EQUIPMENT", "Add Equipment"
    SELL_EQUIPMENT = "SELL_EQUIPMENT", "Sell Equipment"
    REMOVE_EQUIPMENT = "REMOVE_EQUIPMENT", "Remove Equipment"
    MOVE_TO_STASH = "MOVE_TO_STASH", "Move To Stash"
    MOVE_FROM_STASH = "MOVE_FROM_STASH", "Move From Stash"
    ADD_SKILL = "ADD_SKILL", "Add Skill"
    REMOVE_SKILL = "REMOVE_SKILL", "Remove Skill"
    ADD_EFFECT = "ADD_EFFECT", "Add Effect"
    ADD_ADVANCEMENT = "ADD_ADVANCEMENT", "Add Advancement"
    REMOVE_EFFECT = "REMOVE_EFFECT", "Remove Effect"
    ADD_VEHICLE = "ADD_VEHICLE", "Add Vehicle"
    ASSIGN_VEHICLE = "ASSIGN_VEHICLE", "Assign Vehicle"
    UNASSIGN_VEHICLE = "UNASSIGN_VEHICLE", "Unassign Vehicle"
    SELL_VEHICLE = "SELL_VEHICLE", "Sell Vehicle"
    REMOVE_VEHICLE = "REMOVE_VEHICLE", "Remove Vehicle"
    BATTLE_RESULT = "BATTLE_RESULT", "Battle Result"
    TERRITORY_CLAIMED = "TERRITORY_CLAIMED", "Territory Claimed"


class GangLog(AppBase):
    """
    Financial audit trail of a gang. Every handler that changes credits,
    rating or stash value writes one row with the before values and deltas.
    """

    gang = models.ForeignKey(
        Gang, on_delete=models.CASCADE, related_name="logs", db_index=True
    )
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        related_name="gang_logs",
        null=True,
        blank=True,
        help_text="The user who performed this action",
    )
    action_type = models.CharField(
        max_length=50, choices=GangLogType.choices, db_index=True
    )
    description = models.TextField(blank=True, default="")
    subject_type = models.CharField(max_length=100, blank=True, default="")
    subject_id = models.UUIDField(null=True, blank=True)

    rating_before = models.IntegerField(default=0)
    rating_delta = models.IntegerField(default=0)
    stash_before = models.IntegerField(default=0)
    stash_delta = models.IntegerField(default=0)
    credits_before = models.IntegerField(default=0)
    credits_delta = models.IntegerField(default=0)

    class Meta:
        verbose_name = "gang log"
        verbose_name_plural = "gang logs"
        ordering = ["-created"]
        indexes = [models.Index(fields=["gang", "-created"])]

    def __str__(self):
        return f"{self.get_action_type_display()}: {self.description}"

    @cached_property
    def rating_after(self) -> int:
        return max(0, self.rating_before + self.rating_delta)

    @cached_property
    def credits_after(self) -> int:
        return self.credits_before + self.credits_delta
