from django.contrib.auth import get_user_model
from django.db import models
from simple_history.models import HistoricalRecords

from gangbook.models import Base

from .base import AppBase

User = get_user_model()


class Campaign(AppBase):
    ACTIVE = "active"
    ENDED = "ended"

    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (ENDED, "Ended"),
    ]

    name = models.CharField(max_length=255)
    campaign_type = models.ForeignKey(
        "content.ContentCampaignType",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="campaigns",
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=ACTIVE, db_index=True
    )
    description = models.TextField(blank=True, default="")

    history = HistoricalRecords()

    class Meta:
        verbose_name = "campaign"
        verbose_name_plural = "campaigns"
        ordering = ["-created"]

    def __str__(self):
        return self.name

    def role_of(self, user):
        if user is None or not user.is_authenticated:
            return None
        return (
            self.members.filter(user=user).values_list("role", flat=True).first()
        )

    def is_manager(self, user) -> bool:
        """Owners and arbitrators run the campaign."""
        if user.is_staff:
            return True
        return self.role_of(user) in (CampaignRole.OWNER, CampaignRole.ARBITRATOR)

    def is_owner(self, user) -> bool:
        if user.is_staff:
            return True
        return self.role_of(user) == CampaignRole.OWNER


class CampaignRole(models.TextChoices):
    OWNER = "OWNER", "Owner"
    ARBITRATOR = "ARBITRATOR", "Arbitrator"
    MEMBER = "MEMBER", "Member"


class CampaignMember(Base):
    campaign = models.ForeignKey(
        Campaign, on_delete=models.CASCADE, related_name="members"
    )
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="campaign_memberships"
    )
    role = models.CharField(
        max_length=20, choices=CampaignRole.choices, default=CampaignRole.MEMBER
    )
    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name = "campaign member"
        verbose_name_plural = "campaign members"
        unique_together = ["campaign", "user"]
        ordering = ["created"]

    def __str__(self):
        return f"{self.user} ({self.get_role_display()}) in {self.campaign}"


class CampaignGangStatus(models.TextChoices):
    ACCEPTED = "ACCEPTED", "Accepted"
    PENDING = "PENDING", "Pending"


class CampaignGang(Base):
    campaign = models.ForeignKey(
        Campaign, on_delete=models.CASCADE, related_name="campaign_gangs"
    )
    gang = models.ForeignKey(
        "Gang", on_delete=models.CASCADE, related_name="campaign_entries"
    )
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="The member who plays this gang in the campaign.",
    )
    status = models.CharField(
        max_length=20,
        choices=CampaignGangStatus.choices,
        default=CampaignGangStatus.ACCEPTED,
    )

    class Meta:
        verbose_name = "campaign gang"
        verbose_name_plural = "campaign gangs"
        unique_together = ["campaign", "gang"]
        ordering = ["created"]

    def __str__(self):
        return f"{self.gang} in {self.campaign}"


class CampaignTerritory(Base):
    campaign = models.ForeignKey(
        Campaign, on_delete=models.CASCADE, related_name="territories"
    )
    territory = models.ForeignKey(
        "content.ContentTerritory",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    name = models.CharField(max_length=255)
    gang = models.ForeignKey(
        "Gang",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="territories",
        help_text="The gang currently holding this territory.",
    )
    ruined = models.BooleanField(default=False)
    default_gang_territory = models.BooleanField(default=False)

    class Meta:
        verbose_name = "campaign territory"
        verbose_name_plural = "campaign territories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class CampaignBattle(AppBase):
    campaign = models.ForeignKey(
        Campaign, on_delete=models.CASCADE, related_name="battles"
    )
    scenario = models.ForeignKey(
        "content.ContentScenario",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    scenario_name = models.CharField(max_length=255, blank=True, default="")
    attacker = models.ForeignKey(
        "Gang",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="battles_as_attacker",
    )
    defender = models.ForeignKey(
        "Gang",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="battles_as_defender",
    )
    winner = models.ForeignKey(
        "Gang",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="battles_won",
    )
    note = models.TextField(blank=True, default="")
    participants = models.JSONField(
        default=list,
        blank=True,
        help_text='List of {"gang_id": ..., "role": "attacker"|"defender"|"none"}.',
    )
    territory = models.ForeignKey(
        CampaignTerritory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="battles",
        help_text="The territory fought over.",
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "campaign battle"
        verbose_name_plural = "campaign battles"
        ordering = ["-created"]

    def __str__(self):
        return f"{self.scenario_name or 'Battle'} in {self.campaign}"
