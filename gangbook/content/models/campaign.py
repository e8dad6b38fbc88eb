from django.db import models
from simple_history.models import HistoricalRecords

from .base import Content


class ContentCampaignType(Content):
    name = models.CharField(max_length=255, unique=True)
    image_url = models.URLField(blank=True, default="")

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Campaign Type"
        verbose_name_plural = "Campaign Types"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentTerritory(Content):
    name = models.CharField(max_length=255)
    campaign_type = models.ForeignKey(
        ContentCampaignType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="territories",
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Territory"
        verbose_name_plural = "Territories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentCampaignTriumph(Content):
    name = models.CharField(max_length=255)
    criteria = models.TextField(blank=True, default="")
    campaign_type = models.ForeignKey(
        ContentCampaignType, on_delete=models.CASCADE, related_name="triumphs"
    )

    class Meta:
        verbose_name = "Campaign Triumph"
        verbose_name_plural = "Campaign Triumphs"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentScenario(Content):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")

    class Meta:
        verbose_name = "Scenario"
        verbose_name_plural = "Scenarios"
        ordering = ["name"]

    def __str__(self):
        return self.name
