from django.db import models
from simple_history.models import HistoricalRecords

from .base import Content


class ContentSkillType(Content):
    name = models.CharField(max_length=255, unique=True)

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Skill Type"
        verbose_name_plural = "Skill Types"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentSkill(Content):
    name = models.CharField(max_length=255)
    skill_type = models.ForeignKey(
        ContentSkillType, on_delete=models.CASCADE, related_name="skills"
    )

    history = HistoricalRecords()

    class Meta:
        verbose_name = "Skill"
        verbose_name_plural = "Skills"
        ordering = ["skill_type__name", "name"]
        unique_together = ["name", "skill_type"]

    def __str__(self):
        return self.name
