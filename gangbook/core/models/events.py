import json
import logging
from enum import Enum

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models, transaction

from .base import AppBase

logger = logging.getLogger(__name__)


class EventNoun(models.TextChoices):
    """Nouns representing objects that can be acted upon."""

    GANG = "gang", "Gang"
    FIGHTER = "fighter", "Fighter"
    EQUIPMENT = "equipment", "Equipment"
    VEHICLE = "vehicle", "Vehicle"
    EFFECT = "effect", "Effect"
    SKILL = "skill", "Skill"
    CAMPAIGN = "campaign", "Campaign"
    CAMPAIGN_MEMBER = "campaign_member", "Campaign Member"
    CAMPAIGN_GANG = "campaign_gang", "Campaign Gang"
    TERRITORY = "territory", "Territory"
    BATTLE = "battle", "Battle"
    CONTENT = "content", "Content"
    USER = "user", "User"


class EventVerb(models.TextChoices):
    """Verbs representing actions that can be taken."""

    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"
    ARCHIVE = "archive", "Archive"
    RESTORE = "restore", "Restore"
    ADD = "add", "Add"
    REMOVE = "remove", "Remove"
    BUY = "buy", "Buy"
    SELL = "sell", "Sell"
    CLONE = "clone", "Clone"
    ASSIGN = "assign", "Assign"
    UNASSIGN = "unassign", "Unassign"
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"
    LOGIN = "login", "Login"
    LOGOUT = "logout", "Logout"
    SIGNUP = "signup", "Signup"


class Event(AppBase):
    """
    A single user action on an object, kept for analysis and also written
    to the log stream.
    """

    noun = models.CharField(
        max_length=50,
        choices=EventNoun.choices,
        help_text="The type of object being acted upon",
    )
    verb = models.CharField(
        max_length=50, choices=EventVerb.choices, help_text="The action being performed"
    )
    object_id = models.UUIDField(
        null=True, blank=True, help_text="UUID of the object being acted upon"
    )
    object_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text="Type of the object for generic relations",
    )
    object = GenericForeignKey("object_type", "object_id")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    session_id = models.CharField(max_length=40, null=True, blank=True)
    context = models.JSONField(
        default=dict, blank=True, help_text="Additional context data in JSON format"
    )

    class Meta:
        verbose_name = "event"
        verbose_name_plural = "events"
        ordering = ["-created"]
        indexes = [
            models.Index(fields=["noun", "verb"]),
            models.Index(fields=["object_type", "object_id"]),
        ]

    def __str__(self):
        return f"{self.owner} {self.verb} {self.noun} at {self.created}"

    def save(self, *args, **kwargs):
        """Save, then write the event to the log stream."""
        super().save(*args, **kwargs)

        try:
            event_data = {
                "id": str(self.id),
                "timestamp": self.created.isoformat(),
                "user_id": self.owner_id,
                "noun": self.noun,
                "verb": self.verb,
                "object_id": str(self.object_id) if self.object_id else None,
                "object_type": self.object_type.model if self.object_type else None,
                "ip_address": self.ip_address,
                "context": self.context,
            }
            logger.info(
                f"USER_EVENT: {self.verb} {self.noun}",
                extra={"event_data": json.dumps(event_data)},
            )
        except (TypeError, ValueError):
            logger.exception("Failed to log event to stream")


def ensure_json_serializable(data):
    """Recursively convert ``data`` into values json.dumps accepts."""
    if isinstance(data, dict):
        return {k: ensure_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [ensure_json_serializable(item) for item in data]
    if isinstance(data, (str, int, float, bool, type(None))):
        return data
    if isinstance(data, Enum):
        return data.value
    return str(data)


def get_client_ip(request):
    """The client's address, preferring the first X-Forwarded-For hop."""
    if not request:
        return None

    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    return request.META.get("REMOTE_ADDR")


def log_event(user, noun, verb, object=None, request=None, **context):
    """
    Record that ``user`` performed ``verb`` on ``noun``.

    Args:
        user: The User performing the action
        noun: EventNoun choice representing what's being acted upon
        verb: EventVerb choice representing the action
        object: Optional model instance being acted upon
        request: Optional HttpRequest to take the session and IP address from
        **context: Additional context data to store in the JSON field

    Returns:
        The created Event, or None if it could not be stored. Failing to
        record an event never fails the action that triggered it.

    Example:
        log_event(
            user=request.user,
            noun=EventNoun.GANG,
            verb=EventVerb.CREATE,
            object=gang,
            request=request,
            gang_name=gang.name,
        )
    """
    try:
        session_id = None
        if request is not None and hasattr(request, "session"):
            session_id = request.session.session_key

        event_data = {
            "owner": user if getattr(user, "is_authenticated", False) else None,
            "noun": noun,
            "verb": verb,
            "ip_address": get_client_ip(request),
            "session_id": session_id,
            "context": ensure_json_serializable(context),
        }

        if object is not None:
            event_data["object_id"] = object.pk
            event_data["object_type"] = ContentType.objects.get_for_model(object)

        with transaction.atomic():
            return Event.objects.create(**event_data)
    except Exception as e:
        logger.error(
            f"Failed to log event: {noun} {verb}",
            exc_info=True,
            extra={
                "user_id": getattr(user, "id", None),
                "noun": noun,
                "verb": verb,
                "error": str(e),
            },
        )
        return None
