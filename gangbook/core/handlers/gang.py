"""
Business logic handlers for gangs: creation, settings, credits, rating
recalculation and deletion.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction

from gangbook.content.models import (
    DEFAULT_STARTING_CREDITS,
    ContentGangLineage,
    ContentGangType,
    LineageTypeChoices,
)
from gangbook.core.cache import gang_tag, invalidate_gang, invalidate_on_commit
from gangbook.core.handlers.common import lock_gang_for
from gangbook.core.models import Gang, GangLog, GangLogType
from gangbook.core.queries import calculate_gang_rating, calculate_stash_value
from gangbook.models import format_cost_display
from gangbook.tracing import traced
from gangbook.tracker import track

logger = logging.getLogger(__name__)

UNSET = object()


@dataclass
class GangResult:
    gang: Gang
    log: Optional[GangLog] = None


@dataclass
class RatingRecalculationResult:
    gang: Gang
    previous_rating: int
    rating: int
    previous_stash_value: int
    stash_value: int
    log: Optional[GangLog] = None

    @property
    def changed(self) -> bool:
        return (
            self.previous_rating != self.rating
            or self.previous_stash_value != self.stash_value
        )


def _validate_affiliation(affiliation: Optional[ContentGangLineage]):
    if (
        affiliation is not None
        and affiliation.lineage_type != LineageTypeChoices.AFFILIATION
    ):
        raise ValidationError(f"{affiliation.name} is not an affiliation")


@traced("handle_create_gang")
@transaction.atomic
def handle_create_gang(
    *,
    user,
    name: str,
    gang_type: ContentGangType,
    alignment: Optional[str] = None,
    affiliation: Optional[ContentGangLineage] = None,
    note: str = "",
) -> GangResult:
    """
    Create a gang for ``user``.

    The gang starts with its type's starting credits, reputation 1 and a
    rating of 0. Alignment defaults to the gang type's.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Gang name is required")
    _validate_affiliation(affiliation)

    gang = Gang.objects.create_with_user(
        user=user,
        owner=user,
        name=name,
        gang_type=gang_type,
        alignment=alignment if alignment is not None else gang_type.alignment,
        affiliation=affiliation,
        credits=gang_type.starting_credits or DEFAULT_STARTING_CREDITS,
        reputation=1,
        rating=0,
        note=note,
    )
    log = gang.create_action(
        user=user,
        action_type=GangLogType.CREATE_GANG,
        description=f"Created {gang.name} with {format_cost_display(gang.credits)}",
        subject=gang,
    )
    track("gang_created", gang=gang, gang_type=gang_type)
    return GangResult(gang=gang, log=log)


@traced("handle_update_gang")
@transaction.atomic
def handle_update_gang(
    *,
    user,
    gang: Gang,
    name: Optional[str] = None,
    alignment: Optional[str] = None,
    reputation: Optional[int] = None,
    note: Optional[str] = None,
    affiliation=UNSET,
    archived: Optional[bool] = None,
) -> GangResult:
    """
    Change gang settings. Fields left as None (``UNSET`` for affiliation) are
    unchanged. An archived gang may only be restored.
    """
    gang = lock_gang_for(user, gang, allow_archived=True)

    if archived is False and gang.archived:
        gang.unarchive()

    edits = {
        key: value
        for key, value in {
            "name": name,
            "alignment": alignment,
            "reputation": reputation,
            "note": note,
        }.items()
        if value is not None
    }
    if affiliation is not UNSET:
        _validate_affiliation(affiliation)
        edits["affiliation"] = affiliation

    if edits:
        gang.ensure_editable()
        if "name" in edits:
            edits["name"] = edits["name"].strip()
            if not edits["name"]:
                raise ValidationError("Gang name is required")
        for key, value in edits.items():
            setattr(gang, key, value)
        gang.save_with_user(user=user)

    if archived and not gang.archived:
        gang.archive()

    log = gang.create_action(
        user=user,
        action_type=GangLogType.UPDATE_GANG,
        description=f"Updated {', '.join(sorted(edits)) or 'gang'}"
        + (" (archived)" if gang.archived else ""),
        subject=gang,
    )
    invalidate_gang(gang)
    track("gang_updated", gang=gang, fields=",".join(sorted(edits)))
    return GangResult(gang=gang, log=log)


@traced("handle_gang_credits")
@transaction.atomic
def handle_gang_credits(
    *, user, gang: Gang, amount: int, operation: str = "add", description: str = ""
) -> GangResult:
    """Add credits to, or spend credits from, the gang treasury."""
    if amount < 0:
        raise ValidationError("Amount must not be negative")
    if operation not in ("add", "spend"):
        raise ValidationError("Operation must be 'add' or 'spend'")

    gang = lock_gang_for(user, gang)
    credits_delta = amount if operation == "add" else -amount

    verb = "Added" if operation == "add" else "Spent"
    log = gang.create_action(
        user=user,
        action_type=GangLogType.UPDATE_CREDITS,
        description=description or f"{verb} {format_cost_display(amount)}",
        credits_delta=credits_delta,
    )
    invalidate_gang(gang)
    track("gang_credits_changed", gang=gang, value=credits_delta)
    return GangResult(gang=gang, log=log)


@traced("handle_recalculate_rating")
@transaction.atomic
def handle_recalculate_rating(*, user, gang: Gang) -> RatingRecalculationResult:
    """
    Recompute the gang rating and stash value from scratch and record any
    drift from the cached values.
    """
    gang = lock_gang_for(user, gang, allow_archived=True)
    previous_rating = gang.rating
    previous_stash_value = gang.stash_value

    rating = calculate_gang_rating(gang)
    stash_value = calculate_stash_value(gang)

    log = None
    if rating != previous_rating or stash_value != previous_stash_value:
        logger.warning(
            f"Gang {gang.pk} rating drift: cached {previous_rating}/{previous_stash_value}, "
            f"calculated {rating}/{stash_value}"
        )
        log = gang.create_action(
            user=user,
            action_type=GangLogType.REFRESH_RATING,
            description="Recalculated rating",
            rating_delta=rating - previous_rating,
            stash_delta=stash_value - previous_stash_value,
        )
        invalidate_gang(gang)

    track("gang_rating_recalculated", gang=gang, drift=rating - previous_rating)
    return RatingRecalculationResult(
        gang=gang,
        previous_rating=previous_rating,
        rating=gang.rating,
        previous_stash_value=previous_stash_value,
        stash_value=gang.stash_value,
        log=log,
    )


@traced("handle_delete_gang")
@transaction.atomic
def handle_delete_gang(*, user, gang: Gang) -> UUID:
    """Delete a gang with everything it owns."""
    gang = lock_gang_for(user, gang, allow_archived=True)
    gang_id = gang.pk

    gang._history_user = user
    gang.delete()

    invalidate_on_commit(gang_tag(gang_id))
    track("gang_deleted", gang=gang_id)
    return gang_id
