"""
Tag-versioned caching for view-models.

Each tag (``gang:<id>``, ``fighter:<id>``, ``campaign:<id>`` and the shared
``content`` tag for reference data) has a version token stored in the cache.
Cache keys embed the current token of every tag the entry depends on, so
replacing a token orphans every entry built under it.
"""

import logging
import uuid
from typing import Any, Callable, Iterable

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

logger = logging.getLogger(__name__)

TAG_PREFIX = "gangbook:tag:"
ENTRY_PREFIX = "gangbook:entry:"

CONTENT_TAG = "content"


def gang_tag(gang_id) -> str:
    return f"gang:{gang_id}"


def fighter_tag(fighter_id) -> str:
    return f"fighter:{fighter_id}"


def campaign_tag(campaign_id) -> str:
    return f"campaign:{campaign_id}"


def _tag_versions(tags: Iterable[str]) -> list[str]:
    tags = list(tags)
    keys = [f"{TAG_PREFIX}{tag}" for tag in tags]
    found = cache.get_many(keys)
    versions = []
    for key in keys:
        version = found.get(key)
        if version is None:
            version = uuid.uuid4().hex
            if not cache.add(key, version, None):
                version = cache.get(key, version)
        versions.append(version)
    return versions


def cache_key(name: str, ident, tags: Iterable[str]) -> str:
    versions = ".".join(_tag_versions(tags))
    return f"{ENTRY_PREFIX}{name}:{ident}:{versions}"


def get_or_build(
    name: str, ident, tags: Iterable[str], builder: Callable[[], Any], timeout=None
) -> Any:
    """Return the cached value for ``name``/``ident`` or build and store it."""
    key = cache_key(name, ident, tags)
    value = cache.get(key)
    if value is not None:
        return value

    value = builder()
    cache.set(
        key,
        value,
        timeout if timeout is not None else settings.GANGBOOK_CACHE_TIMEOUT,
    )
    return value


def invalidate_tags(*tags: str) -> None:
    cache.set_many({f"{TAG_PREFIX}{tag}": uuid.uuid4().hex for tag in tags}, None)
    logger.debug(f"Invalidated cache tags: {', '.join(tags)}")


def invalidate_on_commit(*tags: str) -> None:
    """
    Invalidate now and again once the surrounding transaction commits, so a
    view-model rebuilt mid-transaction from uncommitted rows is discarded.
    """
    invalidate_tags(*tags)
    transaction.on_commit(lambda: invalidate_tags(*tags))


def invalidate_gang(gang, *extra_tags: str) -> None:
    invalidate_on_commit(gang_tag(gang.pk), *extra_tags)
