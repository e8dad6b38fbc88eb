"""
Base classes for content models.

Content is the reference catalog maintained by administrators: gang types,
fighter types, equipment, effects, vehicles and campaign material. Gameplay
records in ``gangbook.core`` point at these rows but never modify them.
"""

from django.db import models

from gangbook.models import Base


class Content(Base):
    """
    An abstract base model that captures common fields for all content-related
    models. Subclasses should inherit from this to store standard metadata.
    """

    class Meta:
        abstract = True


class ContentQuerySet(models.QuerySet):
    pass
