"""
SimpleHistory helpers so history rows record the acting user even when a
model is saved outside a request (handlers, management commands, tests).
"""

from django.db import models


class HistoryMixin(models.Model):
    """
    Mixin for models that declare ``history = HistoricalRecords()``.

    If no user is given and the object has an owner, the owner is recorded.
    """

    class Meta:
        abstract = True

    def save_with_user(self, user=None, **kwargs):
        if user is None and getattr(self, "owner", None):
            user = self.owner

        if user is not None and hasattr(self, "history"):
            self._history_user = user

        super().save(**kwargs)


class HistoryAwareQuerySet(models.QuerySet):
    def delete_with_user(self, user=None):
        """Delete objects, recording ``user`` on their deletion history rows."""
        if user is not None and hasattr(self.model, "history"):
            for obj in self:
                obj._history_user = user
                obj.delete()
            return
        return self.delete()


class HistoryAwareManager(models.Manager.from_queryset(HistoryAwareQuerySet)):
    def create_with_user(self, user=None, **kwargs):
        """
        Create an object and ensure the history user is set.

        Args:
            user: The user making the change (optional, defaults to the owner)
            **kwargs: Fields for the new object

        Returns:
            The created object
        """
        obj = self.model(**kwargs)
        obj.save_with_user(user=user)
        return obj
