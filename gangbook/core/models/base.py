from gangbook.models import Archived, Base, Owned

from .history import HistoryAwareManager, HistoryMixin


class AppBase(HistoryMixin, Base, Owned, Archived):
    """An AppBase object is a base class for all application models.

    This base class provides:
    - UUID primary key (from Base)
    - Owner tracking (from Owned)
    - Archive functionality (from Archived)
    - History tracking with user information (from HistoryMixin)
    """

    objects = HistoryAwareManager()

    class Meta:
        abstract = True
