import logging
import os
import tempfile
from pathlib import Path

from .settings import *  # noqa: F403
from .settings import BASE_DIR
from .settings import LOGGING as BASE_LOGGING

logger = logging.getLogger(__name__)

DEBUG = True
WHITENOISE_AUTOREFRESH = True

# Disable secure cookies for local development
CSRF_COOKIE_SECURE = False

# Allow local hosts for development
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# Ensure logs dir exists (fallback to tmp if not writable)
logs_dir = BASE_DIR / "logs"
try:
    logs_dir.mkdir(exist_ok=True)
except OSError:
    logs_dir = Path(tempfile.gettempdir()) / "gangbook_logs"
    logs_dir.mkdir(exist_ok=True)


# --- Custom filter: only keep queries above a duration threshold ---
class SlowQueryFilter(logging.Filter):
    def filter(self, record):
        # Django attaches record.duration (seconds) on django.db.backends logs
        try:
            threshold = float(os.getenv("SQL_MIN_DURATION", "0.01"))  # default 10 ms
        except ValueError:
            threshold = 0.1
        return getattr(record, "duration", 0.0) >= threshold


LOGGING = {
    **BASE_LOGGING,
    "filters": {
        **BASE_LOGGING.get("filters", {}),
        "slow_sql": {"()": SlowQueryFilter},
    },
    "handlers": {
        **BASE_LOGGING["handlers"],
        # All-SQL rotating file (keeps a full archive)
        "sql_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": logs_dir / "sql.log",
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "formatter": "verbose",
        },
        "slow_sql_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": logs_dir / "slow_sql.log",
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "verbose",
            "filters": ["slow_sql"],  # only records >= SQL_MIN_DURATION
        },
    },
    "loggers": {
        **BASE_LOGGING["loggers"],
        # Django SQL logger
        "django.db.backends": {
            # Always log to files only, no console output
            "handlers": ["sql_file", "slow_sql_file"],
            "level": "DEBUG" if os.getenv("SQL_DEBUG") == "True" else "INFO",
            "propagate": False,  # don't bubble into root
        },
        "gangbook": {
            "handlers": ["console"],
            "level": os.getenv("GANGBOOK_LOG_LEVEL", "DEBUG").upper(),
            "propagate": False,
        },
    },
}
