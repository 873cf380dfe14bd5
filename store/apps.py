from django.apps import AppConfig
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "store"
    verbose_name = "Store"

    def ready(self):
        """
        With AUTO_MIGRATE on, try to apply migrations at startup.
        If the DB is not ready, log the error but don't crash the app.
        """
        if not getattr(settings, "AUTO_MIGRATE", False):
            return

        from django.core.management import call_command
        from django.db.utils import OperationalError, ProgrammingError

        try:
            call_command("migrate", interactive=False)
            logger.info("Auto-migrate executed successfully on startup.")
        except (OperationalError, ProgrammingError) as e:
            logger.error("Auto-migrate failed due to DB error: %s", e)
        except Exception:
            logger.exception("Unexpected error during auto-migrate on startup.")
