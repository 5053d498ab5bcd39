from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Validate marketplace configuration when Django starts up so a broken
        MARKETPLACE setting fails loudly instead of on the first order.
        """
        from core_backend.config import marketplace_settings

        marketplace_settings.validate()
        logger.debug("Marketplace settings loaded: VAT %s", marketplace_settings.vat_rate)
