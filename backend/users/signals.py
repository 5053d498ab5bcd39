from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import User, KitchenProfile, DeliveryPartnerProfile
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def ensure_role_profile(sender, instance, created, raw=False, **kwargs):
    """Create the role-specific profile for kitchens and delivery partners."""
    if raw:
        return

    if instance.role == User.Role.HOME_KITCHEN:
        _, profile_created = KitchenProfile.objects.get_or_create(
            user=instance, defaults={"kitchen_name": instance.name}
        )
    elif instance.role == User.Role.DELIVERY_PARTNER:
        _, profile_created = DeliveryPartnerProfile.objects.get_or_create(user=instance)
    else:
        return

    if profile_created:
        logger.info(f"Created {instance.role} profile for user {instance.pk}")
