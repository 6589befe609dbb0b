import logging

from cloudinary.exceptions import Error as CloudinaryError
from django.db.models.signals import post_delete
from django.dispatch import receiver

from . import storage
from .models import Wallpaper

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Wallpaper)
def delete_wallpaper_image(sender, instance, **kwargs):
    """
    Hard-deleting a wallpaper removes its asset from object storage.
    """
    if not instance.image:
        return
    try:
        storage.delete_image(instance.image)
    except CloudinaryError:
        logger.exception("Failed to delete image for wallpaper %s", instance.pk)
