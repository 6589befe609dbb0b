# store/storage.py
import logging

import cloudinary
import cloudinary.uploader

logger = logging.getLogger(__name__)

WALLPAPER_FOLDER = 'wallpapers/'
CUSTOM_FOLDER = 'wallpapers/custom/'


def upload_image(source, folder=WALLPAPER_FOLDER, public_id=None, **options):
    """
    Upload a file, file-like object or remote URL to Cloudinary.
    Returns the upload result (``public_id``, ``secure_url``, ``bytes``...).
    """
    if public_id:
        options['public_id'] = public_id
    result = cloudinary.uploader.upload(source, folder=folder, **options)
    logger.info("Uploaded image %s (%s bytes)", result.get('public_id'), result.get('bytes'))
    return result


def image_url(value, **transformations):
    """
    Delivery URL for a stored image. Accepts a CloudinaryResource or a public id.
    """
    if not value:
        return ''
    if hasattr(value, 'build_url'):
        return value.build_url(secure=True, **transformations)
    return cloudinary.CloudinaryImage(str(value)).build_url(secure=True, **transformations)


def delete_image(public_id):
    if not public_id:
        return False
    public_id = getattr(public_id, 'public_id', public_id)
    result = cloudinary.uploader.destroy(str(public_id))
    deleted = result.get('result') == 'ok'
    if not deleted:
        logger.warning("Cloudinary did not delete %s: %s", public_id, result)
    return deleted
