"""Listing photo processing.

Clients upload originals straight to the bucket through presigned PUT URLs
under ``temp/products/<user_id>/``. When a listing is saved the temp objects
are resized into ``products/<listing_id>/`` and the originals are removed.
Everything happens in memory. Keys are processed sequentially and a failure
part-way leaves the already written outputs in place.
"""
from __future__ import annotations

import io
import logging
import re
import uuid

from PIL import Image, ImageOps, UnidentifiedImageError

from wineo.errors import StorageUnavailable, ValidationFailed
from wineo.schemas import MAX_UPLOAD_SLOTS
from wineo.services.object_store import ObjectMissing, StorageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 400
IMAGE_SIZE = 800
JPEG_QUALITY = 85


def temp_prefix(user_id: str) -> str:
    return f"temp/products/{user_id}/"


def listing_prefix(listing_id: str) -> str:
    return f"products/{listing_id}"


def highest_image_index(listing_id: str, urls) -> int:
    """Largest ``image-N`` number among ``urls`` that live under the listing's prefix."""
    pattern = re.compile(rf"{re.escape(listing_prefix(listing_id))}/image-(\d+)\.jpg$")
    found = [int(m.group(1)) for m in (pattern.search(u or "") for u in urls) if m]
    return max(found, default=0)


def resize_cover(data: bytes, size: int) -> bytes:
    """Center-crop ``data`` to a ``size`` x ``size`` JPEG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationFailed("Uploaded file is not a valid image") from exc
    fitted = ImageOps.fit(rgb, (size, size), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    out = io.BytesIO()
    fitted.save(out, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    return out.getvalue()


class ImagePipeline:
    def __init__(self, store):
        self.store = store

    def allocate_upload_slots(self, user_id: str, count: int) -> list[dict]:
        try:
            safe_count = int(count)
        except (TypeError, ValueError):
            safe_count = 1
        safe_count = min(max(1, safe_count), MAX_UPLOAD_SLOTS)

        slots = []
        try:
            for _ in range(safe_count):
                key = f"{temp_prefix(user_id)}{uuid.uuid4()}.jpg"
                slots.append({"key": key, "uploadUrl": self.store.presign_put(key, content_type="image/jpeg")})
        except StorageError as exc:
            logger.error("upload_slots_failed user=%s err=%s", user_id, exc)
            raise StorageUnavailable() from exc
        logger.info("upload_slots_allocated user=%s count=%s", user_id, safe_count)
        return slots

    def _load(self, key: str) -> bytes:
        try:
            return self.store.get_bytes(key)
        except ObjectMissing as exc:
            raise ValidationFailed(f"Uploaded image not found: {key}") from exc

    def _process(self, listing_id: str, temp_keys: list[str], first_index: int, with_thumbnail: bool) -> tuple[str | None, list[str]]:
        prefix = listing_prefix(listing_id)
        thumbnail_url = None
        image_urls: list[str] = []
        try:
            for offset, temp_key in enumerate(temp_keys):
                raw = self._load(temp_key)
                if with_thumbnail and offset == 0:
                    thumb_key = f"{prefix}/thumbnail.jpg"
                    self.store.put_bytes(thumb_key, resize_cover(raw, THUMBNAIL_SIZE))
                    thumbnail_url = self.store.public_url(thumb_key)
                image_key = f"{prefix}/image-{first_index + offset + 1}.jpg"
                self.store.put_bytes(image_key, resize_cover(raw, IMAGE_SIZE))
                self.store.delete(temp_key)
                image_urls.append(self.store.public_url(image_key))
        except StorageError as exc:
            logger.error("listing_images_failed listing=%s done=%s err=%s", listing_id, len(image_urls), exc)
            raise StorageUnavailable() from exc
        logger.info("listing_images_processed listing=%s count=%s start=%s", listing_id, len(image_urls), first_index)
        return thumbnail_url, image_urls

    def commit_listing_images(self, listing_id: str, temp_keys: list[str]) -> tuple[str | None, list[str]]:
        """Turn a fresh listing's temp uploads into its thumbnail and gallery."""
        if not temp_keys:
            return None, []
        return self._process(listing_id, list(temp_keys), 0, True)

    def append_listing_images(self, listing_id: str, temp_keys: list[str], start_index: int) -> list[str]:
        """Add gallery images after the ``start_index`` already stored. The thumbnail is untouched."""
        if not temp_keys:
            return []
        _, urls = self._process(listing_id, list(temp_keys), max(0, int(start_index)), False)
        return urls
