import re
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from src.clients import DriveClient
from src.config import IMAGE_HOST_URL, THUMBNAIL_URL
from src.models import ClassifiedImage, DriveFile, ImagePublishResult, ImageType

IMAGE_EXTENSIONS = re.compile(r"\.(jpg|jpeg|png|gif|bmp|webp)$", re.IGNORECASE)

# Evaluated top to bottom; each type claims at most one file.
IMAGE_TYPE_RULES: Tuple[Tuple[ImageType, str], ...] = (
    (ImageType.LOGO, "logo"),
    (ImageType.BANNER, "banner"),
)


def is_image_file(file: DriveFile) -> bool:
    return (file.mime_type or "").startswith("image/") or bool(IMAGE_EXTENSIONS.search(file.name or ""))


def determine_image_type(filename: str) -> ImageType:
    name = (filename or "").lower()
    for image_type, keyword in IMAGE_TYPE_RULES:
        if keyword in name:
            return image_type
    return ImageType.IMAGE


def prioritize_images(files: Sequence[DriveFile]) -> List[Tuple[DriveFile, ImageType]]:
    """
    Pick the logo and banner and order the rest behind them.

    The first file (in listing order) whose name contains "logo" becomes the
    logo, the first remaining file containing "banner" becomes the banner.
    Everything else is an additional image, however many there are.
    """
    remaining = list(files)
    prioritized: List[Tuple[DriveFile, ImageType]] = []
    for image_type, keyword in IMAGE_TYPE_RULES:
        for file in remaining:
            if keyword in (file.name or "").lower():
                prioritized.append((file, image_type))
                remaining.remove(file)
                break
    prioritized.extend((file, ImageType.IMAGE) for file in remaining)
    return prioritized


def public_image_url(file_id: str) -> str:
    return f"{IMAGE_HOST_URL}/d/{file_id}=w1000"


def thumbnail_url(file_id: str) -> str:
    return f"{THUMBNAIL_URL}?id={file_id}&sz=w400"


async def ensure_public(drive_client: DriveClient, file: DriveFile) -> bool:
    """Share a file with anyone as reader unless it already is. Best effort."""
    if await drive_client.is_file_public(file.id):
        logger.debug(f"📋 {file.name} is already public")
        return True
    made_public = await drive_client.make_file_public(file.id)
    if not made_public:
        logger.warning(f"⚠️ Could not make {file.name} public - image may not display")
    return made_public


async def classify_and_publish(
    business_name: str,
    drive_files: Sequence[DriveFile],
    drive_client: Optional[DriveClient] = None,
) -> List[ClassifiedImage]:
    """
    Classify a business folder's images and make sure each one is viewable.

    Args:
        business_name (str): Business the folder belongs to (for logging).
        drive_files (Sequence[DriveFile]): Folder listing, in listing order.
        drive_client (Optional[DriveClient]): Client to use; the singleton by default.

    Returns:
        List[ClassifiedImage]: Logo first, then banner, then additional images.
                               Files that fail to process are left out.
    """
    image_files = [f for f in drive_files if is_image_file(f)]
    if not image_files:
        return []

    drive_client = drive_client or DriveClient()
    prioritized = prioritize_images(image_files)
    logger.info(f"📸 Found {len(image_files)} images for {business_name}")

    images: List[ClassifiedImage] = []
    for file, image_type in prioritized:
        try:
            await ensure_public(drive_client, file)
            images.append(
                ClassifiedImage(
                    name=file.name,
                    drive_id=file.id,
                    type=image_type,
                    url=public_image_url(file.id),
                    thumbnail_url=thumbnail_url(file.id),
                )
            )
        except Exception as e:
            logger.error(f"❌ Failed to process {file.name} for {business_name}: {e}")

    logger.info(f"✅ Generated {len(images)} image URLs for {business_name}")
    return images


async def make_images_public(
    file_ids: Sequence[str],
    drive_client: Optional[DriveClient] = None,
) -> Tuple[List[ImagePublishResult], Dict[str, int]]:
    """
    Make a batch of Drive files publicly readable.

    Returns:
        Tuple[List[ImagePublishResult], Dict[str, int]]: One result per file id
        and a {"total", "successful", "failed"} summary.
    """
    drive_client = drive_client or DriveClient()
    results: List[ImagePublishResult] = []

    for file_id in file_ids:
        try:
            was_public = await drive_client.is_file_public(file_id)
            made_public = was_public or await drive_client.make_file_public(file_id)
            results.append(
                ImagePublishResult(
                    file_id=file_id,
                    status="success" if made_public else "failed",
                    was_public=was_public,
                    made_public=made_public,
                    url=public_image_url(file_id),
                    thumbnail_url=thumbnail_url(file_id),
                )
            )
        except Exception as e:
            logger.error(f"❌ Error processing {file_id}: {e}")
            results.append(ImagePublishResult(file_id=file_id, status="error", error=str(e)))

    successful = sum(1 for r in results if r.status == "success")
    summary = {"total": len(file_ids), "successful": successful, "failed": len(results) - successful}
    return results, summary
