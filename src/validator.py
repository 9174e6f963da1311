"""
Completeness checks deciding whether a business is ready for automation.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from src.models import (
    BusinessRecord,
    ClassifiedImage,
    ImageDetails,
    ImageType,
    ValidatedRecord,
    ValidationResult,
)

# Declaration order is the order of `missing`.
REQUIREMENT_LABELS: Dict[str, str] = {
    "name": "Business Name",
    "address": "Address",
    "phone": "Phone Number",
    "website": "Website",
    "year_founded": "Year Founded",
    "email": "Email",
    "main_services": "Main Services",
    "other_services": "Other Services",
    "company_size": "Company Size",
    "service_area": "Service Area",
    "description": "Description",
    "contractor_type": "Contractor Type",
    "gmail": "Gmail Account",
    "gmail_app_password": "Gmail App Password",
    "has_logo": "Logo Image",
    "has_banner": "Banner Image",
    "has_additional_images": "At Least 1 Additional Image",
}

IMAGE_REQUIREMENTS = ("has_logo", "has_banner", "has_additional_images")


def _filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _first_of_type(images: Sequence[ClassifiedImage], image_type: ImageType) -> Optional[ClassifiedImage]:
    # type or filename, so one "logo-banner.png" can serve as both logo and banner
    keyword = image_type.value
    for image in images:
        if image.type == image_type or keyword in (image.name or "").lower():
            return image
    return None


def analyze_images(images: Sequence[ClassifiedImage]) -> ImageDetails:
    logo = _first_of_type(images, ImageType.LOGO)
    banner = _first_of_type(images, ImageType.BANNER)
    additional = [
        image for image in images
        if image.type == ImageType.IMAGE and image is not logo and image is not banner
    ]
    return ImageDetails(
        total=len(images),
        has_logo=logo is not None,
        has_banner=banner is not None,
        additional_count=len(additional),
        logo_image=logo,
        banner_image=banner,
        additional_images=additional,
    )


def check_requirements(record: BusinessRecord, image_details: ImageDetails) -> Dict[str, bool]:
    return {
        "name": _filled(record.name),
        "address": _filled(record.address),
        "phone": _filled(record.phone),
        "website": _filled(record.website),
        "year_founded": record.year_founded is not None or _filled(record.year_founded_text),
        "email": _filled(record.email),
        "main_services": any(_filled(s) for s in record.main_services),
        "other_services": any(_filled(s) for s in record.other_services),
        "company_size": record.company_size is not None or _filled(record.company_size_text),
        "service_area": _filled(record.service_area),
        "description": _filled(record.description),
        "contractor_type": _filled(record.contractor_type),
        "gmail": _filled(record.gmail),
        "gmail_app_password": _filled(record.gmail_app_password),
        "has_logo": image_details.has_logo,
        "has_banner": image_details.has_banner,
        "has_additional_images": image_details.additional_count >= 1,
    }


def validate_business(record: BusinessRecord) -> ValidationResult:
    """
    Check a business against all 17 requirements.

    Pure function of the record: it never raises for missing data, an
    incomplete business is reported through `is_complete` and `missing`.

    Args:
        record (BusinessRecord): Business with its classified images attached.

    Returns:
        ValidationResult: Requirement flags, human-readable missing fields and
                          the rounded completion percentage.
    """
    image_details = analyze_images(record.images)
    requirements = check_requirements(record, image_details)

    missing = [REQUIREMENT_LABELS[key] for key, ok in requirements.items() if not ok]
    completed = sum(1 for ok in requirements.values() if ok)
    completion_percentage = int(round(100 * completed / len(requirements)))

    return ValidationResult(
        is_complete=not missing,
        missing=missing,
        requirements=requirements,
        completion_percentage=completion_percentage,
        image_details=image_details,
    )


validate = validate_business


def validate_all(records: Sequence[BusinessRecord]) -> List[ValidatedRecord]:
    return [ValidatedRecord(record=r, validation=validate_business(r)) for r in records]


def partition_by_completeness(
    records: Sequence[BusinessRecord],
) -> Tuple[List[ValidatedRecord], List[ValidatedRecord]]:
    """Split businesses into (complete, incomplete), keeping input order."""
    complete: List[ValidatedRecord] = []
    incomplete: List[ValidatedRecord] = []
    for validated in validate_all(records):
        (complete if validated.validation.is_complete else incomplete).append(validated)
    return complete, incomplete
