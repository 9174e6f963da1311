"""
Typed data models for the business directory pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ImageType(str, Enum):
    """Classification assigned to a business image by filename."""
    LOGO = "logo"
    BANNER = "banner"
    IMAGE = "image"


@dataclass
class DriveFile:
    """File descriptor as listed by the Drive API."""
    id: str
    name: str
    mime_type: str = ""
    parents: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "DriveFile":
        return cls(
            id=item.get("id", ""),
            name=item.get("name", ""),
            mime_type=item.get("mimeType", "") or "",
            parents=list(item.get("parents") or []),
        )


@dataclass
class ClassifiedImage:
    """Business image with a type and publicly fetchable URLs."""
    name: str
    drive_id: str
    type: ImageType
    url: str
    thumbnail_url: Optional[str] = None


@dataclass
class ImageFolder:
    """Outcome of looking up a business's image subfolder."""
    id: str
    name: str
    found: bool


@dataclass
class BusinessRecord:
    """One business extracted from a column of the transposed spreadsheet."""
    name: str
    address: str = ""
    phone: str = ""
    website: str = ""
    email: str = ""
    year_founded: Optional[int] = None
    year_founded_text: str = ""  # raw cell, kept when it does not parse as a year
    main_services: List[str] = field(default_factory=list)
    other_services: List[str] = field(default_factory=list)
    company_size: Optional[int] = None
    company_size_text: str = ""
    service_area: str = ""
    description: str = ""
    contractor_type: str = ""
    gmail: str = ""
    gmail_app_password: str = ""
    images: List[ClassifiedImage] = field(default_factory=list)
    image_folder: Optional[ImageFolder] = None


@dataclass
class ImageDetails:
    """Breakdown of a record's images as seen by the validator."""
    total: int
    has_logo: bool
    has_banner: bool
    additional_count: int
    logo_image: Optional[ClassifiedImage] = None
    banner_image: Optional[ClassifiedImage] = None
    additional_images: List[ClassifiedImage] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Completeness verdict for a single business."""
    is_complete: bool
    missing: List[str]
    requirements: Dict[str, bool]  # ordered as REQUIREMENT_LABELS
    completion_percentage: int
    image_details: ImageDetails


@dataclass
class ValidatedRecord:
    """A business paired with its validation verdict."""
    record: BusinessRecord
    validation: ValidationResult


@dataclass
class ImageStats:
    """Image coverage counts across the directory."""
    with_logo: int = 0
    with_banner: int = 0
    with_both_logo_and_banner: int = 0
    with_all_required_images: int = 0  # image flags only, not full completeness


@dataclass
class DirectoryStatistics:
    """Directory-wide completeness summary."""
    total: int
    complete: int
    incomplete: int
    completion_rate: int
    image_stats: ImageStats


@dataclass
class MissingFieldCount:
    """How many businesses lack one requirement."""
    field: str
    count: int
    percentage: int


@dataclass
class ImageTypeDistribution:
    """Image totals per classified type."""
    logos: int = 0
    banners: int = 0
    additional: int = 0
    total: int = 0


@dataclass
class ImageAnalysis:
    """Image coverage across the directory."""
    total_businesses: int
    businesses_with_images: int
    businesses_with_logo: int
    businesses_with_banner: int
    businesses_with_both: int
    businesses_with_all_required: int
    average_images_per_business: float
    image_type_distribution: ImageTypeDistribution


@dataclass
class DirectoryAnalytics:
    """Headline numbers shown on the dashboard."""
    total_businesses: int
    contractor_types: int
    service_areas: int
    average_years_active: int
    businesses_with_logos: int
    businesses_with_images: int


@dataclass
class DirectoryReport:
    """Everything one analysis run produces for the dashboard."""
    records: List[ValidatedRecord]
    statistics: DirectoryStatistics
    missing_fields: List[MissingFieldCount]
    image_analysis: ImageAnalysis
    analytics: DirectoryAnalytics
    can_proceed_to_automation: bool


@dataclass
class ImagePublishResult:
    """Outcome of making a single Drive file publicly readable."""
    file_id: str
    status: str  # "success", "failed" or "error"
    was_public: bool = False
    made_public: bool = False
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    error: Optional[str] = None
