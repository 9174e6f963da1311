import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from src.models import (
    BusinessRecord,
    DirectoryAnalytics,
    DirectoryReport,
    DirectoryStatistics,
    ImageAnalysis,
    ImageStats,
    ImageType,
    ImageTypeDistribution,
    MissingFieldCount,
    ValidatedRecord,
)
from src.validator import IMAGE_REQUIREMENTS, REQUIREMENT_LABELS


def _percent(part: int, whole: int) -> int:
    """Rounded percentage, halves rounded up; 0 when there is nothing to divide."""
    if whole <= 0:
        return 0
    return int(math.floor(100 * part / whole + 0.5))


def _has_all_required_images(validated: ValidatedRecord) -> bool:
    requirements = validated.validation.requirements
    return all(requirements[key] for key in IMAGE_REQUIREMENTS)


def summarize(records: Sequence[ValidatedRecord]) -> DirectoryStatistics:
    """
    Directory-wide completeness counts.

    `image_stats.with_all_required_images` counts businesses whose three
    image requirements hold, whatever their data fields look like; it is not
    the same number as `complete`.
    """
    stats = ImageStats()
    complete = 0

    for validated in records:
        details = validated.validation.image_details
        if details.has_logo:
            stats.with_logo += 1
        if details.has_banner:
            stats.with_banner += 1
        if details.has_logo and details.has_banner:
            stats.with_both_logo_and_banner += 1
        if _has_all_required_images(validated):
            stats.with_all_required_images += 1
        if validated.validation.is_complete:
            complete += 1

    total = len(records)
    return DirectoryStatistics(
        total=total,
        complete=complete,
        incomplete=total - complete,
        completion_rate=_percent(complete, total),
        image_stats=stats,
    )


def missing_fields_histogram(records: Sequence[ValidatedRecord]) -> List[MissingFieldCount]:
    """
    How often each requirement is missing, most common first.

    Fields with equal counts keep the requirement declaration order.
    """
    counts: Dict[str, int] = {label: 0 for label in REQUIREMENT_LABELS.values()}
    for validated in records:
        for label in validated.validation.missing:
            counts[label] = counts.get(label, 0) + 1

    total = len(records)
    histogram = [
        MissingFieldCount(field=label, count=count, percentage=_percent(count, total))
        for label, count in counts.items()
        if count
    ]
    # sorted() is stable, so ties stay in declaration order
    return sorted(histogram, key=lambda item: item.count, reverse=True)


def image_analysis(records: Sequence[ValidatedRecord]) -> ImageAnalysis:
    distribution = ImageTypeDistribution()
    with_images = with_logo = with_banner = with_both = with_all_required = 0

    for validated in records:
        details = validated.validation.image_details
        if details.total > 0:
            with_images += 1
        if details.has_logo:
            with_logo += 1
            distribution.logos += 1
        if details.has_banner:
            with_banner += 1
            distribution.banners += 1
        if details.has_logo and details.has_banner:
            with_both += 1
        if _has_all_required_images(validated):
            with_all_required += 1
        distribution.additional += details.additional_count
        distribution.total += details.total

    total = len(records)
    average = math.floor(10 * distribution.total / total + 0.5) / 10 if total else 0.0
    return ImageAnalysis(
        total_businesses=total,
        businesses_with_images=with_images,
        businesses_with_logo=with_logo,
        businesses_with_banner=with_banner,
        businesses_with_both=with_both,
        businesses_with_all_required=with_all_required,
        average_images_per_business=average,
        image_type_distribution=distribution,
    )


def directory_analytics(records: Sequence[BusinessRecord], today: Optional[date] = None) -> DirectoryAnalytics:
    """Headline numbers for the dashboard header."""
    current_year = (today or date.today()).year
    founded = [r.year_founded for r in records if r.year_founded]
    average_years = (
        int(math.floor(sum(current_year - y for y in founded) / len(founded) + 0.5)) if founded else 0
    )
    return DirectoryAnalytics(
        total_businesses=len(records),
        contractor_types=len({r.contractor_type for r in records if r.contractor_type}),
        service_areas=len({r.service_area for r in records if r.service_area}),
        average_years_active=average_years,
        businesses_with_logos=sum(1 for r in records if any(i.type == ImageType.LOGO for i in r.images)),
        businesses_with_images=sum(1 for r in records if r.images),
    )


def records_for_automation(records: Sequence[ValidatedRecord]) -> List[BusinessRecord]:
    """Only complete businesses may be handed to the submission bot."""
    return [v.record for v in records if v.validation.is_complete]


def can_proceed_to_automation(statistics: DirectoryStatistics) -> bool:
    return statistics.complete > 0


def build_report(records: Sequence[ValidatedRecord]) -> DirectoryReport:
    """Bundle every aggregate the dashboard shows for one analysis run."""
    statistics = summarize(records)
    return DirectoryReport(
        records=list(records),
        statistics=statistics,
        missing_fields=missing_fields_histogram(records),
        image_analysis=image_analysis(records),
        analytics=directory_analytics([v.record for v in records]),
        can_proceed_to_automation=can_proceed_to_automation(statistics),
    )
