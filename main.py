import argparse
import asyncio
import csv
import sys
from typing import List

from loguru import logger

from src.clients import DriveClient
from src.config import INPUT_CSV, LOG_LEVEL, OUTPUT_CSV
from src.drive_service import BusinessDriveService
from src.extractor import extract, load_grid_from_csv
from src.models import DirectoryReport, ValidatedRecord
from src.reporter import build_report, records_for_automation
from src.validator import validate_all


def load_report_from_csv(file_path: str) -> DirectoryReport:
    """Validate a local export of the sheet. Local files carry no images."""
    records = extract(load_grid_from_csv(file_path))
    return build_report(validate_all(records))


async def load_report_from_drive() -> DirectoryReport:
    service = BusinessDriveService()
    await service.initialize()
    return await service.analyze()


def write_report(records: List[ValidatedRecord], output_path: str) -> None:
    """Write one row per business with its verdict."""
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Name", "complete", "completionPercentage", "missing", "images"])
        for validated in records:
            writer.writerow([
                validated.record.name,
                validated.validation.is_complete,
                validated.validation.completion_percentage,
                "; ".join(validated.validation.missing),
                validated.validation.image_details.total,
            ])


def log_report(report: DirectoryReport) -> None:
    stats = report.statistics
    logger.info(
        f"📊 {stats.total} businesses: {stats.complete} complete, "
        f"{stats.incomplete} incomplete ({stats.completion_rate}%)"
    )
    logger.info(
        f"🖼️ logo {stats.image_stats.with_logo}, banner {stats.image_stats.with_banner}, "
        f"all required images {stats.image_stats.with_all_required_images}"
    )
    for item in report.missing_fields[:5]:
        logger.info(f"   missing {item.field}: {item.count} ({item.percentage}%)")

    ready = records_for_automation(report.records)
    if report.can_proceed_to_automation:
        logger.info(f"🤖 Ready for automation: {', '.join(r.name for r in ready)}")
    else:
        logger.warning("No complete businesses, nothing to hand to automation")


async def main():
    """
    Run the directory analysis once.

    - Reads the transposed business sheet from Drive (or a local CSV).
    - Attaches and publishes each business's images (Drive only).
    - Validates every business and writes a CSV report.
    """
    parser = argparse.ArgumentParser(description="Validate the business directory sheet")
    parser.add_argument("--source", choices=["drive", "csv"], default="drive")
    parser.add_argument("--input-csv", default=INPUT_CSV)
    parser.add_argument("--output-csv", default=OUTPUT_CSV)
    args = parser.parse_args()

    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    try:
        if args.source == "csv":
            report = load_report_from_csv(args.input_csv)
        else:
            report = await load_report_from_drive()
    finally:
        if DriveClient._instance is not None:
            await DriveClient._instance.close()

    log_report(report)
    write_report(report.records, args.output_csv)
    logger.info(f"✅ Report written to {args.output_csv}")


if __name__ == "__main__":
    asyncio.run(main())
