import asyncio
import re
from dataclasses import replace
from typing import List, Optional

from loguru import logger
from rapidfuzz import fuzz

from src.clients import DriveClient
from src.config import (
    DATA_FILE_NAME,
    FOLDER_MATCH_THRESHOLD,
    IMAGE_PROCESS_DELAY,
    MAIN_FOLDER_NAME,
    MAX_FOLDER_RESULTS,
    MAX_IMAGE_RESULTS,
)
from src.extractor import RawGrid, extract, load_grid_from_csv_text
from src.image_classifier import classify_and_publish
from src.models import BusinessRecord, DirectoryReport, DriveFile, ImageFolder
from src.reporter import build_report
from src.validator import validate_all

FOLDER_MIME = "application/vnd.google-apps.folder"
SPREADSHEET_MIME = "application/vnd.google-apps.spreadsheet"
CSV_MIME = "text/csv"

_DATA_EXTENSION = re.compile(r"\.(csv|xlsx?)$", re.IGNORECASE)


class DriveServiceError(Exception):
    """The Drive layout or data file could not be used."""


def _normalize_name(name: str) -> str:
    cleaned = re.sub(r"[^\w\s]", "", (name or "").lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def _is_csv(file: DriveFile) -> bool:
    return file.mime_type == CSV_MIME or file.name.lower().endswith(".csv")


class BusinessDriveService:
    """
    Finds the business directory on Drive and turns it into validated records.

    Layout expected on Drive:
      <main folder>/
        <data file>          spreadsheet or CSV, one column per business
        <business name>/     one image folder per business
    """

    def __init__(
        self,
        main_folder_name: str = MAIN_FOLDER_NAME,
        data_file_name: str = DATA_FILE_NAME,
        drive_client: Optional[DriveClient] = None,
    ):
        self.main_folder_name = main_folder_name
        self.data_file_name = data_file_name
        self.drive_client = drive_client or DriveClient()
        self.main_folder_id: Optional[str] = None
        self.data_file_id: Optional[str] = None

    async def initialize(self) -> None:
        logger.info("🔍 Initializing business drive service...")
        if not await self.drive_client.test_connection():
            raise DriveServiceError("Failed to connect to Google Drive")

        await self._find_main_folder()
        await self._find_data_file()
        logger.info("✅ Business drive service initialized")

    async def _find_main_folder(self) -> None:
        wanted = self.main_folder_name.lower()
        folders = await self.drive_client.search_files(
            query=self.main_folder_name, mime_type=FOLDER_MIME, max_results=10
        )

        folder = next((f for f in folders if f.name.lower() == wanted), None)
        if folder is None:
            folder = next(
                (
                    f for f in folders
                    if wanted in f.name.lower() or "business" in f.name.lower() or "directory" in f.name.lower()
                ),
                None,
            )
        if folder is None:
            raise DriveServiceError(f'Main folder "{self.main_folder_name}" not found in Google Drive')

        self.main_folder_id = folder.id
        logger.info(f'✅ Found main folder: "{folder.name}" (ID: {folder.id})')

    async def _find_data_file(self) -> None:
        if not self.main_folder_id:
            raise DriveServiceError("Main folder not found. Call initialize() first.")

        files = await self.drive_client.search_files(folder_id=self.main_folder_id, max_results=20)
        wanted = self.data_file_name.lower()
        wanted_base = _DATA_EXTENSION.sub("", wanted)

        # Tried in order, first rule with a hit wins
        rules = (
            lambda f: _DATA_EXTENSION.sub("", f.name.lower()) == wanted_base or f.name.lower() == f"{wanted}.csv",
            lambda f: f.mime_type == SPREADSHEET_MIME and wanted in f.name.lower(),
            lambda f: _is_csv(f) and wanted in f.name.lower(),
            lambda f: f.mime_type == SPREADSHEET_MIME or _is_csv(f),
        )
        data_file = None
        for rule in rules:
            data_file = next((f for f in files if rule(f)), None)
            if data_file:
                break

        if data_file is None:
            for f in files:
                logger.debug(f"   📄 {f.name} ({f.mime_type})")
            raise DriveServiceError(
                f'No CSV or Google Sheets file found in main folder. Looking for: "{self.data_file_name}"'
            )

        self.data_file_id = data_file.id
        logger.info(f'✅ Found data file: "{data_file.name}" (ID: {data_file.id})')

    async def load_grid(self) -> RawGrid:
        """Download the data file and parse it into a raw grid."""
        if not self.data_file_id:
            raise DriveServiceError("Service not initialized. Call initialize() first.")

        metadata = await self.drive_client.get_file_metadata(self.data_file_id)
        mime_type = metadata.get("mimeType", "")
        name = metadata.get("name", "")

        if mime_type == SPREADSHEET_MIME:
            logger.debug("📊 Exporting Google Sheets file as CSV...")
            text = await self.drive_client.export_sheet_as_csv(self.data_file_id)
        elif mime_type == CSV_MIME or name.lower().endswith(".csv"):
            logger.debug("📄 Downloading CSV file...")
            text = (await self.drive_client.get_file_bytes(self.data_file_id)).decode("utf-8")
        else:
            raise DriveServiceError(f"Unsupported file type: {mime_type}")

        return load_grid_from_csv_text(text)

    async def find_business_folder(self, business_name: str) -> Optional[DriveFile]:
        """
        Locate a business's image folder inside the main folder.

        Exact (case-insensitive) names win, then names that contain one another
        once punctuation is stripped, then the closest fuzzy match above
        FOLDER_MATCH_THRESHOLD.
        """
        if not self.main_folder_id:
            return None

        folders = await self.drive_client.search_files(
            folder_id=self.main_folder_id, mime_type=FOLDER_MIME, max_results=MAX_FOLDER_RESULTS
        )

        wanted = business_name.lower()
        for folder in folders:
            if folder.name.lower() == wanted:
                return folder

        clean_name = _normalize_name(business_name)
        if not clean_name:
            return None
        for folder in folders:
            clean_folder = _normalize_name(folder.name)
            if clean_folder and (clean_name in clean_folder or clean_folder in clean_name):
                return folder

        best, best_score = None, 0.0
        for folder in folders:
            score = fuzz.ratio(clean_name, _normalize_name(folder.name))
            if score > best_score:
                best, best_score = folder, score
        if best is not None and best_score >= FOLDER_MATCH_THRESHOLD:
            logger.debug(f"Fuzzy matched folder '{best.name}' for '{business_name}' ({best_score:.0f})")
            return best
        return None

    async def add_images_to_business(self, record: BusinessRecord) -> BusinessRecord:
        folder = await self.find_business_folder(record.name)
        if folder is None:
            return replace(record, images=[], image_folder=ImageFolder(id="", name=record.name, found=False))

        files = await self.drive_client.search_files(folder_id=folder.id, max_results=MAX_IMAGE_RESULTS)
        images = await classify_and_publish(record.name, files, self.drive_client)
        return replace(record, images=images, image_folder=ImageFolder(id=folder.id, name=folder.name, found=True))

    async def get_business_data_with_images(self) -> List[BusinessRecord]:
        """
        Extract every business and attach its images.

        Businesses are processed one at a time. A business whose images cannot
        be fetched is kept with no images.
        """
        if not self.data_file_id or not self.main_folder_id:
            raise DriveServiceError("Service not initialized. Call initialize() first.")

        records = extract(await self.load_grid())
        logger.info(f"✅ Found {len(records)} businesses in data file")

        enriched: List[BusinessRecord] = []
        for i, record in enumerate(records):
            if i:
                await asyncio.sleep(IMAGE_PROCESS_DELAY)
            logger.info(f"🏢 Processing images for: {record.name}")
            try:
                enriched.append(await self.add_images_to_business(record))
            except Exception as e:
                logger.warning(f"⚠️ Failed to get images for {record.name}: {e}")
                enriched.append(replace(record, images=[], image_folder=ImageFolder(id="", name="", found=False)))
        return enriched

    async def analyze(self) -> DirectoryReport:
        """Run the whole pipeline: sheet -> records -> images -> verdicts -> report."""
        records = await self.get_business_data_with_images()
        return build_report(validate_all(records))
