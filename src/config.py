# src/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# Credentials
GOOGLE_SERVICE_ACCOUNT_FILE = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "credentials/service-account.json")
GOOGLE_ACCESS_TOKEN = os.getenv("GOOGLE_ACCESS_TOKEN")
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
]

# Drive layout
MAIN_FOLDER_NAME = os.getenv("MAIN_FOLDER_NAME", "Business Directory")
DATA_FILE_NAME = os.getenv("DATA_FILE_NAME", "businesses")

# Runtime parameters
CONCURRENCY = 10
REQUEST_TIMEOUT = 60
IMAGE_PROCESS_DELAY = 0.5  # seconds between businesses
FOLDER_MATCH_THRESHOLD = 85
MAX_FOLDER_RESULTS = 50
MAX_IMAGE_RESULTS = 20
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# URLs
DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
IMAGE_HOST_URL = "https://lh3.googleusercontent.com"
THUMBNAIL_URL = "https://drive.google.com/thumbnail"

# File names
INPUT_CSV = os.getenv("INPUT_CSV", "businesses.csv")
OUTPUT_CSV = os.getenv("OUTPUT_CSV", "business_validation_report.csv")
