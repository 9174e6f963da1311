"""Client singletons for external API interactions."""
from src.clients.drive_client import DriveAPIError, DriveClient

__all__ = ["DriveClient", "DriveAPIError"]
