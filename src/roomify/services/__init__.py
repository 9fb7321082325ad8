from src.roomify.services.hosting_service import ImageHostResolver
from src.roomify.services.listing_service import ListingService
from src.roomify.services.project_service import ProjectService

__all__ = ["ImageHostResolver", "ListingService", "ProjectService"]
