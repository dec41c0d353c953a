"""Service layer modules for the Workout Import Service."""
from .cache_service import TtlCache, page_cache, result_cache
from .url_resolver import URLResolver
from .page_scraper import PageScraper
from .data_merger import DataMerger
from .image_downloader import ImageDownloader
from .inference_service import WorkoutInferenceService
from .path_router import PathRouter
from .import_service import ImportService
from .exercise_catalog import ExerciseCatalog, get_exercise_catalog
from .exercise_matcher import ExerciseMatcher
from .review_service import ReviewSession

__all__ = [
    "TtlCache", "page_cache", "result_cache", "URLResolver", "PageScraper", "DataMerger",
    "ImageDownloader", "WorkoutInferenceService", "PathRouter", "ImportService",
    "ExerciseCatalog", "get_exercise_catalog", "ExerciseMatcher", "ReviewSession"
]
