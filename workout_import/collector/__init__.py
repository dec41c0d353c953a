"""Collector side of an import: headless page scripts, frame sampling and request submission."""
from .page_collector import PageDataCollector, ExtractionRace
from .frame_sampler import FrameSampler, compute_frame_timestamps
from .media_resolver import MediaResolver, MediaSource
from .request_builder import ExtractionRequestBuilder, ImportServiceClient
from .orchestrator import ImportOrchestrator, ImportOutcome

__all__ = [
    "PageDataCollector", "ExtractionRace", "FrameSampler", "compute_frame_timestamps",
    "MediaResolver", "MediaSource", "ExtractionRequestBuilder", "ImportServiceClient",
    "ImportOrchestrator", "ImportOutcome"
]
