"""
Polling for rendered video URLs.

A generation request can outlive the page (or client) that started it, so
clients re-read the campaign until the URL they expect shows up. Rows written
before the run started are ignored, allowing a few seconds of clock skew.
"""
import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from adstudio.config import settings
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.schemas.storyboard import CampaignSnapshot, GenerationProgress, ProgressStatus
from adstudio.services.progress import ProgressTracker

logger = logging.getLogger(__name__)

CLOCK_SKEW_MS = 5_000

UrlExtractor = Callable[[CampaignSnapshot], Optional[str]]


class SnapshotSource(ABC):
    """Where pollers read campaigns from and write completion to."""

    @abstractmethod
    async def fetch_snapshot(self, campaign_id: uuid.UUID) -> Optional[CampaignSnapshot]:
        pass

    @abstractmethod
    async def mark_completed(self, campaign_id: uuid.UUID) -> None:
        pass


class RepositorySnapshotSource(SnapshotSource):
    """Reads straight from the database, one short session per read."""

    def __init__(self, session_factory=None):
        if session_factory is None:
            from adstudio.database import async_session_factory
            session_factory = async_session_factory
        self.session_factory = session_factory

    async def fetch_snapshot(self, campaign_id: uuid.UUID) -> Optional[CampaignSnapshot]:
        async with self.session_factory() as session:
            return await CampaignRepository(session).get_snapshot(campaign_id)

    async def mark_completed(self, campaign_id: uuid.UUID) -> None:
        async with self.session_factory() as session:
            await ProgressTracker(CampaignRepository(session)).mark_completed(campaign_id)


def updated_after_start(updated_at: Optional[datetime], started_at: Optional[int]) -> bool:
    """True unless the row was last written before ``started_at`` (epoch ms) minus the skew window."""
    if not started_at or updated_at is None:
        return True
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    return updated_at.timestamp() * 1000 >= started_at - CLOCK_SKEW_MS


def run_failed(progress: GenerationProgress, started_at: Optional[int]) -> bool:
    """The marker reports failure for the run being watched."""
    if progress.status != ProgressStatus.FAILED:
        return False
    return started_at is None or progress.started_at == started_at


def full_video_url(snapshot: CampaignSnapshot) -> Optional[str]:
    return snapshot.storyboard.full_video_url()


def scene_video_url(scene_number: int) -> UrlExtractor:
    def extract(snapshot: CampaignSnapshot) -> Optional[str]:
        return snapshot.storyboard.scene_video_url(scene_number)
    return extract


class VideoPoller:
    """
    Bounded fixed-interval polling.

    Returns the URL, or None on timeout, cancellation, or when the run is
    reported failed. Read errors are logged and the loop carries on.
    """

    def __init__(
        self,
        source: SnapshotSource,
        interval: float = None,
        timeout: float = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.source = source
        self.interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
        self.timeout = settings.POLL_TIMEOUT_SECONDS if timeout is None else timeout
        self._sleep = sleep
        self._clock = clock

    async def poll(
        self,
        campaign_id: uuid.UUID,
        extract: UrlExtractor,
        started_at: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None
    ) -> Optional[str]:
        t0 = self._clock()
        attempts = 0

        while self._clock() - t0 < self.timeout:
            if cancel is not None and cancel.is_set():
                logger.info(f"Polling for campaign {campaign_id} cancelled")
                return None

            attempts += 1
            try:
                snapshot = await self.source.fetch_snapshot(campaign_id)
            except Exception as e:
                logger.warning(f"Poll attempt {attempts} for campaign {campaign_id} failed: {e}")
                snapshot = None

            if snapshot is not None and updated_after_start(snapshot.updated_at, started_at):
                url = extract(snapshot)
                if url:
                    return url
                if run_failed(snapshot.generation_progress, started_at):
                    logger.info(f"Campaign {campaign_id}: run failed, stop polling")
                    return None

            if await self._wait(cancel):
                return None

        logger.info(f"Polling for campaign {campaign_id} timed out after {attempts} attempts")
        return None

    async def poll_for_full_video_url(
        self,
        campaign_id: uuid.UUID,
        started_at: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None
    ) -> Optional[str]:
        return await self.poll(campaign_id, full_video_url, started_at, cancel)

    async def poll_for_scene_video_url(
        self,
        campaign_id: uuid.UUID,
        scene_number: int,
        started_at: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None
    ) -> Optional[str]:
        return await self.poll(campaign_id, scene_video_url(scene_number), started_at, cancel)

    async def _wait(self, cancel: Optional[asyncio.Event]) -> bool:
        """Sleep one interval; True if cancelled meanwhile."""
        if cancel is None:
            await self._sleep(self.interval)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return False
        return True
