"""
Re-attaching to an in-flight generation.

When a client comes back to a campaign whose marker says ``generating``, the
render may already have landed (the marker just was not flipped yet), or it may
still be running. ``GenerationResumer`` handles both: it notifies right away in
the first case and polls in the second. One resumer resumes at most once.
"""
import asyncio
import inspect
import logging
import uuid
from typing import Awaitable, Callable, Optional, Union

from adstudio.schemas.storyboard import GenerationMode
from adstudio.services.poller import SnapshotSource, VideoPoller

logger = logging.getLogger(__name__)

VideoReadyCallback = Callable[[str, GenerationMode, Optional[int]], Union[None, Awaitable[None]]]


class GenerationResumer:

    def __init__(
        self,
        source: SnapshotSource,
        on_video_ready: VideoReadyCallback,
        poller: Optional[VideoPoller] = None,
        enabled: bool = True
    ):
        self.source = source
        self.on_video_ready = on_video_ready
        self.poller = poller or VideoPoller(source)
        self.enabled = enabled
        self._resumed = False
        self._lock = asyncio.Lock()

    @property
    def resumed(self) -> bool:
        return self._resumed

    async def resume(
        self,
        campaign_id: Optional[uuid.UUID],
        cancel: Optional[asyncio.Event] = None
    ) -> Optional[str]:
        """
        Inspect the campaign's marker and finish or resume its generation.

        Returns the video URL handed to ``on_video_ready``, or None when there
        was nothing to resume, polling gave up, or this resumer already ran.
        """
        if not campaign_id or not self.enabled:
            return None

        async with self._lock:
            if self._resumed:
                return None

            try:
                snapshot = await self.source.fetch_snapshot(campaign_id)
            except Exception as e:
                logger.warning(f"Could not read campaign {campaign_id} for resume: {e}")
                return None
            if snapshot is None:
                return None

            progress = snapshot.generation_progress
            if not progress.is_generating or progress.mode is None:
                return None

            mode = progress.mode
            scene_number = progress.scene_number if mode == GenerationMode.SCENE else None
            if mode == GenerationMode.SCENE and scene_number is None:
                # Batch runs report through the progress snapshot, not a single URL
                self._resumed = True
                return None

            existing = snapshot.storyboard.video_url_for(mode, scene_number)
            self._resumed = True

            if existing:
                logger.info(f"Campaign {campaign_id}: {mode.value} video already present, clearing stale progress")
                await self._complete(campaign_id, existing, mode, scene_number)
                return existing

            logger.info(f"Campaign {campaign_id}: resuming poll for {mode.value} video (scene={scene_number})")
            if mode == GenerationMode.FULL:
                url = await self.poller.poll_for_full_video_url(
                    campaign_id, started_at=progress.started_at, cancel=cancel
                )
            else:
                url = await self.poller.poll_for_scene_video_url(
                    campaign_id, scene_number, started_at=progress.started_at, cancel=cancel
                )

            if url:
                await self._complete(campaign_id, url, mode, scene_number)
            return url

    async def _complete(
        self,
        campaign_id: uuid.UUID,
        url: str,
        mode: GenerationMode,
        scene_number: Optional[int]
    ) -> None:
        await self.source.mark_completed(campaign_id)
        result = self.on_video_ready(url, mode, scene_number)
        if inspect.isawaitable(result):
            await result
