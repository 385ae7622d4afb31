"""
Generation progress marker.

    idle ──> generating ──> completed
                  │
                  └───────> failed

``completed`` and ``failed`` (and a ``generating`` marker older than
GENERATION_STALE_SECONDS) may start a new run. Every run that set
``generating`` ends in exactly one of ``completed`` or ``failed``.
"""
import logging
import time
import uuid
from typing import Optional

from adstudio.config import settings
from adstudio.core.exceptions import ConflictError, ValidationError
from adstudio.models.campaign import Campaign
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.schemas.storyboard import GenerationMode, GenerationProgress, ProgressStatus

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    ProgressStatus.IDLE: {ProgressStatus.GENERATING},
    ProgressStatus.GENERATING: {ProgressStatus.GENERATING, ProgressStatus.COMPLETED, ProgressStatus.FAILED},
    ProgressStatus.COMPLETED: {ProgressStatus.GENERATING},
    ProgressStatus.FAILED: {ProgressStatus.GENERATING},
}


def now_ms() -> int:
    return int(time.time() * 1000)


def is_stale(progress: GenerationProgress, stale_seconds: int = None, now: int = None) -> bool:
    """A ``generating`` marker nobody has finished within the stale window."""
    if not progress.is_generating:
        return False
    if progress.started_at is None:
        return True
    stale_seconds = settings.GENERATION_STALE_SECONDS if stale_seconds is None else stale_seconds
    now = now_ms() if now is None else now
    return now - progress.started_at > stale_seconds * 1000


def check_transition(current: GenerationProgress, target: ProgressStatus) -> None:
    if target not in _TRANSITIONS[current.status]:
        raise ValidationError(f"Cannot move generation progress from '{current.status.value}' to '{target.value}'")


def begin(
    current: GenerationProgress,
    mode: GenerationMode,
    scene_number: Optional[int] = None,
    **snapshot
) -> GenerationProgress:
    """Marker for a new run, refusing to overlap a live one."""
    if current.is_generating and not is_stale(current):
        raise ConflictError("A generation is already in progress for this campaign")
    return GenerationProgress(
        status=ProgressStatus.GENERATING,
        mode=mode,
        scene_number=scene_number,
        started_at=now_ms(),
        **snapshot
    )


def finish(current: GenerationProgress, **snapshot) -> GenerationProgress:
    check_transition(current, ProgressStatus.COMPLETED)
    return current.model_copy(update={
        "status": ProgressStatus.COMPLETED,
        "completed_at": now_ms(),
        "error": None,
        **snapshot
    })


def fail(current: GenerationProgress, error: str, **snapshot) -> GenerationProgress:
    check_transition(current, ProgressStatus.FAILED)
    return current.model_copy(update={
        "status": ProgressStatus.FAILED,
        "completed_at": now_ms(),
        "error": error,
        **snapshot
    })


class ProgressTracker:
    """Persists marker transitions for campaigns."""

    def __init__(self, campaign_repo: CampaignRepository):
        self.campaign_repo = campaign_repo

    async def start(
        self,
        campaign: Campaign,
        mode: GenerationMode,
        scene_number: Optional[int] = None,
        **snapshot
    ) -> GenerationProgress:
        current = GenerationProgress.from_document(campaign.generation_progress)
        progress = begin(current, mode, scene_number, **snapshot)
        await self.campaign_repo.set_generation_progress(campaign.id, progress)
        logger.info(f"Campaign {campaign.id}: generation started (mode={mode.value}, scene={scene_number})")
        return progress

    async def update(self, campaign_id: uuid.UUID, progress: GenerationProgress, **snapshot) -> GenerationProgress:
        """Rewrite snapshot fields of a running marker."""
        check_transition(progress, ProgressStatus.GENERATING)
        progress = progress.model_copy(update=snapshot)
        await self.campaign_repo.set_generation_progress(campaign_id, progress)
        return progress

    async def fail(self, campaign_id: uuid.UUID, progress: GenerationProgress, error: str) -> GenerationProgress:
        failed = fail(progress, error)
        await self.campaign_repo.set_generation_progress(campaign_id, failed)
        logger.warning(f"Campaign {campaign_id}: generation failed: {error}")
        return failed

    async def mark_completed(self, campaign_id: uuid.UUID) -> Optional[GenerationProgress]:
        """
        Flip a running marker to ``completed`` once its result has been observed.
        Already-completed markers are left alone.
        """
        campaign = await self.campaign_repo.get_fresh(campaign_id)
        if not campaign:
            return None
        current = GenerationProgress.from_document(campaign.generation_progress)
        if current.status == ProgressStatus.COMPLETED:
            return current
        completed = finish(current)
        await self.campaign_repo.set_generation_progress(campaign_id, completed)
        return completed
