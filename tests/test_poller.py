import asyncio
from datetime import datetime, timezone

from adstudio.schemas.storyboard import CampaignSnapshot
from adstudio.services.poller import SnapshotSource, VideoPoller, updated_after_start
from conftest import FakeClock

STARTED_AT = 1_718_000_000_000


def at(ms_offset):
    return datetime.fromtimestamp((STARTED_AT + ms_offset) / 1000, tz=timezone.utc)


def snapshot(updated_at, scene_url=None, full_url=None, progress=None):
    scene = {"sceneNumber": 3, "visualDescription": "Logo"}
    if scene_url:
        scene["videoUrl"] = scene_url
    storyboard = {"scenes": [scene]}
    if full_url:
        storyboard["generatedVideoUrl"] = full_url
    return CampaignSnapshot.model_validate({
        "storyboard": storyboard,
        "generationProgress": progress or {"status": "generating", "mode": "scene", "sceneNumber": 3,
                                           "startedAt": STARTED_AT},
        "updatedAt": updated_at,
    })


class ScriptedSource(SnapshotSource):
    """Returns the queued snapshots in order, repeating the last one."""

    def __init__(self, snapshots):
        self.snapshots = list(snapshots)
        self.fetches = 0
        self.completed = []

    async def fetch_snapshot(self, campaign_id):
        self.fetches += 1
        item = self.snapshots[min(self.fetches, len(self.snapshots)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    async def mark_completed(self, campaign_id):
        self.completed.append(campaign_id)


def make_poller(source, timeout=60, interval=2):
    clock = FakeClock()
    return VideoPoller(source, interval=interval, timeout=timeout, sleep=clock.sleep, clock=clock), clock


def test_updated_after_start_skew_window():
    assert updated_after_start(at(-4_999), STARTED_AT)
    assert updated_after_start(at(-5_000), STARTED_AT)
    assert not updated_after_start(at(-5_001), STARTED_AT)
    assert updated_after_start(None, STARTED_AT)
    assert updated_after_start(at(-60_000), None)

    naive = (at(-1_000)).replace(tzinfo=None)
    assert updated_after_start(naive, STARTED_AT)


async def test_stale_rows_are_discarded_and_first_fresh_row_wins():
    source = ScriptedSource([
        snapshot(at(-60_000), scene_url="https://cdn.test/old.mp4"),
        snapshot(at(-6_000), scene_url="https://cdn.test/old.mp4"),
        snapshot(at(1_000), scene_url="https://cdn.test/new.mp4"),
        snapshot(at(3_000), scene_url="https://cdn.test/newer.mp4"),
    ])
    poller, clock = make_poller(source)

    url = await poller.poll_for_scene_video_url("c1", 3, started_at=STARTED_AT)

    assert url == "https://cdn.test/new.mp4"
    assert source.fetches == 3
    assert clock.sleeps == [2, 2]


async def test_timeout_without_result():
    source = ScriptedSource([snapshot(at(1_000))])
    poller, clock = make_poller(source, timeout=5, interval=2)

    url = await poller.poll_for_full_video_url("c1", started_at=STARTED_AT)

    assert url is None
    assert 2 <= source.fetches <= 3


async def test_fetch_errors_do_not_stop_polling():
    source = ScriptedSource([
        RuntimeError("connection reset"),
        snapshot(at(1_000), full_url="https://cdn.test/full.mp4"),
    ])
    poller, _ = make_poller(source)

    assert await poller.poll_for_full_video_url("c1", started_at=STARTED_AT) == "https://cdn.test/full.mp4"
    assert source.fetches == 2


async def test_failed_run_stops_polling():
    failed = {"status": "failed", "mode": "scene", "sceneNumber": 3, "startedAt": STARTED_AT, "error": "boom"}
    source = ScriptedSource([snapshot(at(1_000)), snapshot(at(2_000), progress=failed)])
    poller, _ = make_poller(source)

    assert await poller.poll_for_scene_video_url("c1", 3, started_at=STARTED_AT) is None
    assert source.fetches == 2


async def test_failure_of_another_run_is_ignored():
    older = {"status": "failed", "mode": "scene", "sceneNumber": 3, "startedAt": STARTED_AT - 1, "error": "boom"}
    source = ScriptedSource([
        snapshot(at(1_000), progress=older),
        snapshot(at(2_000), scene_url="https://cdn.test/new.mp4"),
    ])
    poller, _ = make_poller(source)

    assert await poller.poll_for_scene_video_url("c1", 3, started_at=STARTED_AT) == "https://cdn.test/new.mp4"


async def test_cancellation():
    cancel = asyncio.Event()

    class CancellingSource(ScriptedSource):
        async def fetch_snapshot(self, campaign_id):
            cancel.set()
            return await super().fetch_snapshot(campaign_id)

    source = CancellingSource([snapshot(at(1_000))])
    poller = VideoPoller(source, interval=30, timeout=60)

    url = await asyncio.wait_for(poller.poll_for_scene_video_url("c1", 3, cancel=cancel), timeout=5)

    assert url is None
    assert source.fetches == 1


async def test_already_cancelled_never_fetches():
    cancel = asyncio.Event()
    cancel.set()
    source = ScriptedSource([snapshot(at(1_000), scene_url="https://cdn.test/new.mp4")])
    poller, _ = make_poller(source)

    assert await poller.poll_for_scene_video_url("c1", 3, cancel=cancel) is None
    assert source.fetches == 0
