import pytest

from adstudio.core.exceptions import ConflictError, NotFoundError, ValidationError
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.schemas.campaign import CampaignUpdate, ProgressWrite
from adstudio.schemas.storyboard import GenerationMode, ProgressStatus
from adstudio.services.campaign_service import CampaignService, campaign_stage
from adstudio.services.poller import RepositorySnapshotSource
from adstudio.services.progress import ProgressTracker
from conftest import storyboard_document


async def test_stage_follows_storyboard(session, user, campaign):
    repo = CampaignRepository(session)

    await repo.update(campaign.id, {"storyboard": {"scripts": [{"title": "A"}]}})
    stage = campaign_stage(await repo.get_fresh(campaign.id))
    assert (stage.stage, stage.route, stage.label) == (
        "script-selection", f"/script-selection/{campaign.id}", "Select Script"
    )

    await repo.update(campaign.id, {"storyboard": storyboard_document()})
    stage = campaign_stage(await repo.get_fresh(campaign.id))
    assert (stage.stage, stage.label) == ("storyboard", "Edit Storyboard")

    await repo.update(campaign.id, {"storyboard": {**storyboard_document(), "generatedVideoUrl": "https://cdn.test/f.mp4"}})
    stage = campaign_stage(await repo.get_fresh(campaign.id))
    assert (stage.stage, stage.route, stage.label) == ("campaign-details", f"/campaign/{campaign.id}", "Ready")


async def test_stage_while_generating_without_scenes(session, user, campaign):
    repo = CampaignRepository(session)
    await repo.update(campaign.id, {"storyboard": {"scripts": [{"title": "A"}]}})
    await ProgressTracker(repo).start(await repo.get_fresh(campaign.id), GenerationMode.FULL)

    assert campaign_stage(await repo.get_fresh(campaign.id)).stage == "storyboard"


async def test_list_scoped_to_owner(session, user, other_user, campaign):
    service = CampaignService(session)

    mine = await service.list(user.id)
    theirs = await service.list(other_user.id)
    filtered = await service.list(user.id, status="concept")

    assert mine["total"] == 1
    assert mine["items"][0].id == campaign.id
    assert theirs["total"] == 0
    assert filtered["total"] == 0

    with pytest.raises(NotFoundError):
        await service.get(other_user.id, campaign.id)


async def test_update_and_delete(session, user, campaign):
    service = CampaignService(session)

    updated = await service.update(user.id, campaign.id, CampaignUpdate(title="Renamed", cta_text="Buy now"))
    assert updated.title == "Renamed"
    assert updated.cta_text == "Buy now"
    assert updated.goal == "awareness"

    assert await service.delete(user.id, campaign.id)
    with pytest.raises(NotFoundError):
        await service.get(user.id, campaign.id)


async def test_delete_refused_while_generating(session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.FULL)
    with pytest.raises(ConflictError):
        await CampaignService(session).delete(user.id, campaign.id)


async def test_client_completion_requires_stored_url(session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.SCENE, 2)
    service = CampaignService(session)

    with pytest.raises(ValidationError):
        await service.write_progress(user.id, campaign.id, ProgressWrite(status="completed"))

    document = storyboard_document()
    document["scenes"][1]["videoUrl"] = "https://cdn.test/2.mp4"
    await CampaignRepository(session).update(campaign.id, {"storyboard": document})

    progress = await service.write_progress(user.id, campaign.id, ProgressWrite(status="completed"))
    assert progress.status == ProgressStatus.COMPLETED


async def test_client_failure_write(session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.FULL)
    service = CampaignService(session)

    progress = await service.write_progress(user.id, campaign.id, ProgressWrite(status="failed", error="Tab closed"))
    assert progress.status == ProgressStatus.FAILED
    assert progress.error == "Tab closed"

    with pytest.raises(ValidationError):
        await service.write_progress(user.id, campaign.id, ProgressWrite(status="generating"))


async def test_resume_self_heals_finished_render(session_factory, session, user, campaign):
    repo = CampaignRepository(session)
    await ProgressTracker(repo).start(campaign, GenerationMode.SCENE, 3)
    document = storyboard_document(with_urls=True)
    await repo.update(campaign.id, {"storyboard": document})

    service = CampaignService(session, RepositorySnapshotSource(session_factory))
    result = await service.resume(user.id, campaign.id, timeout=1)

    assert result.resumed
    assert result.video_url == "https://cdn.test/existing-3.mp4"
    assert result.mode == "scene"
    assert result.scene_number == 3
    assert result.generation_progress.status == ProgressStatus.COMPLETED


async def test_resume_gives_up_after_timeout(session_factory, session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.FULL)

    service = CampaignService(session, RepositorySnapshotSource(session_factory))
    result = await service.resume(user.id, campaign.id, timeout=0)

    assert not result.resumed
    assert result.video_url is None
    assert result.generation_progress.status == ProgressStatus.GENERATING


async def test_resume_idle_campaign(session_factory, session, user, campaign):
    service = CampaignService(session, RepositorySnapshotSource(session_factory))
    result = await service.resume(user.id, campaign.id, timeout=1)

    assert not result.resumed
    assert result.generation_progress.status == ProgressStatus.IDLE
