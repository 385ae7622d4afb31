import pytest

from adstudio.core.exceptions import (
    ConflictError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from adstudio.models.activity import Actions
from adstudio.repositories.activity_repo import ActivityLogRepository
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.schemas.generation import (
    FullVideoRequest,
    IdeasRequest,
    RegenerateRequest,
    SceneVideoRequest,
    SceneVisualRequest,
    ScriptsRequest,
    StoryboardRequest,
    StrategyRequest,
    UpdateSceneRequest,
)
from adstudio.schemas.storyboard import GenerationMode, Storyboard
from adstudio.services.generation_service import GenerationService
from adstudio.services.progress import ProgressTracker
from conftest import (
    FakeImageGenerator,
    FakeStorage,
    FakeTextGenerator,
    FakeVideoGenerator,
    script_document,
    storyboard_document,
)


def make_service(session, text_generator=None, video_generator=None, storage=None, image_generator=None):
    return GenerationService(
        session,
        text_generator or FakeTextGenerator(),
        video_generator or FakeVideoGenerator(),
        storage or FakeStorage(),
        image_generator or FakeImageGenerator()
    )


async def reload(session, campaign_id):
    return await CampaignRepository(session).get_fresh(campaign_id)


# ----------------------------------------------------------------------
# Scene video
# ----------------------------------------------------------------------

async def test_scene_video_stored_with_completed_marker(session, user, campaign, storage):
    video_generator = FakeVideoGenerator()
    service = make_service(session, video_generator=video_generator, storage=storage)

    result = await service.generate_scene_video(user, SceneVideoRequest(
        campaign_id=campaign.id, scene_number=2, language="ja", camera_movement="dolly", aspect_ratio="9:16"
    ))

    source_url, key = storage.stored[0]
    assert source_url == "https://render.test/scene-2.mp4"
    assert key.startswith(f"{user.id}/{campaign.id}/scene-2-") and key.endswith(".mp4")
    assert result.video_url == f"https://cdn.test/{key}"
    assert result.scene_number == 2

    call = video_generator.scene_calls[0]
    assert call["audio_prompt"] == "[Japanese] Ours starts here."
    assert "Dolly push-in camera movement." in call["prompt"]
    assert "Style: cinematic." in call["prompt"]
    assert call["duration"] == 5
    assert call["aspect_ratio"] == "9:16"

    stored = await reload(session, campaign.id)
    storyboard = Storyboard.from_document(stored.storyboard)
    progress = stored.generation_progress
    assert progress["status"] == "completed"
    assert progress["mode"] == "scene"
    assert progress["sceneNumber"] == 2
    # completed implies the URL is where the mode says it is
    assert storyboard.video_url_for(GenerationMode.SCENE, 2) == result.video_url
    assert storyboard.find_scene(2).generation_settings == {
        "duration": "5", "aspectRatio": "9:16", "language": "ja", "cameraMovement": "dolly"
    }
    assert storyboard.scene_video_url(1) is None


async def test_scene_video_failure_marks_failed(session, user, campaign):
    campaign_id = campaign.id
    service = make_service(session, video_generator=FakeVideoGenerator(fail_scenes={1}, error=RateLimitError("Replicate")))

    with pytest.raises(RateLimitError):
        await service.generate_scene_video(user, SceneVideoRequest(campaign_id=campaign_id, scene_number=1))

    stored = await reload(session, campaign_id)
    assert stored.generation_progress["status"] == "failed"
    assert "rate limit" in stored.generation_progress["error"]
    assert Storyboard.from_document(stored.storyboard).scene_video_url(1) is None

    activity = await ActivityLogRepository(session).get_by_entity("campaign", campaign_id)
    assert Actions.GENERATION_FAILED in [a.action for a in activity]


async def test_scene_video_rejects_overlapping_run(session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.FULL)
    service = make_service(session)

    with pytest.raises(ConflictError):
        await service.generate_scene_video(user, SceneVideoRequest(campaign_id=campaign.id, scene_number=1))


async def test_scene_video_unknown_scene_or_campaign(session, user, other_user, campaign):
    service = make_service(session)

    with pytest.raises(NotFoundError):
        await service.generate_scene_video(user, SceneVideoRequest(campaign_id=campaign.id, scene_number=7))
    with pytest.raises(NotFoundError):
        await service.generate_scene_video(other_user, SceneVideoRequest(campaign_id=campaign.id, scene_number=1))

    stored = await reload(session, campaign.id)
    assert stored.generation_progress is None


async def test_scene_edit_during_render_is_kept(session_factory, session, user, campaign):
    video_generator = FakeVideoGenerator()

    async def edit_while_rendering(scene_number):
        async with session_factory() as other:
            await make_service(other).update_scene(user, UpdateSceneRequest(
                campaign_id=campaign.id, scene_number=3, updates={"voiceover": "Edited mid-render"}
            ))

    video_generator.on_render = edit_while_rendering
    service = make_service(session, video_generator=video_generator)

    await service.generate_scene_video(user, SceneVideoRequest(campaign_id=campaign.id, scene_number=1))

    storyboard = Storyboard.from_document((await reload(session, campaign.id)).storyboard)
    assert storyboard.find_scene(3).voiceover == "Edited mid-render"
    assert storyboard.scene_video_url(1) is not None


# ----------------------------------------------------------------------
# Full video
# ----------------------------------------------------------------------

async def test_full_video(session, user, campaign, storage):
    video_generator = FakeVideoGenerator()
    service = make_service(session, video_generator=video_generator, storage=storage)

    result = await service.generate_full_video(user, FullVideoRequest.model_validate({
        "campaignId": str(campaign.id), "script": script_document(), "duration": "10", "aspectRatio": "1:1"
    }))

    _, key = storage.stored[0]
    assert key.startswith(f"{user.id}/{campaign.id}/script-video-")
    assert video_generator.script_calls[0]["prompt"] == (
        "Every day starts somewhere. Ours starts here. Brewcraft.. Style: professional TV commercial. "
        "High quality cinematic motion. Tone: warm."
    )
    assert video_generator.script_calls[0]["duration"] == 10

    stored = await reload(session, campaign.id)
    storyboard = Storyboard.from_document(stored.storyboard)
    assert stored.status == "video_generated"
    assert stored.generation_progress["status"] == "completed"
    assert stored.generation_progress["mode"] == "full"
    assert storyboard.full_video_url() == result.video_url
    assert storyboard.selected_script.generated_video_url == result.video_url
    assert storyboard.generated_video_url == result.video_url
    # scenes survive
    assert len(storyboard.scenes) == 3


async def test_full_video_failure_marks_failed(session, user, campaign):
    campaign_id = campaign.id
    service = make_service(session, video_generator=FakeVideoGenerator(error=UpstreamError("Fal.ai", "No video URL returned")))

    with pytest.raises(UpstreamError):
        await service.generate_full_video(user, FullVideoRequest.model_validate({
            "campaignId": str(campaign_id), "script": script_document()
        }))

    stored = await reload(session, campaign_id)
    assert stored.generation_progress["status"] == "failed"
    assert stored.generation_progress["mode"] == "full"
    assert stored.status == "storyboard_created"


# ----------------------------------------------------------------------
# Text generation
# ----------------------------------------------------------------------

CONCEPTS = {"concepts": [
    {"title": f"Concept {i}", "description": "A morning story", "script": "Wake up.", "ctaText": "Try it",
     "predictedCtr": 2.5 + i, "predictedEngagement": "high"}
    for i in range(4)
]}


async def test_generate_ideas_creates_concept_campaigns(session, user, brand):
    text_generator = FakeTextGenerator({"generate_concepts": CONCEPTS})
    service = make_service(session, text_generator=text_generator)

    campaigns = await service.generate_ideas(user, IdeasRequest.model_validate({
        "prompt": "Cold brew subscription", "adType": "video", "goal": "awareness",
        "targetAudience": {"demographics": "Young professionals"}, "aspectRatios": ["16:9"]
    }))

    assert len(campaigns) == 4
    assert {c.status for c in campaigns} == {"concept"}
    assert {c.brand_id for c in campaigns} == {brand.id}
    assert campaigns[0].cta_text == "Try it"
    assert campaigns[1].predicted_ctr == 3.5
    assert "Target Audience: Young professionals" in text_generator.calls[0]["user"]
    assert "Generate 4 video ad concepts" in text_generator.calls[0]["system"]


async def test_generate_ideas_requires_brand(session, user):
    service = make_service(session, text_generator=FakeTextGenerator({"generate_concepts": CONCEPTS}))
    with pytest.raises(NotFoundError):
        await service.generate_ideas(user, IdeasRequest(prompt="Anything"))


async def test_generate_scripts_stored_on_campaign(session, user, brand, campaign):
    scripts = {"scripts": [
        {**script_document(), "id": None, "approach": approach}
        for approach in ("emotional", "problem_solution", "aspirational")
    ]}
    text_generator = FakeTextGenerator({"generate_scripts": scripts})
    service = make_service(session, text_generator=text_generator)

    result = await service.generate_scripts(user, ScriptsRequest.model_validate({
        "adDescription": "Cold brew launch", "duration": "30s", "goal": "awareness",
        "targetAudience": {"locations": ["Austin"], "inMarketInterests": ["Coffee"], "ageRanges": ["25-34"]},
        "brandId": str(brand.id), "campaignId": str(campaign.id)
    }))

    assert [s.id for s in result.scripts] == ["script-1", "script-2", "script-3"]
    system_prompt = text_generator.calls[0]["system"]
    assert "Locations: Austin. Interests: Coffee. Age: 25-34." in system_prompt
    assert "Brand: Brewcraft. Voice: Warm and witty." in system_prompt

    stored = await reload(session, campaign.id)
    assert [s["approach"] for s in stored.storyboard["scripts"]] == ["emotional", "problem_solution", "aspirational"]
    assert len(stored.storyboard["scenes"]) == 3


async def test_generate_scripts_rejects_malformed_response(session, user):
    service = make_service(session, text_generator=FakeTextGenerator({"generate_scripts": {"scripts": "nope"}}))
    with pytest.raises(UpstreamError):
        await service.generate_scripts(user, ScriptsRequest(ad_description="Cold brew"))


async def test_generate_storyboard(session, user, campaign):
    response = {
        "scriptVariants": {"15s": "Short", "30s": "Medium", "60s": "Long"},
        "scenes": [
            {"sceneNumber": n, "duration": 5, "visualDescription": f"Shot {n}", "suggestedVisuals": "Close-up",
             "voiceover": f"Line {n}"}
            for n in range(1, 5)
        ],
        "musicMood": "upbeat",
    }
    service = make_service(session, text_generator=FakeTextGenerator({"create_storyboard": response}))

    storyboard = await service.generate_storyboard(user, StoryboardRequest(campaign_id=campaign.id))

    assert len(storyboard.scenes) == 4
    assert storyboard.scenes[0].duration == "5s"
    stored = await reload(session, campaign.id)
    assert stored.status == "storyboard_created"
    assert stored.storyboard["musicMood"] == "upbeat"
    assert stored.storyboard["customNote"] == "kept"
    assert stored.storyboard["scriptVariants"]["30s"] == "Medium"


# ----------------------------------------------------------------------
# Scene editing
# ----------------------------------------------------------------------

async def test_update_scene_by_number(session, user, campaign):
    document = storyboard_document()
    document["scenes"].reverse()
    await CampaignRepository(session).update(campaign.id, {"storyboard": document})
    service = make_service(session)

    storyboard = await service.update_scene(user, UpdateSceneRequest(
        campaign_id=campaign.id, scene_number=1, updates={"voiceover": "Rise and shine", "sceneNumber": 9}
    ))

    assert [s.scene_number for s in storyboard.scenes] == [3, 2, 1]
    assert storyboard.find_scene(1).voiceover == "Rise and shine"
    assert storyboard.find_scene(3).voiceover == "Brewcraft. Wake up better."


async def test_update_scene_missing(session, user, campaign):
    with pytest.raises(NotFoundError):
        await make_service(session).update_scene(user, UpdateSceneRequest(
            campaign_id=campaign.id, scene_number=5, updates={"voiceover": "x"}
        ))


async def test_scene_video_accepts_numeric_duration(session, user, campaign):
    video_generator = FakeVideoGenerator()
    service = make_service(session, video_generator=video_generator)

    result = await service.generate_scene_video(user, SceneVideoRequest.model_validate({
        "campaignId": str(campaign.id), "sceneNumber": 2, "duration": 8
    }))

    assert video_generator.scene_calls[0]["duration"] == 8
    assert result.storyboard.find_scene(2).generation_settings["duration"] == 8


# ----------------------------------------------------------------------
# Strategy
# ----------------------------------------------------------------------

STRATEGY = {
    "objective": "awareness",
    "coreMessage": {"primary": "Better mornings, delivered", "supporting": "Fresh every week",
                    "emotionalAngle": "aspiration"},
    "audience": {"primary": "Busy parents", "secondary": "Remote workers", "viewingContext": "Morning news",
                 "ageRange": "30-45", "householdType": "Families", "psychographicIntent": "Convenience"},
    "storytellingFramework": "problem_solution",
    "adLength": "30s",
    "pacing": "balanced",
    "hookTiming": 3,
    "logoRevealTiming": 25,
    "cta": {"text": "Start your trial", "strength": "direct", "placement": "end"},
    "visualDirection": {"tone": "lifestyle", "cameraMovement": "subtle", "musicMood": "warm acoustic",
                        "voiceoverStyle": "warm"},
}


async def test_generate_strategy_uses_latest_brand(session, user, brand):
    text_generator = FakeTextGenerator({"generate_tv_strategy": STRATEGY})
    service = make_service(session, text_generator=text_generator)

    result = await service.generate_strategy(user, StrategyRequest.model_validate({
        "prompt": "Cold brew for busy parents", "adType": "tv", "productUrl": "https://brewcraft.test/shop"
    }))

    assert result.brand_id == str(brand.id)
    assert result.strategy.storytelling_framework == "problem_solution"
    assert result.to_document()["strategy"]["coreMessage"]["primary"] == "Better mornings, delivered"
    assert "Brand Name: Brewcraft" in text_generator.calls[0]["system"]
    assert "Brand Voice: Warm and witty" in text_generator.calls[0]["system"]
    assert "Product URL: https://brewcraft.test/shop" in text_generator.calls[0]["user"]


async def test_generate_strategy_requires_brand(session, user):
    service = make_service(session, text_generator=FakeTextGenerator({"generate_tv_strategy": STRATEGY}))
    with pytest.raises(NotFoundError):
        await service.generate_strategy(user, StrategyRequest(prompt="Anything"))


REGENERATED = {
    "scriptVariants": {"15s": "Short", "30s": "Medium", "60s": "Long"},
    "scenes": [
        {"sceneNumber": n, "duration": "5s", "visualDescription": f"Parent rushing {n}",
         "suggestedVisuals": "Handheld", "voiceover": f"Line {n}", "strategyAlignment": "hook" if n == 1 else "build"}
        for n in range(1, 5)
    ],
    "musicMood": "warm acoustic",
}


async def test_regenerate_from_strategy(session, user, campaign):
    text_generator = FakeTextGenerator({"generate_storyboard": REGENERATED})
    service = make_service(session, text_generator=text_generator)

    storyboard = await service.regenerate_from_strategy(user, RegenerateRequest.model_validate({
        "campaignId": str(campaign.id), "strategy": STRATEGY
    }))

    assert len(storyboard.scenes) == 4
    assert storyboard.strategy.pacing == "balanced"
    assert storyboard.regenerated_at
    system_prompt = text_generator.calls[0]["system"]
    assert "Open with a relatable problem" in system_prompt
    assert "Mix of pacing, conversational rhythm" in system_prompt
    assert "Hook Timing: 3 seconds" in system_prompt
    assert "CTA \"Start your trial\" at end" in text_generator.calls[0]["user"]

    stored = await reload(session, campaign.id)
    assert stored.status == "storyboard_regenerated"
    assert stored.storyboard["strategy"]["adLength"] == "30s"
    assert stored.storyboard["scenes"][0]["strategyAlignment"] == "hook"
    assert stored.storyboard["customNote"] == "kept"


async def test_regenerate_requires_strategy(session, user, campaign):
    service = make_service(session, text_generator=FakeTextGenerator({"generate_storyboard": REGENERATED}))
    with pytest.raises(ValidationError):
        await service.regenerate_from_strategy(user, RegenerateRequest(campaign_id=campaign.id))


async def test_regenerate_refused_while_generating(session, user, campaign):
    await ProgressTracker(CampaignRepository(session)).start(campaign, GenerationMode.SCENE, 1)
    service = make_service(session, text_generator=FakeTextGenerator({"generate_storyboard": REGENERATED}))

    with pytest.raises(ConflictError):
        await service.regenerate_from_strategy(user, RegenerateRequest.model_validate({
            "campaignId": str(campaign.id), "strategy": STRATEGY
        }))


# ----------------------------------------------------------------------
# Scene stills
# ----------------------------------------------------------------------

async def test_scene_visual_stored_on_scene(session, user, campaign, storage):
    image_generator = FakeImageGenerator()
    service = make_service(session, storage=storage, image_generator=image_generator)

    result = await service.generate_scene_visual(user, SceneVisualRequest(campaign_id=campaign.id, scene_number=2))

    assert result.visual_url.startswith(f"https://cdn.test/{user.id}/{campaign.id}/scene-2-")
    assert result.visual_url.endswith(".png")
    assert image_generator.prompts[0].startswith("Hands pouring cold brew. Macro close-up. Style: cinematic.")
    assert "professional video advertisement visual" in image_generator.prompts[0]

    stored = await reload(session, campaign.id)
    scene = Storyboard.from_document(stored.storyboard).find_scene(2)
    assert scene.visual_url == result.visual_url
    assert scene.voiceover == "Ours starts here."
    assert stored.generation_progress is None


async def test_scene_visual_custom_prompt_and_missing_scene(session, user, campaign):
    image_generator = FakeImageGenerator()
    service = make_service(session, image_generator=image_generator)

    await service.generate_scene_visual(user, SceneVisualRequest.model_validate({
        "campaignId": str(campaign.id), "sceneNumber": 1, "customPrompt": "A neon coffee sign"
    }))
    assert image_generator.prompts[0].startswith("A neon coffee sign. Wide aerial shot.")

    with pytest.raises(NotFoundError):
        await service.generate_scene_visual(user, SceneVisualRequest(campaign_id=campaign.id, scene_number=9))
