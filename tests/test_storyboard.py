import pytest

from adstudio.schemas.storyboard import (
    CampaignSnapshot,
    GenerationMode,
    GenerationProgress,
    ProgressStatus,
    Scene,
    Storyboard,
)
from conftest import storyboard_document


def test_scene_duration_accepts_numbers():
    assert Scene(scene_number=1, duration=5).duration == "5s"
    assert Scene(scene_number=1, duration=2.5).duration == "2.5s"
    assert Scene.model_validate({"sceneNumber": 2, "duration": "7s"}).duration == "7s"


def test_document_keeps_unknown_keys_and_camel_case():
    storyboard = Storyboard.from_document(storyboard_document())
    document = storyboard.to_document()

    assert document["customNote"] == "kept"
    assert document["musicMood"] == "warm acoustic"
    assert document["scenes"][0]["visualDescription"] == "Sunrise over a city"
    assert "videoUrl" not in document["scenes"][0]


def test_full_video_url_lookup_order():
    storyboard = Storyboard.from_document({
        "videoUrl": "https://cdn.test/c.mp4",
        "generatedVideoUrl": "https://cdn.test/b.mp4",
        "selectedScript": {"title": "A", "generatedVideoUrl": "https://cdn.test/a.mp4"},
    })
    assert storyboard.full_video_url() == "https://cdn.test/a.mp4"

    storyboard = Storyboard.from_document({
        "videoUrl": "https://cdn.test/c.mp4",
        "generatedVideoUrl": "https://cdn.test/b.mp4",
    })
    assert storyboard.full_video_url() == "https://cdn.test/b.mp4"

    assert Storyboard.from_document({"videoUrl": "https://cdn.test/c.mp4"}).full_video_url() == "https://cdn.test/c.mp4"
    assert Storyboard.from_document(None).full_video_url() is None


def test_scene_updates_match_by_scene_number_not_position():
    document = storyboard_document()
    document["scenes"] = [document["scenes"][2], document["scenes"][0], document["scenes"][1]]
    storyboard = Storyboard.from_document(document)

    updated = storyboard.with_scene_updates(1, {"voiceover": "New line", "videoUrl": "https://cdn.test/1.mp4"})

    by_number = {s.scene_number: s for s in updated.scenes}
    assert by_number[1].voiceover == "New line"
    assert by_number[1].video_url == "https://cdn.test/1.mp4"
    assert by_number[2].voiceover == "Ours starts here."
    assert by_number[3].video_url is None
    assert [s.scene_number for s in updated.scenes] == [3, 1, 2]
    # original untouched
    assert storyboard.find_scene(1).voiceover == "Every day starts somewhere."


def test_scene_updates_unknown_scene():
    storyboard = Storyboard.from_document(storyboard_document())
    with pytest.raises(KeyError):
        storyboard.with_scene_updates(9, {"voiceover": "x"})


def test_video_url_for_mode():
    storyboard = Storyboard.from_document(storyboard_document(with_urls=True))
    assert storyboard.video_url_for(GenerationMode.SCENE, 2) == "https://cdn.test/existing-2.mp4"
    assert storyboard.video_url_for(GenerationMode.SCENE, None) is None
    assert storyboard.video_url_for(GenerationMode.FULL) is None


def test_progress_defaults_to_idle():
    progress = GenerationProgress.from_document(None)
    assert progress.status == ProgressStatus.IDLE
    assert not progress.is_generating

    progress = GenerationProgress.from_document({"status": "generating", "mode": "scene", "sceneNumber": 3})
    assert progress.is_generating
    assert progress.mode == GenerationMode.SCENE
    assert progress.to_document() == {"status": "generating", "mode": "scene", "sceneNumber": 3}


def test_snapshot_defaults():
    snapshot = CampaignSnapshot()
    assert snapshot.storyboard.scenes is None
    assert snapshot.generation_progress.status == ProgressStatus.IDLE
