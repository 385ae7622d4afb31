from adstudio.schemas.storyboard import Scene, Script
from adstudio.services.prompts import (
    audience_summary,
    full_video_prompt,
    parse_duration,
    scene_audio_prompt,
    scene_visual_prompt,
)


def make_scene(**kwargs):
    data = {"scene_number": 1, "visual_description": "Sunrise over a city", "suggested_visuals": "Wide aerial shot",
            "voiceover": "Every day starts somewhere."}
    data.update(kwargs)
    return Scene(**data)


def test_visual_prompt_with_camera_and_style():
    prompt = scene_visual_prompt(make_scene(), "orbit", "cinematic")
    assert prompt == (
        "Sunrise over a city. Wide aerial shot. Orbiting camera movement around subject. "
        "Style: cinematic. High quality cinematic motion."
    )


def test_visual_prompt_defaults():
    prompt = scene_visual_prompt(make_scene(suggested_visuals=None), "unknown", None)
    assert prompt.startswith("Sunrise over a city. . ")
    assert "Style: professional." in prompt


def test_custom_prompt_wins():
    assert scene_visual_prompt(make_scene(), "pan", "cinematic", "Just a cat") == "Just a cat"


def test_audio_prompt_language():
    assert scene_audio_prompt(make_scene(), "es") == "[Spanish] Every day starts somewhere."
    assert scene_audio_prompt(make_scene(), "zh") == "[Mandarin Chinese] Every day starts somewhere."
    assert scene_audio_prompt(make_scene(), "xx") == "[English] Every day starts somewhere."
    assert scene_audio_prompt(make_scene(voiceover=""), "en") == ""


def test_full_video_prompt():
    script = Script(full_script="Wake up better", tone=None)
    assert full_video_prompt(script) == (
        "Wake up better. Style: professional TV commercial. High quality cinematic motion. Tone: professional."
    )


def test_parse_duration():
    assert parse_duration("5") == 5
    assert parse_duration("10s") == 10
    assert parse_duration(8) == 8
    assert parse_duration("") == 5
    assert parse_duration(None) == 5


def test_audience_summary():
    summary = audience_summary({"locations": ["Austin"], "ageRanges": ["25-34"]})
    assert summary == "Locations: Austin. Interests: General. Age: 25-34."
    assert audience_summary("Night owls") == "Night owls"
    assert audience_summary(None) == "General audience"
