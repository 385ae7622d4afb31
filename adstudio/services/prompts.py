"""
Prompt construction and tool schemas for the generation endpoints.
"""
import json
from typing import Any, Dict, List, Optional, Union

from adstudio.schemas.storyboard import Scene, Script, TvStrategy

# Language code to full name mapping for audio prompt
LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Mandarin Chinese",
    "pt": "Portuguese",
    "id": "Indonesian",
}

# Camera movement prompt modifiers
CAMERA_PROMPTS = {
    "auto": "",
    "static": "Static camera, no movement.",
    "pan": "Smooth horizontal panning camera movement.",
    "zoom": "Gradual zoom in camera movement.",
    "dolly": "Dolly push-in camera movement.",
    "orbit": "Orbiting camera movement around subject.",
    "tracking": "Tracking shot following the action.",
}


def parse_duration(value: Union[str, int, None], default: int = 5) -> int:
    """'5', '5s' or 5 -> 5; anything unparseable -> ``default``."""
    if isinstance(value, int):
        return value or default
    digits = ""
    for ch in str(value or "").strip():
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else default


def scene_visual_prompt(
    scene: Scene,
    camera_movement: str = "auto",
    creative_style: Optional[str] = None,
    custom_prompt: Optional[str] = None
) -> str:
    if custom_prompt:
        return custom_prompt
    camera = CAMERA_PROMPTS.get(camera_movement, "")
    return (
        f"{scene.visual_description}. {scene.suggested_visuals or ''}. {camera} "
        f"Style: {creative_style or 'professional'}. High quality cinematic motion."
    ).strip()


def scene_audio_prompt(scene: Scene, language: str = "en") -> str:
    if not scene.voiceover:
        return ""
    return f"[{LANGUAGE_NAMES.get(language, 'English')}] {scene.voiceover}"


def full_video_prompt(script: Script) -> str:
    return (
        f"{script.full_script}. Style: professional TV commercial. "
        f"High quality cinematic motion. Tone: {script.tone or 'professional'}."
    )


def audience_summary(target_audience: Union[Dict[str, Any], str, None]) -> str:
    if isinstance(target_audience, dict):
        locations = ", ".join(target_audience.get("locations") or []) or "USA"
        interests = ", ".join(target_audience.get("inMarketInterests") or []) or "General"
        ages = ", ".join(target_audience.get("ageRanges") or []) or "25-54"
        return f"Locations: {locations}. Interests: {interests}. Age: {ages}."
    return target_audience or "General audience"


# ---------------------------------------------------------------------------
# Concepts
# ---------------------------------------------------------------------------

CONCEPTS_TOOL = {
    "type": "object",
    "properties": {
        "concepts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "script": {"type": "string"},
                    "ctaText": {"type": "string"},
                    "predictedCtr": {"type": "number"},
                    "predictedEngagement": {"type": "string", "enum": ["low", "medium", "high"]}
                },
                "required": ["title", "description", "script", "ctaText", "predictedCtr", "predictedEngagement"],
                "additionalProperties": False
            }
        }
    },
    "required": ["concepts"],
    "additionalProperties": False
}


def concepts_prompts(
    prompt: str,
    ad_type: str,
    goal: str,
    creative_style: Optional[str],
    target_audience: Optional[Dict[str, Any]]
) -> tuple:
    audience = ""
    if target_audience:
        audience = target_audience.get("demographics") or target_audience.get("interests") or ""
    script_length = "30-60s" if ad_type == "video" else "2-3 sentences"
    system_prompt = (
        f"Generate 4 {ad_type} ad concepts. Each needs: title (60 chars), description (200 chars), "
        f"script ({script_length}), CTA (20 chars), predicted CTR (%), engagement (low/medium/high). "
        f"Focus entirely on the user's brief and inputs."
    )
    user_prompt = f"Brief: {prompt}\nGoal: {goal}"
    if audience:
        user_prompt += f"\nTarget Audience: {audience}"
    user_prompt += (
        f"\nStyle: {creative_style}\n\n"
        "Create 4 unique, creative concepts that directly address this brief."
    )
    return system_prompt, user_prompt


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------

SCENE_SCHEMA = {
    "type": "object",
    "properties": {
        "sceneNumber": {"type": "number"},
        "duration": {"type": "string", "description": "Duration like '5s'"},
        "visualDescription": {"type": "string", "description": "Detailed visual description"},
        "cameraMovement": {"type": "string", "description": "Camera angle/movement"},
        "voiceover": {"type": "string", "description": "Voiceover for this scene"},
        "onScreenText": {"type": "string", "description": "Any text overlays"}
    },
    "required": ["sceneNumber", "duration", "visualDescription", "voiceover"]
}

SCRIPTS_TOOL = {
    "type": "object",
    "properties": {
        "scripts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "approach": {"type": "string", "enum": ["emotional", "problem_solution", "aspirational"]},
                    "hook": {"type": "string", "description": "Opening hook (first 3-5 seconds)"},
                    "fullScript": {"type": "string", "description": "Complete voiceover script"},
                    "cta": {"type": "string"},
                    "tone": {"type": "string"},
                    "musicMood": {"type": "string"},
                    "scenes": {"type": "array", "items": SCENE_SCHEMA}
                },
                "required": ["id", "title", "approach", "hook", "fullScript", "cta", "tone", "scenes"]
            },
            "minItems": 3,
            "maxItems": 3
        }
    },
    "required": ["scripts"],
    "additionalProperties": False
}


def scripts_prompts(
    ad_description: str,
    duration: str,
    goal: str,
    target_audience: Union[Dict[str, Any], str, None],
    brand_info: str = "",
    references: Optional[List[str]] = None
) -> tuple:
    lines = [
        "You are an elite TV advertising creative director. You write compelling, "
        "emotionally resonant TV ad scripts that drive results.",
        "",
        "CAMPAIGN BRIEF:",
        f"- Ad Description: {ad_description}",
        f"- Duration: {duration}",
        f"- Campaign Goal: {goal}",
        f"- Target Audience: {audience_summary(target_audience)}",
    ]
    if brand_info:
        lines.append(f"- {brand_info}")
    if references:
        lines.append(f"- Reference assets provided: {', '.join(references)}")
    lines += [
        "",
        "REQUIREMENTS:",
        "1. Generate 3 distinct script options, each with a different creative approach",
        f"2. Each script must be tailored to the {duration} duration and scene timings must add up to it",
        f"3. Scripts must directly address the campaign goal: {goal}",
        "4. Each script needs a complete storyboard with visual descriptions for each scene",
        "5. Include specific voiceover text, not placeholders",
        "",
        "APPROACHES: 1 emotional/story-driven, 2 problem/solution, 3 aspirational/lifestyle",
    ]
    return "\n".join(lines), "Generate 3 unique TV ad scripts with full storyboards now."


def brand_summary(name: str, voice: Optional[str], colors: Any) -> str:
    colors_text = json.dumps(colors) if colors else "Use appropriate colors"
    return f"Brand: {name}. Voice: {voice or 'Professional'}. Colors: {colors_text}."


# ---------------------------------------------------------------------------
# Storyboard
# ---------------------------------------------------------------------------

STORYBOARD_TOOL = {
    "type": "object",
    "properties": {
        "scriptVariants": {
            "type": "object",
            "properties": {
                "15s": {"type": "string"},
                "30s": {"type": "string"},
                "60s": {"type": "string"}
            },
            "required": ["15s", "30s", "60s"]
        },
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sceneNumber": {"type": "number"},
                    "duration": {"type": "string", "description": "Duration like '3s' or '5s'"},
                    "visualDescription": {"type": "string"},
                    "suggestedVisuals": {"type": "string", "description": "Camera angles, composition"},
                    "voiceover": {"type": "string"}
                },
                "required": ["sceneNumber", "duration", "visualDescription", "suggestedVisuals", "voiceover"]
            },
            "minItems": 3
        },
        "musicMood": {"type": "string"}
    },
    "required": ["scriptVariants", "scenes", "musicMood"],
    "additionalProperties": False
}


def storyboard_prompts(
    title: str,
    brief: str,
    script: Optional[str],
    cta_text: Optional[str],
    goal: str,
    creative_style: Optional[str],
    target_audience: Optional[Dict[str, Any]]
) -> tuple:
    audience = ""
    if target_audience:
        audience = target_audience.get("demographics") or target_audience.get("interests") or ""
    system_prompt = (
        f"Create a {creative_style or 'professional'} video ad storyboard.\n\n"
        f"Campaign: {title}\n"
        f"Brief: {brief}\n"
        f"Script: {script or 'Generate based on brief'}\n"
        f"CTA: {cta_text or 'Learn More'}\n"
        f"Goal: {goal}"
    )
    if audience:
        system_prompt += f"\nTarget Audience: {audience}"
    system_prompt += (
        "\n\nGenerate 3 script variants (15s, 30s, 60s), 4-6 scenes with duration, visual description, "
        "camera suggestions, voiceover text, and music mood."
    )
    return system_prompt, "Create storyboard now. Be concise but complete."


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------

TV_STRATEGY_TOOL = {
    "type": "object",
    "properties": {
        "objective": {
            "type": "string",
            "enum": ["awareness", "consideration", "promotion", "brand_launch"],
            "description": "Primary campaign objective"
        },
        "coreMessage": {
            "type": "object",
            "properties": {
                "primary": {"type": "string", "description": "Primary message, max 100 chars"},
                "supporting": {"type": "string"},
                "emotionalAngle": {"type": "string", "enum": ["trust", "aspiration", "urgency", "authority"]}
            },
            "required": ["primary", "supporting", "emotionalAngle"],
            "additionalProperties": False
        },
        "audience": {
            "type": "object",
            "properties": {
                "primary": {"type": "string"},
                "secondary": {"type": "string"},
                "viewingContext": {"type": "string", "description": "When/where they watch TV"},
                "ageRange": {"type": "string"},
                "householdType": {"type": "string"},
                "psychographicIntent": {"type": "string"}
            },
            "required": ["primary", "secondary", "viewingContext", "ageRange", "householdType", "psychographicIntent"],
            "additionalProperties": False
        },
        "storytellingFramework": {
            "type": "string",
            "enum": ["problem_solution", "emotional_build", "authority_proof", "offer_driven"]
        },
        "adLength": {"type": "string", "enum": ["15s", "30s", "45s"]},
        "pacing": {"type": "string", "enum": ["fast", "balanced", "cinematic"]},
        "hookTiming": {"type": "number", "description": "Seconds before hook moment (1-10)"},
        "logoRevealTiming": {"type": "number", "description": "Seconds into ad for logo reveal"},
        "cta": {
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "strength": {"type": "string", "enum": ["soft", "direct"]},
                "placement": {"type": "string", "enum": ["early", "mid", "end"]}
            },
            "required": ["text", "strength", "placement"],
            "additionalProperties": False
        },
        "visualDirection": {
            "type": "object",
            "properties": {
                "tone": {"type": "string", "enum": ["cinematic", "lifestyle", "premium", "energetic"]},
                "cameraMovement": {"type": "string", "enum": ["static", "subtle", "dynamic"]},
                "musicMood": {"type": "string"},
                "voiceoverStyle": {"type": "string", "enum": ["warm", "authoritative", "energetic", "conversational"]}
            },
            "required": ["tone", "cameraMovement", "musicMood", "voiceoverStyle"],
            "additionalProperties": False
        }
    },
    "required": [
        "objective", "coreMessage", "audience", "storytellingFramework", "adLength",
        "pacing", "hookTiming", "logoRevealTiming", "cta", "visualDirection"
    ],
    "additionalProperties": False
}


def strategy_prompts(
    brand_name: str,
    brand_voice: Optional[str],
    brand_colors: Any,
    prompt: Optional[str],
    ad_type: str,
    product_url: Optional[str] = None
) -> tuple:
    system_prompt = (
        "You are an expert TV advertising strategist. Generate a complete broadcast-ready advertising "
        "strategy based on the user's concept and brand profile.\n\n"
        "Brand Context:\n"
        f"- Brand Name: {brand_name}\n"
        f"- Brand Voice: {brand_voice or 'Professional and trustworthy'}\n"
        f"- Brand Colors: {json.dumps(brand_colors or [])}\n\n"
        "Create a comprehensive TV ad strategy that will resonate with broadcast audiences."
    )
    lines = [
        "Create a complete TV advertising strategy for the following concept:",
        "",
        f"Concept: {prompt or ''}",
        f"Ad Type: {ad_type}",
    ]
    if product_url:
        lines.append(f"Product URL: {product_url}")
    lines += [
        "",
        "Generate a strategy that includes:",
        "1. Campaign objective (awareness, consideration, promotion, or brand_launch)",
        "2. Core message with primary message, supporting message, and emotional angle",
        "3. Target audience with primary/secondary profiles and viewing context",
        "4. Storytelling framework recommendation",
        "5. Ad length and pacing recommendations",
        "6. CTA strategy",
        "7. Visual and audio direction",
    ]
    return system_prompt, "\n".join(lines)


STORYTELLING_DESCRIPTIONS = {
    "problem_solution": "Open with a relatable problem, then reveal your product/service as the solution",
    "emotional_build": "Build an emotional connection through storytelling, culminating in a powerful brand moment",
    "authority_proof": "Establish credibility and authority through testimonials, statistics, or expert endorsements",
    "offer_driven": "Lead with a compelling offer or value proposition with urgency",
}

PACING_DESCRIPTIONS = {
    "fast": "Quick cuts, high energy, dynamic movement",
    "balanced": "Mix of pacing, conversational rhythm",
    "cinematic": "Slow, deliberate, premium feel",
}

REGENERATE_STORYBOARD_TOOL = {
    **STORYBOARD_TOOL,
    "properties": {
        **STORYBOARD_TOOL["properties"],
        "scenes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    **STORYBOARD_TOOL["properties"]["scenes"]["items"]["properties"],
                    "strategyAlignment": {
                        "type": "string",
                        "description": "Which strategy elements this scene addresses (hook, emotional build, CTA, etc.)"
                    }
                },
                "required": ["sceneNumber", "duration", "visualDescription", "suggestedVisuals", "voiceover"]
            },
            "minItems": 3
        },
    },
}


def regenerate_prompts(
    title: str,
    description: str,
    brief: Optional[str],
    goal: str,
    creative_style: Optional[str],
    strategy: TvStrategy
) -> tuple:
    core = strategy.core_message or {}
    audience = strategy.audience or {}
    cta = strategy.cta or {}
    visual = strategy.visual_direction or {}
    framework = strategy.storytelling_framework
    storytelling = STORYTELLING_DESCRIPTIONS.get(framework, framework)
    pacing = PACING_DESCRIPTIONS.get(strategy.pacing, strategy.pacing)

    system_prompt = "\n".join([
        "You are an expert TV commercial storyboard creator. Regenerate a complete storyboard based on "
        "the updated strategy.",
        "",
        "CAMPAIGN INFO:",
        f"- Title: {title}",
        f"- Description: {description}",
        f"- Original Brief: {brief or description}",
        f"- Goal: {goal}",
        f"- Creative Style: {creative_style}",
        "",
        "UPDATED STRATEGY:",
        f"- Objective: {strategy.objective}",
        f"- Core Message: \"{core.get('primary')}\"",
        f"- Supporting Message: \"{core.get('supporting')}\"",
        f"- Emotional Angle: {core.get('emotionalAngle')}",
        f"- Target Audience: {audience.get('primary')} ({audience.get('ageRange')}, {audience.get('householdType')})",
        f"- Viewing Context: {audience.get('viewingContext')}",
        f"- Storytelling Framework: {storytelling}",
        f"- Ad Length: {strategy.ad_length}",
        f"- Pacing: {pacing}",
        f"- Hook Timing: {strategy.hook_timing} seconds",
        f"- Logo Reveal: {strategy.logo_reveal_timing} seconds",
        f"- CTA: \"{cta.get('text')}\" ({cta.get('strength')}, placed {cta.get('placement')})",
        f"- Visual Tone: {visual.get('tone')}",
        f"- Camera Movement: {visual.get('cameraMovement')}",
        f"- Music Mood: {visual.get('musicMood')}",
        f"- Voiceover Style: {visual.get('voiceoverStyle')}",
        "",
        "Generate a storyboard that:",
        f"1. Follows the {framework} narrative structure",
        f"2. Places the hook within the first {strategy.hook_timing} seconds",
        f"3. Reveals the logo/brand at the {strategy.logo_reveal_timing}-second mark",
        f"4. Matches the {strategy.pacing} pacing style",
        f"5. Incorporates the {core.get('emotionalAngle')} emotional angle throughout",
        f"6. Uses {visual.get('tone')} visuals with {visual.get('cameraMovement')} camera work",
        f"7. Ends with the CTA \"{cta.get('text')}\" placed {cta.get('placement')}",
        "",
        f"Create script variants for 15s, 30s, and 60s durations, but optimize for the {strategy.ad_length} version.",
    ])
    user_prompt = "\n".join([
        "Generate a complete storyboard now. Ensure each scene aligns with the strategy, especially:",
        f"- Hook placement in the first {strategy.hook_timing}s",
        f"- Emotional {core.get('emotionalAngle')} angle",
        f"- {strategy.pacing} pacing throughout",
        f"- CTA \"{cta.get('text')}\" at {cta.get('placement')}",
    ])
    return system_prompt, user_prompt


def scene_still_prompt(
    scene: Scene,
    ad_type: str,
    creative_style: Optional[str] = None,
    custom_prompt: Optional[str] = None
) -> str:
    """Prompt for a single still frame of a storyboard scene."""
    return (
        f"{custom_prompt or scene.visual_description}. {scene.suggested_visuals or ''}. "
        f"Style: {creative_style or 'professional'}. High quality, professional {ad_type} advertisement visual. "
        "Ultra high resolution, photorealistic, cinematic lighting."
    )
