import copy
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["MOCK_VIDEO_GENERATION"] = "false"
os.environ["VIDEO_PROVIDER"] = "replicate"
os.environ["BATCH_SCENE_PAUSE_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio import models  # noqa: F401
from adstudio.core.exceptions import UpstreamError
from adstudio.core.security import get_password_hash
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.repositories.user_repo import BrandRepository, UserRepository
from adstudio.services.integrations.base import (
    FetchedPage,
    ImageGenerator,
    MediaStorage,
    PageFetcher,
    TextGenerator,
    VideoGenerator,
)

PASSWORD = "correct-horse-battery"


def storyboard_document(with_urls=False):
    scenes = [
        {"sceneNumber": 1, "duration": "5s", "visualDescription": "Sunrise over a city",
         "suggestedVisuals": "Wide aerial shot", "voiceover": "Every day starts somewhere."},
        {"sceneNumber": 2, "duration": "5s", "visualDescription": "Hands pouring cold brew",
         "suggestedVisuals": "Macro close-up", "voiceover": "Ours starts here."},
        {"sceneNumber": 3, "duration": "5s", "visualDescription": "Logo on a dark table",
         "suggestedVisuals": "Slow push-in", "voiceover": "Brewcraft. Wake up better."},
    ]
    if with_urls:
        for scene in scenes:
            scene["videoUrl"] = f"https://cdn.test/existing-{scene['sceneNumber']}.mp4"
    return {"scenes": scenes, "musicMood": "warm acoustic", "customNote": "kept"}


def script_document():
    return {
        "id": "script-1",
        "title": "Wake Up Better",
        "approach": "emotional",
        "hook": "Every day starts somewhere.",
        "fullScript": "Every day starts somewhere. Ours starts here. Brewcraft.",
        "cta": "Try it free",
        "tone": "warm",
        "scenes": storyboard_document()["scenes"],
    }


class FakeTextGenerator(TextGenerator):
    name = "Fake AI"

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    async def generate_structured(self, system_prompt, user_prompt, tool_name, tool_description, parameters):
        self.calls.append({"tool": tool_name, "system": system_prompt, "user": user_prompt})
        return copy.deepcopy(self.responses[tool_name])


class FakeVideoGenerator(VideoGenerator):
    name = "Fake renderer"

    def __init__(self, fail_scenes=(), error=None):
        self.fail_scenes = set(fail_scenes)
        self.error = error
        self.scene_calls = []
        self.script_calls = []
        self.on_render = None

    async def render_scene(self, prompt, audio_prompt, duration, aspect_ratio, scene_number=1):
        self.scene_calls.append({
            "prompt": prompt,
            "audio_prompt": audio_prompt,
            "duration": duration,
            "aspect_ratio": aspect_ratio,
            "scene_number": scene_number,
        })
        if self.on_render is not None:
            await self.on_render(scene_number)
        if scene_number in self.fail_scenes:
            raise self.error or UpstreamError(self.name, f"scene {scene_number} failed")
        return f"https://render.test/scene-{scene_number}.mp4"

    async def render_script(self, prompt, duration, aspect_ratio):
        self.script_calls.append({"prompt": prompt, "duration": duration, "aspect_ratio": aspect_ratio})
        if self.error is not None:
            raise self.error
        return "https://render.test/full.mp4"


class FakeStorage(MediaStorage):

    def __init__(self):
        self.stored = []

    async def store_video(self, source_url, key):
        self.stored.append((source_url, key))
        return f"https://cdn.test/{key}"

    async def store_image(self, data, key, content_type="image/png"):
        self.stored.append((data, key))
        return f"https://cdn.test/{key}"


class FakeImageGenerator(ImageGenerator):
    name = "Fake still renderer"

    def __init__(self):
        self.prompts = []

    async def render_image(self, prompt, aspect_ratio="16:9"):
        self.prompts.append(prompt)
        return b"\x89PNG fake"


class FakePageFetcher(PageFetcher):
    name = "Fake pages"

    def __init__(self, pages=None, error=None):
        self.pages = pages or {}
        self.error = error
        self.fetched = []

    async def fetch(self, url):
        self.fetched.append(url)
        if self.error is not None:
            raise self.error
        page = self.pages[url]
        if isinstance(page, str):
            return FetchedPage(url=url, html=page)
        return FetchedPage(url=url, **page)


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(session):
    return await UserRepository(session).create({
        "email": "owner@brewcraft.test",
        "password_hash": get_password_hash(PASSWORD),
        "full_name": "Sam Owner",
    })


@pytest.fixture
async def other_user(session):
    return await UserRepository(session).create({
        "email": "someone@else.test",
        "password_hash": get_password_hash(PASSWORD),
    })


@pytest.fixture
async def brand(session, user):
    return await BrandRepository(session).create({
        "user_id": user.id,
        "name": "Brewcraft",
        "brand_voice": "Warm and witty",
        "colors": {"primary": "#2b1a0f"},
    })


@pytest.fixture
async def campaign(session, user, brand):
    return await CampaignRepository(session).create({
        "user_id": user.id,
        "brand_id": brand.id,
        "title": "Cold brew launch",
        "description": "Launch spot",
        "goal": "awareness",
        "prompt": "Launch spot for a cold-brew coffee subscription",
        "creative_style": "cinematic",
        "status": "storyboard_created",
        "storyboard": storyboard_document(),
    })


@pytest.fixture
def text_generator():
    return FakeTextGenerator()


@pytest.fixture
def video_generator():
    return FakeVideoGenerator()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def image_generator():
    return FakeImageGenerator()
