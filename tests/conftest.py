"""
测试配置：在导入 app 之前设置环境变量
"""
import os
import tempfile
import uuid
from typing import Callable, List, Optional, Union

import pytest
import pytest_asyncio

_TEST_DIR = tempfile.mkdtemp(prefix="health-report-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DIR}/api.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("AI_RETRY_DELAY", "0")

from jose import jwt

import app.models  # noqa: F401  注册ORM模型
from app.ai.base import NarrativeProvider
from app.ai.prompt_composer import PromptComposer
from app.ai.prompt_loader import PromptLoader
from app.config import settings
from app.database.base import Base
from app.database.session import build_engine, build_session_factory


SAMPLE_NARRATIVE = """# Personalized Health Analysis Report

## Executive Summary
Overall health is good with a few areas to watch.

Sleep quality needs attention and cardiovascular markers are stable.

## Sleep and Energy Assessment
**Risk Level:** MODERATE

Short sleep duration was reported.

## Cardiovascular Health Assessment
**Risk Level:** LOW

No concerning symptoms.

## Key Recommendations

### Immediate Actions (Next 30 Days)
1. Keep a consistent bedtime every night
2. Walk for thirty minutes after dinner

### Long-term Goals (3-6 Months)
- Reach seven hours of sleep on most nights

## Conclusions
Your outlook is positive with small lifestyle changes.
"""

SAMPLE_INTAKE = {
    "age": 42,
    "gender": "female",
    "height": "165",
    "weight": "60",
    "bloodGroup": "O+",
    "smoking": "never",
    "takingMedications": "yes",
    "medications": "Vitamin D",
    "hasAllergies": "no",
    "allergies": "peanuts",
    "motivations": ["energy", "longevity"],
    "sleepEnergy": {"sleep_hours": "often", "exhausted": "no"},
    "cardiovascularHealth": {"chest_pain": "no"},
}


Response = Union[str, Exception, Callable]


class FakeNarrativeProvider(NarrativeProvider):
    """按顺序返回预设结果的叙述生成Provider"""

    def __init__(self, *responses: Response):
        self.responses: List[Response] = list(responses) or [SAMPLE_NARRATIVE]
        self.prompts: List[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake-model"

    async def generate_narrative(self, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts), len(self.responses)) - 1
        response = self.responses[index]
        if callable(response):
            response = await response(prompt)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


def make_token(sub: str, email: Optional[str] = None, name: Optional[str] = None) -> str:
    claims = {"sub": sub}
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def prompt_loader() -> PromptLoader:
    return PromptLoader()


@pytest.fixture
def composer(prompt_loader) -> PromptComposer:
    return PromptComposer(prompt_loader)


@pytest.fixture
def owner_id() -> str:
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def auth_headers(owner_id):
    token = make_token(owner_id, email=f"{owner_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/service.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
