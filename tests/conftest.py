import json
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from resume_advisor.api.deps import get_gateway, get_upload_store
from resume_advisor.core.exceptions import GenerationFailedError
from resume_advisor.core.llm import GenerateOptions, OllamaGateway
from resume_advisor.core.retry import RetryPolicy
from resume_advisor.main import create_app
from resume_advisor.storage.local import LocalUploadStore

# Prompt markers used to route scripted replies
PERSONAL = "Extract personal information"
SKILLS = "extract all skills"
EXPERIENCE = "Extract work experience"
EDUCATION = "Extract education information"
PROJECTS = "Extract project information"
SENIORITY = "determine the appropriate seniority level"
SUMMARY = "career summary"
TECHNICAL = "technical interview questions"
BEHAVIORAL = "behavioral interview"
TARGET_ROLE = "next career step"
SKILL_GAPS = "identify gaps for the target role"
RESOURCES = "Recommend learning resources"
ROADMAP = "step-by-step career roadmap"

Reply = str | Exception | Callable[[str], str]


async def _no_sleep(_: float) -> None:
    return None


class FakeGateway(OllamaGateway):
    """Gateway whose generate() answers from a table of prompt markers."""

    def __init__(self, replies: dict[str, Reply] | None = None, max_attempts: int = 1) -> None:
        super().__init__(
            "http://ollama.test",
            "llama2",
            retry_policy=RetryPolicy(max_attempts=max_attempts, sleep=_no_sleep),
        )
        self.replies: dict[str, Reply] = dict(replies or {})
        self.calls: list[tuple[str, str]] = []
        self._connected = True
        self._models = ("llama2:latest",)

    def calls_matching(self, marker: str) -> list[str]:
        return [prompt for _, prompt in self.calls if marker in prompt]

    async def check_availability(self) -> bool:
        return self._connected

    async def generate(
        self,
        model: str,
        prompt: str,
        options: GenerateOptions | None = None,
    ) -> str:
        self.calls.append((model, prompt))
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply(prompt) if callable(reply) else reply
        raise GenerationFailedError("No scripted reply for prompt")


def as_json(data: object) -> str:
    return json.dumps(data)


def make_pdf(lines: list[str]) -> bytes:
    """Build a minimal single-page PDF whose text layer holds ``lines``."""
    escaped = [line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)") for line in lines]
    text_ops = " ".join(f"({line}) Tj 0 -16 Td" for line in escaped)
    stream = f"BT /F1 12 Tf 72 720 Td {text_ops} ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n".encode()
    out += f"startxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


SAMPLE_RESUME_LINES = [
    "Jane Doe",
    "jane.doe@example.com",
    "Summary",
    "Backend engineer building APIs.",
    "Experience",
    "Software Engineer at Acme Corp, 2020-01 to present",
    "Education",
    "BS Computer Science, State University",
    "Skills",
    "Python, PostgreSQL, Docker",
]


def make_analysis_payload(**overrides) -> dict:
    """Helper to create a serialized ResumeAnalysis."""
    data = {
        "id": "analysis-1",
        "fileName": "resume.pdf",
        "uploadedAt": "2024-01-01T00:00:00Z",
        "personalInfo": {"name": "Jane Doe"},
        "experience": [
            {
                "id": "exp-1",
                "company": "Acme Corp",
                "position": "Software Engineer",
                "startDate": "2020-01",
                "description": "Built APIs",
                "responsibilities": ["Design services"],
                "technologies": ["Python", "PostgreSQL"],
            }
        ],
        "education": [],
        "skills": {
            "technical": [{"name": "PostgreSQL", "category": "Database"}],
            "soft": [],
            "languages": [{"name": "Python", "proficiencyLevel": "Advanced"}],
            "frameworks": [],
            "tools": [],
        },
        "projects": [],
        "seniorityLevel": "Mid",
        "careerSummary": "Backend engineer.",
        "totalExperienceYears": 4.0,
    }
    data.update(overrides)
    return data


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def upload_store(tmp_path: Path) -> LocalUploadStore:
    return LocalUploadStore(str(tmp_path / "uploads"))


@pytest.fixture
def sample_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "sample_resume.pdf"
    path.write_bytes(make_pdf(SAMPLE_RESUME_LINES))
    return path


@pytest_asyncio.fixture
async def client(
    fake_gateway: FakeGateway, upload_store: LocalUploadStore
) -> AsyncGenerator[AsyncClient]:
    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_upload_store] = lambda: upload_store

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", follow_redirects=True
    ) as ac:
        yield ac
