import asyncio
import logging
import re
from pathlib import Path

import pdfplumber

from resume_advisor.core.exceptions import ExtractionError
from resume_advisor.schemas.upload import ExtractedContent

logger = logging.getLogger(__name__)

SECTION_KEYWORDS = {
    "experience": (
        "experience",
        "work history",
        "employment",
        "professional experience",
        "career history",
    ),
    "education": ("education", "academic background", "qualifications", "degrees"),
    "skills": ("skills", "technical skills", "competencies", "technologies", "expertise"),
    "projects": ("projects", "portfolio", "work samples", "personal projects"),
    "summary": ("summary", "profile", "objective", "about", "overview"),
    "contact": ("contact", "personal information", "details"),
    "certifications": ("certifications", "certificates", "licenses", "credentials"),
}

# Headers are short lines; longer lines are body text that happens to contain a keyword
MAX_HEADER_LENGTH = 40

_HEADER_NOISE = re.compile(r"[:\-_=|•*#]")


def detect_section(line: str) -> str | None:
    clean = _HEADER_NOISE.sub("", line.lower()).strip()
    if not clean or len(clean) > MAX_HEADER_LENGTH:
        return None
    for section, keywords in SECTION_KEYWORDS.items():
        if any(keyword in clean for keyword in keywords):
            return section
    return None


def detect_sections(text: str) -> list[str]:
    """Section names in order of first appearance. Unstructured text counts as a summary."""
    sections: list[str] = []
    for line in text.splitlines():
        section = detect_section(line)
        if section and section not in sections:
            sections.append(section)
    return sections or ["summary"]


def extract_text_from_pdf(file_path: Path) -> tuple[str, int]:
    try:
        with pdfplumber.open(file_path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise ExtractionError(f"PDF extraction failed: {e}") from e
    return "\n\n".join(pages).strip(), len(pages)


def extract_resume_content(file_path: Path) -> ExtractedContent:
    if file_path.suffix.lower() != ".pdf":
        raise ExtractionError(f"Unsupported file type: {file_path.suffix.lower()}")

    text, page_count = extract_text_from_pdf(file_path)
    if not text:
        raise ExtractionError(
            "No text could be extracted; the PDF may be image-based. "
            "Please upload a PDF with selectable text"
        )

    content = ExtractedContent(
        text=text,
        detected_sections=detect_sections(text),
        page_count=page_count,
    )
    logger.info(
        "Extracted %d characters from %d pages of %s (sections: %s)",
        len(text),
        page_count,
        file_path.name,
        ", ".join(content.detected_sections),
    )
    return content


async def extract_resume_content_async(file_path: Path) -> ExtractedContent:
    return await asyncio.to_thread(extract_resume_content, file_path)
