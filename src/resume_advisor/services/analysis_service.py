import asyncio
import logging
import uuid
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Generic, TypeVar

from resume_advisor.core.exceptions import LLMError, ResumeAdvisorError, ServiceUnavailableError
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.schemas.analysis import (
    EducationEntry,
    ExperienceEntry,
    PersonalInfo,
    ProjectEntry,
    ResumeAnalysis,
    SeniorityLevel,
    SkillSet,
)
from resume_advisor.services import normalizers
from resume_advisor.services.experience_metrics import (
    calculate_total_experience,
    has_leadership_signal,
    seniority_from_years,
)
from resume_advisor.services.structured_output import generate_structured

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CAREER_SUMMARY = (
    "Experienced professional with diverse technical skills and industry experience."
)

PERSONAL_INFO_PROMPT = """
Extract personal information from the following resume content:

{text}

Please respond with a JSON object in this exact format:
{{
  "name": "full name or null",
  "email": "email address or null",
  "phone": "phone number or null",
  "location": "city, state/country or null",
  "linkedIn": "LinkedIn URL or null",
  "github": "GitHub URL or null",
  "website": "personal website URL or null"
}}

Only include information that is explicitly mentioned in the resume."""

SKILLS_PROMPT = """
Analyze the following resume content and extract all skills. Categorize them into technical \
skills, programming languages, frameworks, tools, and soft skills. For each technical skill, \
programming language, framework and tool, estimate the proficiency level (Beginner, \
Intermediate, Advanced) based on context clues like years of experience, project complexity, \
or explicit mentions.

Resume content:
{text}

Please respond with a JSON object in this exact format:
{{
  "technical": [
    {{"name": "skill name", "category": "category (e.g., Database, Cloud, DevOps)",
      "proficiencyLevel": "Beginner|Intermediate|Advanced", "yearsOfExperience": number or null}}
  ],
  "languages": [
    {{"name": "language name", "proficiencyLevel": "Beginner|Intermediate|Advanced",
      "yearsOfExperience": number or null}}
  ],
  "frameworks": [
    {{"name": "framework name", "category": "category (e.g., Web, Mobile, Backend)",
      "proficiencyLevel": "Beginner|Intermediate|Advanced", "yearsOfExperience": number or null}}
  ],
  "tools": [
    {{"name": "tool name", "category": "category (e.g., IDE, Version Control, Testing)",
      "proficiencyLevel": "Beginner|Intermediate|Advanced"}}
  ],
  "soft": [
    {{"name": "soft skill name", "description": "brief description if context available"}}
  ]
}}"""

EXPERIENCE_PROMPT = """
Extract work experience from the following resume content:

{text}

Please respond with a JSON object in this exact format:
{{
  "experience": [
    {{
      "id": "unique-id",
      "company": "company name",
      "position": "job title",
      "startDate": "start date (YYYY-MM or YYYY)",
      "endDate": "end date (YYYY-MM or YYYY) or null if current",
      "description": "brief job description",
      "responsibilities": ["responsibility 1", "responsibility 2"],
      "technologies": ["tech 1", "tech 2"] or null,
      "achievements": ["achievement 1", "achievement 2"] or null
    }}
  ]
}}

Extract all work experience entries, most recent first."""

EDUCATION_PROMPT = """
Extract education information from the following resume content:

{text}

Please respond with a JSON object in this exact format:
{{
  "education": [
    {{
      "id": "unique-id",
      "institution": "school/university name",
      "degree": "degree type (e.g., Bachelor's, Master's)",
      "field": "field of study",
      "startDate": "start date (YYYY-MM or YYYY)",
      "endDate": "end date (YYYY-MM or YYYY) or null if ongoing",
      "gpa": "GPA if mentioned or null",
      "honors": ["honor 1", "honor 2"] or null,
      "relevantCoursework": ["course 1", "course 2"] or null
    }}
  ]
}}

Extract all education entries."""

PROJECTS_PROMPT = """
Extract project information from the following resume content:

{text}

Please respond with a JSON object in this exact format:
{{
  "projects": [
    {{
      "id": "unique-id",
      "name": "project name",
      "description": "project description",
      "technologies": ["tech 1", "tech 2"],
      "startDate": "start date (YYYY-MM or YYYY) or null",
      "endDate": "end date (YYYY-MM or YYYY) or null",
      "url": "project URL or null",
      "github": "GitHub repository URL or null",
      "achievements": ["achievement 1", "achievement 2"] or null
    }}
  ]
}}

Extract all project entries."""

SENIORITY_PROMPT = """
Based on the following experience data, determine the appropriate seniority level:

Total years of experience: {total_years}
Has leadership experience: {has_leadership}

Experience details:
{details}

Please respond with one of these exact values: Entry, Junior, Mid, Senior, Lead, Principal

Consider:
- Entry: 0-1 years, entry-level positions
- Junior: 1-3 years, junior positions
- Mid: 3-5 years, mid-level positions with some independence
- Senior: 5-8 years, senior positions with significant responsibility
- Lead: 8+ years with leadership/mentoring responsibilities
- Principal: 10+ years with strategic/architectural responsibilities"""

SUMMARY_PROMPT = """
Based on the following resume information, generate a concise 2-3 sentence career summary:

Experience: {positions} positions
Key skills: {languages}
Technical skills: {technical}

Recent experience:
{recent}

Generate a professional summary that highlights the person's expertise, experience level, \
and key strengths. Respond with the summary only."""


@dataclass(frozen=True)
class SliceResult(Generic[T]):
    """One sub-extraction's value, or its default plus the error that replaced it."""

    value: T
    error: ResumeAdvisorError | None = None


async def soft_fail(label: str, operation: Awaitable[T], default: T) -> SliceResult[T]:
    try:
        return SliceResult(await operation)
    except ResumeAdvisorError as e:
        logger.error("%s extraction failed, using default: %s", label, e)
        return SliceResult(default, e)


class ResumeAnalyzer:
    """Turns raw résumé text into a complete ``ResumeAnalysis``."""

    def __init__(self, gateway: OllamaGateway, model: str | None = None) -> None:
        self.gateway = gateway
        self.model = model or gateway.default_model

    async def analyze_resume(self, text: str, file_name: str = "resume.pdf") -> ResumeAnalysis:
        logger.info("Starting resume analysis (%d characters) with %s", len(text), self.model)

        async with asyncio.TaskGroup() as tg:
            personal = tg.create_task(
                soft_fail("Personal info", self.extract_personal_info(text), PersonalInfo())
            )
            skills = tg.create_task(soft_fail("Skills", self.extract_skills(text), SkillSet()))
            experience = tg.create_task(
                soft_fail("Experience", self.extract_experience(text), [])
            )
            education = tg.create_task(soft_fail("Education", self.extract_education(text), []))
            projects = tg.create_task(soft_fail("Projects", self.extract_projects(text), []))

        slices = [task.result() for task in (personal, skills, experience, education, projects)]
        if all(isinstance(s.error, ServiceUnavailableError) for s in slices):
            raise ServiceUnavailableError("Ollama service is not available for resume analysis")

        experience_entries = experience.result().value
        skill_set = skills.result().value

        seniority_level = await self.determine_seniority(experience_entries)
        career_summary = await self.generate_career_summary(experience_entries, skill_set)
        total_years = calculate_total_experience(experience_entries)

        analysis = ResumeAnalysis(
            id=str(uuid.uuid4()),
            file_name=file_name,
            uploaded_at=datetime.now(UTC),
            personal_info=personal.result().value,
            experience=experience_entries,
            education=education.result().value,
            skills=skill_set,
            projects=projects.result().value,
            seniority_level=seniority_level,
            career_summary=career_summary,
            total_experience_years=total_years,
        )

        logger.info(
            "Resume analysis %s completed: %d positions, %d skills, %s, %.1f years, %d slices failed",
            analysis.id,
            len(experience_entries),
            len(skill_set.technical) + len(skill_set.languages) + len(skill_set.frameworks),
            seniority_level,
            total_years,
            sum(1 for s in slices if s.error is not None),
        )
        return analysis

    async def extract_personal_info(self, text: str) -> PersonalInfo:
        raw = await generate_structured(
            self.gateway, PERSONAL_INFO_PROMPT.format(text=text), self.model
        )
        return normalizers.normalize_personal_info(raw)

    async def extract_skills(self, text: str) -> SkillSet:
        raw = await generate_structured(self.gateway, SKILLS_PROMPT.format(text=text), self.model)
        return normalizers.normalize_skill_set(raw)

    async def extract_experience(self, text: str) -> list[ExperienceEntry]:
        raw = await generate_structured(
            self.gateway, EXPERIENCE_PROMPT.format(text=text), self.model
        )
        return normalizers.normalize_experience(raw)

    async def extract_education(self, text: str) -> list[EducationEntry]:
        raw = await generate_structured(self.gateway, EDUCATION_PROMPT.format(text=text), self.model)
        return normalizers.normalize_education(raw)

    async def extract_projects(self, text: str) -> list[ProjectEntry]:
        raw = await generate_structured(self.gateway, PROJECTS_PROMPT.format(text=text), self.model)
        return normalizers.normalize_projects(raw)

    async def determine_seniority(self, experience: Sequence[ExperienceEntry]) -> SeniorityLevel:
        """Ask the model for a seniority label, falling back to the years-based table."""
        if not experience:
            return SeniorityLevel.ENTRY

        total_years = calculate_total_experience(experience)
        has_leadership = has_leadership_signal(experience)
        fallback = seniority_from_years(total_years, has_leadership)

        details = "\n".join(
            f"Position: {exp.position}\n"
            f"Company: {exp.company}\n"
            f"Duration: {exp.start_date} - {exp.end_date or 'Present'}\n"
            f"Key responsibilities: {', '.join(exp.responsibilities[:3])}\n"
            for exp in experience
        )
        prompt = SENIORITY_PROMPT.format(
            total_years=total_years,
            has_leadership=str(has_leadership).lower(),
            details=details,
        )

        try:
            reply = await self.gateway.generate_with_retry(self.model, prompt)
        except LLMError as e:
            logger.error("Seniority determination failed, using %s: %s", fallback, e)
            return fallback

        level = normalizers.normalize_seniority(reply)
        if level is None:
            logger.warning("Model returned invalid seniority %.50r, using %s", reply, fallback)
            return fallback
        return level

    async def generate_career_summary(
        self,
        experience: Sequence[ExperienceEntry],
        skills: SkillSet,
    ) -> str:
        prompt = SUMMARY_PROMPT.format(
            positions=len(experience),
            languages=", ".join(lang.name for lang in skills.languages),
            technical=", ".join(skill.name for skill in skills.technical[:5]),
            recent=", ".join(f"{exp.position} at {exp.company}" for exp in experience[:2]),
        )
        try:
            summary = await self.gateway.generate_with_retry(self.model, prompt)
        except LLMError as e:
            logger.error("Career summary generation failed: %s", e)
            return DEFAULT_CAREER_SUMMARY
        return summary.strip() or DEFAULT_CAREER_SUMMARY
