import logging
import math
import re
import uuid
from collections.abc import Sequence

from resume_advisor.core.exceptions import LLMError, ResumeAdvisorError
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.schemas.analysis import ResumeAnalysis, SeniorityLevel, SkillSet
from resume_advisor.schemas.common import Priority, SkillLevel
from resume_advisor.schemas.roadmap import (
    CareerRoadmap,
    CurrentSkillLevel,
    LearningResource,
    ResourceType,
    RoadmapStep,
    SkillGap,
)
from resume_advisor.services import normalizers
from resume_advisor.services.structured_output import generate_structured

logger = logging.getLogger(__name__)

TARGET_ROLE_PROGRESSION = {
    SeniorityLevel.ENTRY: "Junior Software Developer",
    SeniorityLevel.JUNIOR: "Software Developer",
    SeniorityLevel.MID: "Senior Software Developer",
    SeniorityLevel.SENIOR: "Lead Software Engineer",
    SeniorityLevel.LEAD: "Principal Software Engineer",
    SeniorityLevel.PRINCIPAL: "Staff Software Engineer",
}

DEFAULT_TIMELINE = "6-12 months"

_TIME_ESTIMATE = re.compile(r"(\d+)\s*(month|week)", re.IGNORECASE)

TARGET_ROLE_PROMPT = """
Based on the following profile, suggest the most logical next career step/target role:

Current Level: {level}
Experience: {years} years
Recent Positions: {recent}
Career Summary: {summary}

Key Skills:
{skills}

Suggest a specific target role title that represents a logical career progression. Consider:
1. Current seniority level and experience
2. Technical skills and expertise areas
3. Natural career progression paths
4. Industry standards and common role progressions

Respond with just the role title (e.g., "Senior Full Stack Developer", "Engineering Manager", \
"Principal Software Engineer")."""

SKILL_GAPS_PROMPT = """
Analyze the current skills and identify gaps for the target role: {target_role}

Current Skills:
{skills}

Target Role: {target_role}

Based on current industry standards and job requirements for {target_role}, identify skill \
gaps and areas for improvement.

Please respond with a JSON object in this exact format:
{{
  "skillGaps": [
    {{
      "skill": "skill name",
      "currentLevel": "None|Beginner|Intermediate|Advanced",
      "targetLevel": "Beginner|Intermediate|Advanced",
      "priority": "High|Medium|Low",
      "estimatedLearningTime": "time estimate (e.g., '2-3 months', '6 months')"
    }}
  ]
}}

Consider:
1. Technical skills required for the target role
2. Current skill levels and experience
3. Industry trends and emerging technologies
4. Skills that would provide the most career impact
5. Realistic learning timelines based on complexity

Focus on the most important gaps that would significantly impact career progression."""

RESOURCES_PROMPT = """
Recommend learning resources for the following skills:
{skills}

Please respond with a JSON object in this exact format:
{{
  "resources": [
    {{
      "title": "resource title",
      "type": "Course|Book|Tutorial|Documentation|Practice",
      "url": "URL if available or null",
      "description": "brief description of the resource",
      "estimatedTime": "time to complete (e.g., '4 weeks', '20 hours')",
      "difficulty": "Beginner|Intermediate|Advanced"
    }}
  ]
}}

Prioritize:
1. High-quality, well-regarded resources
2. Practical, hands-on learning opportunities
3. Free or affordable options when possible
4. Resources that build upon each other logically
5. Mix of different learning types (courses, practice, documentation)

Include both foundational and advanced resources for each skill area."""

ROADMAP_STEPS_PROMPT = """
Create a step-by-step career roadmap for progressing from {level} to {target_role}.

Current Profile:
- Experience: {years} years
- Current Level: {level}
- Target Role: {target_role}

High Priority Skill Gaps: {high_gaps}
Medium Priority Skill Gaps: {medium_gaps}

Please respond with a JSON object in this exact format:
{{
  "steps": [
    {{
      "id": "step-1",
      "title": "Step title",
      "description": "Detailed description of what to accomplish in this step",
      "skills": ["skill1", "skill2"],
      "estimatedTime": "time estimate (e.g., '3 months', '6 months')",
      "priority": "High|Medium|Low",
      "resources": [],
      "prerequisites": ["previous step requirement"] or null
    }}
  ]
}}

Create 4-6 logical steps that:
1. Build upon each other progressively
2. Address the most critical skill gaps first
3. Include both technical and soft skill development
4. Are realistic and achievable
5. Lead toward the target role

Each step should be substantial enough to represent meaningful progress but not overwhelming."""


def fallback_skill_gaps() -> list[SkillGap]:
    return [
        SkillGap(
            skill="System Design",
            current_level=CurrentSkillLevel.BEGINNER,
            target_level=SkillLevel.INTERMEDIATE,
            priority=Priority.HIGH,
            estimated_learning_time="4-6 months",
        ),
        SkillGap(
            skill="Cloud Technologies",
            current_level=CurrentSkillLevel.NONE,
            target_level=SkillLevel.INTERMEDIATE,
            priority=Priority.HIGH,
            estimated_learning_time="3-4 months",
        ),
        SkillGap(
            skill="Leadership Skills",
            current_level=CurrentSkillLevel.BEGINNER,
            target_level=SkillLevel.INTERMEDIATE,
            priority=Priority.MEDIUM,
            estimated_learning_time="6 months",
        ),
    ]


def fallback_resources() -> list[LearningResource]:
    return [
        LearningResource(
            title="System Design Interview Course",
            type=ResourceType.COURSE,
            description="Comprehensive system design fundamentals",
            estimated_time="8 weeks",
            difficulty=SkillLevel.INTERMEDIATE,
        ),
        LearningResource(
            title="Cloud Computing Fundamentals",
            type=ResourceType.COURSE,
            description="Introduction to cloud platforms and services",
            estimated_time="6 weeks",
            difficulty=SkillLevel.BEGINNER,
        ),
    ]


def fallback_roadmap_steps(target_role: str) -> list[RoadmapStep]:
    templates = [
        (
            "Strengthen Core Technical Skills",
            "Focus on mastering fundamental programming concepts and best practices",
            ["Programming Fundamentals", "Code Quality"],
            "3 months",
            Priority.HIGH,
        ),
        (
            "Learn Modern Technologies",
            "Gain experience with current industry-standard tools and frameworks",
            ["Modern Frameworks", "Cloud Technologies"],
            "4 months",
            Priority.HIGH,
        ),
        (
            "Develop Leadership Skills",
            "Build communication and mentoring capabilities",
            ["Leadership", "Communication"],
            "6 months",
            Priority.MEDIUM,
        ),
    ]
    return [
        RoadmapStep(
            id=normalizers.derive_id("fallback-step", index, [target_role, title]),
            title=title,
            description=description,
            skills=skills,
            estimated_time=estimated_time,
            priority=priority,
        )
        for index, (title, description, skills, estimated_time, priority) in enumerate(templates)
    ]


def format_skills(skills: SkillSet) -> str:
    sections = []
    if skills.languages:
        sections.append(
            "Programming Languages: "
            + ", ".join(f"{s.name} ({s.proficiency_level})" for s in skills.languages)
        )
    if skills.frameworks:
        sections.append(
            "Frameworks: "
            + ", ".join(f"{s.name} ({s.proficiency_level})" for s in skills.frameworks)
        )
    if skills.technical:
        sections.append(
            "Technical Skills: "
            + ", ".join(f"{s.name} ({s.proficiency_level})" for s in skills.technical)
        )
    if skills.tools:
        sections.append(
            "Tools: " + ", ".join(f"{s.name} ({s.proficiency_level})" for s in skills.tools)
        )
    if skills.soft:
        sections.append("Soft Skills: " + ", ".join(s.name for s in skills.soft))
    return "\n".join(sections)


def calculate_timeline_estimate(steps: Sequence[RoadmapStep]) -> str:
    """Sum the first "N months" / "N weeks" figure of every step.

    Weeks round up to whole months. Steps without a parsable estimate are skipped.
    """
    total_months = 0
    parsed = False
    for step in steps:
        match = _TIME_ESTIMATE.search(step.estimated_time)
        if match is None:
            continue
        value = int(match.group(1))
        if match.group(2).lower() == "week":
            value = math.ceil(value / 4)
        total_months += value
        parsed = True

    if not parsed:
        return DEFAULT_TIMELINE
    if total_months <= 12:
        return "1 month" if total_months == 1 else f"{total_months} months"

    years, months = divmod(total_months, 12)
    timeline = f"{years} year{'s' if years > 1 else ''}"
    if months:
        timeline += f" {months} month{'s' if months > 1 else ''}"
    return timeline


def determine_overall_priority(gaps: Sequence[SkillGap], level: SeniorityLevel) -> Priority:
    high = sum(1 for gap in gaps if gap.priority is Priority.HIGH)
    if high >= 3 or (gaps and high / len(gaps) > 0.5):
        return Priority.HIGH
    # Early career development is always urgent
    if level in (SeniorityLevel.ENTRY, SeniorityLevel.JUNIOR):
        return Priority.HIGH
    return Priority.MEDIUM if len(gaps) > 2 else Priority.LOW


def attach_resources(
    steps: Sequence[RoadmapStep],
    resources: Sequence[LearningResource],
) -> list[RoadmapStep]:
    """Link each resource to steps whose skills it mentions and chain prerequisites."""
    linked = []
    previous_title = None
    for step in steps:
        matched = [
            resource
            for resource in resources
            if any(
                skill.lower() in f"{resource.title} {resource.description}".lower()
                for skill in step.skills
            )
            and resource not in step.resources
        ]
        update: dict = {}
        if matched:
            update["resources"] = [*step.resources, *matched]
        if step.prerequisites is None and previous_title is not None:
            update["prerequisites"] = [previous_title]
        linked.append(step.model_copy(update=update) if update else step)
        previous_title = step.title
    return linked


class CareerGuide:
    """Builds a career roadmap toward the next logical role."""

    def __init__(self, gateway: OllamaGateway, model: str | None = None) -> None:
        self.gateway = gateway
        self.model = model or gateway.default_model

    async def generate_roadmap(self, analysis: ResumeAnalysis) -> CareerRoadmap:
        logger.info(
            "Generating career roadmap for analysis %s (%s, %.1f years)",
            analysis.id,
            analysis.seniority_level,
            analysis.total_experience_years,
        )

        target_role = await self.determine_target_role(analysis)
        skill_gaps = await self.identify_skill_gaps(analysis.skills, target_role)
        resources = await self.recommend_resources(skill_gaps)
        steps = await self.generate_roadmap_steps(analysis, skill_gaps, target_role)
        steps = attach_resources(steps, resources)

        roadmap = CareerRoadmap(
            id=str(uuid.uuid4()),
            current_level=analysis.seniority_level,
            target_role=target_role,
            recommended_path=steps,
            skill_gaps=skill_gaps,
            timeline_estimate=calculate_timeline_estimate(steps),
            overall_priority=determine_overall_priority(skill_gaps, analysis.seniority_level),
        )

        logger.info(
            "Career roadmap %s generated: target=%s gaps=%d steps=%d timeline=%s",
            roadmap.id,
            target_role,
            len(skill_gaps),
            len(steps),
            roadmap.timeline_estimate,
        )
        return roadmap

    async def determine_target_role(self, analysis: ResumeAnalysis) -> str:
        fallback = TARGET_ROLE_PROGRESSION[analysis.seniority_level]
        prompt = TARGET_ROLE_PROMPT.format(
            level=analysis.seniority_level,
            years=analysis.total_experience_years,
            recent=", ".join(f"{e.position} at {e.company}" for e in analysis.experience[:2]),
            summary=analysis.career_summary,
            skills=format_skills(analysis.skills),
        )
        try:
            reply = await self.gateway.generate_with_retry(self.model, prompt)
        except LLMError as e:
            logger.error("Target role determination failed, using %s: %s", fallback, e)
            return fallback

        role = normalizers.normalize_target_role(reply)
        if role is None:
            logger.warning("Model returned unusable target role %.50r, using %s", reply, fallback)
            return fallback
        return role

    async def identify_skill_gaps(self, skills: SkillSet, target_role: str) -> list[SkillGap]:
        prompt = SKILL_GAPS_PROMPT.format(target_role=target_role, skills=format_skills(skills))
        try:
            raw = await generate_structured(self.gateway, prompt, self.model)
        except ResumeAdvisorError as e:
            logger.error("Skill gap identification failed, using common gaps: %s", e)
            return fallback_skill_gaps()
        return normalizers.normalize_skill_gaps(raw)

    async def recommend_resources(self, skill_gaps: Sequence[SkillGap]) -> list[LearningResource]:
        """Resources for High and Medium priority gaps; Low priority gaps are ignored."""
        focus = [gap for gap in skill_gaps if gap.priority in (Priority.HIGH, Priority.MEDIUM)]
        if not focus:
            return []

        prompt = RESOURCES_PROMPT.format(
            skills=", ".join(
                f"{gap.skill} ({gap.current_level} -> {gap.target_level})" for gap in focus
            )
        )
        try:
            raw = await generate_structured(self.gateway, prompt, self.model)
        except ResumeAdvisorError as e:
            logger.error("Resource recommendation failed, using generic courses: %s", e)
            return fallback_resources()
        return normalizers.normalize_learning_resources(raw)

    async def generate_roadmap_steps(
        self,
        analysis: ResumeAnalysis,
        skill_gaps: Sequence[SkillGap],
        target_role: str,
    ) -> list[RoadmapStep]:
        prompt = ROADMAP_STEPS_PROMPT.format(
            level=analysis.seniority_level,
            target_role=target_role,
            years=analysis.total_experience_years,
            high_gaps=", ".join(g.skill for g in skill_gaps if g.priority is Priority.HIGH),
            medium_gaps=", ".join(g.skill for g in skill_gaps if g.priority is Priority.MEDIUM),
        )
        try:
            raw = await generate_structured(self.gateway, prompt, self.model)
        except ResumeAdvisorError as e:
            logger.error("Roadmap step generation failed, using generic steps: %s", e)
            return fallback_roadmap_steps(target_role)

        steps = normalizers.normalize_roadmap_steps(raw)
        if not steps:
            logger.warning("Model returned no roadmap steps, using generic steps")
            return fallback_roadmap_steps(target_role)
        return steps
