import asyncio
import itertools
import logging
import math
import random
from collections.abc import Sequence
from dataclasses import dataclass

from resume_advisor.core.exceptions import ResumeAdvisorError, ServiceUnavailableError
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.schemas.analysis import ExperienceEntry, ResumeAnalysis, SkillSet
from resume_advisor.schemas.common import SkillLevel
from resume_advisor.schemas.questions import (
    DifficultyLevel,
    Question,
    QuestionConfig,
    QuestionSet,
    QuestionSummary,
    QuestionType,
)
from resume_advisor.services import normalizers
from resume_advisor.services.experience_metrics import (
    calculate_total_experience,
    has_leadership_signal,
)
from resume_advisor.services.structured_output import generate_structured

logger = logging.getLogger(__name__)

DIFFICULTY_INSTRUCTIONS = {
    DifficultyLevel.BEGINNER: (
        "Focus on fundamental concepts and basic applications. Questions should be suitable "
        "for entry-level candidates with 0-2 years of experience."
    ),
    DifficultyLevel.INTERMEDIATE: (
        "Include practical scenarios and moderate complexity. Questions should be suitable "
        "for mid-level candidates with 2-5 years of experience."
    ),
    DifficultyLevel.ADVANCED: (
        "Focus on complex scenarios, system design, and advanced concepts. Questions should "
        "be suitable for senior candidates with 5+ years of experience."
    ),
    DifficultyLevel.MIXED: (
        "Generate questions across all difficulty levels (Beginner, Intermediate, Advanced) "
        "with roughly equal distribution. Give every question exactly one of those levels."
    ),
}

CATEGORY_PROMPT = """
Generate {count} technical interview questions for the {category} category.

Skills to focus on: {skill_levels}

{difficulty_instruction}

Please respond with a JSON object in this exact format:
{{
  "questions": [
    {{
      "id": "unique-id",
      "type": "technical",
      "difficulty": "{difficulty}",
      "question": "detailed technical question",
      "category": "{category}",
      "suggestedAnswerFramework": "Key points to cover in the answer...",
      "relatedSkills": ["{first_skill}", "skill2"],
      "estimatedTime": "5-10 minutes"
    }}
  ]
}}

Requirements:
1. Questions should test practical knowledge and problem-solving
2. Include both conceptual and hands-on scenarios
3. Be specific to the mentioned skills
4. Vary in complexity based on difficulty level
5. Include real-world application scenarios"""

GENERAL_TECHNICAL_PROMPT = """
Generate {count} general technical interview questions for software engineering roles.

{difficulty_instruction}

Cover these areas:
- Data structures and algorithms
- System design (if appropriate for level)
- Programming fundamentals
- Software engineering principles
- Problem-solving approaches
- Code quality and best practices

Please respond with a JSON object in this exact format:
{{
  "questions": [
    {{
      "id": "unique-id",
      "type": "technical",
      "difficulty": "{difficulty}",
      "question": "detailed technical question",
      "category": "General Programming",
      "suggestedAnswerFramework": "Key points to cover...",
      "relatedSkills": ["Programming", "Problem Solving"],
      "estimatedTime": "5-10 minutes"
    }}
  ]
}}"""

BEHAVIORAL_PROMPT = """
Based on the following professional experience, generate {count} behavioral interview \
questions that are relevant to this person's background and career level.

Experience Context:
{context}

Generate questions that cover these areas:
- Leadership and teamwork (if applicable)
- Problem-solving and technical challenges
- Communication and collaboration
- Adaptability and learning
- Project management and delivery
- Conflict resolution
- Career growth and motivation

Please respond with a JSON object in this exact format:
{{
  "questions": [
    {{
      "id": "unique-id",
      "type": "behavioral",
      "difficulty": "Intermediate",
      "question": "Tell me about a time when...",
      "category": "Leadership|Teamwork|Problem-solving|Communication|Adaptability|Project Management|Conflict Resolution|Career Growth",
      "suggestedAnswerFramework": "Use the STAR method (Situation, Task, Action, Result)...",
      "relatedSkills": ["skill1", "skill2"],
      "estimatedTime": "3-5 minutes"
    }}
  ]
}}

Make sure questions are:
1. Specific to their experience level and background
2. Open-ended and require detailed examples
3. Relevant to software engineering roles
4. Varied across different behavioral competencies
5. Appropriate for their seniority level"""

GENERAL_BEHAVIORAL_PROMPT = """
Generate {count} general behavioral interview questions suitable for software engineering roles.

Cover these competencies:
- Teamwork and collaboration
- Problem-solving and analytical thinking
- Communication skills
- Adaptability and learning
- Leadership potential
- Work ethic and motivation
- Handling pressure and deadlines

Please respond with a JSON object in this exact format:
{{
  "questions": [
    {{
      "id": "unique-id",
      "type": "behavioral",
      "difficulty": "Intermediate",
      "question": "Tell me about a time when...",
      "category": "Teamwork|Problem-solving|Communication|Adaptability|Leadership|Work Ethic|Pressure Management",
      "suggestedAnswerFramework": "Use the STAR method (Situation, Task, Action, Result)...",
      "relatedSkills": ["Communication", "Problem Solving"],
      "estimatedTime": "3-5 minutes"
    }}
  ]
}}"""

FALLBACK_BEHAVIORAL_QUESTIONS = (
    (
        "Tell me about a challenging project you worked on and how you overcame the "
        "difficulties.",
        "Problem-solving",
    ),
    (
        "Describe a time when you had to work with a difficult team member. How did you "
        "handle it?",
        "Teamwork",
    ),
    (
        "Give me an example of when you had to learn a new technology quickly for a project.",
        "Adaptability",
    ),
    (
        "Tell me about a time when you disagreed with a technical decision. How did you "
        "handle it?",
        "Communication",
    ),
    (
        "Describe a situation where you had to meet a tight deadline. How did you manage it?",
        "Pressure Management",
    ),
)


@dataclass(frozen=True)
class SkillContext:
    name: str
    category: str
    level: SkillLevel


def flatten_technical_skills(skills: SkillSet) -> list[SkillContext]:
    return [
        *(SkillContext(s.name, s.category, s.proficiency_level) for s in skills.technical),
        *(
            SkillContext(s.name, "Programming Language", s.proficiency_level)
            for s in skills.languages
        ),
        *(SkillContext(s.name, s.category, s.proficiency_level) for s in skills.frameworks),
        *(SkillContext(s.name, s.category, s.proficiency_level) for s in skills.tools),
    ]


def group_by_category(skills: Sequence[SkillContext]) -> dict[str, list[SkillContext]]:
    groups: dict[str, list[SkillContext]] = {}
    for skill in skills:
        groups.setdefault(skill.category or "General", []).append(skill)
    return groups


def allocate_counts(groups: dict[str, list[SkillContext]], count: int) -> dict[str, int]:
    """Share of ``count`` per category, proportional to category size and rounded up."""
    total = sum(len(members) for members in groups.values())
    return {
        category: math.ceil(count * len(members) / total)
        for category, members in groups.items()
    }


def fallback_behavioral_questions(count: int) -> list[Question]:
    """The fixed generic questions, cycled until ``count`` are produced."""
    questions = []
    templates = itertools.islice(itertools.cycle(FALLBACK_BEHAVIORAL_QUESTIONS), count)
    for index, (text, category) in enumerate(templates):
        questions.append(
            Question(
                id=normalizers.derive_id("fallback-behavioral", index, text),
                type=QuestionType.BEHAVIORAL,
                difficulty=SkillLevel.INTERMEDIATE,
                question=text,
                category=category,
                suggested_answer_framework=normalizers.DEFAULT_FRAMEWORKS[QuestionType.BEHAVIORAL],
                related_skills=["Communication", "Problem Solving"],
                estimated_time=normalizers.DEFAULT_QUESTION_TIMES[QuestionType.BEHAVIORAL],
            )
        )
    return questions


def summarize_experience(experience: Sequence[ExperienceEntry]) -> str:
    total_years = calculate_total_experience(experience)
    technologies = list(dict.fromkeys(t for exp in experience for t in exp.technologies or []))
    recent = ", ".join(f"{exp.position} at {exp.company}" for exp in experience[:2])
    return (
        f"Total Experience: {total_years} years\n"
        f"Leadership Experience: {'Yes' if has_leadership_signal(experience) else 'No'}\n"
        f"Recent Positions: {recent}\n"
        f"Key Technologies: {', '.join(technologies[:8])}\n"
        f"Company Types: {', '.join(exp.company for exp in experience)}"
    )


def _difficulty_label(difficulty: DifficultyLevel) -> str:
    if difficulty is DifficultyLevel.MIXED:
        return "Beginner|Intermediate|Advanced"
    return difficulty.value


class QuestionGenerator:
    """Generates technical and behavioral interview questions from an analysis."""

    def __init__(
        self,
        gateway: OllamaGateway,
        model: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.gateway = gateway
        self.model = model or gateway.default_model
        self.rng = rng or random.Random()

    async def generate_questions(
        self, analysis: ResumeAnalysis, config: QuestionConfig
    ) -> QuestionSet:
        logger.info(
            "Generating questions: technical=%d behavioral=%d difficulty=%s",
            config.technical_count,
            config.behavioral_count,
            config.difficulty,
        )
        # gather re-raises the technical failure unwrapped so callers can map it.
        # Behavioral generation never raises, so nothing is lost when it is left running.
        technical_questions, behavioral_questions = await asyncio.gather(
            self.generate_technical_questions(
                analysis.skills, config.technical_count, config.difficulty
            ),
            self.generate_behavioral_questions(analysis.experience, config.behavioral_count),
        )
        return QuestionSet(
            questions=normalizers.ensure_unique_ids([*technical_questions, *behavioral_questions]),
            summary=QuestionSummary(
                total=len(technical_questions) + len(behavioral_questions),
                technical=len(technical_questions),
                behavioral=len(behavioral_questions),
                difficulty=config.difficulty,
            ),
        )

    async def generate_technical_questions(
        self,
        skills: SkillSet,
        count: int,
        difficulty: DifficultyLevel,
    ) -> list[Question]:
        all_skills = flatten_technical_skills(skills)
        if not all_skills:
            logger.warning("No technical skills found, generating general programming questions")
            prompt = GENERAL_TECHNICAL_PROMPT.format(
                count=count,
                difficulty_instruction=DIFFICULTY_INSTRUCTIONS[difficulty],
                difficulty=_difficulty_label(difficulty),
            )
            try:
                return await self._generate_batch(
                    prompt, QuestionType.TECHNICAL, difficulty, count
                )
            except ServiceUnavailableError:
                raise
            except ResumeAdvisorError as e:
                logger.error("Failed to generate general technical questions: %s", e)
                return []

        groups = group_by_category(all_skills)
        counts = allocate_counts(groups, count)

        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(
                    self._category_questions(category, members, counts[category], difficulty)
                )
                for category, members in groups.items()
            ]
        outcomes = [task.result() for task in tasks]

        if all(isinstance(error, ServiceUnavailableError) for _, error in outcomes):
            raise ServiceUnavailableError("Ollama service is not available for question generation")

        pool = normalizers.ensure_unique_ids(q for questions, _ in outcomes for q in questions)
        selected = self.select_questions(pool, count)

        logger.info(
            "Technical questions generated: %d in pool, %d selected across %d categories",
            len(pool),
            len(selected),
            len(groups),
        )
        return selected

    async def generate_behavioral_questions(
        self,
        experience: Sequence[ExperienceEntry],
        count: int,
    ) -> list[Question]:
        logger.info("Generating %d behavioral questions from %d positions", count, len(experience))
        if experience:
            prompt = BEHAVIORAL_PROMPT.format(
                count=count, context=summarize_experience(experience)
            )
        else:
            prompt = GENERAL_BEHAVIORAL_PROMPT.format(count=count)

        try:
            questions = await self._generate_batch(prompt, QuestionType.BEHAVIORAL, None, count)
        except ResumeAdvisorError as e:
            logger.error("Behavioral question generation failed, using fallback questions: %s", e)
            return fallback_behavioral_questions(count)
        if not questions:
            logger.warning("Model returned no behavioral questions, using fallback questions")
            return fallback_behavioral_questions(count)
        return questions[:count]

    def select_questions(self, questions: list[Question], count: int) -> list[Question]:
        """Uniformly sample ``count`` questions so every category keeps a chance to appear."""
        if len(questions) <= count:
            return questions
        return self.rng.sample(questions, count)

    async def _generate_batch(
        self,
        prompt: str,
        question_type: QuestionType,
        difficulty: DifficultyLevel | None,
        count: int,
    ) -> list[Question]:
        raw = await generate_structured(self.gateway, prompt, self.model)
        questions = normalizers.normalize_questions(raw, question_type, difficulty)
        return questions if question_type is QuestionType.BEHAVIORAL else questions[:count]

    async def _category_questions(
        self,
        category: str,
        skills: Sequence[SkillContext],
        count: int,
        difficulty: DifficultyLevel,
    ) -> tuple[list[Question], ResumeAdvisorError | None]:
        if count <= 0:
            return [], None

        prompt = CATEGORY_PROMPT.format(
            count=count,
            category=category,
            skill_levels=", ".join(f"{s.name} ({s.level})" for s in skills),
            difficulty_instruction=DIFFICULTY_INSTRUCTIONS[difficulty],
            difficulty=_difficulty_label(difficulty),
            first_skill=skills[0].name if skills else "skill1",
        )
        try:
            raw = await generate_structured(self.gateway, prompt, self.model)
        except ResumeAdvisorError as e:
            logger.error("Failed to generate questions for category %s: %s", category, e)
            return [], e
        return normalizers.normalize_questions(raw, QuestionType.TECHNICAL, difficulty), None
