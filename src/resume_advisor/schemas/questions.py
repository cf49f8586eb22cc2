from enum import StrEnum

from pydantic import Field

from resume_advisor.schemas.analysis import ExperienceEntry, ResumeAnalysis, SkillSet
from resume_advisor.schemas.common import CamelModel, SkillLevel


class QuestionType(StrEnum):
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"


class DifficultyLevel(StrEnum):
    """Difficulty requested from the generator. MIXED spreads questions over all levels."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    MIXED = "Mixed"


class Question(CamelModel):
    id: str
    type: QuestionType
    difficulty: SkillLevel
    question: str = Field(..., min_length=1)
    category: str
    suggested_answer_framework: str
    related_skills: list[str] = []
    estimated_time: str


class QuestionConfig(CamelModel):
    technical_count: int = Field(..., ge=1, le=50)
    behavioral_count: int = Field(..., ge=1, le=50)
    difficulty: DifficultyLevel


class QuestionSummary(CamelModel):
    total: int
    technical: int
    behavioral: int
    difficulty: DifficultyLevel | None = None


class QuestionSet(CamelModel):
    questions: list[Question]
    summary: QuestionSummary


class QuestionsRequest(CamelModel):
    analysis: ResumeAnalysis
    config: QuestionConfig


class TechnicalQuestionsRequest(CamelModel):
    skills: SkillSet
    count: int = Field(10, ge=1, le=50)
    difficulty: DifficultyLevel = DifficultyLevel.MIXED


class BehavioralQuestionsRequest(CamelModel):
    experience: list[ExperienceEntry]
    count: int = Field(10, ge=1, le=50)
