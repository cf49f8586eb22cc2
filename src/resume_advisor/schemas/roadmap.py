from enum import StrEnum

from pydantic import Field

from resume_advisor.schemas.analysis import ResumeAnalysis, SeniorityLevel, SkillSet
from resume_advisor.schemas.common import CamelModel, Priority, SkillLevel


class CurrentSkillLevel(StrEnum):
    NONE = "None"
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ResourceType(StrEnum):
    COURSE = "Course"
    BOOK = "Book"
    TUTORIAL = "Tutorial"
    DOCUMENTATION = "Documentation"
    PRACTICE = "Practice"


class SkillGap(CamelModel):
    skill: str = Field(..., min_length=1)
    current_level: CurrentSkillLevel = CurrentSkillLevel.NONE
    target_level: SkillLevel = SkillLevel.INTERMEDIATE
    priority: Priority = Priority.MEDIUM
    estimated_learning_time: str = "3-6 months"


class LearningResource(CamelModel):
    title: str = Field(..., min_length=1)
    type: ResourceType = ResourceType.COURSE
    url: str | None = None
    description: str = ""
    estimated_time: str = "4 weeks"
    difficulty: SkillLevel = SkillLevel.INTERMEDIATE


class RoadmapStep(CamelModel):
    id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    skills: list[str] = []
    estimated_time: str = "3 months"
    priority: Priority = Priority.MEDIUM
    resources: list[LearningResource] = []
    prerequisites: list[str] | None = None


class CareerRoadmap(CamelModel):
    id: str
    current_level: SeniorityLevel
    target_role: str
    recommended_path: list[RoadmapStep]
    skill_gaps: list[SkillGap]
    timeline_estimate: str
    overall_priority: Priority


class GuidanceRequest(CamelModel):
    analysis: ResumeAnalysis


class SkillGapRequest(CamelModel):
    skills: SkillSet
    target_role: str = Field(..., min_length=1)


class SkillGapReport(CamelModel):
    target_role: str
    skill_gaps: list[SkillGap]
    high_priority: int
    medium_priority: int
    low_priority: int


class ResourcesRequest(CamelModel):
    skill_gaps: list[SkillGap]


class ResourceReport(CamelModel):
    resources: list[LearningResource]
    total_resources: int
