from datetime import datetime
from enum import StrEnum

from pydantic import Field

from resume_advisor.schemas.common import CamelModel, SkillLevel


class SeniorityLevel(StrEnum):
    ENTRY = "Entry"
    JUNIOR = "Junior"
    MID = "Mid"
    SENIOR = "Senior"
    LEAD = "Lead"
    PRINCIPAL = "Principal"


class PersonalInfo(CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linked_in: str | None = None
    github: str | None = None
    website: str | None = None


class TechnicalSkill(CamelModel):
    name: str = Field(..., min_length=1)
    category: str = "General"
    proficiency_level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: float | None = Field(None, ge=0)


class SoftSkill(CamelModel):
    name: str = Field(..., min_length=1)
    description: str | None = None


class ProgrammingLanguage(CamelModel):
    name: str = Field(..., min_length=1)
    proficiency_level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: float | None = Field(None, ge=0)


class Framework(CamelModel):
    name: str = Field(..., min_length=1)
    category: str = "General"
    proficiency_level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: float | None = Field(None, ge=0)


class Tool(CamelModel):
    name: str = Field(..., min_length=1)
    category: str = "General"
    proficiency_level: SkillLevel = SkillLevel.INTERMEDIATE


class SkillSet(CamelModel):
    technical: list[TechnicalSkill] = []
    soft: list[SoftSkill] = []
    languages: list[ProgrammingLanguage] = []
    frameworks: list[Framework] = []
    tools: list[Tool] = []

    def is_empty(self) -> bool:
        return not (self.technical or self.soft or self.languages or self.frameworks or self.tools)


class ExperienceEntry(CamelModel):
    id: str
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str | None = None
    description: str = ""
    responsibilities: list[str] = []
    technologies: list[str] | None = None
    achievements: list[str] | None = None


class EducationEntry(CamelModel):
    id: str
    institution: str = Field(..., min_length=1)
    degree: str = ""
    field: str = ""
    start_date: str = ""
    end_date: str | None = None
    gpa: str | None = None
    honors: list[str] | None = None
    relevant_coursework: list[str] | None = None


class ProjectEntry(CamelModel):
    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    technologies: list[str] = []
    start_date: str | None = None
    end_date: str | None = None
    url: str | None = None
    github: str | None = None
    achievements: list[str] | None = None


class ResumeAnalysis(CamelModel):
    id: str
    file_name: str
    uploaded_at: datetime
    personal_info: PersonalInfo = PersonalInfo()
    experience: list[ExperienceEntry] = []
    education: list[EducationEntry] = []
    skills: SkillSet = SkillSet()
    projects: list[ProjectEntry] = []
    seniority_level: SeniorityLevel
    career_summary: str = ""
    total_experience_years: float = Field(0.0, ge=0)


class AnalyzeRequest(CamelModel):
    file_id: str = Field(..., min_length=1)


class AnalyzeTextRequest(CamelModel):
    text: str = Field(..., min_length=1)
    file_name: str = "resume.pdf"
