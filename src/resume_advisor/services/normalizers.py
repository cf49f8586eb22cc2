"""Turn decoded model output into validated domain records.

Every function here is pure and total: malformed input never raises, it is
cleaned into the best record that can be rebuilt from it. Records missing a
required field are dropped, invalid enum values fall back to a documented
default and missing identifiers are derived from the record content, so the
same input always yields the same output.
"""

import json
import math
import re
import uuid
from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel

from resume_advisor.schemas.analysis import (
    EducationEntry,
    ExperienceEntry,
    Framework,
    PersonalInfo,
    ProgrammingLanguage,
    ProjectEntry,
    SeniorityLevel,
    SkillSet,
    SoftSkill,
    TechnicalSkill,
    Tool,
)
from resume_advisor.schemas.common import Priority, SkillLevel
from resume_advisor.schemas.questions import DifficultyLevel, Question, QuestionType
from resume_advisor.schemas.roadmap import (
    CurrentSkillLevel,
    LearningResource,
    ResourceType,
    RoadmapStep,
    SkillGap,
)
from resume_advisor.services.structured_output import JSONValue

E = TypeVar("E", bound=StrEnum)
M = TypeVar("M", bound=BaseModel)

ID_NAMESPACE = uuid.UUID("6f1c8e52-3b7a-4d0e-9a51-0c2f4e8b7d13")

_NULL_STRINGS = {"", "null", "none", "n/a", "na", "not provided", "not mentioned", "unknown"}
_CURRENT_MARKERS = {"present", "current", "currently", "now", "ongoing", "today"}

DEFAULT_FRAMEWORKS = {
    QuestionType.TECHNICAL: (
        "Break down the problem, explain your approach, discuss trade-offs, "
        "and provide a clear solution with examples."
    ),
    QuestionType.BEHAVIORAL: (
        "Use the STAR method: Situation (context), Task (what needed to be done), "
        "Action (what you did), Result (outcome and what you learned)."
    ),
}
DEFAULT_QUESTION_TIMES = {
    QuestionType.TECHNICAL: "5-10 minutes",
    QuestionType.BEHAVIORAL: "3-5 minutes",
}
DEFAULT_QUESTION_CATEGORIES = {
    QuestionType.TECHNICAL: "General Programming",
    QuestionType.BEHAVIORAL: "General",
}


# Primitive coercions


def _text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return str(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if stripped.lower() in _NULL_STRINGS:
        return None
    return stripped


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [text for item in value if (text := _text(item)) is not None]


def _optional_string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list | str):
        return None
    return _string_list(value)


def _years(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int | float) or not math.isfinite(value) or value < 0:
        return None
    return float(value)


def _enum(value: Any, enum_cls: type[E], default: E) -> E:
    coerced = _enum_or_none(value, enum_cls)
    return default if coerced is None else coerced


def _enum_or_none(value: Any, enum_cls: type[E]) -> E | None:
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == wanted:
            return member
    return None


def _end_date(value: Any) -> str | None:
    text = _text(value)
    if text is None or text.lower() in _CURRENT_MARKERS:
        return None
    return text


def _records(raw: JSONValue, keys: Sequence[str] = (), required: str | None = None) -> list[dict]:
    """Find the list of records in a reply, unwrapping common envelopes."""
    if isinstance(raw, dict):
        for key in keys:
            if isinstance(raw.get(key), list):
                raw = raw[key]
                break
        else:
            lists = [value for value in raw.values() if isinstance(value, list)]
            if required is not None and required in raw:
                raw = [raw]
            elif len(lists) == 1:
                raw = lists[0]
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


# Identifiers


def derive_id(kind: str, index: int, record: Any) -> str:
    """Stable identifier built from a record's content and position."""
    payload = json.dumps(record, sort_keys=True, default=str)
    return str(uuid.uuid5(ID_NAMESPACE, f"{kind}:{index}:{payload}"))


def ensure_unique_ids(records: Iterable[M]) -> list[M]:
    """Re-derive the identifier of any record whose id was already seen."""
    seen: set[str] = set()
    unique: list[M] = []
    for index, record in enumerate(records):
        record_id = record.id  # type: ignore[attr-defined]
        if record_id in seen:
            record_id = str(uuid.uuid5(ID_NAMESPACE, f"{record_id}:{index}"))
            record = record.model_copy(update={"id": record_id})
        seen.add(record_id)
        unique.append(record)
    return unique


def _record_id(kind: str, index: int, record: dict) -> str:
    return _text(record.get("id")) or derive_id(kind, index, record)


# Résumé entities


def normalize_personal_info(raw: JSONValue) -> PersonalInfo:
    if not isinstance(raw, dict):
        return PersonalInfo()
    return PersonalInfo(
        name=_text(raw.get("name")),
        email=_text(raw.get("email")),
        phone=_text(raw.get("phone")),
        location=_text(raw.get("location")),
        linked_in=_text(raw.get("linkedIn", raw.get("linkedin"))),
        github=_text(raw.get("github")),
        website=_text(raw.get("website")),
    )


def _named(items: Any) -> list[tuple[str, dict]]:
    if not isinstance(items, list):
        return []
    named = []
    for item in items:
        if isinstance(item, dict) and (name := _text(item.get("name"))):
            named.append((name, item))
    return named


def normalize_skill_set(raw: JSONValue) -> SkillSet:
    if not isinstance(raw, dict):
        return SkillSet()

    def level(item: dict) -> SkillLevel:
        return _enum(item.get("proficiencyLevel"), SkillLevel, SkillLevel.INTERMEDIATE)

    def category(item: dict) -> str:
        return _text(item.get("category")) or "General"

    return SkillSet(
        technical=[
            TechnicalSkill(
                name=name,
                category=category(item),
                proficiency_level=level(item),
                years_of_experience=_years(item.get("yearsOfExperience")),
            )
            for name, item in _named(raw.get("technical"))
        ],
        soft=[
            SoftSkill(name=name, description=_text(item.get("description")))
            for name, item in _named(raw.get("soft"))
        ],
        languages=[
            ProgrammingLanguage(
                name=name,
                proficiency_level=level(item),
                years_of_experience=_years(item.get("yearsOfExperience")),
            )
            for name, item in _named(raw.get("languages"))
        ],
        frameworks=[
            Framework(
                name=name,
                category=category(item),
                proficiency_level=level(item),
                years_of_experience=_years(item.get("yearsOfExperience")),
            )
            for name, item in _named(raw.get("frameworks"))
        ],
        tools=[
            Tool(name=name, category=category(item), proficiency_level=level(item))
            for name, item in _named(raw.get("tools"))
        ],
    )


def normalize_experience(raw: JSONValue) -> list[ExperienceEntry]:
    entries = []
    records = _records(raw, ("experience", "workExperience", "positions"), required="company")
    for index, record in enumerate(records):
        company = _text(record.get("company"))
        position = _text(record.get("position", record.get("title")))
        if not (company or position):
            continue
        entries.append(
            ExperienceEntry(
                id=_record_id("experience", index, record),
                company=company or "",
                position=position or "",
                start_date=_text(record.get("startDate")) or "",
                end_date=_end_date(record.get("endDate")),
                description=_text(record.get("description")) or "",
                responsibilities=_string_list(record.get("responsibilities")),
                technologies=_optional_string_list(record.get("technologies")),
                achievements=_optional_string_list(record.get("achievements")),
            )
        )
    return ensure_unique_ids(entries)


def normalize_education(raw: JSONValue) -> list[EducationEntry]:
    entries = []
    for index, record in enumerate(_records(raw, ("education",), required="institution")):
        institution = _text(record.get("institution"))
        if not institution:
            continue
        entries.append(
            EducationEntry(
                id=_record_id("education", index, record),
                institution=institution,
                degree=_text(record.get("degree")) or "",
                field=_text(record.get("field")) or "",
                start_date=_text(record.get("startDate")) or "",
                end_date=_end_date(record.get("endDate")),
                gpa=_text(record.get("gpa")),
                honors=_optional_string_list(record.get("honors")),
                relevant_coursework=_optional_string_list(record.get("relevantCoursework")),
            )
        )
    return ensure_unique_ids(entries)


def normalize_projects(raw: JSONValue) -> list[ProjectEntry]:
    entries = []
    for index, record in enumerate(_records(raw, ("projects",), required="name")):
        name = _text(record.get("name"))
        if not name:
            continue
        entries.append(
            ProjectEntry(
                id=_record_id("project", index, record),
                name=name,
                description=_text(record.get("description")) or "",
                technologies=_string_list(record.get("technologies")),
                start_date=_text(record.get("startDate")),
                end_date=_end_date(record.get("endDate")),
                url=_text(record.get("url")),
                github=_text(record.get("github")),
                achievements=_optional_string_list(record.get("achievements")),
            )
        )
    return ensure_unique_ids(entries)


def _single_line_reply(text: str) -> str:
    line = next((line for line in text.strip().splitlines() if line.strip()), "")
    return line.strip().strip("*_`\"'").strip()


def normalize_seniority(text: str) -> SeniorityLevel | None:
    """Accept a reply only if it is exactly one of the six labels."""
    label = re.sub(r"[.!:;,]+$", "", _single_line_reply(text)).strip()
    return _enum_or_none(label, SeniorityLevel)


def normalize_target_role(text: str) -> str | None:
    role = re.sub(r"^(target role|role)\s*:\s*", "", _single_line_reply(text), flags=re.IGNORECASE)
    role = role.rstrip(".").strip().strip("\"'")
    if not role or len(role) > 100:
        return None
    return role


# Questions


def normalize_questions(
    raw: JSONValue,
    question_type: QuestionType,
    difficulty: DifficultyLevel | None = None,
) -> list[Question]:
    """Clean generated questions; every result carries the requested type."""
    if difficulty is not None and difficulty is not DifficultyLevel.MIXED:
        fallback_level = SkillLevel(difficulty.value)
    else:
        fallback_level = SkillLevel.INTERMEDIATE

    questions = []
    for index, record in enumerate(_records(raw, ("questions",), required="question")):
        text = _text(record.get("question"))
        if not text or not isinstance(record.get("question"), str):
            continue
        questions.append(
            Question(
                id=_record_id(question_type.value, index, record),
                type=question_type,
                difficulty=_enum(record.get("difficulty"), SkillLevel, fallback_level),
                question=text,
                category=_text(record.get("category"))
                or DEFAULT_QUESTION_CATEGORIES[question_type],
                suggested_answer_framework=_text(record.get("suggestedAnswerFramework"))
                or DEFAULT_FRAMEWORKS[question_type],
                related_skills=_string_list(record.get("relatedSkills")),
                estimated_time=_text(record.get("estimatedTime"))
                or DEFAULT_QUESTION_TIMES[question_type],
            )
        )
    return ensure_unique_ids(questions)


# Career guidance


def normalize_skill_gaps(raw: JSONValue) -> list[SkillGap]:
    gaps = []
    for record in _records(raw, ("skillGaps", "gaps"), required="skill"):
        skill = _text(record.get("skill"))
        if not skill:
            continue
        gaps.append(
            SkillGap(
                skill=skill,
                current_level=_enum(
                    record.get("currentLevel"), CurrentSkillLevel, CurrentSkillLevel.NONE
                ),
                target_level=_enum(record.get("targetLevel"), SkillLevel, SkillLevel.INTERMEDIATE),
                priority=_enum(record.get("priority"), Priority, Priority.MEDIUM),
                estimated_learning_time=_text(record.get("estimatedLearningTime")) or "3-6 months",
            )
        )
    return gaps


def normalize_learning_resources(raw: JSONValue) -> list[LearningResource]:
    resources = []
    for record in _records(raw, ("resources",), required="title"):
        title = _text(record.get("title"))
        if not title:
            continue
        resources.append(
            LearningResource(
                title=title,
                type=_enum(record.get("type"), ResourceType, ResourceType.COURSE),
                url=_text(record.get("url")),
                description=_text(record.get("description")) or "",
                estimated_time=_text(record.get("estimatedTime")) or "4 weeks",
                difficulty=_enum(record.get("difficulty"), SkillLevel, SkillLevel.INTERMEDIATE),
            )
        )
    return resources


def normalize_roadmap_steps(raw: JSONValue) -> list[RoadmapStep]:
    steps = []
    for index, record in enumerate(_records(raw, ("steps", "roadmap"), required="title")):
        title = _text(record.get("title"))
        if not title:
            continue
        steps.append(
            RoadmapStep(
                id=_record_id("step", index, record),
                title=title,
                description=_text(record.get("description")) or "",
                skills=_string_list(record.get("skills")),
                estimated_time=_text(record.get("estimatedTime")) or "3 months",
                priority=_enum(record.get("priority"), Priority, Priority.MEDIUM),
                resources=normalize_learning_resources(record.get("resources")),
                prerequisites=_optional_string_list(record.get("prerequisites")),
            )
        )
    return ensure_unique_ids(steps)
