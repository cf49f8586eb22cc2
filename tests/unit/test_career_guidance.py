"""Unit tests for career roadmap generation."""

import pytest

from resume_advisor.core.exceptions import GenerationFailedError, ServiceUnavailableError
from resume_advisor.schemas.analysis import ResumeAnalysis, SeniorityLevel, SkillSet
from resume_advisor.schemas.common import Priority
from resume_advisor.schemas.roadmap import LearningResource, RoadmapStep, SkillGap
from resume_advisor.services.career_guidance import (
    TARGET_ROLE_PROGRESSION,
    CareerGuide,
    attach_resources,
    calculate_timeline_estimate,
    determine_overall_priority,
    fallback_roadmap_steps,
)
from tests.conftest import (
    RESOURCES,
    ROADMAP,
    SKILL_GAPS,
    TARGET_ROLE,
    FakeGateway,
    as_json,
    make_analysis_payload,
)

pytestmark = pytest.mark.unit


def make_steps(*estimates: str) -> list[RoadmapStep]:
    return [
        RoadmapStep(id=str(i), title=f"Step {i}", estimated_time=estimate)
        for i, estimate in enumerate(estimates)
    ]


def make_gaps(*priorities: Priority) -> list[SkillGap]:
    return [SkillGap(skill=f"Skill {i}", priority=p) for i, p in enumerate(priorities)]


def make_analysis(**overrides) -> ResumeAnalysis:
    return ResumeAnalysis.model_validate(make_analysis_payload(**overrides))


class TestTimelineEstimate:
    def test_weeks_round_up_to_months(self) -> None:
        steps = make_steps("2 months", "3 weeks", "1 month")
        assert calculate_timeline_estimate(steps) == "4 months"

    def test_single_month(self) -> None:
        assert calculate_timeline_estimate(make_steps("1 month")) == "1 month"

    def test_unparseable_estimates_are_skipped(self) -> None:
        assert calculate_timeline_estimate(make_steps("a while", "6 Months")) == "6 months"

    def test_nothing_parses(self) -> None:
        assert calculate_timeline_estimate(make_steps("ongoing", "TBD")) == "6-12 months"
        assert calculate_timeline_estimate([]) == "6-12 months"

    @pytest.mark.parametrize(
        ("estimates", "expected"),
        [
            (("6 months", "6 months"), "12 months"),
            (("12 months", "1 month"), "1 year 1 month"),
            (("12 months", "12 months"), "2 years"),
            (("20 months", "10 months"), "2 years 6 months"),
        ],
    )
    def test_long_timelines_use_years(self, estimates: tuple[str, ...], expected: str) -> None:
        assert calculate_timeline_estimate(make_steps(*estimates)) == expected


class TestOverallPriority:
    def test_three_high_gaps(self) -> None:
        gaps = make_gaps(Priority.HIGH, Priority.HIGH, Priority.HIGH, Priority.LOW, Priority.LOW)
        assert determine_overall_priority(gaps, SeniorityLevel.SENIOR) is Priority.HIGH

    def test_majority_high(self) -> None:
        gaps = make_gaps(Priority.HIGH, Priority.HIGH, Priority.LOW)
        assert determine_overall_priority(gaps, SeniorityLevel.SENIOR) is Priority.HIGH

    def test_early_career_is_high(self) -> None:
        assert determine_overall_priority([], SeniorityLevel.JUNIOR) is Priority.HIGH

    def test_medium_and_low(self) -> None:
        three = make_gaps(Priority.LOW, Priority.MEDIUM, Priority.HIGH)
        assert determine_overall_priority(three, SeniorityLevel.MID) is Priority.MEDIUM
        assert determine_overall_priority(three[:2], SeniorityLevel.MID) is Priority.LOW


def test_attach_resources_and_chain_prerequisites() -> None:
    steps = [
        RoadmapStep(id="1", title="Learn Kubernetes", skills=["Kubernetes"]),
        RoadmapStep(id="2", title="Lead a team", skills=["Leadership"], prerequisites=[]),
        RoadmapStep(id="3", title="Design systems", skills=["System Design"]),
    ]
    resources = [
        LearningResource(title="Kubernetes in Action"),
        LearningResource(title="Grokking", description="Intro to system design interviews"),
    ]

    linked = attach_resources(steps, resources)

    assert [r.title for r in linked[0].resources] == ["Kubernetes in Action"]
    assert linked[1].resources == []
    assert [r.title for r in linked[2].resources] == ["Grokking"]
    assert linked[0].prerequisites is None
    assert linked[1].prerequisites == []
    assert linked[2].prerequisites == ["Lead a team"]


class TestGenerateRoadmap:
    async def test_full_roadmap(self) -> None:
        gateway = FakeGateway(
            {
                TARGET_ROLE: "Senior Backend Engineer",
                SKILL_GAPS: as_json(
                    {
                        "skillGaps": [
                            {"skill": "Kubernetes", "priority": "High"},
                            {"skill": "System Design", "priority": "High"},
                            {"skill": "Rust", "priority": "Low"},
                        ]
                    }
                ),
                RESOURCES: as_json({"resources": [{"title": "Kubernetes Up & Running"}]}),
                ROADMAP: as_json(
                    {
                        "steps": [
                            {
                                "title": "Containers",
                                "skills": ["Kubernetes"],
                                "estimatedTime": "2 months",
                            },
                            {
                                "title": "Architecture",
                                "skills": ["System Design"],
                                "estimatedTime": "3 weeks",
                            },
                        ]
                    }
                ),
            }
        )
        analysis = make_analysis()

        roadmap = await CareerGuide(gateway).generate_roadmap(analysis)

        assert roadmap.target_role == "Senior Backend Engineer"
        assert roadmap.current_level is SeniorityLevel.MID
        assert [g.skill for g in roadmap.skill_gaps] == ["Kubernetes", "System Design", "Rust"]
        assert roadmap.timeline_estimate == "3 months"
        assert roadmap.overall_priority is Priority.HIGH
        assert roadmap.recommended_path[0].resources[0].title == "Kubernetes Up & Running"
        assert roadmap.recommended_path[1].prerequisites == ["Containers"]
        # Low priority gaps are not sent for resource recommendations
        resource_prompt = gateway.calls_matching(RESOURCES)[0]
        assert "Kubernetes" in resource_prompt
        assert "Rust" not in resource_prompt

    async def test_every_stage_falls_back(self) -> None:
        down = ServiceUnavailableError("down")
        gateway = FakeGateway(
            {TARGET_ROLE: down, SKILL_GAPS: down, RESOURCES: down, ROADMAP: down}
        )
        analysis = make_analysis(seniorityLevel="Senior")

        roadmap = await CareerGuide(gateway).generate_roadmap(analysis)

        assert roadmap.target_role == TARGET_ROLE_PROGRESSION[SeniorityLevel.SENIOR]
        assert [g.skill for g in roadmap.skill_gaps] == [
            "System Design",
            "Cloud Technologies",
            "Leadership Skills",
        ]
        assert [s.title for s in roadmap.recommended_path] == [
            s.title for s in fallback_roadmap_steps(roadmap.target_role)
        ]
        assert roadmap.timeline_estimate == "1 year 1 month"
        assert roadmap.overall_priority is Priority.HIGH
        assert roadmap.recommended_path[1].prerequisites == [roadmap.recommended_path[0].title]

    async def test_unusable_target_role_reply(self) -> None:
        gateway = FakeGateway({TARGET_ROLE: "\n\n"})
        role = await CareerGuide(gateway).determine_target_role(make_analysis())
        assert role == "Senior Software Developer"


class TestPublicStages:
    async def test_identify_skill_gaps_fallback(self) -> None:
        gateway = FakeGateway({SKILL_GAPS: GenerationFailedError("boom")})
        gaps = await CareerGuide(gateway).identify_skill_gaps(SkillSet(), "Staff Engineer")
        assert len(gaps) == 3

    async def test_no_focus_gaps_skip_the_call(self) -> None:
        gateway = FakeGateway()
        resources = await CareerGuide(gateway).recommend_resources(make_gaps(Priority.LOW))

        assert resources == []
        assert gateway.calls == []

    async def test_recommend_resources_fallback(self) -> None:
        gateway = FakeGateway({RESOURCES: "no json"})
        resources = await CareerGuide(gateway).recommend_resources(make_gaps(Priority.HIGH))
        assert [r.title for r in resources] == [
            "System Design Interview Course",
            "Cloud Computing Fundamentals",
        ]
