from fastapi import APIRouter, Depends

from resume_advisor.api.deps import get_career_guide
from resume_advisor.schemas.common import Priority
from resume_advisor.schemas.roadmap import (
    CareerRoadmap,
    GuidanceRequest,
    ResourceReport,
    ResourcesRequest,
    SkillGapReport,
    SkillGapRequest,
)
from resume_advisor.services.career_guidance import CareerGuide

router = APIRouter(prefix="/guidance", tags=["guidance"])


@router.post("", response_model=CareerRoadmap)
async def generate_roadmap(
    request: GuidanceRequest,
    guide: CareerGuide = Depends(get_career_guide),
) -> CareerRoadmap:
    return await guide.generate_roadmap(request.analysis)


@router.post("/skill-gaps", response_model=SkillGapReport)
async def identify_skill_gaps(
    request: SkillGapRequest,
    guide: CareerGuide = Depends(get_career_guide),
) -> SkillGapReport:
    gaps = await guide.identify_skill_gaps(request.skills, request.target_role)
    return SkillGapReport(
        target_role=request.target_role,
        skill_gaps=gaps,
        high_priority=sum(1 for gap in gaps if gap.priority is Priority.HIGH),
        medium_priority=sum(1 for gap in gaps if gap.priority is Priority.MEDIUM),
        low_priority=sum(1 for gap in gaps if gap.priority is Priority.LOW),
    )


@router.post("/resources", response_model=ResourceReport)
async def recommend_resources(
    request: ResourcesRequest,
    guide: CareerGuide = Depends(get_career_guide),
) -> ResourceReport:
    resources = await guide.recommend_resources(request.skill_gaps)
    return ResourceReport(resources=resources, total_resources=len(resources))
