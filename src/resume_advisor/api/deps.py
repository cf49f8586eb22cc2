from fastapi import Depends, Request

from resume_advisor.core.config import Settings, get_settings
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.services.analysis_service import ResumeAnalyzer
from resume_advisor.services.career_guidance import CareerGuide
from resume_advisor.services.question_generator import QuestionGenerator
from resume_advisor.storage.base import UploadStore
from resume_advisor.storage.local import LocalUploadStore

__all__ = [
    "get_analyzer",
    "get_career_guide",
    "get_gateway",
    "get_question_generator",
    "get_upload_store",
]


def get_upload_store() -> UploadStore:
    settings = get_settings()
    return LocalUploadStore(settings.upload_dir)


def get_gateway(request: Request) -> OllamaGateway:
    return request.app.state.gateway


def get_analyzer(
    gateway: OllamaGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> ResumeAnalyzer:
    return ResumeAnalyzer(gateway, settings.analysis_model)


def get_question_generator(
    gateway: OllamaGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> QuestionGenerator:
    return QuestionGenerator(gateway, settings.question_model)


def get_career_guide(
    gateway: OllamaGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> CareerGuide:
    return CareerGuide(gateway, settings.guidance_model)
