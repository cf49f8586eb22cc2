from fastapi import APIRouter

from resume_advisor.api.v1 import analysis, guidance, health, questions, upload

api_v1_router = APIRouter()
api_v1_router.include_router(health.router)
api_v1_router.include_router(upload.router)
api_v1_router.include_router(analysis.router)
api_v1_router.include_router(questions.router)
api_v1_router.include_router(guidance.router)
