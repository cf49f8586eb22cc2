import logging

from fastapi import APIRouter, Depends

from resume_advisor.api.deps import get_analyzer, get_upload_store
from resume_advisor.core.exceptions import (
    ExtractionError,
    FileValidationError,
    LLMError,
    LLMUnavailableError,
    NotFoundError,
)
from resume_advisor.schemas.analysis import AnalyzeRequest, AnalyzeTextRequest, ResumeAnalysis
from resume_advisor.services.analysis_service import ResumeAnalyzer
from resume_advisor.services.text_extraction import extract_resume_content_async
from resume_advisor.storage.base import UploadStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


async def _analyze(analyzer: ResumeAnalyzer, text: str, file_name: str) -> ResumeAnalysis:
    try:
        return await analyzer.analyze_resume(text, file_name)
    except LLMError as e:
        raise LLMUnavailableError(f"Resume analysis unavailable: {e}") from e


@router.post("", response_model=ResumeAnalysis)
async def analyze_upload(
    request: AnalyzeRequest,
    store: UploadStore = Depends(get_upload_store),
    analyzer: ResumeAnalyzer = Depends(get_analyzer),
) -> ResumeAnalysis:
    try:
        path = await store.path_for(request.file_id)
    except FileNotFoundError as e:
        raise NotFoundError("File", request.file_id) from e

    try:
        content = await extract_resume_content_async(path)
    except ExtractionError as e:
        raise FileValidationError(str(e)) from e

    logger.info("Analyzing upload %s (%d pages)", request.file_id, content.page_count)
    return await _analyze(analyzer, content.text, path.name)


@router.post("/text", response_model=ResumeAnalysis)
async def analyze_text(
    request: AnalyzeTextRequest,
    analyzer: ResumeAnalyzer = Depends(get_analyzer),
) -> ResumeAnalysis:
    return await _analyze(analyzer, request.text, request.file_name)
