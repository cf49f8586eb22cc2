from fastapi import APIRouter, Depends

from resume_advisor.api.deps import get_question_generator
from resume_advisor.core.exceptions import LLMError, LLMUnavailableError
from resume_advisor.schemas.questions import (
    BehavioralQuestionsRequest,
    QuestionSet,
    QuestionsRequest,
    QuestionSummary,
    TechnicalQuestionsRequest,
)
from resume_advisor.services.question_generator import QuestionGenerator

router = APIRouter(prefix="/questions", tags=["questions"])


@router.post("", response_model=QuestionSet)
async def generate_questions(
    request: QuestionsRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> QuestionSet:
    try:
        return await generator.generate_questions(request.analysis, request.config)
    except LLMError as e:
        raise LLMUnavailableError(f"Question generation unavailable: {e}") from e


@router.post("/technical", response_model=QuestionSet)
async def generate_technical_questions(
    request: TechnicalQuestionsRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> QuestionSet:
    try:
        questions = await generator.generate_technical_questions(
            request.skills, request.count, request.difficulty
        )
    except LLMError as e:
        raise LLMUnavailableError(f"Question generation unavailable: {e}") from e
    return QuestionSet(
        questions=questions,
        summary=QuestionSummary(
            total=len(questions),
            technical=len(questions),
            behavioral=0,
            difficulty=request.difficulty,
        ),
    )


@router.post("/behavioral", response_model=QuestionSet)
async def generate_behavioral_questions(
    request: BehavioralQuestionsRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> QuestionSet:
    # Behavioral generation always falls back to built-in questions
    questions = await generator.generate_behavioral_questions(request.experience, request.count)
    return QuestionSet(
        questions=questions,
        summary=QuestionSummary(total=len(questions), technical=0, behavioral=len(questions)),
    )
