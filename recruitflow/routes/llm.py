from fastapi import APIRouter, Depends

from recruitflow import models
from recruitflow.deps import get_current_user, get_text_generator
from recruitflow.llm import TextGenerator
from recruitflow.schemas_llm import GenerateRequest, GenerateResponse

router = APIRouter(prefix="/llm", tags=["llm"])


@router.post("/generate", response_model=GenerateResponse)
def generate_text(
    payload: GenerateRequest,
    current_user: models.User = Depends(get_current_user),
    generator: TextGenerator = Depends(get_text_generator),
) -> GenerateResponse:
    return GenerateResponse(success=True, data=generator.generate(payload.prompt))
