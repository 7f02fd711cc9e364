from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    prompt: str = Field(..., description="Free-text prompt, e.g. a skill-test question brief.")


class GenerateResponse(BaseModel):
    success: bool = True
    data: str
