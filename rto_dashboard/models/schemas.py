"""Request/Response Pydantic models."""

from pydantic import BaseModel, Field


class AnalyzeFeedbackRequest(BaseModel):
    text: str = Field(default="", max_length=20_000, description="Feedback comment text")
    use_ai: bool = Field(default=True, description="Attempt LLM analysis before keyword scoring")


class AnalyzeFeedbackResponse(BaseModel):
    sentiment: float = Field(..., ge=-1, le=1)
    themes: list[str] = []
    confidence: float = Field(..., ge=0, le=1)


class HealthResponse(BaseModel):
    status: str
    service: str
    compliance_api_connected: bool
    ai_providers: dict[str, bool]


class JobRunResponse(BaseModel):
    job_id: str
    processed: int = 0
    failed: int = 0
