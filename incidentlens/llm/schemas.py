from pydantic import BaseModel, Field, model_validator


class LLMQueryRequest(BaseModel):
    query: str | None = None
    user: str | None = None  # takes precedence over query
    system: str | None = None
    model: str | None = None
    temperature: float = Field(1.0, ge=0, le=2)
    max_tokens: int = Field(1024, ge=1, le=8192)

    @model_validator(mode="after")
    def _require_prompt(self):
        if not (self.query or self.user):
            raise ValueError("Either 'query' or 'user' is required")
        return self

    @property
    def prompt(self) -> str:
        return self.user or self.query or ""


class LLMQueryResponse(BaseModel):
    model: str
    content: str
