from pydantic import BaseModel, Field


class RevealRequest(BaseModel):
    index: int


class ManualMatchRequest(BaseModel):
    user_a: str = Field(min_length=1)
    user_b: str = Field(min_length=1)
    prompt_id: str = Field(min_length=1)
    append: bool = False


class BlockRequest(BaseModel):
    blocked_user_id: str = Field(min_length=1)


class MatchRecordResponse(BaseModel):
    user_id: str
    prompt_id: str
    matches: list[str] = Field(default_factory=list)
    revealed: list[bool] = Field(default_factory=list)
    created_at: str | None = None
    expires_at: str | None = None


class MatchHistoryResponse(BaseModel):
    matches: list[MatchRecordResponse] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    prompt_id: str
    is_valid: bool
    records_checked: int
    errors: list[str] = Field(default_factory=list)
