from pydantic import BaseModel, Field


class ChatInteractRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class ChatInteractResponse(BaseModel):
    success: bool = True
    message: str


class ChatErrorResponse(BaseModel):
    error: str
    message: str | None = None
