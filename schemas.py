from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Optional

class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # message 검증(빈 값/길이)은 핸들러에서 직접 400으로 처리
    message: Optional[str] = None
    dialog_id: Optional[str] = Field(default=None, alias="dialogId")

class ChatResponse(BaseModel):
    reply: str

class ErrorResponse(BaseModel):
    error: str

class StatusResponse(BaseModel):
    status: str
    available_endpoints: Dict[str, str]
