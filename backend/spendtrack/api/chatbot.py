from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from spendtrack.api.deps import get_current_user_id, get_orchestrator
from spendtrack.schemas.chat import (
    ChatErrorResponse,
    ChatInteractRequest,
    ChatInteractResponse,
)
from spendtrack.services.assistant.orchestrator import ConversationOrchestrator

router = APIRouter(prefix="/chatbot", tags=["chatbot"])


@router.post(
    "/interact",
    response_model=ChatInteractResponse,
    responses={400: {"model": ChatErrorResponse}, 500: {"model": ChatErrorResponse}},
)
async def interact(
    payload: ChatInteractRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    reply = await orchestrator.handle_turn(user_id, payload.message)
    if reply.success:
        return ChatInteractResponse(success=True, message=reply.message or "")
    body = ChatErrorResponse(error=reply.error or "Request failed", message=reply.message)
    return JSONResponse(
        status_code=reply.status_code,
        content=body.model_dump(exclude_none=True),
    )
