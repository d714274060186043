import httpx
from fastapi import APIRouter, Depends

from smarthive.api.dependencies import get_http_client
from smarthive.schemas.chat import ChatIn
from smarthive.services import chat as chat_service

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post("/ai-chat")
async def ai_chat(data: ChatIn, client: httpx.AsyncClient = Depends(get_http_client)):
    result = await chat_service.relay(client, data.system, data.messages)
    return result.model_dump()
