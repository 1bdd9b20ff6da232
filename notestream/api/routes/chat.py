from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from notestream.models.request import ChatRequest
from notestream.services.chat_service import ChatService, get_chat_service

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat")
def chat(request: ChatRequest, service: ChatService = Depends(get_chat_service)):
    """
    Stream a chat completion.

    The body is a raw byte stream: a {"model": ...} JSON object, then the
    assistant text, then optionally a JSON notes lookup result. Declared
    sync so the blocking upstream request runs in the threadpool.
    """
    stream = service.stream_response(
        model=request.model,
        messages=request.messages,
        api_key=request.api_key,
        temperature=request.temperature,
        max_tokens=request.max_tokens,
    )
    return StreamingResponse(stream, media_type="text/plain; charset=utf-8")
