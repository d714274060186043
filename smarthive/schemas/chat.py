from typing import List, Literal

from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatIn(BaseModel):
    system: str
    messages: List[ChatMessage]


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ChatOut(BaseModel):
    success: bool = True
    content: List[TextBlock]
