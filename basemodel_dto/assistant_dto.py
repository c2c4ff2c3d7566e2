from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal['user', 'model']
    content: str


class AgriBotInput(BaseModel):
    query: str = Field(min_length=1)
    chatHistory: Optional[List[ChatMessage]] = None
    language: str = "en"


class AgriBotOutput(BaseModel):
    response: str


class VoiceInputForFarmDetailsInput(BaseModel):
    voiceInput: str
    fieldToPopulate: str


class VoiceInputForFarmDetailsOutput(BaseModel):
    processedValue: str = Field(description="The value extracted from the voice input, or an empty string.")


class NavigationInput(BaseModel):
    voiceInput: str
    currentPath: str = "/"
    language: str = "en"


class NavigationOutput(BaseModel):
    navigationPath: str
