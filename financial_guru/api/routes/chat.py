"""/api/chat - AI financial advisor backed by a local Ollama model"""

from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import get_ollama_client, get_request_id
from financial_guru.api.routes.schemas import ChatRequest, ChatResponse, EnrichedChatRequest, EnrichedChatResponse
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.advisor import AdvisorService, SUGGESTED_QUESTIONS

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    ollama: OllamaClient = Depends(get_ollama_client),
):
    """
    Answer a question with the user's accounts and subscriptions as context.

    An unreachable model yields fallback copy instead of an error.
    """
    answer = await AdvisorService(db, ollama).chat(body.message, get_request_id(request))
    return ChatResponse(message=body.message, response=answer)


@router.post("/chat/enriched", response_model=EnrichedChatResponse)
async def chat_enriched(
    body: EnrichedChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    ollama: OllamaClient = Depends(get_ollama_client),
):
    """Same as /chat with income, spending averages and savings rate in the context"""
    answer = await AdvisorService(db, ollama).chat_enriched(body.message, get_request_id(request))
    return EnrichedChatResponse(response=answer)


@router.get("/chat/suggestions", response_model=List[str])
def suggestions():
    return list(SUGGESTED_QUESTIONS)
