"""Dependency injection for FastAPI endpoints"""

import math
import uuid
from fastapi import HTTPException, Request
from financial_guru.infrastructure.clients.ollama import OllamaClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ollama_client() -> OllamaClient:
    """Provide Ollama client instance"""
    return OllamaClient()


def parse_uuid(value: str, label: str) -> uuid.UUID:
    """Path parameter to UUID, 400 when malformed"""
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")


def check_page(page: int, size: int) -> None:
    """400 for a negative page or a non-positive size"""
    if page < 0 or size < 1:
        raise HTTPException(status_code=400, detail="Invalid page parameters")


def check_page_in_range(page: int, size: int, total: int) -> None:
    """400 for a page past the last one; page 0 of an empty result is allowed"""
    if total > 0 and page >= math.ceil(total / size):
        raise HTTPException(status_code=400, detail="Page out of range")
