"""Ollama HTTP client for local LLM completions"""

import json
import logging
import httpx
from typing import Any, Dict
from financial_guru.config import settings
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.infrastructure.observability.metrics import ollama_latency_histogram, ollama_failure_counter

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = "\n\nIMPORTANT: Respond ONLY with valid JSON. No markdown, no explanation, just JSON."

GENERATION_OPTIONS = {
    "temperature": 0.3,
    "top_p": 0.9,
    "num_predict": 2048,
}


def extract_json(text: str) -> str:
    """Cut the outermost JSON object or array out of free-form model output"""
    starts = [(text.find(opener), closer) for opener, closer in (("{", "}"), ("[", "]")) if opener in text]
    if not starts:
        return text
    start, closer = min(starts)
    end = text.rfind(closer)
    return text[start:end + 1] if end > start else text


class OllamaClient:
    """Client for a local Ollama server's generate API"""

    def __init__(self, base_url: str | None = None, model: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model = model or settings.ollama_model
        self.timeout = httpx.Timeout(
            timeout or settings.ollama_timeout_seconds,
            connect=settings.ollama_connect_timeout_seconds,
        )

    async def generate(self, prompt: str) -> str:
        """
        Send a single non-streaming prompt and return the response text.

        Raises:
            OllamaUnavailableError: On timeout, connection failure or HTTP error
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": GENERATION_OPTIONS,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                with ollama_latency_histogram.time():
                    response = await client.post(f"{self.base_url}/api/generate", json=payload)
                    response.raise_for_status()
                return response.json().get("response", "")

            except httpx.TimeoutException as e:
                ollama_failure_counter.inc()
                raise OllamaUnavailableError(f"Ollama timeout after {self.timeout.read}s") from e
            except httpx.HTTPStatusError as e:
                ollama_failure_counter.inc()
                raise OllamaUnavailableError(f"Ollama error: {e.response.status_code}") from e
            except (httpx.RequestError, ValueError) as e:
                ollama_failure_counter.inc()
                raise OllamaUnavailableError(f"Failed to communicate with Ollama: {e}") from e

    async def chat_json(self, prompt: str) -> Dict[str, Any]:
        """
        Ask for a JSON answer and decode it.

        Output the model wraps in prose is trimmed to its outermost object or array;
        undecodable output comes back as {"raw_response", "parse_error"}.
        """
        text = await self.generate(prompt + JSON_INSTRUCTION)
        try:
            result = json.loads(extract_json(text))
        except ValueError as e:
            logger.error(f"Failed to parse Ollama JSON response: {text}")
            return {"raw_response": text, "parse_error": str(e)}
        if not isinstance(result, dict):
            return {"items": result}
        return result
