"""Внешний анализ цветовой композиции через генеративную модель.

Конвейер каналов зависит только от узкой роли `Analyzer.analyze(image)`;
конкретный клиент (`GeminiAnalysisService`) можно заменить или подменить в тестах.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Protocol

import requests

from chromasplit.models.errors import AnalysisError
from chromasplit.models.image_model import AnalysisResult, EncodedImage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

ANALYSIS_PROMPT = """Analyze this image's color composition. Provide:
1. Dominant color mood.
2. The balance between Red, Green, and Blue channels.
3. A creative suggestion for color grading (e.g., cinematic, vintage, high-contrast).
Return as JSON."""

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "dominantColor": {"type": "STRING"},
        "balance": {"type": "STRING"},
        "suggestion": {"type": "STRING"},
    },
    "required": ["dominantColor", "balance", "suggestion"],
}


class Analyzer(Protocol):
    def analyze(self, image: EncodedImage) -> AnalysisResult:
        ...


class GeminiAnalysisService:
    """Клиент `generateContent` для анализа закодированного оригинала.

    Один запрос на изображение, без повторов. Любой сбой (нет ключа, сеть,
    таймаут, HTTP-ошибка, неполный ответ) превращается в `AnalysisError`.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        base_url: str = DEFAULT_API_BASE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def build_request(self, image: EncodedImage) -> Dict[str, Any]:
        """Тело запроса: изображение inline + фиксированная инструкция + JSON-схема ответа."""
        return {
            "contents": [
                {
                    "parts": [
                        {"inline_data": {"mime_type": image.mime_type, "data": image.base64}},
                        {"text": ANALYSIS_PROMPT},
                    ]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def analyze(self, image: EncodedImage) -> AnalysisResult:
        if not self._api_key:
            raise AnalysisError("API-ключ не задан (GEMINI_API_KEY)")

        started = time.perf_counter()
        try:
            response = self._session.post(
                self.endpoint,
                json=self.build_request(image),
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise AnalysisError(f"Превышено время ожидания ответа модели ({self._timeout} с)") from exc
        except requests.exceptions.RequestException as exc:
            raise AnalysisError(f"Сетевая ошибка при обращении к модели: {exc}") from exc

        if response.status_code >= 400:
            raise AnalysisError(
                f"Модель вернула HTTP {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )

        result = self.parse_response(response)
        logger.info("Color analysis by %s finished in %.2fs", self._model, time.perf_counter() - started)
        return result

    def parse_response(self, response: requests.Response) -> AnalysisResult:
        """Достаёт JSON-текст первого кандидата и проверяет три обязательных поля."""
        try:
            body = response.json()
        except ValueError as exc:
            raise AnalysisError("Ответ модели не является JSON") from exc

        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AnalysisError("В ответе модели нет текста кандидата") from exc

        try:
            payload = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise AnalysisError("Текст ответа модели не является JSON") from exc
        if not isinstance(payload, dict):
            raise AnalysisError("Ответ модели должен быть JSON-объектом")

        try:
            return AnalysisResult.from_payload(payload)
        except ValueError as exc:
            raise AnalysisError(f"Неполный ответ модели: {exc}") from exc

    def _error_message(self, response: requests.Response) -> str:
        try:
            return str(response.json()["error"]["message"])
        except (ValueError, KeyError, TypeError):
            return response.reason or "неизвестная ошибка"
