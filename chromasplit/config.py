"""Настройки приложения из окружения (и файла `.env`) и общая настройка логов."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from chromasplit.services.analysis_service import DEFAULT_API_BASE, DEFAULT_MODEL, GeminiAnalysisService
from chromasplit.services.pipeline_service import PipelineService

LOG_FORMAT = "%(levelname)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    """Параметры запуска.

    Fields:
        api_key: Ключ генеративной модели; без него каналы работают, анализ - нет.
        model: Имя модели для анализа цвета.
        api_base: Базовый URL API модели.
        analysis_timeout: Таймаут анализа, секунды.
        max_workers: Размер пула потоков конвейера.
        log_level: Уровень логирования.
    """
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    analysis_timeout: float = 30.0
    max_workers: int = 4
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Читает настройки из `environ` (по умолчанию - `os.environ` после `.env`).

    Raises:
        ValueError: если значение переменной не удаётся разобрать.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    api_key = environ.get("GEMINI_API_KEY") or environ.get("API_KEY") or None
    timeout_str = environ.get("CHROMASPLIT_ANALYSIS_TIMEOUT", "30")
    workers_str = environ.get("CHROMASPLIT_WORKERS", "4")
    log_level = environ.get("CHROMASPLIT_LOG_LEVEL", "INFO").strip().upper()

    try:
        analysis_timeout = float(timeout_str)
    except ValueError as exc:
        raise ValueError(f"CHROMASPLIT_ANALYSIS_TIMEOUT должно быть числом, получено {timeout_str!r}") from exc
    if analysis_timeout <= 0:
        raise ValueError(f"CHROMASPLIT_ANALYSIS_TIMEOUT должно быть > 0, получено {timeout_str!r}")

    try:
        max_workers = int(workers_str)
    except ValueError as exc:
        raise ValueError(f"CHROMASPLIT_WORKERS должно быть целым, получено {workers_str!r}") from exc
    if max_workers < 1:
        raise ValueError(f"CHROMASPLIT_WORKERS должно быть >= 1, получено {workers_str!r}")

    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"CHROMASPLIT_LOG_LEVEL: неизвестный уровень {log_level!r}")

    return Settings(
        api_key=api_key,
        model=environ.get("CHROMASPLIT_MODEL", DEFAULT_MODEL),
        api_base=environ.get("CHROMASPLIT_API_BASE", DEFAULT_API_BASE),
        analysis_timeout=analysis_timeout,
        max_workers=max_workers,
        log_level=log_level,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_pipeline(settings: Settings) -> PipelineService:
    return PipelineService(max_workers=settings.max_workers)


def build_analyzer(settings: Settings) -> GeminiAnalysisService:
    return GeminiAnalysisService(
        api_key=settings.api_key,
        model=settings.model,
        timeout=settings.analysis_timeout,
        base_url=settings.api_base,
    )
