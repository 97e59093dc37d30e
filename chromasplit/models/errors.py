"""Иерархия ошибок ChromaSplit.

- `DecodeError` прерывает весь запрос: частичный набор каналов не показывается.
- `AnalysisError` изолирована: каналы уже посчитаны и выдаются пользователю.
"""
from __future__ import annotations

from typing import Optional


class ChromaSplitError(Exception):
    """Базовый класс ошибок приложения."""


class DecodeError(ChromaSplitError, ValueError):
    """Байты не являются изображением или размеры вырождены (0 px)."""


class AnalysisError(ChromaSplitError):
    """Сбой внешнего анализа цвета: сеть, квота, некорректный ответ.

    Fields:
        status_code: HTTP-статус ответа, если он был получен.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
