"""Оркестрация конвейера: декодирование -> каналы -> кодирование (×5) [-> гистограммы].

Принципы:
- SRP: только порядок шагов и распределение работы по пулу потоков.
- DIP: сервисы декодирования, каналов и анализа передаются снаружи.

Каждый вызов работает со своими буферами, общего изменяемого состояния нет.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Dict, Optional, Tuple

from chromasplit.models.errors import AnalysisError
from chromasplit.models.image_model import (
    DERIVED_KINDS,
    AnalysisResult,
    ChannelBundle,
    ChannelKind,
    EncodedImage,
    PixelBuffer,
    ProcessedChannels,
    SplitResult,
)
from chromasplit.services.analysis_service import Analyzer
from chromasplit.services.channel_service import ChannelService
from chromasplit.services.image_service import ImageService

logger = logging.getLogger(__name__)


class PipelineService:
    def __init__(
        self,
        image_service: Optional[ImageService] = None,
        channel_service: Optional[ChannelService] = None,
        max_workers: int = 4,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers должно быть >= 1, получено {max_workers}")
        self._image_service = image_service or ImageService()
        self._channel_service = channel_service or ChannelService()
        self._max_workers = max_workers

    def process(self, file_bytes: bytes, with_histograms: bool = False) -> ProcessedChannels:
        """Раскладывает изображение на оригинал и четыре канала, кодирует все пять.

        Args:
            file_bytes: Сырые байты файла изображения.
            with_histograms: Посчитать также гистограммы R/G/B оригинала.

        Raises:
            DecodeError: если байты не удалось декодировать; частичный результат не возвращается.
        """
        original = self._image_service.decode(file_bytes)
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            encoded_original = pool.submit(self._image_service.encode, original)
            return self._finish(pool, original, encoded_original, with_histograms)

    def split(
        self,
        file_bytes: bytes,
        analyzer: Optional[Analyzer] = None,
        analysis_timeout: Optional[float] = None,
        with_histograms: bool = False,
    ) -> SplitResult:
        """`process` плюс анализ цвета, запущенный параллельно с разложением каналов.

        Анализ стартует, как только закодирован оригинал, и ожидается отдельно.
        Его сбой (любое исключение анализатора или таймаут) не отменяет готовые
        каналы: результат возвращается с `analysis=None` и текстом ошибки.
        Без анализатора оба поля анализа остаются `None`.
        """
        original = self._image_service.decode(file_bytes)
        # отдельный пул, чтобы медленный анализ не занимал рабочие потоки каналов
        analysis_pool = ThreadPoolExecutor(max_workers=1) if analyzer is not None else None
        try:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                encoded_original = pool.submit(self._image_service.encode, original)
                analysis_future: Optional[Future] = None
                if analyzer is not None and analysis_pool is not None:
                    analysis_future = analysis_pool.submit(analyzer.analyze, encoded_original.result())
                channels = self._finish(pool, original, encoded_original, with_histograms)

            if analysis_future is None:
                return SplitResult(channels=channels)
            analysis, error = self._await_analysis(analysis_future, analysis_timeout)
            return SplitResult(channels=channels, analysis=analysis, analysis_error=error)
        finally:
            if analysis_pool is not None:
                analysis_pool.shutdown(wait=False)

    # ---------- Вспомогательные функции ----------
    def _finish(
        self,
        pool: ThreadPoolExecutor,
        original: PixelBuffer,
        encoded_original: "Future[EncodedImage]",
        with_histograms: bool,
    ) -> ProcessedChannels:
        started = time.perf_counter()
        derived_futures: Dict[ChannelKind, Future] = {
            kind: pool.submit(self._channel_service.derive, original, kind) for kind in DERIVED_KINDS
        }
        derived: Dict[ChannelKind, PixelBuffer] = {kind: f.result() for kind, f in derived_futures.items()}
        encoded_futures: Dict[ChannelKind, Future] = {
            kind: pool.submit(self._image_service.encode, buf) for kind, buf in derived.items()
        }
        histograms = self._channel_service.histograms(original) if with_histograms else None
        encoded: Dict[ChannelKind, EncodedImage] = {kind: f.result() for kind, f in encoded_futures.items()}

        bundle = ChannelBundle(
            original=original,
            red=derived[ChannelKind.RED],
            green=derived[ChannelKind.GREEN],
            blue=derived[ChannelKind.BLUE],
            grayscale=derived[ChannelKind.GRAYSCALE],
        )
        logger.debug(
            "Split %d×%d image into channels in %.3fs", original.width, original.height, time.perf_counter() - started
        )
        return ProcessedChannels(
            original=encoded_original.result(),
            red=encoded[ChannelKind.RED],
            green=encoded[ChannelKind.GREEN],
            blue=encoded[ChannelKind.BLUE],
            grayscale=encoded[ChannelKind.GRAYSCALE],
            buffers=bundle,
            histograms=histograms,
        )

    def _await_analysis(
        self, future: "Future[AnalysisResult]", timeout: Optional[float]
    ) -> Tuple[Optional[AnalysisResult], Optional[str]]:
        try:
            return future.result(timeout=timeout), None
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Color analysis timed out after %ss", timeout)
            return None, f"Анализ не успел завершиться за {timeout} с"
        except AnalysisError as exc:
            logger.warning("Color analysis failed: %s", exc)
            return None, str(exc)
        except Exception as exc:
            logger.error("Unexpected color analysis failure", exc_info=exc)
            return None, str(exc) or exc.__class__.__name__
