"""Контроллер приложения: оркестрация UI, конвейера каналов и анализа цвета.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без пиксельной логики).
- DIP: зависит от конвейера и анализатора как от ролей; реализации передаются снаружи.
Clean Code:
- Тяжёлая работа идёт в пуле потоков; результаты забираются опросом из цикла Tk,
  поэтому виджеты трогаются только из главного потока.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import TclError, filedialog
from typing import Callable, Dict, Optional, Tuple

import customtkinter as ctk
from PIL import Image

from chromasplit.models.errors import AnalysisError, DecodeError
from chromasplit.models.image_model import ChannelKind, ProcessedChannels
from chromasplit.services.analysis_service import Analyzer
from chromasplit.services.image_service import ImageService
from chromasplit.services.pipeline_service import PipelineService
from chromasplit.ui.bottom_bar import BottomBar
from chromasplit.ui.histogram_view import HistogramView
from chromasplit.ui.image_viewer import ImageViewer
from chromasplit.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)

POLL_MS = 50
FILE_TYPES = (
    ("Images", "*.png *.jpg *.jpeg *.webp *.bmp *.gif *.tiff"),
    ("All files", "*.*"),
)


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Бинд событий (UI -> контроллер).
    - Запуск конвейера для выбранного файла и показ пяти изображений.
    - Отдельный, независимо падающий запрос анализа цвета.
    - Сохранение выбранного канала в PNG.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    histogram: HistogramView
    window: ctk.CTk
    pipeline: PipelineService
    analyzer: Optional[Analyzer] = None

    _image_service: ImageService = field(default_factory=ImageService)
    _executor: ThreadPoolExecutor = field(default_factory=lambda: ThreadPoolExecutor(max_workers=2))
    _channels: Optional[ProcessedChannels] = None
    _channel_kind: ChannelKind = ChannelKind.ORIGINAL
    _previews: Dict[ChannelKind, Image.Image] = field(default_factory=dict)
    # номер запроса: результаты устаревших запросов отбрасываются
    _generation: int = 0

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами."""
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_channel_change = self._handle_channel_change
        self.sidebar.on_save_channel = self._handle_save_channel
        self.sidebar.on_retry_analysis = self._start_analysis
        self.viewer.on_cursor_move = self._handle_cursor_move
        self.viewer.on_zoom_change = self.bottom.set_zoom_percent

        self.bottom.on_zoom_change = self.viewer.set_zoom_percent
        self.bottom.on_zoom_fit = self._handle_zoom_fit
        self.bottom.on_compare_mode_change = self._handle_compare_mode_change

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(title="Выберите изображение", filetypes=FILE_TYPES)
        except TclError:
            # Silent fail if dialog cannot open
            return
        if file_path:
            self.open_path(file_path)

    def open_path(self, file_path: str | Path) -> None:
        """Читает файл и запускает конвейер в фоне; старый результат и выбор канала сбрасываются."""
        self._generation += 1
        self._reset_result()
        self._channel_kind = ChannelKind.ORIGINAL
        self.sidebar.set_channel(ChannelKind.ORIGINAL)
        try:
            image_data = self._image_service.read_file(file_path)
        except (FileNotFoundError, DecodeError) as exc:
            self._show_process_error(exc)
            return

        self.sidebar.set_image_info(image_data)
        self.sidebar.set_busy(True)
        self.sidebar.set_status("Раскладываем изображение на каналы…")
        future = self._executor.submit(self.pipeline.process, image_data.content, True)
        self._watch(future, self._generation, self._on_channels_ready, self._show_process_error)

    def _handle_channel_change(self, kind: ChannelKind) -> None:
        self._channel_kind = kind
        if self._channels is not None:
            self.viewer.set_channel_image(self._preview(kind))

    def _handle_save_channel(self, kind: ChannelKind) -> None:
        if self._channels is None:
            return
        try:
            target = filedialog.asksaveasfilename(
                title="Сохранить канал",
                initialfile=kind.file_name,
                defaultextension=".png",
                filetypes=(("PNG", "*.png"),),
            )
        except TclError:
            return
        if not target:
            return
        try:
            self._channels.get(kind).save(target)
        except OSError as exc:
            self.sidebar.set_status(f"Не удалось сохранить файл: {exc}")
            return
        self.sidebar.set_status(f"Сохранено: {target}")

    def _handle_cursor_move(self, x: Optional[int], y: Optional[int], rgba: Optional[Tuple[int, int, int, int]]) -> None:
        self.sidebar.update_cursor_info(x, y, rgba)

    def _handle_zoom_fit(self) -> None:
        self.viewer.set_zoom_to_fit()
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())

    def _handle_compare_mode_change(self, mode: str) -> None:
        self.viewer.set_compare_mode(mode)
        self._handle_zoom_fit()

    # ---- Pipeline results ----
    def _on_channels_ready(self, channels: ProcessedChannels) -> None:
        self._channels = channels
        self.sidebar.set_busy(False)
        self.sidebar.set_image_loaded(True)
        self.sidebar.set_status("Готово: выберите канал для просмотра или сохранения.")
        self.viewer.set_images(self._preview(ChannelKind.ORIGINAL), self._preview(self._channel_kind))
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())
        self.histogram.set_histograms(channels.histograms)
        self._start_analysis()

    def _show_process_error(self, exc: BaseException) -> None:
        """Ошибка конвейера прерывает весь запрос: частичных результатов нет."""
        if isinstance(exc, (DecodeError, FileNotFoundError)):
            logger.warning("Could not process image: %s", exc)
        else:
            logger.error("Pipeline failed", exc_info=exc)
        self._reset_result()
        self.sidebar.clear_image_info()
        self.sidebar.set_busy(False)
        self.sidebar.set_status("Не удалось обработать файл. Попробуйте другое изображение.")
        self.sidebar.set_analysis_text("Анализ недоступен без изображения.")

    # ---- Analysis ----
    def _start_analysis(self) -> None:
        if self._channels is None:
            return
        if self.analyzer is None:
            self.sidebar.set_analysis_failed("Анализатор не настроен.")
            return
        self.sidebar.set_analysis_pending()
        future = self._executor.submit(self.analyzer.analyze, self._channels.original)
        self._watch(future, self._generation, self.sidebar.set_analysis_result, self._on_analysis_failed)

    def _on_analysis_failed(self, exc: BaseException) -> None:
        # каналы уже показаны и остаются на экране
        if not isinstance(exc, AnalysisError):
            logger.error("Unexpected analysis failure", exc_info=exc)
        self.sidebar.set_analysis_failed(str(exc) or exc.__class__.__name__)

    # ---- Helpers ----
    def _watch(
        self,
        future: Future,
        generation: int,
        on_success: Callable,
        on_error: Callable[[BaseException], None],
    ) -> None:
        """Опрашивает future из цикла Tk и вызывает колбэк в главном потоке."""
        if not future.done():
            self.window.after(POLL_MS, self._watch, future, generation, on_success, on_error)
            return
        if generation != self._generation:
            return
        exc = future.exception()
        if exc is not None:
            on_error(exc)
        else:
            on_success(future.result())

    def _preview(self, kind: ChannelKind) -> Image.Image:
        if kind not in self._previews and self._channels is not None:
            self._previews[kind] = self._channels.buffers.get(kind).to_pil()
        return self._previews[kind]

    def _reset_result(self) -> None:
        self._channels = None
        self._previews = {}
        self.viewer.clear()
        self.histogram.set_histograms(None)
        self.sidebar.set_image_loaded(False)
        self.sidebar.update_cursor_info(None, None, None)
