"""Боковая панель: открытие файла, информация, выбор канала, анализ цвета.

Принципы:
- SRP: управляет только UI, не содержит алгоритмов обработки.
- ISP: события наружу через `on_*`, состояние внутрь через компактные `set_*`.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk

from chromasplit.models.image_model import AnalysisResult, ChannelKind, ImageData

CHANNEL_LABELS = {
    ChannelKind.ORIGINAL: "Оригинал",
    ChannelKind.RED: "Красный",
    ChannelKind.GREEN: "Зелёный",
    ChannelKind.BLUE: "Синий",
    ChannelKind.GRAYSCALE: "Яркость",
}
_KIND_BY_LABEL = {label: kind for kind, label in CHANNEL_LABELS.items()}


def _rgba_to_hex(rgba: Tuple[int, int, int, int]) -> str:
    """Преобразует RGBA в HEX (без альфа)."""
    r, g, b, _a = rgba
    return f"#{r:02X}{g:02X}{b:02X}"


def format_size(size_bytes: Optional[int]) -> str:
    if size_bytes is None:
        return "—"
    value = float(size_bytes)
    for label in ("Б", "КБ", "МБ", "ГБ"):
        if value < 1024 or label == "ГБ":
            return f"{size_bytes} Б" if label == "Б" else f"{value:.1f} {label}"
        value /= 1024
    return f"{value:.1f} ГБ"


class Sidebar(ctk.CTkFrame):
    """Панель с блоками: файл, информация, курсор, каналы, AI-анализ."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_channel_change: Optional[Callable[[ChannelKind], None]] = None
        self.on_save_channel: Optional[Callable[[ChannelKind], None]] = None
        self.on_retry_analysis: Optional[Callable[[], None]] = None

        bold = ctk.CTkFont(size=16, weight="bold")

        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="ew")

        self._status_val = ctk.StringVar(value="Поддерживаются PNG, JPG и WEBP")
        self._status = ctk.CTkLabel(self, textvariable=self._status_val, wraplength=270, anchor="w", justify="left")
        self._status.grid(row=1, column=0, padx=8, pady=(0, 8), sticky="ew")

        # Info section
        ctk.CTkLabel(self, text="Информация", font=bold).grid(row=2, column=0, padx=8, pady=(8, 4), sticky="w")
        self._path_val = ctk.StringVar(value="—")
        self._meta_val = ctk.StringVar(value="—")
        ctk.CTkLabel(self, textvariable=self._path_val, wraplength=270, anchor="w", justify="left").grid(
            row=3, column=0, padx=8, pady=(0, 2), sticky="ew"
        )
        ctk.CTkLabel(self, textvariable=self._meta_val, anchor="w", justify="left").grid(
            row=4, column=0, padx=8, pady=(0, 8), sticky="ew"
        )

        # Cursor section
        ctk.CTkLabel(self, text="Курсор", font=bold).grid(row=5, column=0, padx=8, pady=(8, 4), sticky="w")
        self._cursor_val = ctk.StringVar(value="—")
        ctk.CTkLabel(self, textvariable=self._cursor_val, anchor="w", justify="left").grid(
            row=6, column=0, padx=8, pady=(0, 8), sticky="ew"
        )

        # Channels
        ctk.CTkLabel(self, text="Канал", font=bold).grid(row=7, column=0, padx=8, pady=(8, 4), sticky="w")
        self._channel_buttons = ctk.CTkSegmentedButton(
            self, values=list(CHANNEL_LABELS.values()), command=self._emit_channel_change
        )
        self._channel_buttons.set(CHANNEL_LABELS[ChannelKind.ORIGINAL])
        self._channel_buttons.grid(row=8, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._save_btn = ctk.CTkButton(self, text="Сохранить канал…", command=self._emit_save_channel)
        self._save_btn.grid(row=9, column=0, padx=8, pady=(0, 8), sticky="ew")

        # AI analysis
        ctk.CTkLabel(self, text="AI-анализ цвета", font=bold).grid(row=10, column=0, padx=8, pady=(8, 4), sticky="w")
        self._analysis_box = ctk.CTkTextbox(self, height=220, wrap="word")
        self._analysis_box.grid(row=11, column=0, padx=8, pady=(0, 4), sticky="nsew")
        self._retry_btn = ctk.CTkButton(self, text="Повторить анализ", command=self._emit_retry)
        self.grid_rowconfigure(11, weight=1)

        self.set_image_loaded(False)
        self.set_analysis_text("Загрузите изображение, чтобы получить анализ.")

    # ---- Public API ----
    def set_image_info(self, image_data: ImageData) -> None:
        """Отображает метаданные загруженного изображения."""
        self._path_val.set(str(image_data.path))
        fmt = image_data.source_format or "?"
        self._meta_val.set(
            f"{image_data.width} × {image_data.height} px · {fmt} ({image_data.source_mode}) · "
            f"{format_size(image_data.size_bytes)}"
        )

    def clear_image_info(self) -> None:
        self._path_val.set("—")
        self._meta_val.set("—")

    def set_status(self, text: str) -> None:
        self._status_val.set(text)

    def set_busy(self, busy: bool) -> None:
        self._open_btn.configure(state="disabled" if busy else "normal")

    def set_image_loaded(self, loaded: bool) -> None:
        state = "normal" if loaded else "disabled"
        self._channel_buttons.configure(state=state)
        self._save_btn.configure(state=state)

    def set_channel(self, kind: ChannelKind) -> None:
        self._channel_buttons.set(CHANNEL_LABELS[kind])

    def update_cursor_info(self, x: Optional[int], y: Optional[int], rgba: Optional[Tuple[int, int, int, int]]) -> None:
        """Обновляет информацию по курсору (координаты, RGBA, HEX)."""
        if x is None or y is None or rgba is None:
            self._cursor_val.set("—")
            return
        r, g, b, a = rgba
        self._cursor_val.set(f"({x}, {y})\nRGBA: {r}, {g}, {b}, {a}\nHEX: {_rgba_to_hex(rgba)}")

    def set_analysis_pending(self) -> None:
        self._retry_btn.grid_remove()
        self.set_analysis_text("Анализируем цветовой состав…")

    def set_analysis_result(self, result: AnalysisResult) -> None:
        self._retry_btn.grid_remove()
        self.set_analysis_text(
            f"Доминирующее настроение\n{result.dominant_color}\n\n"
            f"Спектральный баланс\n{result.balance}\n\n"
            f"Творческое предложение\n«{result.suggestion}»"
        )

    def set_analysis_failed(self, reason: str) -> None:
        self.set_analysis_text(f"Анализ недоступен.\n{reason}")
        self._retry_btn.grid(row=12, column=0, padx=8, pady=(0, 8), sticky="ew")

    def set_analysis_text(self, text: str) -> None:
        self._analysis_box.configure(state="normal")
        self._analysis_box.delete("1.0", "end")
        self._analysis_box.insert("1.0", text)
        self._analysis_box.configure(state="disabled")

    # ---- Events ----
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _emit_channel_change(self, label: str) -> None:
        kind = _KIND_BY_LABEL.get(label)
        if kind is not None and self.on_channel_change:
            self.on_channel_change(kind)

    def _emit_save_channel(self) -> None:
        kind = _KIND_BY_LABEL.get(self._channel_buttons.get(), ChannelKind.ORIGINAL)
        if self.on_save_channel:
            self.on_save_channel(kind)

    def _emit_retry(self) -> None:
        if self.on_retry_analysis:
            self.on_retry_analysis()
