"""Виджет просмотра канала: масштабирование, панорамирование, сравнение с оригиналом.

Принципы:
- SRP: отвечает только за представление и интеракции с изображением.
- Чистый код: публичный API сверху, обработчики событий - ниже.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

MIN_SCALE = 0.1
MAX_SCALE = 4.0
PAIR_GAP = 16

COMPARE_MODES = {"Только канал": "single", "Рядом с оригиналом": "pair"}


class ImageViewer(ctk.CTkFrame):
    """Канва, показывающая выбранный канал отдельно или рядом с оригиналом."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._original: Optional[Image.Image] = None
        self._channel: Optional[Image.Image] = None
        # PhotoImage нужно держать живыми, иначе tk очистит картинку
        self._tk_images: List[ImageTk.PhotoImage] = []

        self._scale: float = 1.0
        self._offset: Optional[Tuple[int, int]] = None
        self._mode: str = "single"

        self._drag_origin: Optional[Tuple[int, int]] = None
        self._drag_offset: Optional[Tuple[int, int]] = None

        self.on_cursor_move: Optional[Callable[[Optional[int], Optional[int], Optional[Tuple[int, int, int, int]]], None]] = None
        self.on_zoom_change: Optional[Callable[[int], None]] = None

        self._canvas.bind("<Configure>", lambda _e: self._render())
        self._canvas.bind("<Motion>", self._on_mouse_move)
        self._canvas.bind("<Leave>", self._on_mouse_leave)
        self._canvas.bind("<MouseWheel>", self._on_mouse_wheel)      # Windows/macOS
        self._canvas.bind("<Button-4>", self._on_mouse_wheel)        # Linux scroll up
        self._canvas.bind("<Button-5>", self._on_mouse_wheel)        # Linux scroll down
        self._canvas.bind("<ButtonPress-1>", self._on_drag_start)
        self._canvas.bind("<B1-Motion>", self._on_drag_move)
        self._canvas.bind("<ButtonRelease-1>", self._on_drag_end)

    # ---- Public API ----
    def set_images(self, original: Image.Image, channel: Image.Image) -> None:
        """Устанавливает новую пару «оригинал/канал» и подгоняет масштаб под окно."""
        self._original = original
        self._channel = channel
        self.set_zoom_to_fit()

    def set_channel_image(self, channel: Image.Image) -> None:
        """Меняет показываемый канал, сохраняя масштаб и положение."""
        self._channel = channel
        self._render()

    def clear(self) -> None:
        self._original = None
        self._channel = None
        self._offset = None
        self._render()

    def set_zoom_to_fit(self) -> None:
        self._scale = self._fit_scale()
        self._offset = None
        self._render()

    def set_zoom_percent(self, zoom_percent: int) -> None:
        """Устанавливает масштаб в процентах (10–400%)."""
        self._scale = self._clamp_scale(zoom_percent / 100.0)
        self._render()

    def get_zoom_percent(self) -> int:
        return int(round(self._scale * 100))

    def set_compare_mode(self, mode: str) -> None:
        """'Только канал' | 'Рядом с оригиналом'."""
        self._mode = COMPARE_MODES.get(mode, "single")
        self._offset = None
        self._render()

    # ---- Internals ----
    def _render(self) -> None:
        self._canvas.delete("all")
        self._tk_images = []
        if self._channel is None:
            return

        img_w, img_h = self._channel.size
        scaled = (max(1, int(img_w * self._scale)), max(1, int(img_h * self._scale)))
        panels = [self._channel]
        if self._mode == "pair" and self._original is not None:
            panels = [self._original, self._channel]

        content_w = scaled[0] * len(panels) + PAIR_GAP * (len(panels) - 1)
        ox, oy = self._clamp_offset(content_w, scaled[1])
        for index, img in enumerate(panels):
            # NEAREST: на больших масштабах видно отдельные пиксели канала
            resample = Image.Resampling.NEAREST if self._scale >= 1.0 else Image.Resampling.LANCZOS
            tk_img = ImageTk.PhotoImage(img.resize(scaled, resample))
            self._tk_images.append(tk_img)
            self._canvas.create_image(ox + index * (scaled[0] + PAIR_GAP), oy, image=tk_img, anchor="nw")

    def _clamp_offset(self, content_w: int, content_h: int) -> Tuple[int, int]:
        canvas_w = int(self._canvas.winfo_width())
        canvas_h = int(self._canvas.winfo_height())

        def clamp(value: Optional[int], content: int, canvas: int) -> int:
            if content <= canvas:
                return (canvas - content) // 2
            if value is None:
                return 0
            return max(canvas - content, min(0, value))

        prev_x, prev_y = self._offset if self._offset is not None else (None, None)
        self._offset = (clamp(prev_x, content_w, canvas_w), clamp(prev_y, content_h, canvas_h))
        return self._offset

    def _fit_scale(self) -> float:
        if self._channel is None:
            return 1.0
        img_w, img_h = self._channel.size
        panels = 2 if self._mode == "pair" else 1
        canvas_w = max(1, int(self._canvas.winfo_width()) - PAIR_GAP * (panels - 1))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        return self._clamp_scale(min(canvas_w / (img_w * panels), canvas_h / img_h))

    @staticmethod
    def _clamp_scale(scale: float) -> float:
        return max(MIN_SCALE, min(MAX_SCALE, scale))

    def _image_coords(self, cx: int, cy: int) -> Tuple[Optional[int], Optional[int], Optional[Image.Image]]:
        """Переводит координаты канвы в пиксель изображения и панель под курсором."""
        if self._channel is None or self._offset is None:
            return None, None, None
        img_w, img_h = self._channel.size
        panel_w = max(1, int(img_w * self._scale))
        dx = cx - self._offset[0]
        dy = cy - self._offset[1]
        panel: Optional[Image.Image] = self._channel
        if self._mode == "pair" and self._original is not None:
            if dx >= panel_w + PAIR_GAP:
                dx -= panel_w + PAIR_GAP
            elif dx < panel_w:
                panel = self._original
            else:
                return None, None, None  # зазор между панелями
        x = int(dx / self._scale)
        y = int(dy / self._scale)
        if 0 <= dx and 0 <= dy and 0 <= x < img_w and 0 <= y < img_h:
            return x, y, panel
        return None, None, None

    def _get_canvas_bg(self) -> str:
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    # ---- Events ----
    def _on_mouse_move(self, event: tk.Event) -> None:
        if self.on_cursor_move is None:
            return
        x, y, panel = self._image_coords(event.x, event.y)
        if panel is None or x is None or y is None:
            self.on_cursor_move(None, None, None)
            return
        rgba = panel.convert("RGBA").getpixel((x, y)) if panel.mode != "RGBA" else panel.getpixel((x, y))
        self.on_cursor_move(x, y, rgba)

    def _on_mouse_leave(self, _event: tk.Event) -> None:
        if self.on_cursor_move:
            self.on_cursor_move(None, None, None)

    def _on_mouse_wheel(self, event: tk.Event) -> None:
        if self._channel is None or self._offset is None:
            return
        # X11 шлёт Button-4/5, Windows/macOS - delta
        zoom_in = getattr(event, "num", None) == 4 or getattr(event, "delta", 0) > 0
        new_scale = self._clamp_scale(self._scale * (1.1 if zoom_in else 1.0 / 1.1))
        if abs(new_scale - self._scale) < 1e-6:
            return
        # точка под курсором остаётся на месте
        ix = (event.x - self._offset[0]) / self._scale
        iy = (event.y - self._offset[1]) / self._scale
        self._scale = new_scale
        self._offset = (int(round(event.x - ix * new_scale)), int(round(event.y - iy * new_scale)))
        self._render()
        if self.on_zoom_change:
            self.on_zoom_change(self.get_zoom_percent())

    def _on_drag_start(self, event: tk.Event) -> None:
        if self._offset is None:
            return
        self._canvas.focus_set()
        self._drag_origin = (event.x, event.y)
        self._drag_offset = self._offset

    def _on_drag_move(self, event: tk.Event) -> None:
        if self._drag_origin is None or self._drag_offset is None:
            return
        self._offset = (
            self._drag_offset[0] + event.x - self._drag_origin[0],
            self._drag_offset[1] + event.y - self._drag_origin[1],
        )
        self._render()

    def _on_drag_end(self, _event: tk.Event) -> None:
        self._drag_origin = None
        self._drag_offset = None
