"""Панель гистограмм R/G/B оригинала, нарисованных поверх одной канвы."""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

import customtkinter as ctk
import tkinter as tk

from chromasplit.models.image_model import Channel, Histogram

LINE_COLORS: Dict[Channel, str] = {Channel.R: "#ef4444", Channel.G: "#22c55e", Channel.B: "#3b82f6"}


def histogram_polyline(hist: Histogram, width: int, height: int, peak: int) -> List[float]:
    """Координаты ломаной x0, y0, x1, y1, ... для `create_line`.

    Высота нормирована на общий пик всех каналов, чтобы каналы были сравнимы.
    """
    coords: List[float] = []
    step = width / 255.0
    for b in hist.bins:
        y = height - (b.count / peak) * height if peak > 0 else float(height)
        coords.extend((b.value * step, y))
    return coords


class HistogramView(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=140, **kwargs)
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._title = ctk.CTkLabel(self, text="Гистограмма", font=ctk.CTkFont(size=14, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(6, 0), sticky="w")

        self._canvas = tk.Canvas(self, height=110, highlightthickness=0, bg="#141414")
        self._canvas.grid(row=1, column=0, padx=8, pady=(2, 8), sticky="nsew")
        self._canvas.bind("<Configure>", lambda _e: self._render())

        self._histograms: Optional[Mapping[Channel, Histogram]] = None

    def set_histograms(self, histograms: Optional[Mapping[Channel, Histogram]]) -> None:
        self._histograms = histograms
        self._render()

    def _render(self) -> None:
        self._canvas.delete("all")
        if not self._histograms:
            return
        width = max(1, int(self._canvas.winfo_width()))
        height = max(1, int(self._canvas.winfo_height()))
        peak = max(max(h.counts) for h in self._histograms.values())
        for channel, hist in self._histograms.items():
            self._canvas.create_line(
                *histogram_polyline(hist, width, height, peak),
                fill=LINE_COLORS[channel],
                width=1,
            )
