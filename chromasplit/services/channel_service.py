from __future__ import annotations

import logging
from typing import Dict

import numpy as np

from chromasplit.models.image_model import (
    DERIVED_KINDS,
    Channel,
    ChannelKind,
    Histogram,
    PixelBuffer,
)

logger = logging.getLogger(__name__)


class ChannelService:
    """Поканальные преобразования RGBA-буфера и гистограммы интенсивностей.

    Все методы чистые: исходный буфер не меняется, каждый результат - новый буфер.
    Альфа-канал во всех производных копируется без изменений.
    """

    # ---------- Изоляция каналов ----------
    def isolate_red(self, buffer: PixelBuffer) -> PixelBuffer:
        """(R, G, B, A) -> (R, 0, 0, A)."""
        return self._keep_only(buffer, Channel.R)

    def isolate_green(self, buffer: PixelBuffer) -> PixelBuffer:
        """(R, G, B, A) -> (0, G, 0, A)."""
        return self._keep_only(buffer, Channel.G)

    def isolate_blue(self, buffer: PixelBuffer) -> PixelBuffer:
        """(R, G, B, A) -> (0, 0, B, A)."""
        return self._keep_only(buffer, Channel.B)

    def to_grayscale(self, buffer: PixelBuffer) -> PixelBuffer:
        """
        Оттенки серого как невзвешенное среднее: avg = floor((R + G + B) / 3).
        Весов 0.299/0.587/0.114 здесь нет намеренно, результат (avg, avg, avg, A).
        """
        src = buffer.array
        # сумма трёх uint8 не помещается в uint8
        total = src[..., :3].astype(np.uint16).sum(axis=2)
        avg = (total // 3).astype(np.uint8)
        out = np.empty_like(src)
        out[..., 0] = avg
        out[..., 1] = avg
        out[..., 2] = avg
        out[..., 3] = src[..., 3]
        return PixelBuffer(out)

    def derive(self, buffer: PixelBuffer, kind: ChannelKind) -> PixelBuffer:
        """Строит изображение заданного вида; для `ORIGINAL` - независимую копию."""
        if kind is ChannelKind.ORIGINAL:
            return PixelBuffer(buffer.array)
        if kind is ChannelKind.RED:
            return self.isolate_red(buffer)
        if kind is ChannelKind.GREEN:
            return self.isolate_green(buffer)
        if kind is ChannelKind.BLUE:
            return self.isolate_blue(buffer)
        if kind is ChannelKind.GRAYSCALE:
            return self.to_grayscale(buffer)
        raise ValueError(f"Неизвестный вид канала: {kind}")

    def extract(self, buffer: PixelBuffer) -> Dict[ChannelKind, PixelBuffer]:
        """Возвращает четыре производных буфера: red, green, blue, grayscale."""
        return {kind: self.derive(buffer, kind) for kind in DERIVED_KINDS}

    # ---------- Гистограммы ----------
    def histogram(self, buffer: PixelBuffer, channel: Channel) -> Histogram:
        """
        256 корзин сырых счётчиков интенсивности выбранного канала.
        Сумма счётчиков равна width * height.
        """
        plane = buffer.array[..., channel.offset]
        counts = np.bincount(plane.ravel(), minlength=256)
        return Histogram.from_counts(channel, counts.tolist())

    def histograms(self, buffer: PixelBuffer) -> Dict[Channel, Histogram]:
        return {channel: self.histogram(buffer, channel) for channel in Channel}

    # ---------- Вспомогательные функции ----------
    def _keep_only(self, buffer: PixelBuffer, channel: Channel) -> PixelBuffer:
        out = np.zeros_like(buffer.array)
        out[..., channel.offset] = buffer.array[..., channel.offset]
        out[..., 3] = buffer.array[..., 3]
        return PixelBuffer(out)
