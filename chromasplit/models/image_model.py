"""Модели данных: пиксельные буферы, наборы каналов, гистограммы, результаты.

Принципы:
- SRP: только структуры данных, без логики декодирования и обработки.
- Чистый код: неизменяемость (`frozen=True`, массивы только для чтения).
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

Rgba = Tuple[int, int, int, int]


class ChannelKind(Enum):
    """Вид изображения в наборе: оригинал или производный канал."""

    ORIGINAL = "original"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    GRAYSCALE = "grayscale"

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def file_name(self) -> str:
        """Имя файла для сохранения, например `chromasplit-red.png`."""
        return f"chromasplit-{self.title.lower()}.png"


_TITLES = {
    ChannelKind.ORIGINAL: "Original",
    ChannelKind.RED: "Red",
    ChannelKind.GREEN: "Green",
    ChannelKind.BLUE: "Blue",
    ChannelKind.GRAYSCALE: "Luminance",
}

DERIVED_KINDS: Tuple[ChannelKind, ...] = (
    ChannelKind.RED,
    ChannelKind.GREEN,
    ChannelKind.BLUE,
    ChannelKind.GRAYSCALE,
)


class Channel(Enum):
    """Селектор канала для гистограммы; значение - смещение в RGBA-отсчёте."""

    R = 0
    G = 1
    B = 2

    @property
    def offset(self) -> int:
        return self.value


class PixelBuffer:
    """Неизменяемый RGBA-растр, 8 бит на канал.

    Отсчёты хранятся массивом `uint8` формы (height, width, 4) в порядке R, G, B, A.
    Конструктор всегда копирует данные и запрещает запись, поэтому два буфера
    никогда не разделяют память.

    Raises:
        ValueError: если размеры не положительны или форма массива не совпадает.
    """

    __slots__ = ("_data",)

    def __init__(self, data: np.ndarray) -> None:
        arr = np.array(data, dtype=np.uint8, copy=True)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"Ожидался массив (height, width, 4), получено {arr.shape}")
        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise ValueError(f"Размеры должны быть положительными: {arr.shape[1]}×{arr.shape[0]}")
        arr.flags.writeable = False
        self._data = arr

    @classmethod
    def from_flat(cls, width: int, height: int, samples: Sequence[int] | bytes) -> "PixelBuffer":
        """Создаёт буфер из плоской последовательности RGBA длиной width*height*4."""
        flat = np.frombuffer(samples, dtype=np.uint8) if isinstance(samples, (bytes, bytearray)) else np.asarray(samples)
        if width <= 0 or height <= 0:
            raise ValueError(f"Размеры должны быть положительными: {width}×{height}")
        if flat.size != width * height * 4:
            raise ValueError(f"Ожидалось {width * height * 4} отсчётов, получено {flat.size}")
        if flat.size and (flat.min() < 0 or flat.max() > 255):
            raise ValueError("Отсчёты должны лежать в диапазоне 0..255")
        return cls(flat.astype(np.uint8).reshape(height, width, 4))

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def array(self) -> np.ndarray:
        """Массив только для чтения формы (height, width, 4)."""
        return self._data

    @property
    def samples(self) -> bytes:
        """Плоские чередующиеся отсчёты RGBA."""
        return self._data.tobytes()

    def pixel(self, x: int, y: int) -> Rgba:
        r, g, b, a = (int(v) for v in self._data[y, x])
        return r, g, b, a

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self._data), mode="RGBA")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self._data, other._data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}×{self.height})"


@dataclass(frozen=True)
class ChannelBundle:
    """Пять независимых буферов одного размера: оригинал и четыре производных."""

    original: PixelBuffer
    red: PixelBuffer
    green: PixelBuffer
    blue: PixelBuffer
    grayscale: PixelBuffer

    def __post_init__(self) -> None:
        for kind in DERIVED_KINDS:
            if self.get(kind).size != self.original.size:
                raise ValueError(f"Канал {kind.value} не совпадает по размеру с оригиналом")

    def get(self, kind: ChannelKind) -> PixelBuffer:
        return getattr(self, kind.value)


@dataclass(frozen=True)
class HistogramBin:
    value: int
    count: int


@dataclass(frozen=True)
class Histogram:
    """Ровно 256 корзин по возрастанию интенсивности, без нормировки."""

    channel: Channel
    bins: Tuple[HistogramBin, ...]

    def __post_init__(self) -> None:
        if len(self.bins) != 256:
            raise ValueError(f"Гистограмма должна содержать 256 корзин, получено {len(self.bins)}")
        for expected, b in enumerate(self.bins):
            if b.value != expected or b.count < 0:
                raise ValueError(f"Некорректная корзина гистограммы: {b}")

    @classmethod
    def from_counts(cls, channel: Channel, counts: Sequence[int]) -> "Histogram":
        return cls(channel, tuple(HistogramBin(value, int(count)) for value, count in enumerate(counts)))

    @property
    def counts(self) -> Tuple[int, ...]:
        return tuple(b.count for b in self.bins)

    @property
    def total(self) -> int:
        return sum(self.counts)

    def count(self, value: int) -> int:
        return self.bins[value].count

    def to_list(self) -> list:
        return [{"value": b.value, "count": b.count} for b in self.bins]


@dataclass(frozen=True)
class EncodedImage:
    """Сжатое представление изображения, пригодное для показа и сохранения."""

    data: bytes
    mime_type: str = "image/png"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"

    def save(self, path: str | Path) -> Path:
        target = Path(path)
        target.write_bytes(self.data)
        return target


@dataclass(frozen=True)
class ProcessedChannels:
    """Результат конвейера: пять закодированных изображений и исходные буферы.

    Fields:
        original, red, green, blue, grayscale: закодированные изображения.
        buffers: `ChannelBundle`, из которого они закодированы.
        histograms: гистограммы R/G/B оригинала, если запрашивались.
    """

    original: EncodedImage
    red: EncodedImage
    green: EncodedImage
    blue: EncodedImage
    grayscale: EncodedImage
    buffers: ChannelBundle
    histograms: Optional[Mapping[Channel, Histogram]] = None

    def get(self, kind: ChannelKind) -> EncodedImage:
        return getattr(self, kind.value)

    def as_dict(self) -> Dict[str, EncodedImage]:
        return {kind.value: self.get(kind) for kind in ChannelKind}


@dataclass(frozen=True)
class AnalysisResult:
    dominant_color: str
    balance: str
    suggestion: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "AnalysisResult":
        """Строит результат из ответа модели (`dominantColor`, `balance`, `suggestion`).

        Raises:
            ValueError: если какого-то поля нет или оно не строка.
        """
        values = []
        for key in ("dominantColor", "balance", "suggestion"):
            value = payload.get(key)
            if not isinstance(value, str):
                raise ValueError(f"Поле {key!r} отсутствует или не является строкой")
            values.append(value)
        return cls(*values)

    def to_payload(self) -> Dict[str, str]:
        return {"dominantColor": self.dominant_color, "balance": self.balance, "suggestion": self.suggestion}


@dataclass(frozen=True)
class SplitResult:
    """Каналы плюс результат анализа или причина его сбоя (оба `None`, если анализ не запрашивался)."""

    channels: ProcessedChannels
    analysis: Optional[AnalysisResult] = None
    analysis_error: Optional[str] = None

    @property
    def analysis_ok(self) -> bool:
        return self.analysis is not None


@dataclass(frozen=True)
class ImageData:
    """Неизменяемая модель выбранного файла и его метаданные.

    Fields:
        path: Путь к исходному файлу.
        content: Сырые байты файла, вход конвейера.
        width: Ширина, px.
        height: Высота, px.
        source_format: Формат по данным PIL, например "PNG".
        source_mode: Исходный режим PIL, например "RGB" или "P".
        size_bytes: Размер файла.
    """
    path: Path
    content: bytes = field(repr=False)
    width: int
    height: int
    source_format: Optional[str]
    source_mode: str
    size_bytes: int
