"""Декодирование входных файлов в RGBA-буфер и обратное кодирование в PNG.

Принципы:
- SRP: класс отвечает только за преобразование байты <-> `PixelBuffer`.
- OCP: новые источники (стрим, URL) можно добавить отдельными методами поверх `decode`.
- LSP/ISP: возвращает `PixelBuffer`/`EncodedImage` с предсказуемыми полями.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from chromasplit.models.errors import DecodeError
from chromasplit.models.image_model import EncodedImage, ImageData, PixelBuffer

logger = logging.getLogger(__name__)


class ImageService:
    def decode(self, file_bytes: bytes) -> PixelBuffer:
        """Растеризует сжатое изображение (PNG, JPEG, WEBP и др.) в RGBA.

        Учитывает EXIF-ориентацию, у анимаций берёт первый кадр. Если альфа-канала
        в источнике нет, он заполняется значением 255.

        Raises:
            DecodeError: пустые байты, нераспознанный или повреждённый файл, нулевые размеры.
        """
        if not file_bytes:
            raise DecodeError("Пустой файл: нечего декодировать")

        try:
            with Image.open(io.BytesIO(file_bytes)) as src:
                source_format = src.format
                source_mode = src.mode
                src.seek(0)
                src.load()
                oriented = ImageOps.exif_transpose(src)
                rgba = oriented.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise DecodeError("Данные не являются изображением") from exc
        except (OSError, SyntaxError, Image.DecompressionBombError) as exc:
            # усечённые и битые файлы PIL сообщает через OSError/SyntaxError
            raise DecodeError(f"Не удалось декодировать изображение: {exc}") from exc

        width, height = rgba.size
        if width == 0 or height == 0:
            raise DecodeError(f"Вырожденные размеры изображения: {width}×{height}")

        buffer = PixelBuffer(np.asarray(rgba, dtype=np.uint8))
        logger.debug("Decoded %s image (%s) to %d×%d RGBA", source_format, source_mode, width, height)
        return buffer

    def read_file(self, file_path: str | Path) -> ImageData:
        """Читает файл с диска и заголовок изображения, не растеризуя его.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c сырыми байтами (вход конвейера), размерами, форматом и режимом.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            DecodeError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        content = path.read_bytes()
        if not content:
            raise DecodeError(f"Пустой файл: {path}")
        try:
            with Image.open(io.BytesIO(content)) as src:
                width, height = src.size
                source_format, source_mode = src.format, src.mode
        except UnidentifiedImageError as exc:
            raise DecodeError(f"Файл не является изображением: {path}") from exc

        return ImageData(
            path=path,
            content=content,
            width=width,
            height=height,
            source_format=source_format,
            source_mode=source_mode,
            size_bytes=len(content),
        )

    def encode(self, buffer: PixelBuffer) -> EncodedImage:
        """Кодирует буфер в PNG без потерь: повторное декодирование даёт те же отсчёты."""
        out = io.BytesIO()
        buffer.to_pil().save(out, format="PNG")
        data = out.getvalue()
        logger.debug("Encoded %d×%d buffer to %d PNG bytes", buffer.width, buffer.height, len(data))
        return EncodedImage(data=data, mime_type="image/png")

