"""Консольный вход: разложение одного изображения на каналы без интерфейса.

Пример:
    chromasplit-split photo.jpg -o out/ --analyze --histogram
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from chromasplit.config import build_analyzer, build_pipeline, configure_logging, load_settings
from chromasplit.models.errors import DecodeError
from chromasplit.models.image_model import ChannelKind, SplitResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chromasplit-split",
        description="Раскладывает изображение на красный, зелёный, синий каналы и яркость.",
    )
    parser.add_argument("image", type=Path, help="Путь к изображению (PNG, JPEG, WEBP, ...)")
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Каталог для PNG-файлов каналов (по умолчанию текущий)",
    )
    parser.add_argument("--analyze", action="store_true", help="Запросить анализ цвета у генеративной модели")
    parser.add_argument("--histogram", action="store_true", help="Сохранить гистограммы R/G/B в histogram.json")
    return parser


def write_outputs(result: SplitResult, output_dir: Path, with_histograms: bool) -> List[Path]:
    """Сохраняет пять PNG (и гистограммы) в `output_dir`, возвращает пути."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = [result.channels.get(kind).save(output_dir / kind.file_name) for kind in ChannelKind]
    if with_histograms and result.channels.histograms is not None:
        payload = {channel.name.lower(): hist.to_list() for channel, hist in result.channels.histograms.items()}
        hist_path = output_dir / "histogram.json"
        hist_path.write_text(json.dumps(payload), encoding="utf-8")
        written.append(hist_path)
    return written


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    try:
        file_bytes = args.image.read_bytes()
    except OSError as exc:
        print(f"Не удалось прочитать файл {args.image}: {exc}", file=sys.stderr)
        return 2

    pipeline = build_pipeline(settings)
    analyzer = build_analyzer(settings) if args.analyze else None
    try:
        result = pipeline.split(
            file_bytes,
            analyzer=analyzer,
            analysis_timeout=settings.analysis_timeout if analyzer else None,
            with_histograms=args.histogram,
        )
    except DecodeError as exc:
        print(f"Не удалось обработать файл {args.image}: {exc}", file=sys.stderr)
        return 2

    for path in write_outputs(result, args.output_dir, args.histogram):
        print(path)

    if args.analyze:
        if result.analysis is not None:
            print(json.dumps(result.analysis.to_payload(), ensure_ascii=False, indent=2))
        else:
            print(f"Анализ недоступен: {result.analysis_error}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
