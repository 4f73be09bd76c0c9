"""
Terminal client: extract an article and narrate it sentence by sentence.

  reader-listen https://example.com/post
  reader-listen https://example.com/post --summary-mode none --start-unit 12

Ctrl+C pauses narration and prints the unit to pass back as --start-unit.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from loguru import logger

from article_reader.application.speech_controller import SpeechController
from article_reader.config.log import configure_logging
from article_reader.config.settings import Settings, get_settings
from article_reader.domain.entities import PlaybackStatus, SummaryMode
from article_reader.domain.errors import ReaderError
from article_reader.infrastructure.mlx_narration_engine import MlxNarrationEngine
from article_reader.main import build_extraction_service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read a web article aloud")
    parser.add_argument("url", help="Article URL")
    parser.add_argument(
        "--summary-mode",
        choices=[mode.value for mode in SummaryMode],
        default=None,
        help="Override SUMMARY_MODE for this run",
    )
    parser.add_argument("--start-unit", type=int, default=0, help="Sentence index to start from")
    parser.add_argument("--output-dir", type=Path, default=None, help="Where rendered audio is written")
    return parser


async def listen(args: argparse.Namespace, settings: Settings) -> int:
    service = build_extraction_service(settings)
    mode = SummaryMode(args.summary_mode) if args.summary_mode else None

    article = await service.extract(service.build_request(args.url, mode))
    print(article.title)

    engine = MlxNarrationEngine(
        output_dir=args.output_dir or settings.narration_output_dir,
        model_id=settings.narration_model_id,
        speed=settings.narration_speed,
    )
    controller = SpeechController(
        engine,
        preferred_voice=settings.narration_voice,
        voice_timeout_seconds=settings.narration_voice_timeout_seconds,
    )

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, controller.stop)
    try:
        await controller.speak(article.content, args.start_unit)
    except asyncio.CancelledError:
        if controller.status is not PlaybackStatus.PAUSED:
            raise
        print(f"Paused at unit {controller.cursor} of {len(controller.units)}; resume with --start-unit {controller.cursor}")
        return 130
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        engine.close()

    print(f"Narrated {len(controller.units)} units into {len(engine.rendered)} files")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        code = asyncio.run(listen(args, settings))
    except ReaderError as exc:
        logger.debug("Listen failed: {!r}", exc)
        print(f"{exc.code}: {exc.message}" + (f" ({exc.details})" if exc.details else ""), file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
