#!/usr/bin/env python3
"""Main entry point: a console runner that plays the role of the chat transport.

Each stdin line has the form ``user_id: message``; replies are printed to
stdout prefixed with the user id. Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import logging.config
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from karaoke_queue.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from karaoke_queue.config.container import Container

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"


def setup_logging(log_level: str = "INFO") -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr,
        )
        logging.warning(
            "Could not load %s, falling back to basic config", _LOGGING_CONFIG_PATH
        )

    logging.getLogger().setLevel(resolved_level)


def parse_line(line: str) -> tuple[str, str] | None:
    """Split ``"alice: /add https://youtu.be/x"`` into user id and message."""
    user_id, sep, text = line.partition(":")
    user_id, text = user_id.strip(), text.strip()
    if not sep or not user_id or not text:
        return None
    return user_id, text


async def run_console(
    container: Container,
    stream: TextIO = sys.stdin,
    emit: Callable[[str], None] = print,
) -> None:
    await container.initialize()
    logger = logging.getLogger(__name__)
    logger.info(LogTemplates.APP_CONTAINER_INITIALIZED)

    try:
        while True:
            line = await asyncio.to_thread(stream.readline)
            if not line:
                break
            parsed = parse_line(line)
            if parsed is None:
                continue
            user_id, text = parsed
            reply = await container.dispatcher.dispatch(user_id, text, display_name=user_id)
            if reply:
                emit(f"[{user_id}] {reply}")
    finally:
        await container.shutdown()


def main() -> int:
    from karaoke_queue.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)
    logger.info(LogTemplates.APP_STARTING.format(environment=settings.environment))

    from karaoke_queue.config.container import create_container

    container = create_container(settings)

    try:
        asyncio.run(run_console(container))
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.APP_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
