#!/usr/bin/env python3
"""
Скрипт запуска MoodBuddy API
"""

import argparse
import logging

import uvicorn

from moodbuddy.config import config
from moodbuddy.utils.logger import setup_logging
from moodbuddy.web.app import create_app

logger = logging.getLogger(__name__)

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MoodBuddy API server")
    parser.add_argument("--host", default=config.server.host, help="Адрес для прослушивания")
    parser.add_argument("--port", type=int, default=config.server.port, help="Порт сервера")
    parser.add_argument("--reload", action="store_true", help="Автоперезагрузка при изменениях")
    parser.add_argument("--debug", action="store_true", help="Режим отладки")
    return parser.parse_args(argv)

def main(argv=None) -> None:
    args = parse_args(argv)
    if args.debug:
        config.server.debug_mode = True

    setup_logging(config)
    logger.info(f"🌐 MoodBuddy API на http://{args.host}:{args.port} ({config.environment.value})")

    if args.reload:
        uvicorn.run(
            "moodbuddy.web.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            log_config=None
        )
    else:
        uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)

if __name__ == "__main__":
    main()
