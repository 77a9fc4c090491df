#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Точка входа

Консольный запуск: загружает данные пользователя (или демо-данные),
печатает сводку, совет по фокусу и предложения задач.
"""

import argparse
import asyncio
import json
import logging
import sys

from taskly import __version__
from taskly.config import config
from taskly.services import ServiceManager, StaticSessionProvider
from taskly.storage.demo import DEMO_USER_ID
from taskly.utils.logger import setup_logger

logger = logging.getLogger(__name__)

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="taskly", description="Taskly productivity companion")
    parser.add_argument("--user", default=DEMO_USER_ID, help="ID пользователя")
    parser.add_argument("--demo", action="store_true", help="Демо-данные без хранилища")
    parser.add_argument("--log-file", help="Дополнительно писать лог в файл")
    parser.add_argument("--version", action="version", version=f"taskly {__version__}")
    return parser.parse_args(argv)

async def main(argv=None) -> int:
    """Загрузить данные и вывести сводку"""
    args = parse_args(argv)
    config.setup_logging()
    if args.log_file:
        setup_logger(args.log_file)

    manager = ServiceManager(config, StaticSessionProvider(args.user))
    try:
        data_service = await manager.initialize(use_storage=not args.demo)

        print(json.dumps(data_service.get_summary(), indent=2, ensure_ascii=False))
        print(f"\n💡 {await data_service.get_focus_tip()}")

        print("\n📝 Suggested tasks:")
        for suggestion in await data_service.get_task_suggestions():
            print(f"  • {suggestion}")

        print(f"\n📈 {await data_service.get_productivity_insight()}")
    except Exception as e:
        logger.error(f"❌ Критическая ошибка: {e}")
        return 1
    finally:
        await manager.close()

    return 0

def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("👋 Остановлено пользователем")

if __name__ == "__main__":
    run()
