#!/usr/bin/env python3
# entrypoint_marketplace_api.py
"""
Точка входа для Marketplace API.
Порт: settings.api.API_PORT (8080 по умолчанию)
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from cargo_exchange.config import settings
from cargo_exchange.common.logger import log_info, setup_logging
from cargo_exchange.common.constants import TypeMsg


async def main() -> None:
    """Запуск Marketplace API."""
    setup_logging()
    await log_info(
        f"Запуск Marketplace API на {settings.api.API_HOST}:{settings.api.API_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "cargo_exchange.services.marketplace_api.app:app",
        host=settings.api.API_HOST,
        port=settings.api.API_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
