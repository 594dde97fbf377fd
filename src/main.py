import asyncio
import logging
import logging.config
import os
import secrets
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import SimpleQueue
from typing import Any

from aiogram import Bot, Dispatcher
from aiogram.types import FSInputFile
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import data.mock_data
import data.setup
import handlers.booking
import handlers.general
import handlers.speakers
from data.repository import AssignmentRepository, SessionRepository, SpeakerRepository
from scheduling.availability import AvailabilityService
from scheduling.commit import AssignmentCommitService


def configure_async_logging():
    root_logger = logging.getLogger()
    root_handlers = root_logger.handlers.copy()
    root_logger.handlers.clear()
    queue: SimpleQueue[Any] = SimpleQueue()
    root_logger.addHandler(QueueHandler(queue))
    listener = QueueListener(queue, *root_handlers)
    listener.start()
    return listener


async def main():
    log_config_path = Path(os.getenv('LOG_CONFIG', 'logging.ini'))
    if log_config_path.exists():
        logging.config.fileConfig(log_config_path)
    else:
        logging.basicConfig(level=logging.DEBUG)
    token = os.getenv('TELEGRAM_TOKEN')
    logger = logging.getLogger(__name__)
    if token is None:
        logger.critical('Token environment variable not found')
        return
    listener = configure_async_logging()
    try:
        await setup_and_run_bot(token, logger)
    finally:
        listener.stop()


def create_dispatcher(session_maker: async_sessionmaker[Any]):
    speaker_repository = SpeakerRepository(session_maker)
    session_repository = SessionRepository(session_maker)
    assignment_repository = AssignmentRepository(session_maker)
    availability = AvailabilityService(assignment_repository)
    commit_service = AssignmentCommitService(speaker_repository, session_repository, assignment_repository,
                                             availability)

    dispatcher = Dispatcher(speaker_repository=speaker_repository, session_repository=session_repository,
                            assignment_repository=assignment_repository, availability=availability,
                            commit_service=commit_service)
    dispatcher.include_router(handlers.general.get_router())
    dispatcher.include_router(handlers.speakers.get_router())
    dispatcher.include_router(handlers.booking.get_router())
    return dispatcher


async def setup_and_run_bot(token: str, logger: logging.Logger):
    engine = create_async_engine(os.getenv('DATABASE_URL', 'sqlite+aiosqlite:///:memory:'))
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    await data.setup.create_tables(engine)
    if os.getenv('FILL_MOCK_DATA') == '1':
        await data.mock_data.fill_tables(session_maker)

    bot = Bot(token)
    dispatcher = create_dispatcher(session_maker)

    webhook_url = os.getenv('WEBHOOK_URL')
    try:
        if webhook_url:
            await run_webhook(bot, dispatcher, webhook_url)
        else:
            logger.info('Starting polling')
            await dispatcher.start_polling(bot)
    finally:
        await engine.dispose()


async def run_webhook(bot: Bot, dispatcher: Dispatcher, webhook_url: str):
    logger = logging.getLogger(__name__)
    logger.info('Setting up webhook on %s', webhook_url)
    webhook_host = os.getenv('WEBHOOK_HOST', '127.0.0.1')
    webhook_port = int(os.getenv('WEBHOOK_PORT', '8080'))
    webhook_path = os.getenv('WEBHOOK_PATH', '/webhook')
    webhook_secret = secrets.token_urlsafe(64)
    handler = SimpleRequestHandler(dispatcher, bot, secret_token=webhook_secret)
    app = web.Application()
    handler.register(app, path=webhook_path)
    setup_application(app, dispatcher)
    certificate_path = os.getenv('WEBHOOK_CERT')
    certificate_file = FSInputFile(certificate_path) if certificate_path else None
    await bot.set_webhook(webhook_url + webhook_path, certificate_file, secret_token=webhook_secret)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, webhook_host, webhook_port)
    await site.start()
    logger.info('Webhook server started')
    try:
        await asyncio.Future()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info('Stopping webhook server')
    finally:
        await site.stop()
        await runner.cleanup()
        await bot.delete_webhook()


if __name__ == '__main__':
    asyncio.run(main())
