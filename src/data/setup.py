import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

from .tables import Base


async def create_tables(engine: AsyncEngine):
    if engine.dialect.name == 'sqlite':
        event.listen(engine.sync_engine, 'connect', _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logging.getLogger(__name__).info('Tables created: %s', ', '.join(Base.metadata.tables))


def _enable_foreign_keys(dbapi_connection: Any, _: Any):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()
