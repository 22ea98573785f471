"""Check the database configured in DATABASE_URL.

Connects, prints server time and version, creates the agendamentos table and its
indexes, and inserts two example records when the table is empty.

    python -m scripts.check_database
"""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.core.db import create_engine_from_settings, create_session_maker, init_db, server_version
from app.models.agendamento import Agendamento, utc_naive_now
from app.services.agendamento_service import build_new_agendamento, sample_agendamentos

logger = logging.getLogger(__name__)


async def seed_if_empty(engine: AsyncEngine) -> int:
    """Insert the sample records into an empty table. Returns how many were added."""
    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        try:
            total = (await session.execute(select(func.count()).select_from(Agendamento))).scalar_one()
            if total:
                return 0
            now = utc_naive_now()
            rows = [Agendamento(**build_new_agendamento(data, now)) for data in sample_agendamentos(now)]
            session.add_all(rows)
            await session.commit()
            return len(rows)
        except Exception:
            await session.rollback()
            raise


async def check_database(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        current_time = (await conn.execute(select(func.now()))).scalar_one()
    print("Connection OK")
    print("  Server time:", current_time)
    print("  Server version:", await server_version(engine))

    await init_db(engine)
    print("Table agendamentos and indexes created/verified")

    async with engine.connect() as conn:
        total = (await conn.execute(text("SELECT COUNT(*) FROM agendamentos"))).scalar_one()
    print(f"Existing agendamentos: {total}")

    added = await seed_if_empty(engine)
    if added:
        print(f"Inserted {added} example agendamento(s)")


async def main() -> int:
    try:
        engine = create_engine_from_settings(settings)
    except ValueError as e:
        print(f"Configuration error: {e}")
        return 1
    try:
        await check_database(engine)
    except OSError as e:
        logger.exception("Connection failed")
        print(f"Connection failed: {e}")
        print("Hint: check that the database server is running and the host/port in DATABASE_URL")
        return 1
    except Exception as e:
        logger.exception("Database check failed")
        print(f"Database check failed: {e}")
        if "password" in str(e).lower():
            print("Hint: check the credentials in DATABASE_URL")
        return 1
    finally:
        await engine.dispose()
    print("Check finished successfully")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(asyncio.run(main()))
