import os

# Keep the module-level engine off PostgreSQL while tests import the app.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./textile-test.db")

import pytest
import pytest_asyncio

from core.catalog import Color, ItemType, LineItem
from core.movements import MovementEngine
from db.database import build_engine, build_session_maker, create_db_and_tables


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'textile.db'}")
    await create_db_and_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def movements(db):
    return MovementEngine(db, allowed_units=[])


def bedding_lines(color: Color, sets: int) -> list[LineItem]:
    """Warehouse lines covering `sets` bedding sets of one color."""
    return [
        LineItem(ItemType.SHEETS, color, sets),
        LineItem(ItemType.DUVET_COVERS, color, sets),
        LineItem(ItemType.PILLOWCASES, color, sets * 2),
    ]


def towel_lines(sets: int) -> list[LineItem]:
    return [
        LineItem(ItemType.TOWELS_LARGE, Color.GREY, sets * 2),
        LineItem(ItemType.TOWELS_SMALL, Color.GREY, sets * 2),
    ]
