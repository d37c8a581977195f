from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, func
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from domino.config import DATABASE_URL
import os

Base = declarative_base()


class SavedGame(Base):
    __tablename__ = "saved_games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(String, nullable=False)
    snapshot = Column(JSON, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class GameResult(Base):
    __tablename__ = "game_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(String, nullable=False)
    round_number = Column(Integer, nullable=False, default=1)
    winner_id = Column(String, nullable=True)  # NULL = tied block
    winner_name = Column(String, nullable=True)
    is_blocked = Column(Boolean, default=False)
    pip_totals = Column(JSON, nullable=True)  # player_id -> pips left in hand
    scores = Column(JSON, nullable=True)  # player_id -> points scored in the round
    created_at = Column(DateTime, server_default=func.now())


# Engine and session factory. One connection per operation, so it works from any event loop.
engine = create_async_engine(DATABASE_URL, echo=False, poolclass=NullPool)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Create all tables."""
    db_dir = os.path.dirname(DATABASE_URL.replace("sqlite+aiosqlite:///", ""))
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
