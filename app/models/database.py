from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine
from sqlalchemy.pool import StaticPool
from datetime import datetime

from app.config import get_settings

Base = declarative_base()


class Vehicle(Base):
    """Registration binding of a vehicle number to an owning account."""
    __tablename__ = "vehicles"
    
    id = Column(Integer, primary_key=True, index=True)
    vehicle_number = Column(String(32), unique=True, index=True, nullable=False)
    owner_email = Column(String(255), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    
    def __repr__(self):
        return f"<Vehicle(number={self.vehicle_number}, owner={self.owner_email})>"


class Challan(Base):
    """Traffic violation record."""
    __tablename__ = "challans"
    
    pk = Column(Integer, primary_key=True, index=True)
    violation_id = Column(String(64), unique=True, index=True, nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time = Column(String(8), nullable=False)  # HH:MM[:SS]
    violation_type = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    # Stored as written; matched against vehicles after normalization
    license_plate = Column(String(32), nullable=False)
    amount = Column(Float, nullable=False)
    status = Column(String(10), nullable=False, default="Pending")
    due_date = Column(String(10), nullable=True)
    description = Column(String(1000), nullable=True)
    
    def __repr__(self):
        return f"<Challan(id={self.violation_id}, plate={self.license_plate}, status={self.status})>"


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; in-memory SQLite shares one connection."""
    if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, echo=echo)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


# Database engine and session
settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
AsyncSessionLocal = build_session_factory(engine)


async def init_db(bind: AsyncEngine = engine):
    """Initialize database tables."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
