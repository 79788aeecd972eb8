from __future__ import annotations

import os

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Load env before anything else
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# SQLAlchemy engine & session
if DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL:
    # every new connection would otherwise get its own empty database
    engine = create_async_engine(DATABASE_URL, echo=False, future=True, poolclass=StaticPool)
else:
    engine = create_async_engine(DATABASE_URL, echo=False, future=True)
AsyncSessionLocal = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

# Declarative base for models
Base = declarative_base()
