from __future__ import annotations

import datetime as dt

from sqlalchemy import Boolean, Column, DateTime, String, Text

from app.db import Base

TOKEN_ROW_ID = "default"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class FrameIOToken(Base):
    """Adobe IMS access / refresh tokens for Frame.io (single row, id 'default')."""

    __tablename__ = "frameio_tokens"

    id = Column(String, primary_key=True, default=TOKEN_ROW_ID)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    access_token_expires_at = Column(DateTime(timezone=True), nullable=False)
    refresh_token_expires_at = Column(DateTime(timezone=True), nullable=False)
    requires_reauth = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
