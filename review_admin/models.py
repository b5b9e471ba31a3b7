from datetime import datetime
import uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, DateTime, Text

class Base(DeclarativeBase):
    pass

class AdminToken(Base):
    """Bearer token issued by the admin API, keyed by the dashboard session cookie."""
    __tablename__ = "admin_tokens"

    session_key: Mapped[str] = mapped_column(String(36), primary_key=True, index=True, unique=True)
    token: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def new_key() -> str:
        return str(uuid.uuid4())
