from sqlalchemy import create_engine, Column, Integer, String, DateTime, Text, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime, timezone
from pathlib import Path


def utc_now():
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)

Base = declarative_base()


class NewsItem(Base):
    __tablename__ = 'news_items'

    id = Column(Integer, primary_key=True)
    source = Column(String, nullable=False, index=True)  # Site identifier (e.g., coindesk)
    url = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")

    published_at = Column(DateTime(timezone=True), nullable=False, index=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False)

    category = Column(String)
    author = Column(String)
    content_type = Column(String)  # Article, Video, Analysis, ...
    full_content = Column(Text)    # Rendered article, None when only the listing was read
    preview_content = Column(Text)
    edited_content = Column(Text)  # Dashboard edits, never overwritten by scraping

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint('source', 'url', name='uq_news_item_source_url'),
        Index('ix_news_item_source_published', 'source', 'published_at'),
    )


# Database setup - import settings for database URL
from api.config import settings

engine_options = {'echo': False, 'pool_pre_ping': True}
if settings.database_url.startswith('sqlite'):
    # Background scrape jobs write from a different thread
    engine_options['connect_args'] = {'check_same_thread': False}
else:
    engine_options.update(pool_size=5, max_overflow=10, pool_recycle=3600)

engine = create_engine(settings.database_url, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db():
    if settings.database_url.startswith('sqlite:///') and ':memory:' not in settings.database_url:
        # SQLite does not create missing parent directories
        Path(settings.database_url[len('sqlite:///'):]).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
