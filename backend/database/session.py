# backend/database/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from config import settings
from database.models import Base


def _make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # SQLite + FastAPI threadpool
        connect_args["check_same_thread"] = False

    engine = create_engine(url, connect_args=connect_args)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = _make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=True, bind=engine)


def init_db():
    """Tạo bảng nếu chưa có"""
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
