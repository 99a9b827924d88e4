import urllib.parse

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from rewards_portal.config import get_settings


def engine_args(database_url: str) -> tuple[str, dict]:
    connect_args = {}
    if database_url.startswith("postgres"):
        # Ensure proper encoding by parsing and reconstructing the URL
        try:
            database_url = urllib.parse.urlunparse(urllib.parse.urlparse(database_url))
        except ValueError:
            database_url = database_url.encode("utf-8", errors="replace").decode("utf-8")
        connect_args = {"options": "-c timezone=utc"}
    elif database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return database_url, connect_args


DATABASE_URL, connect_args = engine_args(get_settings().database_url)

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
