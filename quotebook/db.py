from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from quotebook.core.settings import settings

DATABASE_URL = settings.DATABASE_URL  # same as alembic.ini / env.py

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}  # needed for SQLite with FastAPI threads

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
