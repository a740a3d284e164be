import os
from sqlalchemy import create_engine, Column, Integer, String, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import sessionmaker, declarative_base

# w Dockerze zmienimy na: postgresql://user:pass@db:5432/seating_db
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./seating_plan.db")


def make_engine(url: str = SQLALCHEMY_DATABASE_URL):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class Event(Base):
    __tablename__ = "events"
    id = Column(String, primary_key=True, index=True)
    name = Column(String)


class HallConfig(Base):
    __tablename__ = "hall_configs"
    event_id = Column(String, ForeignKey("events.id"), primary_key=True)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)


class LayoutDocument(Base):
    __tablename__ = "layout_documents"
    __table_args__ = (UniqueConstraint("event_id", "tab"),)
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String, ForeignKey("events.id"), index=True)
    tab = Column(String, nullable=False)  # "ceremony" / "banquet"
    payload = Column(JSON, nullable=False, default=dict)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
