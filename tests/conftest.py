"""
Wspólne fixtures: baza SQLite w pamięci zamiast pliku.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import init_db


@pytest.fixture
def session_factory():
    # StaticPool - jedno połączenie, więc wszystkie sesje (i wątki) widzą tę samą bazę
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()
