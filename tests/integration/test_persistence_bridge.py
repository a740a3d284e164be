"""
Testy zapisu/odczytu wymiarów sali i dokumentów planu oraz ładowania z debounce.
"""

import asyncio

from sqlalchemy.exc import OperationalError

from src.models import HallSize
from src.persistence import (
    load_hall_dimensions, save_hall_dimensions, load_layout, save_layout, HallSizeLoader
)


def broken_session_factory():
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestHallDimensions:

    def test_missing_event(self, session_factory):
        assert load_hall_dimensions("wedding-1", session_factory=session_factory) is None

    def test_save_then_load(self, session_factory):
        assert save_hall_dimensions("wedding-1", 2400, 1500, session_factory=session_factory)
        assert load_hall_dimensions("wedding-1", session_factory=session_factory) == HallSize(width=2400, height=1500)

    def test_last_writer_wins(self, session_factory):
        save_hall_dimensions("wedding-1", 2400, 1500, session_factory=session_factory)
        save_hall_dimensions("wedding-1", 900, 700, session_factory=session_factory)
        size = load_hall_dimensions("wedding-1", session_factory=session_factory)
        assert (size.width, size.height) == (900, 700)

    def test_database_errors_are_swallowed(self, caplog):
        assert load_hall_dimensions("wedding-1", session_factory=broken_session_factory) is None
        assert save_hall_dimensions("wedding-1", 1, 1, session_factory=broken_session_factory) is False
        assert "wedding-1" in caplog.text


class TestLayoutDocuments:

    def test_round_trip_per_tab(self, session_factory):
        ceremony = {"seats": [{"id": 1, "x": 100, "y": 80}], "tables": [], "areas": []}
        banquet = {"seats": [], "tables": [{"id": 1, "name": "Mesa 1"}], "areas": []}
        assert save_layout("wedding-1", "ceremony", ceremony, session_factory=session_factory)
        assert save_layout("wedding-1", "banquet", banquet, session_factory=session_factory)

        assert load_layout("wedding-1", "ceremony", session_factory=session_factory) == ceremony
        assert load_layout("wedding-1", "banquet", session_factory=session_factory) == banquet
        assert load_layout("wedding-2", "banquet", session_factory=session_factory) is None

    def test_overwrite(self, session_factory):
        save_layout("wedding-1", "banquet", {"tables": []}, session_factory=session_factory)
        save_layout("wedding-1", "banquet", {"tables": [{"id": 2}]}, session_factory=session_factory)
        assert load_layout("wedding-1", "banquet", session_factory=session_factory) == {"tables": [{"id": 2}]}

    def test_errors_are_swallowed(self):
        assert load_layout("wedding-1", "banquet", session_factory=broken_session_factory) is None
        assert save_layout("wedding-1", "banquet", {}, session_factory=broken_session_factory) is False


class TestHallSizeLoader:

    def test_debounce_collapses_calls(self):
        calls = []
        applied = []

        def loader(event_id):
            calls.append(event_id)
            return HallSize(width=2000, height=1000)

        async def scenario():
            hall_loader = HallSizeLoader(apply=applied.append, loader=loader, delay=0.05)
            hall_loader.schedule("wedding-1")
            hall_loader.schedule("wedding-1")
            task = hall_loader.schedule("wedding-2")
            return await task

        result = asyncio.run(scenario())
        assert calls == ["wedding-2"]
        assert applied == [HallSize(width=2000, height=1000)]
        assert result == HallSize(width=2000, height=1000)

    def test_cancel_discards_result(self):
        applied = []

        async def scenario():
            hall_loader = HallSizeLoader(apply=applied.append, loader=lambda eid: HallSize(), delay=0.05)
            hall_loader.schedule("wedding-1")
            hall_loader.cancel()
            await asyncio.sleep(0.1)
            return hall_loader.cancelled

        assert asyncio.run(scenario()) is True
        assert applied == []

    def test_missing_or_failing_loads_keep_defaults(self):
        applied = []

        def failing(event_id):
            raise RuntimeError("offline")

        async def scenario():
            empty = HallSizeLoader(apply=applied.append, loader=lambda eid: None, delay=0)
            broken = HallSizeLoader(apply=applied.append, loader=failing, delay=0)
            return await empty.schedule("wedding-1"), await broken.schedule("wedding-1")

        assert asyncio.run(scenario()) == (None, None)
        assert applied == []
