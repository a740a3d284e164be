import asyncio
import logging
import os
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.database import SessionLocal, Event, HallConfig, LayoutDocument
from src.models import HallSize

logger = logging.getLogger(__name__)

# Krótkie opóźnienie zbiera kilka szybkich wywołań w jedno ładowanie
HALL_LOAD_DEBOUNCE = float(os.getenv("SEATING_HALL_DEBOUNCE", "0.1"))


def _ensure_event(session, event_id: str) -> None:
    if session.get(Event, event_id) is None:
        session.add(Event(id=event_id))


def load_hall_dimensions(event_id: str, session_factory=SessionLocal) -> Optional[HallSize]:
    """Wymiary sali albo None (brak zapisu lub błąd bazy - wtedy UI zostaje przy domyślnych)."""
    try:
        with session_factory() as session:
            cfg = session.get(HallConfig, event_id)
            if cfg is None or not cfg.width or not cfg.height:
                return None
            return HallSize(width=cfg.width, height=cfg.height)
    except SQLAlchemyError as e:
        logger.warning("Nie udało się wczytać wymiarów sali (event=%s): %s", event_id, e)
        return None


def save_hall_dimensions(event_id: str, width: int, height: int, session_factory=SessionLocal) -> bool:
    try:
        with session_factory() as session:
            _ensure_event(session, event_id)
            # merge = ostatni zapis wygrywa
            session.merge(HallConfig(event_id=event_id, width=width, height=height))
            session.commit()
        return True
    except SQLAlchemyError as e:
        logger.error("Błąd zapisu wymiarów sali (event=%s): %s", event_id, e)
        return False


def load_layout(event_id: str, tab: str, session_factory=SessionLocal) -> Optional[Dict[str, Any]]:
    try:
        with session_factory() as session:
            doc = session.query(LayoutDocument).filter_by(event_id=event_id, tab=tab).one_or_none()
            return dict(doc.payload) if doc is not None else None
    except SQLAlchemyError as e:
        logger.warning("Nie udało się wczytać planu %s (event=%s): %s", tab, event_id, e)
        return None


def save_layout(event_id: str, tab: str, payload: Dict[str, Any], session_factory=SessionLocal) -> bool:
    try:
        with session_factory() as session:
            _ensure_event(session, event_id)
            doc = session.query(LayoutDocument).filter_by(event_id=event_id, tab=tab).one_or_none()
            if doc is None:
                session.add(LayoutDocument(event_id=event_id, tab=tab, payload=payload))
            else:
                doc.payload = payload
            session.commit()
        return True
    except SQLAlchemyError as e:
        logger.error("Błąd zapisu planu %s (event=%s): %s", tab, event_id, e)
        return False


class HallSizeLoader:
    """
    Ładowanie wymiarów sali w tle z debounce.

    Kolejne `schedule()` w oknie opóźnienia anulują poprzednie ładowanie.
    Po `cancel()` wynik jest odrzucany - stan planu nie zmienia się po zamknięciu widoku.
    """

    def __init__(
        self,
        apply: Callable[[HallSize], None],
        loader: Callable[[str], Optional[HallSize]] = load_hall_dimensions,
        delay: float = HALL_LOAD_DEBOUNCE
    ):
        self._apply = apply
        self._loader = loader
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self.cancelled = False

    def schedule(self, event_id: str) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.cancelled = False
        self._task = asyncio.get_running_loop().create_task(self._run(event_id))
        return self._task

    async def _run(self, event_id: str) -> Optional[HallSize]:
        await asyncio.sleep(self.delay)
        try:
            size = await asyncio.to_thread(self._loader, event_id)
        except Exception as e:
            logger.warning("Ładowanie wymiarów sali nie powiodło się (event=%s): %s", event_id, e)
            return None

        if self.cancelled or size is None:
            return None
        self._apply(size)
        return size

    def cancel(self) -> None:
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
