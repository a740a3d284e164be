import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from src.models import (
    Area, HallSize, HistorySnapshot, PlanSnapshot, Point, Seat, Table, Guest, Identifier
)
from src.layout.assignment import parse_int
from src.layout.generator import generate_seat_grid, generate_banquet_layout
from src.layout.history import HistoryManager
from src.layout.templates import get_template, ceremony_grid_params, banquet_layout_params

logger = logging.getLogger(__name__)

TABS = ("ceremony", "banquet")
DIMENSION_FIELDS = ("width", "height", "diameter", "seats")


def same_id(a: Any, b: Any) -> bool:
    # ID z formularzy przychodzą jako str, z generatora jako int
    return a is not None and b is not None and str(a) == str(b)


def _to_point(value: Any) -> Point:
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point(**value)
    x, y = value
    return Point(x=x, y=y)


class SeatingPlanStore:
    """
    Stan planu stołów jednego wesela: obszary, stoły i krzesła w dwóch
    niezależnych zakładkach (ceremonia / bankiet).

    `areas`, `tables`, `seats` zawsze zwracają dane aktywnej zakładki.
    Każda zmiana wymagająca undo trafia do `history` jako snapshot po wartości.
    """

    def __init__(
        self,
        history: Optional[HistoryManager] = None,
        clock: Callable[[], float] = time.time
    ):
        self.tab = "ceremony"
        self.draw_mode = "pan"
        self.hall_size = HallSize()
        self.selected_table: Optional[Table] = None
        self.history = history if history is not None else HistoryManager()

        self._areas: Dict[str, List[Area]] = {tab: [] for tab in TABS}
        self._tables: Dict[str, List[Table]] = {tab: [] for tab in TABS}
        self._seats: List[Seat] = []

        self._clock = clock
        self._last_id = 0

    # --- Widok aktywnej zakładki ---

    @property
    def areas(self) -> List[Area]:
        return self._areas[self.tab]

    @property
    def tables(self) -> List[Table]:
        return self._tables[self.tab]

    @property
    def seats(self) -> List[Seat]:
        return self._seats if self.tab == "ceremony" else []

    def set_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Nieznana zakładka: {tab}")
        self.tab = tab
        # Zaznaczenie z innej zakładki nie może edytować tej zakładki
        self._refresh_selection()

    def set_hall_size(self, width: int, height: int) -> HallSize:
        self.hall_size = HallSize(width=width, height=height)
        return self.hall_size

    def _new_id(self) -> int:
        # ID czasowe (ms), ale zawsze rosnące - dwa dodania w tej samej ms nie kolidują
        now_ms = int(self._clock() * 1000)
        self._last_id = max(now_ms, self._last_id + 1)
        return self._last_id

    def _find_table(self, table_id: Identifier) -> Optional[Table]:
        return next((t for t in self.tables if same_id(t.id, table_id)), None)

    def _replace_table(self, updated: Table) -> None:
        tables = self._tables[self.tab]
        for i, table in enumerate(tables):
            if same_id(table.id, updated.id):
                tables[i] = updated
        if self.selected_table is not None and same_id(self.selected_table.id, updated.id):
            self.selected_table = updated

    def _refresh_selection(self) -> None:
        if self.selected_table is not None:
            self.selected_table = self._find_table(self.selected_table.id)

    # --- Zaznaczenie i edycja stołu ---

    def select_table(self, table_id: Identifier) -> Optional[Table]:
        self.selected_table = self._find_table(table_id)
        return self.selected_table

    def change_table_dimension(self, field: str, value: Any) -> None:
        if self.selected_table is None:
            return
        if field not in DIMENSION_FIELDS:
            raise ValueError(f"Nieobsługiwany wymiar stołu: {field}")
        parsed = parse_int(value)
        if parsed is None:
            return
        self._replace_table(self.selected_table.model_copy(update={field: parsed}))

    def toggle_table_shape(self) -> None:
        if self.selected_table is None:
            return
        shape = "circle" if self.selected_table.shape == "rectangle" else "rectangle"
        self._replace_table(self.selected_table.model_copy(update={"shape": shape}))

    def move_table(self, table_id: Identifier, x: float, y: float) -> bool:
        table = self._find_table(table_id)
        if table is None:
            return False
        self._replace_table(table.model_copy(update={"x": x, "y": y}))
        return True

    def toggle_enabled(self, item_id: Identifier) -> Optional[bool]:
        """Przełącza stół, a na ceremonii także krzesło o danym ID. None = nie znaleziono."""
        table = self._find_table(item_id)
        if table is not None:
            self._replace_table(table.model_copy(update={"enabled": not table.enabled}))
            return not table.enabled

        for i, seat in enumerate(self.seats):
            if same_id(seat.id, item_id):
                self._seats[i] = seat.model_copy(update={"enabled": not seat.enabled})
                return not seat.enabled
        return None

    def assign_guest(self, target_id: Identifier, guest: Optional[Guest]) -> bool:
        """
        Przypisanie w stylu ceremonii (jeden gość na stół/krzesło).
        guest=None zwalnia miejsce. Wyłączone i zajęte miejsca odmawiają.
        """
        target = self._find_table(target_id)
        seat_index = None
        if target is None:
            seat_index = next((i for i, s in enumerate(self.seats) if same_id(s.id, target_id)), None)
            if seat_index is None:
                return False
            target = self._seats[seat_index]

        if guest is None:
            update = {"guest_id": None, "guest_name": None}
        elif not target.enabled or target.guest_id:
            return False
        else:
            update = {"guest_id": guest.id, "guest_name": guest.name}

        updated = target.model_copy(update=update)
        if seat_index is None:
            self._replace_table(updated)
        else:
            self._seats[seat_index] = updated
        return True

    # --- Obszary ---

    def add_area(self, points: Iterable[Any]) -> Area:
        area = Area(id=self._new_id(), points=[_to_point(p) for p in points], tab=self.tab)
        self._areas[self.tab].append(area)
        logger.debug("Dodano obszar %s (%d punktów) na zakładce %s", area.id, len(area.points), self.tab)
        # draw_mode zostaje bez zmian - można rysować dalej
        self._push("area-add", area=area)
        return area

    def remove_area(self, area_id: Identifier) -> bool:
        before = len(self.areas)
        self._areas[self.tab] = [a for a in self.areas if not same_id(a.id, area_id)]
        return len(self.areas) < before

    def move_area_vertex(self, area_id: Identifier, index: int, x: float, y: float) -> bool:
        for i, area in enumerate(self.areas):
            if not same_id(area.id, area_id):
                continue
            if not 0 <= index < len(area.points):
                return False
            points = list(area.points)
            points[index] = Point(x=x, y=y)
            self._areas[self.tab][i] = area.model_copy(update={"points": points})
            return True
        return False

    # --- Stoły ---

    def add_table(self, partial: Optional[Dict[str, Any]] = None) -> Table:
        fields: Dict[str, Any] = {
            "x": 100,
            "y": 100,
            "width": 80,
            "height": 60,
            "shape": "rectangle",
            "seats": 8,
            "enabled": True,
            "name": f"Mesa {len(self.tables) + 1}",
        }
        fields.update(partial or {})
        fields["id"] = self._new_id()
        table = Table.model_validate(fields)
        self._tables[self.tab].append(table)
        self._push("table-add", table=table)
        return table

    # --- Generowanie siatek ---

    def generate_seat_grid(
        self,
        rows: int = 10,
        cols: int = 12,
        gap: float = 40,
        start_x: float = 100,
        start_y: float = 80,
        aisle_after: int = 6
    ) -> List[Seat]:
        self._seats = generate_seat_grid(rows, cols, gap, start_x, start_y, aisle_after)
        logger.info("Wygenerowano siatkę ceremonii %dx%d (%d krzeseł)", rows, cols, len(self._seats))
        self._push(
            "ceremony",
            tab="ceremony",
            seats=self._seats,
            tables=self._tables["ceremony"],
            areas=self._areas["ceremony"],
        )
        return list(self._seats)

    def generate_banquet_layout(
        self,
        rows: int = 3,
        cols: int = 4,
        seats: int = 8,
        gap_x: float = 140,
        gap_y: float = 160,
        start_x: float = 120,
        start_y: float = 160
    ) -> List[Table]:
        self._tables["banquet"] = generate_banquet_layout(rows, cols, seats, gap_x, gap_y, start_x, start_y)
        logger.info("Wygenerowano układ bankietu %dx%d (%d stołów)", rows, cols, len(self._tables["banquet"]))
        self._refresh_selection()
        self._push(
            "banquet",
            tab="banquet",
            tables=self._tables["banquet"],
            areas=self._areas["banquet"],
        )
        return list(self._tables["banquet"])

    def apply_template(self, template_id: str) -> Dict[str, Any]:
        template = get_template(template_id)
        self.generate_seat_grid(**ceremony_grid_params(template))
        self.generate_banquet_layout(**banquet_layout_params(template))
        return template

    # --- Historia ---

    def plan_snapshot(self) -> PlanSnapshot:
        return PlanSnapshot(
            seats=list(self._seats),
            tables={tab: list(self._tables[tab]) for tab in TABS},
            areas={tab: list(self._areas[tab]) for tab in TABS},
        )

    def _push(self, snapshot_type: str, tab: Optional[str] = None, **payload: Any) -> None:
        """
        `tab` snapshotu to zakładka, której dotyczy zmiana, nie aktywny widok:
        siatka krzeseł wygenerowana z bankietu zapisuje się jako "ceremony",
        więc undo/redo przełącza widok na ceremonię.
        """
        snapshot = HistorySnapshot(
            type=snapshot_type,
            tab=tab or self.tab,
            plan=self.plan_snapshot(),
            **payload
        )
        self.history.push(snapshot)

    def apply_snapshot(self, snapshot: HistorySnapshot) -> None:
        plan = snapshot.plan
        self._seats = list(plan.seats)
        for tab in TABS:
            self._tables[tab] = list(plan.tables.get(tab, []))
            self._areas[tab] = list(plan.areas.get(tab, []))
        self.tab = snapshot.tab
        self._refresh_selection()

    def undo(self) -> Optional[HistorySnapshot]:
        snapshot = self.history.undo()
        if snapshot is not None:
            self.apply_snapshot(snapshot)
        return snapshot

    def redo(self) -> Optional[HistorySnapshot]:
        snapshot = self.history.redo()
        if snapshot is not None:
            self.apply_snapshot(snapshot)
        return snapshot

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # --- Dokumenty do zapisu ---

    def tab_document(self, tab: str) -> Dict[str, Any]:
        if tab not in TABS:
            raise ValueError(f"Nieznana zakładka: {tab}")
        return {
            "seats": [s.model_dump(by_alias=True) for s in self._seats] if tab == "ceremony" else [],
            "tables": [t.model_dump(by_alias=True) for t in self._tables[tab]],
            "areas": [a.model_dump(by_alias=True) for a in self._areas[tab]],
        }

    def load_tab_document(self, tab: str, document: Dict[str, Any]) -> None:
        if tab not in TABS:
            raise ValueError(f"Nieznana zakładka: {tab}")
        if tab == "ceremony":
            self._seats = [Seat.model_validate(s) for s in document.get("seats", [])]
        self._tables[tab] = [Table.model_validate(t) for t in document.get("tables", [])]
        self._areas[tab] = [Area.model_validate(a) for a in document.get("areas", [])]
        self._refresh_selection()

    def to_state(self) -> Dict[str, Any]:
        return {
            "tab": self.tab,
            "hall_size": self.hall_size.model_dump(),
            "draw_mode": self.draw_mode,
            "selected_table": self.selected_table.model_dump(by_alias=True) if self.selected_table else None,
            "areas": {tab: [a.model_dump(by_alias=True) for a in self._areas[tab]] for tab in TABS},
            "tables": {tab: [t.model_dump(by_alias=True) for t in self._tables[tab]] for tab in TABS},
            "seats": [s.model_dump(by_alias=True) for s in self._seats],
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "history_size": len(self.history),
        }
