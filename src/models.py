from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import List, Dict, Optional, Any, Union, Literal

Identifier = Union[int, str]
TabName = Literal["ceremony", "banquet"]
TableShape = Literal["rectangle", "circle"]
SnapshotType = Literal["ceremony", "banquet", "area-add", "table-add"]

DEFAULT_HALL_WIDTH = 1800
DEFAULT_HALL_HEIGHT = 1200


class CamelModel(BaseModel):
    # Front end mówi camelCase (guestId, assignedGuests), Python snake_case
    model_config = ConfigDict(populate_by_name=True)


# --- Encje planu ---

class Point(CamelModel):
    x: float
    y: float


class Area(CamelModel):
    id: Identifier
    points: List[Point] = []
    tab: TabName = "ceremony"


class Seat(CamelModel):
    id: int
    x: float
    y: float
    enabled: bool = True
    guest_id: Optional[Identifier] = Field(None, alias="guestId")
    guest_name: Optional[str] = Field(None, alias="guestName")


class AssignedGuest(CamelModel):
    id: Optional[Identifier] = None
    name: Optional[str] = None
    companion: Any = 0


class Table(CamelModel):
    id: Identifier
    x: float = 100
    y: float = 100
    width: int = 80
    height: int = 60
    diameter: Optional[int] = None
    shape: TableShape = "rectangle"
    seats: int = 8  # Pojemność stołu
    enabled: bool = True
    guest_id: Optional[Identifier] = Field(None, alias="guestId")
    guest_name: Optional[str] = Field(None, alias="guestName")
    # Stare rekordy trzymają tu same ID gości (str/int)
    assigned_guests: List[Union[AssignedGuest, Identifier]] = Field(default_factory=list, alias="assignedGuests")
    name: str = ""


class Guest(CamelModel):
    """Rekord z listy gości (należy do innej części aplikacji, tu tylko czytany)."""
    id: Optional[Identifier] = None
    name: Optional[str] = ""
    table_id: Optional[Identifier] = Field(None, alias="tableId")
    table: Optional[Identifier] = None
    companion: Any = Field(0, validation_alias=AliasChoices("companion", "companions"))


class HallSize(CamelModel):
    width: int = DEFAULT_HALL_WIDTH
    height: int = DEFAULT_HALL_HEIGHT


class PlanSnapshot(CamelModel):
    """Pełny stan obu zakładek - z tego odtwarzamy plan przy undo/redo."""
    seats: List[Seat] = []
    tables: Dict[str, List[Table]] = {}
    areas: Dict[str, List[Area]] = {}


class HistorySnapshot(CamelModel):
    type: SnapshotType
    tab: TabName
    # Wycinek zakładki (generowanie siatki) albo pojedyncza dodana encja
    seats: Optional[List[Seat]] = None
    tables: Optional[List[Table]] = None
    areas: Optional[List[Area]] = None
    area: Optional[Area] = None
    table: Optional[Table] = None
    plan: PlanSnapshot = PlanSnapshot()


# --- Modele Wejściowe (Request) ---

class SeatGridRequest(BaseModel):
    rows: int = 10
    cols: int = 12
    gap: float = 40
    start_x: float = Field(100, alias="startX")
    start_y: float = Field(80, alias="startY")
    aisle_after: int = Field(6, alias="aisleAfter")

    model_config = ConfigDict(populate_by_name=True)


class BanquetLayoutRequest(BaseModel):
    rows: int = 3
    cols: int = 4
    seats: int = 8
    gap_x: float = Field(140, alias="gapX")
    gap_y: float = Field(160, alias="gapY")
    start_x: float = Field(120, alias="startX")
    start_y: float = Field(160, alias="startY")

    model_config = ConfigDict(populate_by_name=True)


class TabRequest(BaseModel):
    tab: TabName


class DimensionRequest(BaseModel):
    field: str
    value: Any


class MoveRequest(BaseModel):
    x: float
    y: float


class AreaRequest(BaseModel):
    points: List[Point]


class AssignRequest(BaseModel):
    guest: Optional[Guest] = None  # None = zwolnienie miejsca


class OccupancyRequest(BaseModel):
    guests: List[Guest] = []
    scale: float = 1.0


# --- Modele Wyjściowe (Response) ---

class TableOccupancy(BaseModel):
    table_id: Identifier
    name: str
    count: int
    capacity: int
    guests: List[Dict[str, Any]]
    labels: List[str]
    markers: List[List[float]]  # [[x, y], ...] względem lewego górnego rogu stołu


class PlanState(BaseModel):
    tab: TabName
    hall_size: HallSize
    draw_mode: str
    selected_table: Optional[Dict[str, Any]]
    areas: Dict[str, List[Dict[str, Any]]]
    tables: Dict[str, List[Dict[str, Any]]]
    seats: List[Dict[str, Any]]
    can_undo: bool
    can_redo: bool
    history_size: int
