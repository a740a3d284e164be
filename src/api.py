import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Depends, BackgroundTasks, Request
from fastapi.responses import JSONResponse

from src.database import SessionLocal
from src.models import (
    SeatGridRequest, BanquetLayoutRequest, TabRequest, DimensionRequest, MoveRequest,
    AreaRequest, AssignRequest, OccupancyRequest, HallSize, PlanState, TableOccupancy
)
from src.layout.assignment import resolve_table
from src.layout.store import SeatingPlanStore, TABS
from src.layout.templates import list_templates
from src.persistence import (
    HallSizeLoader, HALL_LOAD_DEBOUNCE, save_hall_dimensions, load_hall_dimensions,
    save_layout, load_layout
)

logging.basicConfig(level=os.getenv("SEATING_LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app = FastAPI(title="Seating Plan API")


class PlanSession:
    def __init__(self, store: SeatingPlanStore, loader: HallSizeLoader):
        self.store = store
        self.loader = loader


class PlanRegistry:
    """Otwarte plany w pamięci, jeden na wesele (event)."""

    def __init__(self, session_factory=SessionLocal, debounce: float = HALL_LOAD_DEBOUNCE):
        self.session_factory = session_factory
        self.debounce = debounce
        self._sessions: Dict[str, PlanSession] = {}

    def open(self, event_id: str) -> PlanSession:
        if event_id not in self._sessions:
            store = SeatingPlanStore()
            loader = HallSizeLoader(
                apply=lambda size: store.set_hall_size(size.width, size.height),
                loader=lambda eid: load_hall_dimensions(eid, session_factory=self.session_factory),
                delay=self.debounce,
            )
            self._sessions[event_id] = PlanSession(store, loader)
        return self._sessions[event_id]

    def cancel_hall_load(self, event_id: str) -> None:
        session = self._sessions.get(event_id)
        if session is not None:
            session.loader.cancel()

    def get(self, event_id: str) -> SeatingPlanStore:
        if event_id not in self._sessions:
            raise HTTPException(status_code=404, detail=f"Plan nie jest otwarty: {event_id}")
        return self._sessions[event_id].store

    def close(self, event_id: str) -> bool:
        session = self._sessions.pop(event_id, None)
        if session is None:
            return False
        session.loader.cancel()
        return True


app.state.registry = PlanRegistry()


def get_registry() -> PlanRegistry:
    return app.state.registry


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Nieobsłużony błąd dla %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": f"Internal Server Error: {str(exc)}"})


def _state(store: SeatingPlanStore) -> Dict[str, Any]:
    return store.to_state()


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Seating Plan API is running"}


@app.get("/templates")
def templates_endpoint():
    return list_templates()


# --- Cykl życia planu ---

@app.post("/events/{event_id}/open", response_model=PlanState)
async def open_plan(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    session = registry.open(event_id)
    # Wymiary sali dochodzą asynchronicznie; do tego czasu obowiązuje 1800x1200
    session.loader.schedule(event_id)
    return _state(session.store)


@app.delete("/events/{event_id}")
def close_plan(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    if not registry.close(event_id):
        raise HTTPException(status_code=404, detail=f"Plan nie jest otwarty: {event_id}")
    return {"status": "closed"}


@app.get("/events/{event_id}/plan", response_model=PlanState)
def get_plan(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    return _state(registry.get(event_id))


@app.post("/events/{event_id}/tab", response_model=PlanState)
def set_tab(event_id: str, request: TabRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.set_tab(request.tab)
    return _state(store)


# --- Generowanie ---

@app.post("/events/{event_id}/ceremony/grid", response_model=PlanState)
def ceremony_grid(event_id: str, request: SeatGridRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.generate_seat_grid(**request.model_dump())
    return _state(store)


@app.post("/events/{event_id}/banquet/layout", response_model=PlanState)
def banquet_layout(event_id: str, request: BanquetLayoutRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.generate_banquet_layout(**request.model_dump())
    return _state(store)


@app.post("/events/{event_id}/templates/{template_id}", response_model=PlanState)
def apply_template(event_id: str, template_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.apply_template(template_id)
    return _state(store)


# --- Stoły ---

@app.post("/events/{event_id}/tables")
def add_table(event_id: str, partial: Optional[Dict[str, Any]] = None, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    table = store.add_table(partial or {})
    return table.model_dump(by_alias=True)


@app.post("/events/{event_id}/tables/{table_id}/select")
def select_table(event_id: str, table_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    table = store.select_table(table_id)
    return {"selected": table.model_dump(by_alias=True) if table else None}


@app.patch("/events/{event_id}/selection", response_model=PlanState)
def change_dimension(event_id: str, request: DimensionRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.change_table_dimension(request.field, request.value)
    return _state(store)


@app.post("/events/{event_id}/selection/shape", response_model=PlanState)
def toggle_shape(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.toggle_table_shape()
    return _state(store)


@app.post("/events/{event_id}/tables/{table_id}/move", response_model=PlanState)
def move_table(event_id: str, table_id: str, request: MoveRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    if not store.move_table(table_id, request.x, request.y):
        raise HTTPException(status_code=404, detail=f"Nie ma stołu {table_id}")
    return _state(store)


@app.post("/events/{event_id}/items/{item_id}/toggle")
def toggle_enabled(event_id: str, item_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    enabled = store.toggle_enabled(item_id)
    if enabled is None:
        raise HTTPException(status_code=404, detail=f"Nie ma elementu {item_id}")
    return {"id": item_id, "enabled": enabled}


@app.post("/events/{event_id}/items/{item_id}/assign")
def assign_guest(event_id: str, item_id: str, request: AssignRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    if not store.assign_guest(item_id, request.guest):
        raise HTTPException(status_code=409, detail=f"Miejsce {item_id} jest niedostępne")
    return _state(store)


# --- Obszary ---

@app.post("/events/{event_id}/areas")
def add_area(event_id: str, request: AreaRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    area = store.add_area(request.points)
    return area.model_dump()


@app.delete("/events/{event_id}/areas/{area_id}", response_model=PlanState)
def remove_area(event_id: str, area_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    if not store.remove_area(area_id):
        raise HTTPException(status_code=404, detail=f"Nie ma obszaru {area_id}")
    return _state(store)


@app.patch("/events/{event_id}/areas/{area_id}/points/{index}", response_model=PlanState)
def move_area_vertex(
    event_id: str, area_id: str, index: int, request: MoveRequest,
    registry: PlanRegistry = Depends(get_registry)
):
    store = registry.get(event_id)
    if not store.move_area_vertex(area_id, index, request.x, request.y):
        raise HTTPException(status_code=404, detail=f"Nie ma punktu {index} w obszarze {area_id}")
    return _state(store)


# --- Historia ---

@app.post("/events/{event_id}/undo", response_model=PlanState)
def undo(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.undo()
    return _state(store)


@app.post("/events/{event_id}/redo", response_model=PlanState)
def redo(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    store.redo()
    return _state(store)


# --- Goście ---

@app.post("/events/{event_id}/occupancy", response_model=List[TableOccupancy])
def occupancy(event_id: str, request: OccupancyRequest, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    return [resolve_table(table, request.guests, request.scale) for table in store.tables]


# --- Zapis ---

@app.get("/events/{event_id}/hall", response_model=HallSize)
def get_hall(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    return registry.get(event_id).hall_size


@app.put("/events/{event_id}/hall", response_model=HallSize)
async def put_hall(
    event_id: str, request: HallSize, background_tasks: BackgroundTasks,
    registry: PlanRegistry = Depends(get_registry)
):
    store = registry.get(event_id)
    # Spóźnione ładowanie z bazy nie może nadpisać wartości od użytkownika
    registry.cancel_hall_load(event_id)
    size = store.set_hall_size(request.width, request.height)
    # Zapis "fire-and-forget": błąd bazy tylko w logach
    background_tasks.add_task(
        save_hall_dimensions, event_id, size.width, size.height, session_factory=registry.session_factory
    )
    return size


@app.post("/events/{event_id}/layout/save")
def save_plan(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    saved = {tab: save_layout(event_id, tab, store.tab_document(tab), session_factory=registry.session_factory)
             for tab in TABS}
    return {"saved": saved}


@app.post("/events/{event_id}/layout/load", response_model=PlanState)
def load_plan(event_id: str, registry: PlanRegistry = Depends(get_registry)):
    store = registry.get(event_id)
    for tab in TABS:
        document = load_layout(event_id, tab, session_factory=registry.session_factory)
        if document is not None:
            store.load_tab_document(tab, document)
    return _state(store)
