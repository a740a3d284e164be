import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.models import AssignedGuest, Guest, Table, TableOccupancy

# Odległość znaczników miejsc od krawędzi stołu (cm)
RECT_MARKER_OFFSET = 18
CIRCLE_MARKER_OFFSET = 30
LABEL_MAX_LEN = 8
LABEL_ZOOM_THRESHOLD = 1.5


def parse_int(value: Any) -> Optional[int]:
    """Parsowanie w stylu parseInt: "12cm" -> 12, "abc" -> None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        pass
    text = str(value).strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return None


def parse_companions(value: Any) -> int:
    """Liczba osób towarzyszących; wszystko co nie jest liczbą -> 0."""
    parsed = parse_int(value)
    return parsed if parsed is not None else 0


def guest_matches_table(guest: Guest, table: Table) -> bool:
    # 1. tableId ma pierwszeństwo
    if guest.table_id is not None:
        return str(guest.table_id) == str(table.id)
    # 2. Stare rekordy: pole `table` z numerem albo nazwą stołu
    if guest.table is not None and str(guest.table).strip() != "":
        ref = str(guest.table).strip()
        return ref == str(table.id) or bool(table.name) and ref == str(table.name)
    return False


def _entry_companions(entry: Any) -> int:
    if isinstance(entry, AssignedGuest):
        return parse_companions(entry.companion)
    return 0


def count_assigned(table: Table, guests: Sequence[Guest]) -> int:
    """
    Łączna liczba osób (gość + osoby towarzyszące) przy stole.
    Kolejność źródeł: lista gości -> assignedGuests -> pojedynczy guestId.
    Źródła się nie sumują, żeby nie liczyć tego samego gościa dwa razy.
    """
    count_from_guests = sum(
        1 + parse_companions(g.companion) for g in guests if guest_matches_table(g, table)
    )
    if count_from_guests > 0:
        return count_from_guests

    if table.assigned_guests:
        return sum(1 + _entry_companions(entry) for entry in table.assigned_guests)

    return 1 if table.guest_id else 0


def _guest_entry(guest: Guest) -> Dict[str, Any]:
    return {"id": guest.id, "name": guest.name, "companion": parse_companions(guest.companion)}


def _resolve_assigned(entry: Any, guests: Sequence[Guest]) -> Dict[str, Any]:
    if isinstance(entry, AssignedGuest):
        return {"id": entry.id, "name": entry.name, "companion": parse_companions(entry.companion)}
    found = next((g for g in guests if g.id is not None and str(g.id) == str(entry)), None)
    if found is not None:
        return _guest_entry(found)
    # Placeholder - miejsce się liczy, nawet bez nazwiska
    return {"id": entry, "name": None, "companion": 0}


def guests_for_table(table: Table, guests: Sequence[Guest]) -> List[Dict[str, Any]]:
    listed = [_guest_entry(g) for g in guests if guest_matches_table(g, table)]

    if not table.assigned_guests:
        return listed

    known_ids = {str(g["id"]) for g in listed if g["id"]}
    extra = []
    for entry in table.assigned_guests:
        resolved = _resolve_assigned(entry, guests)
        if not resolved["id"] or str(resolved["id"]) not in known_ids:
            extra.append(resolved)

    return listed + extra


def table_size(table: Table) -> Tuple[float, float]:
    if table.shape == "circle":
        diameter = table.diameter or 60
        return diameter, diameter
    return table.width or 80, table.height or 60


def seat_marker_positions(table: Table, count: int) -> List[Tuple[float, float]]:
    """Pozycje znaczników względem lewego górnego rogu prostokąta stołu."""
    if count <= 0:
        return []

    size_x, size_y = table_size(table)

    if table.shape == "rectangle":
        cols = math.ceil(count / 2)
        positions = []
        for i in range(count):
            is_top = i < cols
            idx = i if is_top else i - cols
            px = size_x / (cols + 1) * (idx + 1)
            py = -RECT_MARKER_OFFSET if is_top else size_y + RECT_MARKER_OFFSET
            positions.append((px, py))
        return positions

    center_x, center_y = size_x / 2, size_y / 2
    radius = max(size_x, size_y) / 2 + CIRCLE_MARKER_OFFSET
    positions = []
    for i in range(count):
        angle = 2 * math.pi * i / count
        positions.append((center_x + math.cos(angle) * radius, center_y + math.sin(angle) * radius))
    return positions


def seat_label(name: Optional[str], scale: float = 1.0) -> str:
    words = str(name or "").split()
    if scale >= LABEL_ZOOM_THRESHOLD:
        first = words[0] if words else "?"
        return first[:LABEL_MAX_LEN] + "…" if len(first) > LABEL_MAX_LEN else first
    initials = "".join(w[0] for w in words[:2]).upper()
    return initials or "?"


def resolve_table(table: Table, guests: Sequence[Guest], scale: float = 1.0) -> TableOccupancy:
    listed = guests_for_table(table, guests)
    markers = seat_marker_positions(table, len(listed))
    return TableOccupancy(
        table_id=table.id,
        name=table.name,
        count=count_assigned(table, guests),
        capacity=table.seats,
        guests=listed,
        labels=[seat_label(g.get("name"), scale) for g in listed],
        markers=[[x, y] for x, y in markers],
    )
