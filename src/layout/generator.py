from typing import List
from src.models import Seat, Table

# Domyślne parametry siatek (takie same jak w formularzach konfiguracji)
DEFAULT_SEAT_GAP = 40
DEFAULT_TABLE_WIDTH = 80
DEFAULT_TABLE_HEIGHT = 60


def generate_seat_grid(
    rows: int = 10,
    cols: int = 12,
    gap: float = DEFAULT_SEAT_GAP,
    start_x: float = 100,
    start_y: float = 80,
    aisle_after: int = 6
) -> List[Seat]:
    """
    Siatka krzeseł ceremonii (wiersz po wierszu).
    Po kolumnie `aisle_after` wstawiamy przejście o szerokości jednego `gap`.
    Brak walidacji: rows/cols <= 0 daje pustą listę.
    """
    seats: List[Seat] = []
    seat_id = 1

    for row in range(rows):
        for col in range(cols):
            x = start_x + col * gap + (gap if col > aisle_after else 0)
            y = start_y + row * gap
            seats.append(Seat(id=seat_id, x=x, y=y))
            seat_id += 1

    return seats


def generate_banquet_layout(
    rows: int = 3,
    cols: int = 4,
    seats: int = 8,
    gap_x: float = 140,
    gap_y: float = 160,
    start_x: float = 120,
    start_y: float = 160
) -> List[Table]:
    tables: List[Table] = []
    table_id = 1

    for row in range(rows):
        for col in range(cols):
            tables.append(Table(
                id=table_id,
                x=start_x + col * gap_x,
                y=start_y + row * gap_y,
                width=DEFAULT_TABLE_WIDTH,
                height=DEFAULT_TABLE_HEIGHT,
                shape="rectangle",
                seats=seats,
                name=f"Mesa {table_id}"
            ))
            table_id += 1

    return tables
