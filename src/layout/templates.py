from typing import Dict, Any, List

# Gotowe rozmiary wesel: ceremonia (rzędy x kolumny krzeseł) + bankiet (rzędy x kolumny stołów)
TEMPLATES: Dict[str, Dict[str, Any]] = {
    "intimate": {
        "name": "Boda Íntima",
        "description": "50-80 invitados",
        "ceremony": {"rows": 8, "cols": 8},
        "banquet": {"rows": 2, "cols": 3, "seats": 8},
    },
    "medium": {
        "name": "Boda Mediana",
        "description": "80-150 invitados",
        "ceremony": {"rows": 12, "cols": 10},
        "banquet": {"rows": 3, "cols": 4, "seats": 10},
    },
    "large": {
        "name": "Boda Grande",
        "description": "150+ invitados",
        "ceremony": {"rows": 15, "cols": 12},
        "banquet": {"rows": 4, "cols": 5, "seats": 12},
    },
}

TEMPLATE_SEAT_GAP = 40
TEMPLATE_START_X = 100
TEMPLATE_START_Y = 80


def get_template(template_id: str) -> Dict[str, Any]:
    if template_id not in TEMPLATES:
        raise ValueError(f"Nieznany szablon: {template_id}")
    return TEMPLATES[template_id]


def list_templates() -> List[Dict[str, Any]]:
    return [{"id": tid, **tpl} for tid, tpl in TEMPLATES.items()]


def ceremony_grid_params(template: Dict[str, Any]) -> Dict[str, Any]:
    cols = template["ceremony"]["cols"]
    return {
        "rows": template["ceremony"]["rows"],
        "cols": cols,
        "gap": TEMPLATE_SEAT_GAP,
        "start_x": TEMPLATE_START_X,
        "start_y": TEMPLATE_START_Y,
        "aisle_after": cols // 2,  # przejście na środku
    }


def banquet_layout_params(template: Dict[str, Any]) -> Dict[str, Any]:
    banquet = template["banquet"]
    return {
        "rows": banquet["rows"],
        "cols": banquet["cols"],
        "seats": banquet["seats"],
        "gap_x": 140,
        "gap_y": 160,
        "start_x": 120,
        "start_y": 160,
    }
