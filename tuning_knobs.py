# tuning_knobs.py
"""
TUNING KNOBS (EDIT THIS FILE)

Default catalog + availability toggles. The catalog seeded into an empty
database (and used when no database is configured) comes from here.
"""

# ============================================================
# 1) MATERIALS
# ============================================================
# material_class picks the sheet rule set in pricing_config.SHEET_LIMITS
MATERIALS = [
    {
        "id": "mat-lauan",
        "name": "ラワン合板",
        "description": "Lauan plywood, 4x8 stock",
        "base_price": 0,
        "material_class": "plywood_lauan",
        "sort_order": 1,
    },
    {
        "id": "mat-softwood",
        "name": "針葉樹構造用合板",
        "description": "Structural softwood plywood, 3x6 stock",
        "base_price": 0,
        "material_class": "plywood_standard",
        "sort_order": 2,
    },
    {
        "id": "mat-osb",
        "name": "OSB合板",
        "description": "Oriented strand board, 3x6 stock",
        "base_price": 0,
        "material_class": "plywood_standard",
        "sort_order": 3,
    },
]

# ============================================================
# 2) THICKNESSES (yen per mm of width + depth + height)
# ============================================================
# size: 0 = 3x6 sheet, 1 = 4x8 sheet
THICKNESSES = {
    "mat-lauan": {
        9: {"price": 10, "size": 1},
        12: {"price": 13, "size": 1},
        15: {"price": 17, "size": 1},
    },
    "mat-softwood": {
        12: {"price": 9, "size": 0},
        15: {"price": 11, "size": 0},
        24: {"price": 18, "size": 0},
    },
    "mat-osb": {
        9: {"price": 7, "size": 0},
        12: {"price": 8, "size": 0},
    },
}

# ============================================================
# 3) OPTIONS
# ============================================================
# reinforcement: price is yen per m2; express: price is display only
OPTIONS = [
    {"id": "opt-handle", "name": "Rope handle", "option_type": "handle", "price": 800, "unit": "pair", "sort_order": 1},
    {"id": "opt-buckle", "name": "Bend buckle", "option_type": "buckle", "price": 450, "unit": "piece", "sort_order": 2},
    {"id": "opt-reinforcement", "name": "Reinforcement board", "option_type": "reinforcement", "price": 2000, "unit": "m2", "sort_order": 3},
    {"id": "opt-screw", "name": "Screw-fixed lid", "option_type": "screw", "price": 1200, "unit": "set", "sort_order": 4},
    {"id": "opt-skids", "name": "Forklift skids", "option_type": "Skids", "price": 3500, "unit": "set", "sort_order": 5},
    {"id": "opt-express", "name": "Express production", "option_type": "express", "price": 5, "unit": "mm", "sort_order": 99},
]

# ============================================================
# 4) AVAILABILITY TOGGLES
# ============================================================
MATERIAL_ENABLED = {
    "mat-lauan": True,
    "mat-softwood": True,
    "mat-osb": True,
}

# If a material is omitted, every listed thickness is available.
THICKNESS_ENABLED_BY_MATERIAL = {
    "mat-osb": {9: True, 12: False},  # 12mm OSB out of stock
}

OPTION_ENABLED = {
    "opt-skids": True,
    "opt-express": True,
}

# ============================================================
# 5) SHEET LAYOUT RULE
# ============================================================
# False: a crate needing two long sides from one sheet only gets a warning.
# True: the warning blocks add-to-cart.
ENFORCE_SHEET_CONSTRAINTS = False


def is_thickness_enabled(material_id: str, thickness_mm: int) -> bool:
    if not MATERIAL_ENABLED.get(material_id, False):
        return False

    enabled_map = THICKNESS_ENABLED_BY_MATERIAL.get(material_id)
    if enabled_map is None:
        return True

    return bool(enabled_map.get(thickness_mm, False))


def is_option_enabled(option_id: str) -> bool:
    # options default to enabled when not listed
    return bool(OPTION_ENABLED.get(option_id, True))
