# catalog.py
"""Catalog records handed to the quote engine.

Records arrive already resolved (the engine never looks anything up by
itself); ``material_class`` is decided here, at the loading boundary.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import tuning_knobs as knobs


class MaterialClass(str, Enum):
    PLYWOOD_LAUAN = "plywood_lauan"
    PLYWOOD_STANDARD = "plywood_standard"


class OptionType(str, Enum):
    HANDLE = "handle"
    BUCKLE = "buckle"
    REINFORCEMENT = "reinforcement"
    EXPRESS = "express"
    SCREW = "screw"
    SKIDS = "Skids"


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    material_class: MaterialClass = MaterialClass.PLYWOOD_STANDARD
    description: str = ""
    base_price: float = 0  # display only, never priced
    is_active: bool = True
    sort_order: int = 0


@dataclass(frozen=True)
class MaterialThickness:
    id: str
    material_id: str
    thickness_mm: float
    price: float  # yen per mm of width + depth + height
    size: int = 0  # 0 = 3x6 sheet, 1 = 4x8 sheet
    is_available: bool = True


@dataclass(frozen=True)
class Option:
    id: str
    name: str
    option_type: OptionType
    price: float
    unit: str = ""
    description: str = ""
    is_active: bool = True
    sort_order: int = 0


def resolve_material_class(value: Optional[str]) -> MaterialClass:
    """Map a stored classification onto the enum; unknown values get the stricter rules."""
    try:
        return MaterialClass(value)
    except ValueError:
        return MaterialClass.PLYWOOD_STANDARD


def resolve_option_type(value: str) -> OptionType:
    return OptionType(value)


@dataclass
class Catalog:
    materials: List[Material] = field(default_factory=list)
    thicknesses: List[MaterialThickness] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)

    def material(self, material_id: str) -> Optional[Material]:
        return next((m for m in self.materials if m.id == material_id), None)

    def thickness(self, thickness_id: str) -> Optional[MaterialThickness]:
        return next((t for t in self.thicknesses if t.id == thickness_id), None)

    def option(self, option_id: str) -> Optional[Option]:
        return next((o for o in self.options if o.id == option_id), None)

    def thicknesses_for(self, material_id: str, *, available_only: bool = False) -> List[MaterialThickness]:
        rows = [t for t in self.thicknesses if t.material_id == material_id]
        if available_only:
            rows = [t for t in rows if t.is_available]
        return sorted(rows, key=lambda t: t.thickness_mm)


def thickness_id(material_id: str, thickness_mm) -> str:
    return f"{material_id}-t{thickness_mm}"


def default_catalog() -> Catalog:
    """Build the catalog from tuning_knobs, applying its availability toggles."""
    materials = [
        Material(
            id=m["id"],
            name=m["name"],
            material_class=resolve_material_class(m.get("material_class")),
            description=m.get("description", ""),
            base_price=m.get("base_price", 0),
            is_active=bool(knobs.MATERIAL_ENABLED.get(m["id"], False)),
            sort_order=m.get("sort_order", 0),
        )
        for m in knobs.MATERIALS
    ]

    thicknesses: List[MaterialThickness] = []
    for material_id, tmap in knobs.THICKNESSES.items():
        for mm, entry in sorted(tmap.items()):
            thicknesses.append(
                MaterialThickness(
                    id=thickness_id(material_id, mm),
                    material_id=material_id,
                    thickness_mm=mm,
                    price=entry["price"],
                    size=entry.get("size", 0),
                    is_available=knobs.is_thickness_enabled(material_id, mm),
                )
            )

    options = [
        Option(
            id=o["id"],
            name=o["name"],
            option_type=resolve_option_type(o["option_type"]),
            price=o["price"],
            unit=o.get("unit", ""),
            description=o.get("description", ""),
            is_active=knobs.is_option_enabled(o["id"]),
            sort_order=o.get("sort_order", 0),
        )
        for o in knobs.OPTIONS
    ]

    return Catalog(
        materials=sorted(materials, key=lambda m: m.sort_order),
        thicknesses=thicknesses,
        options=sorted(options, key=lambda o: o.sort_order),
    )

