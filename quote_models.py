# quote_models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from catalog import Material, MaterialThickness, Option, OptionType

if TYPE_CHECKING:
    from pricing_engine import PriceBreakdown

AXES = ("width", "depth", "height")
EDGES = ("edge1", "edge2", "edge3", "edge4")
BEND_BUCKLE_GROUPS = ("top", "sides", "bottom")


@dataclass(frozen=True)
class SelectedOption:
    option: Option
    quantity: int = 1

    # reinforcement boards only
    reinforcement_length: Optional[float] = None
    reinforcement_width: Optional[float] = None

    # fitting-bearing options: offset of the first fitting + count per axis
    fitting_distance_width: Optional[float] = None
    fitting_distance_depth: Optional[float] = None
    fitting_distance_height: Optional[float] = None
    fitting_count_width: Optional[int] = None
    fitting_count_depth: Optional[int] = None
    fitting_count_height: Optional[int] = None
    fitting_positions_width: Tuple[float, ...] = ()
    fitting_positions_depth: Tuple[float, ...] = ()
    fitting_positions_height: Tuple[float, ...] = ()

    @property
    def is_reinforcement(self) -> bool:
        return self.option.option_type == OptionType.REINFORCEMENT

    @property
    def is_express(self) -> bool:
        return self.option.option_type == OptionType.EXPRESS

    @property
    def has_reinforcement_size(self) -> bool:
        return bool(
            self.reinforcement_length
            and self.reinforcement_width
            and self.reinforcement_length > 0
            and self.reinforcement_width > 0
        )

    def fitting(self, axis: str) -> Tuple[Optional[float], Optional[int], Tuple[float, ...]]:
        return (
            getattr(self, f"fitting_distance_{axis}"),
            getattr(self, f"fitting_count_{axis}"),
            getattr(self, f"fitting_positions_{axis}"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "option_id": self.option.id,
            "option_type": self.option.option_type.value,
            "name": self.option.name,
            "unit_price": self.option.price,
            "quantity": self.quantity,
        }
        if self.is_reinforcement:
            d["reinforcement_length"] = self.reinforcement_length
            d["reinforcement_width"] = self.reinforcement_width
        for axis in AXES:
            distance, count, positions = self.fitting(axis)
            if distance is not None or count is not None:
                d[f"fitting_distance_{axis}"] = distance
                d[f"fitting_count_{axis}"] = count
                d[f"fitting_positions_{axis}"] = list(positions)
        return d


@dataclass(frozen=True)
class BendBuckleEdge:
    first_distance: float = 0
    count: int = 0
    positions: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_distance": self.first_distance,
            "count": self.count,
            "positions": list(self.positions),
        }


@dataclass(frozen=True)
class BendBuckleGroup:
    enabled: bool = False
    edge1: BendBuckleEdge = field(default_factory=BendBuckleEdge)
    edge2: BendBuckleEdge = field(default_factory=BendBuckleEdge)
    edge3: BendBuckleEdge = field(default_factory=BendBuckleEdge)
    edge4: BendBuckleEdge = field(default_factory=BendBuckleEdge)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"enabled": self.enabled}
        for name in EDGES:
            edge = getattr(self, name).to_dict()
            if not self.enabled:
                # positions are only maintained while the group is enabled
                edge["positions"] = []
            d[name] = edge
        return d


@dataclass(frozen=True)
class BendBuckleConfig:
    """Bend-buckle layout sent to the workshop. Never priced."""

    top: BendBuckleGroup = field(default_factory=BendBuckleGroup)
    sides: BendBuckleGroup = field(default_factory=BendBuckleGroup)
    bottom: BendBuckleGroup = field(default_factory=BendBuckleGroup)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in BEND_BUCKLE_GROUPS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BendBuckleConfig":
        data = data or {}
        groups = {}
        for name in BEND_BUCKLE_GROUPS:
            g = data.get(name) or {}
            edges = {}
            for edge in EDGES:
                e = g.get(edge) or {}
                edges[edge] = BendBuckleEdge(
                    first_distance=e.get("first_distance", 0) or 0,
                    count=int(e.get("count", 0) or 0),
                    positions=tuple(e.get("positions") or ()),
                )
            groups[name] = BendBuckleGroup(enabled=bool(g.get("enabled", False)), **edges)
        return cls(**groups)


@dataclass(frozen=True)
class QuoteData:
    """A priced crate configuration, frozen when added to the cart."""

    width_mm: int
    depth_mm: int
    height_mm: int
    material: Material
    thickness: MaterialThickness
    selected_options: Tuple[SelectedOption, ...]
    quantity: int
    total_price: int
    bend_buckle_config: Optional[BendBuckleConfig] = None
    price: Optional["PriceBreakdown"] = None
    special_requests: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width_mm": self.width_mm,
            "depth_mm": self.depth_mm,
            "height_mm": self.height_mm,
            "material_id": self.material.id,
            "material_name": self.material.name,
            "thickness_id": self.thickness.id,
            "thickness_mm": self.thickness.thickness_mm,
            "selected_options": [o.to_dict() for o in self.selected_options],
            "quantity": self.quantity,
            "total_price": self.total_price,
            "bend_buckle_config": self.bend_buckle_config.to_dict() if self.bend_buckle_config else None,
            "price": self.price.to_dict() if self.price is not None else None,
            "special_requests": self.special_requests,
        }


@dataclass(frozen=True)
class CartLine:
    line_id: str
    quote: QuoteData
    quantity: int
    added_at: datetime

    @property
    def total_price(self) -> int:
        return self.quote.total_price

    @property
    def line_total(self) -> int:
        return self.quote.total_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        d = self.quote.to_dict()
        d.update(
            {
                "line_id": self.line_id,
                "quantity": self.quantity,
                "line_total": self.line_total,
                "added_at": self.added_at.isoformat(),
            }
        )
        return d
