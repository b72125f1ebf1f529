# pricing_engine.py
import math
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Optional

import pricing_config as cfg
from catalog import Material, MaterialThickness, OptionType
from quote_models import SelectedOption


@dataclass(frozen=True)
class PriceBreakdown:
    material_cost: int
    options_cost: int
    express_charge: int
    subtotal: int
    vat: int
    total_price: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _round_yen(amount: float) -> int:
    # half-up, the way the storefront has always displayed prices
    return int(math.floor(amount + 0.5))


def _option_cost(selected: SelectedOption) -> float:
    option = selected.option

    if option.option_type == OptionType.REINFORCEMENT:
        # price is per m2, plus a flat handling fee per selected board
        if not selected.has_reinforcement_size:
            return 0
        area_m2 = (selected.reinforcement_length * selected.reinforcement_width) / cfg.MM2_PER_M2
        return (area_m2 * option.price + cfg.REINFORCEMENT_HANDLING_FEE) * selected.quantity

    return option.price * selected.quantity


def calculate_price(
    width: int,
    depth: int,
    height: int,
    material: Optional[Material],
    thickness: Optional[MaterialThickness],
    selected_options: Iterable[SelectedOption] = (),
    quantity: int = 1,
) -> Optional[PriceBreakdown]:
    """
    Price a crate. Returns None until material, thickness and all three
    dimensions are present.

    Box quantity multiplies material and option costs but not the express
    charge, which is billed once per shipment.
    """
    if material is None or thickness is None:
        return None
    if not width or not depth or not height or min(width, depth, height) <= 0:
        return None

    # Linear proxy for panel consumption, not volume
    perimeter_sum = width + depth + height

    material_cost = thickness.price * perimeter_sum

    options_cost = 0.0
    express_charge = 0.0
    for selected in selected_options:
        if selected.option.option_type == OptionType.EXPRESS:
            # only one express option is selectable; the last one wins here
            express_charge = perimeter_sum * cfg.EXPRESS_RATE_PER_MM * selected.quantity
        else:
            options_cost += _option_cost(selected)

    subtotal = (material_cost + options_cost) * quantity + express_charge
    vat = _round_yen(subtotal * cfg.VAT_RATE)
    total_price = _round_yen(subtotal + vat)

    return PriceBreakdown(
        material_cost=_round_yen(material_cost * quantity),
        options_cost=_round_yen(options_cost * quantity),
        express_charge=_round_yen(express_charge),
        subtotal=_round_yen(subtotal),
        vat=vat,
        total_price=total_price,
    )


if __name__ == "__main__":
    from catalog import default_catalog

    catalog = default_catalog()
    material = catalog.materials[0]
    thickness = catalog.thicknesses_for(material.id, available_only=True)[0]

    result = calculate_price(500, 400, 300, material, thickness, quantity=1)
    print("MATERIAL:", result.material_cost)
    print("VAT:", result.vat)
    print("TOTAL:", result.total_price)
