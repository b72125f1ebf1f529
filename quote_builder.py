# quote_builder.py
from dataclasses import replace
from typing import List, Optional

import tuning_knobs as knobs
from catalog import Material, MaterialThickness, Option, OptionType
from fittings import recompute_bend_buckle_positions, recompute_option_positions
from pricing_engine import PriceBreakdown, calculate_price
from quote_models import (
    AXES,
    BEND_BUCKLE_GROUPS,
    EDGES,
    BendBuckleConfig,
    QuoteData,
    SelectedOption,
)
from validation import (
    DuplicateExpressOption,
    IncompleteQuote,
    QuoteError,
    check_material_constraints,
    validate_dimensions,
)


class QuoteBuilder:
    """
    One customer's quote while it is being edited.

    Every setter ends in ``recompute()``, which always runs, in order:
    dimension check -> sheet check -> fitting positions -> price.
    ``snapshot()`` freezes the current state for the cart.
    """

    def __init__(
        self,
        *,
        width: int = 0,
        depth: int = 0,
        height: int = 0,
        material: Optional[Material] = None,
        thickness: Optional[MaterialThickness] = None,
        quantity: int = 1,
        bend_buckle_config: Optional[BendBuckleConfig] = None,
        special_requests: str = "",
    ) -> None:
        self.width = width
        self.depth = depth
        self.height = height
        self.material = material
        self.thickness = None
        self.quantity = quantity
        self.selected_options: List[SelectedOption] = []
        self.bend_buckle_config = bend_buckle_config or BendBuckleConfig()
        self.special_requests = special_requests

        self.dimension_error: Optional[QuoteError] = None
        self.warning: Optional[QuoteError] = None
        self.price: Optional[PriceBreakdown] = None

        if thickness is not None:
            self.set_thickness(thickness)
        else:
            self.recompute()

    # ---- derived state ----
    def recompute(self) -> None:
        self.dimension_error = validate_dimensions(self.width, self.depth, self.height)
        self.warning = check_material_constraints(self.material, self.width, self.depth, self.height)

        self.selected_options = [
            recompute_option_positions(o, self.width, self.depth, self.height)
            for o in self.selected_options
        ]
        self.bend_buckle_config = recompute_bend_buckle_positions(
            self.bend_buckle_config, self.width, self.depth, self.height
        )

        self.price = calculate_price(
            self.width,
            self.depth,
            self.height,
            self.material,
            self.thickness,
            self.selected_options,
            self.quantity,
        )

    # ---- box ----
    def set_dimensions(self, width: Optional[int] = None, depth: Optional[int] = None, height: Optional[int] = None) -> None:
        if width is not None:
            self.width = width
        if depth is not None:
            self.depth = depth
        if height is not None:
            self.height = height
        self.recompute()

    def set_material(self, material: Optional[Material]) -> None:
        # thicknesses belong to one material; pick again after switching
        self.material = material
        self.thickness = None
        self.recompute()

    def set_thickness(self, thickness: Optional[MaterialThickness]) -> None:
        if thickness is not None:
            if self.material is None or thickness.material_id != self.material.id:
                raise ValueError(f"thickness {thickness.id} does not belong to the selected material")
        self.thickness = thickness
        self.recompute()

    def set_quantity(self, quantity: int) -> None:
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        self.quantity = quantity
        self.recompute()

    # ---- options ----
    def _index(self, option_id: str) -> int:
        for i, selected in enumerate(self.selected_options):
            if selected.option.id == option_id:
                return i
        raise KeyError(option_id)

    @property
    def express_selected(self) -> bool:
        return any(o.is_express for o in self.selected_options)

    def add_option(self, option: Option) -> SelectedOption:
        """Select an option, or bump its quantity if it is already selected."""
        if option.option_type == OptionType.EXPRESS and self.express_selected:
            raise DuplicateExpressOption("Express production can only be selected once.")

        try:
            i = self._index(option.id)
        except KeyError:
            if option.option_type == OptionType.REINFORCEMENT:
                selected = SelectedOption(option=option, reinforcement_length=0, reinforcement_width=0)
            else:
                selected = SelectedOption(option=option)
            self.selected_options.append(selected)
        else:
            self.selected_options[i] = replace(
                self.selected_options[i], quantity=self.selected_options[i].quantity + 1
            )

        self.recompute()
        return self.selected_options[self._index(option.id)]

    def update_option_quantity(self, option_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_option(option_id)
            return

        i = self._index(option_id)
        if self.selected_options[i].is_express and quantity > 1:
            raise DuplicateExpressOption("Express production can only be selected once.")
        self.selected_options[i] = replace(self.selected_options[i], quantity=quantity)
        self.recompute()

    def remove_option(self, option_id: str) -> None:
        self.selected_options = [o for o in self.selected_options if o.option.id != option_id]
        self.recompute()

    def set_reinforcement_size(self, option_id: str, *, length: Optional[float] = None, width: Optional[float] = None) -> None:
        i = self._index(option_id)
        selected = self.selected_options[i]
        if not selected.is_reinforcement:
            raise ValueError(f"option {option_id} is not a reinforcement board")

        changes = {}
        if length is not None:
            changes["reinforcement_length"] = length
        if width is not None:
            changes["reinforcement_width"] = width
        self.selected_options[i] = replace(selected, **changes)
        self.recompute()

    def set_fitting(self, option_id: str, axis: str, *, distance: Optional[float] = None, count: Optional[int] = None) -> None:
        if axis not in AXES:
            raise ValueError(f"unknown axis: {axis}")

        i = self._index(option_id)
        selected = self.selected_options[i]
        if selected.is_reinforcement:
            raise ValueError("reinforcement boards carry no fittings")

        changes = {f"fitting_positions_{axis}": ()}
        if distance is not None:
            changes[f"fitting_distance_{axis}"] = distance
        if count is not None:
            changes[f"fitting_count_{axis}"] = count
        self.selected_options[i] = replace(selected, **changes)
        self.recompute()

    # ---- bend buckles ----
    def set_bend_buckle_group(self, group: str, enabled: bool) -> None:
        if group not in BEND_BUCKLE_GROUPS:
            raise ValueError(f"unknown bend buckle group: {group}")
        current = getattr(self.bend_buckle_config, group)
        self.bend_buckle_config = replace(
            self.bend_buckle_config, **{group: replace(current, enabled=enabled)}
        )
        self.recompute()

    def set_bend_buckle_edge(self, group: str, edge: str, *, first_distance: float, count: int) -> None:
        if group not in BEND_BUCKLE_GROUPS:
            raise ValueError(f"unknown bend buckle group: {group}")
        if edge not in EDGES:
            raise ValueError(f"unknown edge: {edge}")

        current = getattr(self.bend_buckle_config, group)
        new_edge = replace(getattr(current, edge), first_distance=first_distance, count=count, positions=())
        self.bend_buckle_config = replace(
            self.bend_buckle_config, **{group: replace(current, **{edge: new_edge})}
        )
        self.recompute()

    # ---- cart ----
    def snapshot(self) -> QuoteData:
        """Freeze the quote. Raises a QuoteError when it cannot be ordered yet."""
        self.recompute()

        if self.dimension_error is not None:
            raise self.dimension_error

        if self.material is None or self.thickness is None:
            raise IncompleteQuote("Select a material and a thickness.", field="material")

        for selected in self.selected_options:
            if selected.is_reinforcement and not selected.has_reinforcement_size:
                raise IncompleteQuote(
                    "Enter a length and width for the reinforcement board.",
                    field=selected.option.id,
                )

        if knobs.ENFORCE_SHEET_CONSTRAINTS and self.warning is not None:
            raise self.warning

        if self.price is None:
            raise IncompleteQuote("The quote could not be priced.")

        return QuoteData(
            width_mm=self.width,
            depth_mm=self.depth,
            height_mm=self.height,
            material=self.material,
            thickness=self.thickness,
            selected_options=tuple(self.selected_options),
            quantity=self.quantity,
            total_price=self.price.total_price,
            bend_buckle_config=self.bend_buckle_config,
            price=self.price,
            special_requests=self.special_requests,
        )
