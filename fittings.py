# fittings.py
from dataclasses import replace
from typing import List

from quote_models import (
    BEND_BUCKLE_GROUPS,
    EDGES,
    BendBuckleConfig,
    BendBuckleGroup,
    SelectedOption,
)

# Which box dimension an edge of each bend-buckle group runs along
EDGE_SPAN_AXIS = {
    "top": {"edge1": "width", "edge2": "depth", "edge3": "width", "edge4": "depth"},
    "sides": {"edge1": "height", "edge2": "height", "edge3": "height", "edge4": "height"},
    "bottom": {"edge1": "width", "edge2": "depth", "edge3": "width", "edge4": "depth"},
}


def calculate_fitting_positions(span_mm: float, first_distance_mm: float, count: int) -> List[float]:
    """
    Evenly spaced fittings along an edge, as mm offsets from one end.

    The first fitting sits at ``first_distance_mm`` and the last one the same
    distance from the far end. If the two offsets leave no room, a single
    fitting at ``first_distance_mm`` is returned.
    """
    if count <= 0 or span_mm <= 0 or first_distance_mm < 0:
        return []
    if count == 1:
        return [first_distance_mm]

    remaining_space = span_mm - first_distance_mm * 2
    if remaining_space <= 0:
        return [first_distance_mm]

    spacing = remaining_space / (count - 1)
    return [first_distance_mm + spacing * i for i in range(count)]


def recompute_option_positions(selected: SelectedOption, width, depth, height) -> SelectedOption:
    """Rebuild the fitting grid of one option for new box dimensions."""
    if selected.is_reinforcement:
        return selected

    spans = {"width": width, "depth": depth, "height": height}
    changes = {}
    for axis, span in spans.items():
        distance, count, _ = selected.fitting(axis)
        if count and distance is not None:
            changes[f"fitting_positions_{axis}"] = tuple(
                calculate_fitting_positions(span, distance, count)
            )
    return replace(selected, **changes) if changes else selected


def recompute_bend_buckle_positions(config: BendBuckleConfig, width, depth, height) -> BendBuckleConfig:
    """Rebuild positions on every edge of the enabled groups."""
    spans = {"width": width, "depth": depth, "height": height}
    groups = {}
    for group_name in BEND_BUCKLE_GROUPS:
        group: BendBuckleGroup = getattr(config, group_name)
        if not group.enabled:
            groups[group_name] = group
            continue

        edges = {}
        for edge_name in EDGES:
            edge = getattr(group, edge_name)
            span = spans[EDGE_SPAN_AXIS[group_name][edge_name]]
            edges[edge_name] = replace(
                edge,
                positions=tuple(calculate_fitting_positions(span, edge.first_distance, edge.count)),
            )
        groups[group_name] = replace(group, **edges)

    return replace(config, **groups)
