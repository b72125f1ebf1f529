import dataclasses

import pytest

import tuning_knobs
from quote_builder import QuoteBuilder
from validation import (
    DimensionTooLarge,
    DuplicateExpressOption,
    IncompleteQuote,
    InvalidDimension,
    MaterialSheetConstraintViolation,
)


@pytest.fixture
def builder(lauan, thickness):
    return QuoteBuilder(width=500, depth=400, height=300, material=lauan, thickness=thickness)


def test_new_builder_has_no_price():
    b = QuoteBuilder()
    assert b.price is None
    assert isinstance(b.dimension_error, InvalidDimension)


def test_price_is_live(builder):
    assert builder.price.total_price == 13200

    builder.set_quantity(2)
    assert builder.price.material_cost == 24000

    builder.set_dimensions(width=600)
    assert builder.price.material_cost == 2 * 10 * 1300


def test_zero_width_blocks_pricing(builder):
    builder.set_dimensions(width=0)

    assert isinstance(builder.dimension_error, InvalidDimension)
    assert builder.price is None
    with pytest.raises(InvalidDimension):
        builder.snapshot()


def test_switching_material_clears_thickness(builder, softwood):
    builder.set_material(softwood)

    assert builder.thickness is None
    assert builder.price is None


def test_thickness_must_match_material(builder, softwood, thickness):
    builder.set_material(softwood)
    with pytest.raises(ValueError):
        builder.set_thickness(thickness)


def test_adding_an_option_twice_bumps_quantity(builder, handle):
    builder.add_option(handle)
    builder.add_option(handle)

    assert len(builder.selected_options) == 1
    assert builder.selected_options[0].quantity == 2
    assert builder.price.options_cost == 1600


def test_option_quantity_zero_removes_it(builder, handle):
    builder.add_option(handle)
    builder.update_option_quantity(handle.id, 0)
    assert builder.selected_options == []


def test_only_one_express_option(builder, express):
    builder.add_option(express)

    with pytest.raises(DuplicateExpressOption):
        builder.add_option(express)
    with pytest.raises(DuplicateExpressOption):
        builder.update_option_quantity(express.id, 2)

    assert builder.price.express_charge == 6000


def test_fitting_positions_follow_dimension_changes(builder, handle):
    builder.add_option(handle)
    builder.set_fitting(handle.id, "width", distance=50, count=3)
    assert builder.selected_options[0].fitting_positions_width == (50, 250, 450)

    builder.set_dimensions(width=700)

    selected = builder.selected_options[0]
    assert selected.fitting_positions_width == (50, 350, 650)
    assert selected.fitting_distance_width == 50
    assert selected.fitting_count_width == 3


def test_fitting_count_without_distance_has_no_positions(builder, handle):
    builder.add_option(handle)
    builder.set_fitting(handle.id, "depth", count=4)
    assert builder.selected_options[0].fitting_positions_depth == ()


def test_bend_buckles_follow_dimension_changes(builder):
    builder.set_bend_buckle_group("sides", True)
    builder.set_bend_buckle_edge("sides", "edge2", first_distance=50, count=2)
    assert builder.bend_buckle_config.sides.edge2.positions == (50, 250)

    builder.set_dimensions(height=500)
    assert builder.bend_buckle_config.sides.edge2.positions == (50, 450)


def test_disabled_bend_buckle_group_sends_no_positions(builder):
    builder.set_bend_buckle_group("sides", True)
    builder.set_bend_buckle_edge("sides", "edge1", first_distance=50, count=2)

    builder.set_bend_buckle_group("sides", False)
    builder.set_dimensions(height=500)

    edge = builder.bend_buckle_config.to_dict()["sides"]["edge1"]
    assert edge == {"first_distance": 50, "count": 2, "positions": []}

    builder.set_bend_buckle_group("sides", True)
    assert builder.bend_buckle_config.to_dict()["sides"]["edge1"]["positions"] == [50, 450]


def test_bend_buckles_do_not_change_price(builder):
    before = builder.price
    builder.set_bend_buckle_group("top", True)
    builder.set_bend_buckle_edge("top", "edge1", first_distance=100, count=4)
    assert builder.price == before


def test_sheet_warning_does_not_block_by_default(lauan, thickness):
    b = QuoteBuilder(width=1300, depth=1300, height=300, material=lauan, thickness=thickness)

    assert isinstance(b.warning, MaterialSheetConstraintViolation)
    assert b.snapshot().total_price == b.price.total_price


def test_sheet_warning_blocks_when_enforced(monkeypatch, lauan, thickness):
    monkeypatch.setattr(tuning_knobs, "ENFORCE_SHEET_CONSTRAINTS", True)
    b = QuoteBuilder(width=1300, depth=1300, height=300, material=lauan, thickness=thickness)

    with pytest.raises(MaterialSheetConstraintViolation):
        b.snapshot()


def test_absolute_ceiling_blocks_snapshot(builder):
    builder.set_dimensions(depth=2500)
    assert builder.price is not None
    with pytest.raises(DimensionTooLarge):
        builder.snapshot()


def test_snapshot_needs_thickness(lauan):
    b = QuoteBuilder(width=500, depth=400, height=300, material=lauan)
    with pytest.raises(IncompleteQuote):
        b.snapshot()


def test_snapshot_needs_reinforcement_size(builder, reinforcement):
    builder.add_option(reinforcement)
    with pytest.raises(IncompleteQuote) as exc:
        builder.snapshot()
    assert exc.value.field == reinforcement.id

    builder.set_reinforcement_size(reinforcement.id, length=1000, width=1000)
    quote = builder.snapshot()
    assert quote.price.options_cost == 2300


def test_snapshot_is_frozen(builder, handle):
    builder.add_option(handle)
    builder.set_fitting(handle.id, "width", distance=50, count=2)
    quote = builder.snapshot()

    builder.set_dimensions(width=900)
    builder.remove_option(handle.id)

    assert quote.width_mm == 500
    assert quote.selected_options[0].fitting_positions_width == (50, 450)
    with pytest.raises(dataclasses.FrozenInstanceError):
        quote.quantity = 5
