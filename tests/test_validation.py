import pytest

from validation import (
    DimensionTooLarge,
    InvalidDimension,
    MaterialSheetConstraintViolation,
    check_material_constraints,
    validate_dimensions,
)


def test_valid_dimensions_pass():
    assert validate_dimensions(500, 400, 300) is None
    assert validate_dimensions(2440, 2440, 2440) is None


@pytest.mark.parametrize("dims,field", [((0, 400, 300), "width"), ((500, -5, 300), "depth"), ((500, 400, 0), "height")])
def test_non_positive_dimension_is_invalid(dims, field):
    error = validate_dimensions(*dims)
    assert isinstance(error, InvalidDimension)
    assert error.field == field
    assert error.blocking


def test_absolute_ceiling():
    error = validate_dimensions(500, 2441, 300)
    assert isinstance(error, DimensionTooLarge)
    assert error.limit_mm == 2440
    assert error.blocking


def test_invalid_wins_over_too_large():
    assert isinstance(validate_dimensions(3000, 0, 300), InvalidDimension)


def test_lauan_allows_one_long_side(lauan):
    assert check_material_constraints(lauan, 2400, 1220, 1000) is None


def test_lauan_two_long_sides_warn(lauan):
    warning = check_material_constraints(lauan, 1300, 1221, 500)

    assert isinstance(warning, MaterialSheetConstraintViolation)
    assert warning.threshold_mm == 1220
    assert warning.oversized == 2
    assert not warning.blocking


def test_lauan_max_size_is_advisory(lauan):
    warning = check_material_constraints(lauan, 2441, 500, 500)
    assert isinstance(warning, DimensionTooLarge)
    assert warning.limit_mm == 2440
    assert not warning.blocking


def test_standard_plywood_limits(softwood):
    assert check_material_constraints(softwood, 1820, 910, 910) is None
    assert isinstance(check_material_constraints(softwood, 1821, 500, 500), DimensionTooLarge)

    warning = check_material_constraints(softwood, 911, 911, 911)
    assert isinstance(warning, MaterialSheetConstraintViolation)
    assert warning.oversized == 3


def test_lauan_sizes_that_trip_standard_rules(lauan, softwood):
    # fine on a 4x8 lauan sheet, two sides too long for 3x6 stock
    assert check_material_constraints(lauan, 1000, 1000, 500) is None
    assert isinstance(check_material_constraints(softwood, 1000, 1000, 500), MaterialSheetConstraintViolation)


def test_no_material_no_warning():
    assert check_material_constraints(None, 5000, 5000, 5000) is None
