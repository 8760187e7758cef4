"""Test style dimension extraction."""

from htmlimage.sizing.style import (
    extract_dimensions,
    parse_dimension,
    parse_style_attribute,
)


def test_explicit_values_win_over_style() -> None:
    result = extract_dimensions({"width": 10, "height": 20}, 200, 100)

    assert result.width == 100
    assert result.height == 200


def test_single_style_layer() -> None:
    result = extract_dimensions({"width": "50%", "height": 30})

    assert result.width == "50%"
    assert result.height == 30
    assert result.complete


def test_last_defining_layer_wins() -> None:
    layers = [
        {"width": 10, "height": 10},
        {"width": 20},
        {"color": "red"},
        {"height": 40},
    ]

    result = extract_dimensions(layers)

    assert result.width == 20
    assert result.height == 40


def test_nested_layers_are_flattened_in_order() -> None:
    layers = [{"width": 10}, [{"width": 30}, None, [{"height": 5}]]]

    result = extract_dimensions(layers)

    assert result.width == 30
    assert result.height == 5


def test_mixed_explicit_and_style() -> None:
    result = extract_dimensions([{"width": 10, "height": 10}], explicit_width=99)

    assert result.width == 99
    assert result.height == 10


def test_missing_axes_are_none() -> None:
    assert extract_dimensions(None).width is None
    assert extract_dimensions({}).height is None

    result = extract_dimensions([{"width": 12}])
    assert result.width == 12
    assert result.height is None
    assert not result.complete


def test_falsy_values_count_as_undefined() -> None:
    result = extract_dimensions([{"width": 10}, {"width": 0, "height": ""}], 0, None)

    assert result.width == 10
    assert result.height is None


def test_parse_dimension_keeps_percentages() -> None:
    assert parse_dimension("50%") == "50%"
    assert parse_dimension("12.5%") == "12.5%"


def test_parse_dimension_truncates_pixels() -> None:
    assert parse_dimension("120") == 120
    assert parse_dimension("120.7") == 120
    assert parse_dimension("120px") == 120
    assert parse_dimension(99.9) == 99
    assert parse_dimension(64) == 64


def test_parse_dimension_rejects_unusable_values() -> None:
    assert parse_dimension("auto") is None
    assert parse_dimension("-5") is None
    assert parse_dimension(float("nan")) is None
    assert parse_dimension(None) is None
    assert parse_dimension(True) is None


def test_parse_style_attribute() -> None:
    layer = parse_style_attribute("Width: 50%; height:120px ;border: none;broken")

    assert layer == {"width": "50%", "height": "120px", "border": "none"}
    assert parse_style_attribute(None) == {}
    assert parse_style_attribute("") == {}
