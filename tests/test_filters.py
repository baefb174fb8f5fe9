from __future__ import annotations

from pathlib import Path

import pytest

from webpconv.filters import build_filter_plan, format_number, orientation_filter, resolve_dimension
from webpconv.models import ConvertOptions, Dimension, ImageMetadata


def make_options(**kwargs) -> ConvertOptions:
    return ConvertOptions(input_path=Path("in"), **kwargs)


@pytest.mark.parametrize(
    "code, expected",
    [
        (1, None),
        (2, "hflip"),
        (3, "transpose=1,transpose=1"),
        (4, "vflip"),
        (5, "transpose=3"),
        (6, "transpose=1"),
        (7, "transpose=1,hflip"),
        (8, "transpose=2"),
        (0, None),
        (9, None),
        (None, None),
    ],
)
def test_orientation_filter(code, expected) -> None:
    assert orientation_filter(code) == expected


def test_orientation_comes_before_geometry() -> None:
    options = make_options(scale=0.5, width=Dimension.pixels(960))
    plan = build_filter_plan(ImageMetadata(orientation=6), options)
    assert plan == ["transpose=1", "scale=iw*0.5:ih*0.5", "scale=960:-1"]


def test_no_filters_without_options() -> None:
    assert build_filter_plan(ImageMetadata(orientation=1), make_options()) == []


def test_missing_metadata_keeps_geometry() -> None:
    plan = build_filter_plan(None, make_options(scale=2.0))
    assert plan == ["scale=iw*2:ih*2"]


def test_width_only_resolves_height_to_auto() -> None:
    plan = build_filter_plan(None, make_options(width=Dimension.pixels(960)))
    assert plan == ["scale=960:-1"]


def test_source_dimension() -> None:
    plan = build_filter_plan(None, make_options(width=Dimension.parse("source"), height=Dimension.pixels(540)))
    assert plan == ["scale=iw:540"]


def test_centered_crop_offsets() -> None:
    options = make_options(
        width=Dimension.pixels(500),
        height=Dimension.pixels(500),
        crop=True,
        center=True,
    )
    assert build_filter_plan(None, options) == ["crop=500:500:(iw-500)/2:(ih-500)/2"]


def test_crop_centered_on_one_axis() -> None:
    options = make_options(
        width=Dimension.pixels(300),
        height=Dimension.pixels(200),
        crop=True,
        center_v=True,
    )
    assert build_filter_plan(None, options) == ["crop=300:200:0:(ih-200)/2"]


def test_crop_with_automatic_axis_keeps_full_size() -> None:
    options = make_options(width=Dimension.pixels(300), crop=True, center_h=True)
    assert build_filter_plan(None, options) == ["crop=300:ih:(iw-300)/2:0"]


def test_resolve_dimension() -> None:
    assert resolve_dimension(Dimension(), "width") == -1
    assert resolve_dimension(Dimension(), "height", crop=True) == "ih"
    assert resolve_dimension(Dimension.parse("source"), "height") == "ih"
    assert resolve_dimension(Dimension.pixels(12), "width") == 12


@pytest.mark.parametrize("value, text", [(2.0, "2"), (0.5, "0.5"), (1.25, "1.25")])
def test_format_number(value: float, text: str) -> None:
    assert format_number(value) == text
