from __future__ import annotations

from .models import ConvertOptions, Dimension, ImageMetadata

# transpose=1 is 90 degrees CW, 2 is 90 CCW, 3 is 90 CW plus vertical flip
ORIENTATION_FILTERS: dict[int, str] = {
    2: "hflip",
    3: "transpose=1,transpose=1",
    4: "vflip",
    5: "transpose=3",
    6: "transpose=1",
    7: "transpose=1,hflip",
    8: "transpose=2",
}

AUTO_DIMENSION = -1
SOURCE_DIMENSIONS = {"width": "iw", "height": "ih"}


def orientation_filter(orientation: int | None) -> str | None:
    if orientation is None:
        return None
    return ORIENTATION_FILTERS.get(orientation)


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def resolve_dimension(dimension: Dimension, axis: str, crop: bool = False) -> int | str:
    source = SOURCE_DIMENSIONS[axis]
    if dimension.kind == "source":
        return source
    if dimension.kind == "pixels" and dimension.value is not None:
        return dimension.value
    # crop has no aspect-preserving size, so an automatic axis keeps all of it
    return source if crop else AUTO_DIMENSION


def scale_filter(factor: float) -> str:
    text = format_number(factor)
    return f"scale=iw*{text}:ih*{text}"


def crop_filter(width: int | str, height: int | str, center_h: bool, center_v: bool) -> str:
    crop_x = f"(iw-{width})/2" if center_h else "0"
    crop_y = f"(ih-{height})/2" if center_v else "0"
    return f"crop={width}:{height}:{crop_x}:{crop_y}"


def resize_filter(options: ConvertOptions) -> str:
    width = resolve_dimension(options.width, "width", options.crop)
    height = resolve_dimension(options.height, "height", options.crop)
    if options.crop:
        return crop_filter(
            width,
            height,
            options.center or options.center_h,
            options.center or options.center_v,
        )
    return f"scale={width}:{height}"


def build_filter_plan(metadata: ImageMetadata | None, options: ConvertOptions) -> list[str]:
    plan: list[str] = []
    if metadata is not None:
        rotation = orientation_filter(metadata.orientation)
        if rotation:
            plan.append(rotation)
    if options.scale is not None:
        plan.append(scale_filter(options.scale))
    if options.resizes:
        plan.append(resize_filter(options))
    return plan


def join_filters(plan: list[str]) -> str:
    return ",".join(plan)
