import math
from typing import NamedTuple
from vcat.domain.errors import InvalidDimensions


class ScaledDimensions(NamedTuple):
    height: int
    width: int


def _scale_larger_side(min_dimension: int, smaller: float, larger: float) -> int:
    value = math.trunc(min_dimension * (larger / smaller))
    # dimensions must be a multiple of 2 for h264
    if value % 2 != 0:
        value += 1
    return value


def scale_dimensions(min_dimension: int, source_height: float, source_width: float) -> ScaledDimensions:
    """Scale so the smaller source side becomes `min_dimension`, keeping aspect.

    The opposite side is truncated and bumped to the next even number.
    `min_dimension` itself is assigned untouched, so callers pass an even value.
    Square sources treat height as the smaller side.

    >>> scale_dimensions(480, 1080, 1920)
    ScaledDimensions(height=480, width=854)
    """
    if min_dimension <= 0 or source_height <= 0 or source_width <= 0:
        raise InvalidDimensions(
            f"Cannot scale {source_width}x{source_height} to min dimension {min_dimension}"
        )

    if source_height <= source_width:
        return ScaledDimensions(
            height=min_dimension,
            width=_scale_larger_side(min_dimension, source_height, source_width),
        )
    return ScaledDimensions(
        height=_scale_larger_side(min_dimension, source_width, source_height),
        width=min_dimension,
    )
