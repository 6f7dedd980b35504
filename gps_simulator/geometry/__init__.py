"""Pure spherical geometry over coordinate polylines.

Every function is stateless and total: degenerate input yields a defined
fallback (``None`` or 0) rather than an exception.
"""

from .interpolation import (
    cumulative_distances,
    interpolate_position,
    route_distance,
    segment_lengths,
)
from .spherical import (
    circle_polygon,
    destination_point,
    haversine_distance,
    initial_bearing,
    miles_to_meters,
)

__all__ = [
    "circle_polygon",
    "cumulative_distances",
    "destination_point",
    "haversine_distance",
    "initial_bearing",
    "interpolate_position",
    "miles_to_meters",
    "route_distance",
    "segment_lengths",
]
