"""Size profile table and the fixed compression search ladder.

The byte limits here must match the server-side validation of the same
limits.
"""

from typing import Dict, Iterable, List, Tuple, Union

from .exceptions import ConfigurationError
from .models import Dimensions, SizeName, SizeProfile

KIB = 1024
MIB = 1024 * KIB

SIZE_PROFILES: Dict[SizeName, SizeProfile] = {
    SizeName.LARGE: SizeProfile(quality=0.9, max_bytes=6 * MIB),
    SizeName.MEDIUM: SizeProfile(quality=0.6, scale=0.6, max_bytes=2 * MIB),
    SizeName.SMALL: SizeProfile(
        quality=0.75,
        fixed_dimensions=Dimensions(width=256, height=256),
        max_bytes=512 * KIB,
    ),
}

# Tried in order after the profile's base quality misses the budget.
QUALITY_STEPS: Tuple[float, ...] = (0.85, 0.80, 0.75, 0.70, 0.65, 0.60)

# Tried in order once every quality step has missed the budget.
SCALE_STEPS: Tuple[float, ...] = (0.9, 0.8, 0.7, 0.6, 0.5)
SCALE_STEP_QUALITY = 0.6

ALL_SIZES: Tuple[SizeName, ...] = (SizeName.LARGE, SizeName.MEDIUM, SizeName.SMALL)
PROFILE_PICTURE_SIZES: Tuple[SizeName, ...] = (SizeName.SMALL,)
GALLERY_SIZES: Tuple[SizeName, ...] = ALL_SIZES

JPEG_CONTENT_TYPE = "image/jpeg"


def parse_size(value: Union[str, SizeName]) -> SizeName:
    """Convert a size name to ``SizeName``, rejecting unknown names."""
    if isinstance(value, SizeName):
        return value
    try:
        return SizeName(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(size.value for size in SizeName)
        raise ConfigurationError(f"Unknown image size '{value}' (expected one of: {valid})")


def normalize_sizes(sizes: Iterable[Union[str, SizeName]]) -> List[SizeName]:
    """Parse sizes, keeping first-seen order and dropping repeats."""
    ordered: Dict[SizeName, None] = {}
    for value in sizes:
        ordered.setdefault(parse_size(value), None)
    return list(ordered)


def get_profile(size: SizeName) -> SizeProfile:
    """Return the profile for ``size``."""
    try:
        return SIZE_PROFILES[size]
    except KeyError:
        raise ConfigurationError(f"No size profile for {size}")
