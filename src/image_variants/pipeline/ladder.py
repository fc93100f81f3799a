"""Pure building blocks of the per-size budget search.

The search is a fixed sequence of steps: the profile's base quality, then
``QUALITY_STEPS``, then ``SCALE_STEPS`` at ``SCALE_STEP_QUALITY``. Nothing in
this module performs I/O; the compression engine runs each step against the
manipulator and folds the outcome into a ``SearchState`` with ``advance``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from ..core.exceptions import CompressionBudgetExceeded, ConfigurationError
from ..core.image_utils import center_square_crop, scaled_resize
from ..core.models import (
    CompressedVariant,
    Dimensions,
    ManipulationResult,
    Operation,
    ResizeOperation,
    SizeName,
    SizeProfile,
    SourceImage,
)
from ..core.profiles import QUALITY_STEPS, SCALE_STEP_QUALITY, SCALE_STEPS


class Phase(str, Enum):
    INITIAL = "initial"
    QUALITY = "quality"
    SCALE = "scale"


@dataclass(frozen=True)
class SearchStep:
    phase: Phase
    quality: float
    scale: Optional[float] = None


@dataclass(frozen=True)
class Attempt:
    """Outcome of one manipulator call."""

    step: SearchStep
    width: int
    height: int
    byte_size: int


@dataclass(frozen=True)
class SearchState:
    size: SizeName
    max_bytes: int
    current: Optional[ManipulationResult] = None
    byte_size: Optional[int] = None
    # Dimensions the scale steps are applied to: the last result before the scale phase.
    scale_base: Optional[Dimensions] = None
    attempts: Tuple[Attempt, ...] = ()

    @property
    def satisfied(self) -> bool:
        return self.byte_size is not None and self.byte_size <= self.max_bytes


def plan_steps(profile: SizeProfile) -> Tuple[SearchStep, ...]:
    """All steps in the order they are tried; the search stops at the first fit."""
    steps = [SearchStep(Phase.INITIAL, profile.quality)]
    steps.extend(SearchStep(Phase.QUALITY, quality) for quality in QUALITY_STEPS)
    steps.extend(
        SearchStep(Phase.SCALE, SCALE_STEP_QUALITY, scale) for scale in SCALE_STEPS
    )
    return tuple(steps)


def geometry_prefix(size: SizeName, source: SourceImage) -> List[Operation]:
    """Operations that every attempt for ``size`` starts with (the square crop for small)."""
    if size is SizeName.LARGE:
        return []
    elif size is SizeName.MEDIUM:
        return []
    elif size is SizeName.SMALL:
        return [center_square_crop(source.width, source.height)]
    else:
        raise ConfigurationError(f"Unknown image size: {size}")


def base_operations(
    size: SizeName, profile: SizeProfile, source: SourceImage
) -> List[Operation]:
    """Initial operation list for ``size``."""
    if size is SizeName.LARGE:
        return []
    elif size is SizeName.MEDIUM:
        if profile.scale is None:
            raise ConfigurationError("medium profile requires a scale")
        return [scaled_resize(source.width, source.height, profile.scale)]
    elif size is SizeName.SMALL:
        if profile.fixed_dimensions is None:
            raise ConfigurationError("small profile requires fixed dimensions")
        return geometry_prefix(size, source) + [
            ResizeOperation(
                width=profile.fixed_dimensions.width,
                height=profile.fixed_dimensions.height,
            )
        ]
    else:
        raise ConfigurationError(f"Unknown image size: {size}")


def operations_for(
    step: SearchStep,
    profile: SizeProfile,
    source: SourceImage,
    state: SearchState,
) -> List[Operation]:
    """Operations to run for ``step`` given the search so far."""
    if step.phase is not Phase.SCALE:
        return base_operations(state.size, profile, source)

    if state.scale_base is None or step.scale is None:
        raise ConfigurationError("scale steps need a previous result to scale from")
    return geometry_prefix(state.size, source) + [
        scaled_resize(state.scale_base.width, state.scale_base.height, step.scale)
    ]


def advance(
    state: SearchState,
    step: SearchStep,
    result: ManipulationResult,
    byte_size: int,
) -> SearchState:
    """Fold one attempt into the state."""
    scale_base = state.scale_base
    if step.phase is not Phase.SCALE:
        scale_base = Dimensions(width=result.width, height=result.height)
    attempt = Attempt(
        step=step, width=result.width, height=result.height, byte_size=byte_size
    )
    return replace(
        state,
        current=result,
        byte_size=byte_size,
        scale_base=scale_base,
        attempts=state.attempts + (attempt,),
    )


def finish(state: SearchState) -> CompressedVariant:
    """
    Turn a finished search into a variant.

    Raises:
        CompressionBudgetExceeded: If no attempt met the byte budget
    """
    if not state.satisfied or state.current is None or state.byte_size is None:
        raise CompressionBudgetExceeded(state.size, state.max_bytes, state.byte_size)
    return CompressedVariant(
        size=state.size,
        uri=state.current.uri,
        width=state.current.width,
        height=state.current.height,
        byte_size=state.byte_size,
    )
