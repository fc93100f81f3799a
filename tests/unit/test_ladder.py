"""Tests for the pure budget-search building blocks."""

import pytest

from image_variants.core.exceptions import CompressionBudgetExceeded
from image_variants.core.models import (
    CropOperation,
    ManipulationResult,
    ResizeOperation,
    SizeName,
    SourceImage,
)
from image_variants.core.profiles import get_profile
from image_variants.pipeline.ladder import (
    Phase,
    SearchState,
    SearchStep,
    advance,
    base_operations,
    finish,
    operations_for,
    plan_steps,
)

LANDSCAPE = SourceImage(uri="file:///landscape.jpg", width=1920, height=1080)
PORTRAIT = SourceImage(uri="file:///portrait.jpg", width=1080, height=1920)
SQUARE = SourceImage(uri="file:///square.jpg", width=1000, height=1000)


class TestPlanSteps:
    def test_twelve_steps_in_fixed_order(self):
        steps = plan_steps(get_profile(SizeName.LARGE))

        assert len(steps) == 12
        assert steps[0] == SearchStep(Phase.INITIAL, 0.9)
        assert [s.quality for s in steps[1:7]] == [0.85, 0.80, 0.75, 0.70, 0.65, 0.60]
        assert all(s.phase is Phase.QUALITY for s in steps[1:7])
        assert [s.scale for s in steps[7:]] == [0.9, 0.8, 0.7, 0.6, 0.5]
        assert all(s.phase is Phase.SCALE and s.quality == 0.6 for s in steps[7:])

    def test_initial_quality_comes_from_profile(self):
        assert plan_steps(get_profile(SizeName.SMALL))[0].quality == 0.75
        assert plan_steps(get_profile(SizeName.MEDIUM))[0].quality == 0.6


class TestBaseOperations:
    def test_large_has_no_geometry(self):
        assert base_operations(SizeName.LARGE, get_profile(SizeName.LARGE), LANDSCAPE) == []

    def test_medium_scales_proportionally(self):
        source = SourceImage(uri="file:///m.jpg", width=1000, height=800)
        ops = base_operations(SizeName.MEDIUM, get_profile(SizeName.MEDIUM), source)
        assert ops == [ResizeOperation(width=600, height=480)]

    @pytest.mark.parametrize(
        "source, expected_crop",
        [
            (LANDSCAPE, CropOperation(origin_x=420, origin_y=0, width=1080, height=1080)),
            (PORTRAIT, CropOperation(origin_x=0, origin_y=420, width=1080, height=1080)),
            (SQUARE, CropOperation(origin_x=0, origin_y=0, width=1000, height=1000)),
        ],
    )
    def test_small_crops_center_square_then_resizes(self, source, expected_crop):
        ops = base_operations(SizeName.SMALL, get_profile(SizeName.SMALL), source)
        assert ops == [expected_crop, ResizeOperation(width=256, height=256)]

    def test_small_odd_margin_rounds_half_away_from_zero(self):
        source = SourceImage(uri="file:///odd.jpg", width=1001, height=1000)
        crop = base_operations(SizeName.SMALL, get_profile(SizeName.SMALL), source)[0]
        assert crop.origin_x == 1
        assert crop.width == 1000


class TestOperationsFor:
    def _state_after_quality_phase(self, size, width, height):
        state = SearchState(size=size, max_bytes=10)
        result = ManipulationResult(uri="a", width=width, height=height)
        return advance(state, SearchStep(Phase.QUALITY, 0.6), result, 50)

    def test_quality_steps_reuse_base_geometry(self):
        profile = get_profile(SizeName.SMALL)
        state = SearchState(size=SizeName.SMALL, max_bytes=10)
        step = SearchStep(Phase.QUALITY, 0.8)
        assert operations_for(step, profile, LANDSCAPE, state) == base_operations(
            SizeName.SMALL, profile, LANDSCAPE
        )

    def test_large_scale_step_resizes_previous_result(self):
        state = self._state_after_quality_phase(SizeName.LARGE, 4000, 3000)
        step = SearchStep(Phase.SCALE, 0.6, 0.9)
        ops = operations_for(step, get_profile(SizeName.LARGE), LANDSCAPE, state)
        assert ops == [ResizeOperation(width=3600, height=2700)]

    def test_medium_scale_step_uses_previous_result_not_original(self):
        source = SourceImage(uri="file:///m.jpg", width=1000, height=800)
        state = self._state_after_quality_phase(SizeName.MEDIUM, 600, 480)
        step = SearchStep(Phase.SCALE, 0.6, 0.5)
        ops = operations_for(step, get_profile(SizeName.MEDIUM), source, state)
        assert ops == [ResizeOperation(width=300, height=240)]

    def test_small_scale_step_keeps_the_crop(self):
        state = self._state_after_quality_phase(SizeName.SMALL, 256, 256)
        step = SearchStep(Phase.SCALE, 0.6, 0.7)
        ops = operations_for(step, get_profile(SizeName.SMALL), LANDSCAPE, state)
        assert ops == [
            CropOperation(origin_x=420, origin_y=0, width=1080, height=1080),
            ResizeOperation(width=179, height=179),
        ]

    def test_scale_base_is_frozen_during_scale_phase(self):
        state = self._state_after_quality_phase(SizeName.LARGE, 4000, 3000)
        shrunk = ManipulationResult(uri="b", width=3600, height=2700)
        state = advance(state, SearchStep(Phase.SCALE, 0.6, 0.9), shrunk, 40)

        ops = operations_for(
            SearchStep(Phase.SCALE, 0.6, 0.8), get_profile(SizeName.LARGE), LANDSCAPE, state
        )
        assert ops == [ResizeOperation(width=3200, height=2400)]


class TestAdvanceAndFinish:
    def test_advance_is_pure(self):
        state = SearchState(size=SizeName.LARGE, max_bytes=100)
        result = ManipulationResult(uri="a", width=10, height=10)

        new_state = advance(state, SearchStep(Phase.INITIAL, 0.9), result, 150)

        assert state.attempts == ()
        assert state.current is None
        assert new_state.current == result
        assert new_state.byte_size == 150
        assert len(new_state.attempts) == 1
        assert not new_state.satisfied

    def test_budget_is_inclusive(self):
        state = SearchState(size=SizeName.LARGE, max_bytes=100)
        result = ManipulationResult(uri="a", width=10, height=10)
        assert advance(state, SearchStep(Phase.INITIAL, 0.9), result, 100).satisfied

    def test_finish_builds_variant(self):
        state = SearchState(size=SizeName.SMALL, max_bytes=100)
        result = ManipulationResult(uri="a", width=256, height=256)
        state = advance(state, SearchStep(Phase.INITIAL, 0.75), result, 90)

        variant = finish(state)

        assert variant.size is SizeName.SMALL
        assert variant.uri == "a"
        assert variant.byte_size == 90

    def test_finish_raises_when_over_budget(self):
        state = SearchState(size=SizeName.MEDIUM, max_bytes=100)
        result = ManipulationResult(uri="a", width=10, height=10)
        state = advance(state, SearchStep(Phase.INITIAL, 0.6), result, 101)

        with pytest.raises(CompressionBudgetExceeded) as excinfo:
            finish(state)

        assert excinfo.value.size is SizeName.MEDIUM
        assert excinfo.value.last_byte_size == 101
