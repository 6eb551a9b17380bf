from __future__ import annotations

import math

import pytest

from wifilocate.config import ConfigError, LocateConfig
from wifilocate.tracking.cursor import CursorAnimator


def test_first_update_snaps_to_target() -> None:
    animator = CursorAnimator(step_px=2.0)
    assert animator.update(120.0, 80.0, now_ms=0, new_fix=True) == (120.0, 80.0)
    assert (animator.state.dx, animator.state.dy) == (0.0, 0.0)


def test_snaps_when_within_half_step() -> None:
    animator = CursorAnimator(step_px=2.0)
    animator.snap(0.0, 0.0, now_ms=0)

    animator.update(0.9, -0.9, now_ms=100, new_fix=True)
    assert animator.position == (0.9, -0.9)
    assert (animator.state.dx, animator.state.dy) == (0.0, 0.0)


@pytest.mark.parametrize(
    ("target", "heading"),
    [
        ((10.0, 0.0), (1.0, 0.0)),
        ((-10.0, 0.0), (-1.0, 0.0)),
        ((0.0, 10.0), (0.0, 1.0)),
        ((0.0, -10.0), (0.0, -1.0)),
        ((-10.0, -10.0), (-math.sqrt(0.5), -math.sqrt(0.5))),
    ],
)
def test_heading_resolves_every_quadrant(target: tuple[float, float], heading: tuple[float, float]) -> None:
    animator = CursorAnimator(step_px=2.0)
    animator.snap(0.0, 0.0, now_ms=0)

    animator.update(*target, now_ms=100, new_fix=True)
    assert animator.state.dx == pytest.approx(2.0 * heading[0], abs=1e-9)
    assert animator.state.dy == pytest.approx(2.0 * heading[1], abs=1e-9)


def test_drifts_at_constant_velocity_between_fixes() -> None:
    animator = CursorAnimator(step_px=2.0)
    animator.snap(0.0, 0.0, now_ms=0)
    animator.update(3.0, 4.0, now_ms=100, new_fix=True)
    dx, dy = animator.state.dx, animator.state.dy

    animator.update(3.0, 4.0, now_ms=200, new_fix=False)
    assert animator.position == pytest.approx((dx, dy))
    animator.update(3.0, 4.0, now_ms=300, new_fix=False)
    assert animator.position == pytest.approx((1.2 * 2, 1.6 * 2))
    assert animator.state.dx == dx

    # 0.6 px from target in x and 0.8 in y: inside half a step, so it lands
    animator.update(3.0, 4.0, now_ms=400, new_fix=False)
    assert animator.position == (3.0, 4.0)
    assert (animator.state.dx, animator.state.dy) == (0.0, 0.0)


def test_step_follows_walking_pace() -> None:
    config = LocateConfig(walking_pace_mps=2.0, pixels_per_meter=10.0, cadence_ms=100)
    assert config.step_px == pytest.approx(2.0)
    with pytest.raises(ConfigError):
        CursorAnimator(step_px=0.0)
