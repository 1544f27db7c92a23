"""
Map viewport: scale/translate state, focus-preserving zoom, pan and drag.

The transform maps a projected map point ``p`` to the screen as
``k * p + t``. Focus points are kept in projected map coordinates, so a zoom
about a focus ``f`` uses ``t' = t - (k' - k) * f`` and ``f`` stays on the
same screen pixel. Screen pixels (cursor, viewport centre) are converted to
map coordinates before zooming about them.

All transition functions are pure and return a new :class:`ViewportState`.
:class:`ViewportTransform` owns the current state and the animation that
carries the rendered frame towards it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from config.settings import ViewportConfig
from core.projection import Bounds


Point = Tuple[float, float]
Size = Tuple[float, float]

GLOBAL = "global"
FOCUSED = "focused"


@dataclass(frozen=True)
class ViewportState:
    k: float = 1.0
    tx: float = 0.0
    ty: float = 0.0
    focus: Optional[Point] = None
    mode: str = GLOBAL
    focused_feature: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.mode == GLOBAL

    def to_screen(self, point: Point) -> Point:
        return self.k * point[0] + self.tx, self.k * point[1] + self.ty

    def to_map(self, pixel: Point) -> Point:
        return (pixel[0] - self.tx) / self.k, (pixel[1] - self.ty) / self.k


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _zoom_about(state: ViewportState, factor: float, focus: Point, limits: ViewportConfig) -> ViewportState:
    if factor <= 0:
        raise ValueError(f"Zoom factor must be positive, got {factor}")
    new_k = clamp(state.k * factor, limits.k_min, limits.k_max)
    delta = new_k - state.k
    return replace(
        state,
        k=new_k,
        tx=state.tx - delta * focus[0],
        ty=state.ty - delta * focus[1],
    )


def focus_on(
    state: ViewportState,
    bounds: Bounds,
    size: Size,
    limits: ViewportConfig,
    feature_name: Optional[str] = None,
) -> ViewportState:
    """Fit ``bounds`` (projected pixels) into the viewport and remember its centre."""
    width, height = size
    x0, y0, x1, y1 = bounds
    dx, dy = x1 - x0, y1 - y0
    cx, cy = (x0 + x1) / 2, (y0 + y1) / 2

    extent = max(dx / width, dy / height)
    # a zero-area feature would divide by zero; zoom in as far as allowed
    raw_scale = limits.fit_padding / extent if extent > 0 else limits.focus_k_max
    scale = clamp(raw_scale, limits.focus_k_min, limits.focus_k_max)

    return ViewportState(
        k=scale,
        tx=width / 2 - scale * cx,
        ty=height / 2 - scale * cy,
        focus=(cx, cy),
        mode=FOCUSED,
        focused_feature=feature_name,
    )


def reset(state: Optional[ViewportState] = None) -> ViewportState:
    """Back to the global view; the remembered focus is dropped."""
    return ViewportState()


def zoom_by(state: ViewportState, factor: float, size: Size, limits: ViewportConfig) -> ViewportState:
    """Zoom about the remembered focus, or the viewport centre when there is none."""
    focus = state.focus
    if focus is None:
        focus = state.to_map((size[0] / 2, size[1] / 2))
    return _zoom_about(state, factor, focus, limits)


def zoom_at(
    state: ViewportState,
    factor: float,
    pixel: Point,
    limits: ViewportConfig,
    remember: bool = False,
) -> ViewportState:
    """Zoom keeping the screen ``pixel`` fixed; optionally remember it as the focus."""
    focus = state.to_map(pixel)
    zoomed = _zoom_about(state, factor, focus, limits)
    return replace(zoomed, focus=focus) if remember else zoomed


def pan_by(state: ViewportState, dx: float, dy: float) -> ViewportState:
    """Pan by screen pixels; content moves opposite to the requested direction."""
    return replace(state, tx=state.tx - dx, ty=state.ty - dy)


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


@dataclass(frozen=True)
class Transition:
    """Time-based interpolation between two transforms."""

    start: ViewportState
    end: ViewportState
    started_at: float
    duration: float

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return clamp((now - self.started_at) / self.duration, 0.0, 1.0)

    def done(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    def frame(self, now: float) -> ViewportState:
        t = ease_cubic_in_out(self.progress(now))
        if t >= 1.0:
            return self.end
        s, e = self.start, self.end
        return replace(
            e,
            k=s.k + (e.k - s.k) * t,
            tx=s.tx + (e.tx - s.tx) * t,
            ty=s.ty + (e.ty - s.ty) * t,
        )


@dataclass
class DragSession:
    """Baseline captured at drag start; moves are relative to it."""

    origin: Point
    baseline: Point

    def moved(self, state: ViewportState, pointer: Point) -> ViewportState:
        return replace(
            state,
            tx=self.baseline[0] + pointer[0] - self.origin[0],
            ty=self.baseline[1] + pointer[1] - self.origin[1],
        )


class ViewportTransform:
    """
    Single owner of the map transform.

    ``state`` is always the logical target of the last command. ``frame(now)``
    returns what should be drawn at ``now`` while an animation is in flight.
    A new command computes its target from ``state`` and animates from the
    currently rendered frame.
    """

    def __init__(
        self,
        size: Size,
        limits: Optional[ViewportConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.size = size
        self.limits = limits or ViewportConfig()
        self.clock = clock
        self.state = ViewportState()
        self.transition: Optional[Transition] = None
        self._drag: Optional[DragSession] = None

    # -- animation driver -------------------------------------------------

    def frame(self, now: Optional[float] = None) -> ViewportState:
        now = self.clock() if now is None else now
        if self.transition is None:
            return self.state
        if self.transition.done(now):
            self.transition = None
            return self.state
        return self.transition.frame(now)

    def _animate_to(self, target: ViewportState, duration: float) -> ViewportState:
        now = self.clock()
        start = self.frame(now)
        self.state = target
        self.transition = Transition(start, target, now, duration) if duration > 0 else None
        return target

    def _set_immediate(self, target: ViewportState) -> ViewportState:
        self.transition = None
        self.state = target
        return target

    # -- commands ---------------------------------------------------------

    def focus_on(self, bounds: Bounds, feature_name: Optional[str] = None) -> ViewportState:
        target = focus_on(self.state, bounds, self.size, self.limits, feature_name)
        return self._animate_to(target, self.limits.transition_duration)

    def reset(self, duration: Optional[float] = None) -> ViewportState:
        if duration is None:
            duration = self.limits.reset_duration
        return self._animate_to(reset(self.state), duration)

    def zoom_by(self, factor: float) -> ViewportState:
        target = zoom_by(self.state, factor, self.size, self.limits)
        return self._animate_to(target, self.limits.transition_duration)

    def zoom_in(self) -> ViewportState:
        return self.zoom_by(self.limits.zoom_step)

    def zoom_out(self) -> ViewportState:
        return self.zoom_by(1 / self.limits.zoom_step)

    def zoom_at(self, factor: float, pixel: Point, remember: bool = False) -> ViewportState:
        target = zoom_at(self.state, factor, pixel, self.limits, remember=remember)
        return self._animate_to(target, self.limits.transition_duration)

    def wheel(self, delta_y: float, cursor: Point, single_entity: bool) -> ViewportState:
        """
        Pointer wheel zoom.

        While exactly one entity is focused the zoom keeps centring on the
        remembered focus instead of drifting to the cursor.
        """
        if delta_y == 0:
            return self.state
        factor = self.limits.wheel_step if delta_y < 0 else 1 / self.limits.wheel_step
        if single_entity and self.state.focus is not None:
            target = _zoom_about(self.state, factor, self.state.focus, self.limits)
            return self._animate_to(target, self.limits.transition_duration)
        return self.zoom_at(factor, cursor, remember=single_entity)

    def pan_by(self, dx: float, dy: float) -> ViewportState:
        return self._set_immediate(pan_by(self.state, dx, dy))

    def pan(self, direction: str) -> ViewportState:
        steps = {
            "up": (0.0, -self.limits.pan_step_y),
            "down": (0.0, self.limits.pan_step_y),
            "left": (-self.limits.pan_step_x, 0.0),
            "right": (self.limits.pan_step_x, 0.0),
        }
        if direction not in steps:
            raise ValueError(f"Unknown pan direction '{direction}'")
        return self.pan_by(*steps[direction])

    # -- drag -------------------------------------------------------------

    def drag_start(self, pointer: Point) -> None:
        current = self._set_immediate(self.frame())
        self._drag = DragSession(origin=pointer, baseline=(current.tx, current.ty))

    def drag_move(self, pointer: Point) -> ViewportState:
        if self._drag is None:
            return self.state
        return self._set_immediate(self._drag.moved(self.state, pointer))

    def drag_end(self) -> None:
        self._drag = None

    def resize(self, size: Size) -> None:
        self.size = size
