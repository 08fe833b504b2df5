"""
Trajectory animation controller for the Sargassum Drift Visualization Engine.

The controller owns the animation state and the in-memory sequences of
one session:
- Stepping forward/back through the concentration samples
- A cancelable play loop that wraps around at the terminal step
- Site filtering of the loaded data without re-fetching
- Re-rendering the current frame after every transition

All state is touched from a single thread of control; the only
recurring timer is the play loop, and at most one is pending at a time.
"""

import logging
import sched
import time
from typing import Dict, Any, Callable, List, Optional, Sequence, Tuple

from . import config
from .adapter import build_steps, split_steps
from .coastal_sites import CoastalSiteRegistry, in_filter_zone
from .data_models import (
    AnimationState, ConcentrationSample, DerivedStatistics, Trajectory, TrajectoryStep
)
from .density import DensityFieldGenerator
from .interfaces import RenderingSurfaceInterface, SchedulerInterface, TimerHandle, bounding_box
from .render import FrameRenderer, FrameSummary
from .risk_stats import StatisticsAggregator

logger = logging.getLogger(__name__)


class _ScheduledCall:
    """Cancelable handle for a callback queued on an EventScheduler."""

    def __init__(self, queue: sched.scheduler, event: sched.Event):
        self._queue = queue
        self._event = event

    def cancel(self) -> None:
        if self._event in self._queue.queue:
            self._queue.cancel(self._event)


class EventScheduler:
    """
    Single-threaded scheduler built on ``sched``.

    Callbacks never run on their own: they fire from ``run_pending`` (or the
    blocking ``run``) on the thread that drives the scheduler, which is the
    same thread that issues every other controller call.
    """

    def __init__(self, timefunc: Callable[[], float] = time.monotonic,
                 delayfunc: Callable[[float], Any] = time.sleep):
        self._queue = sched.scheduler(timefunc, delayfunc)

    @property
    def pending(self) -> int:
        return len(self._queue.queue)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ScheduledCall:
        event = self._queue.enter(delay, 0, callback)
        return _ScheduledCall(self._queue, event)

    def run_pending(self) -> None:
        """Run every callback whose delay has elapsed, without waiting."""
        self._queue.run(blocking=False)

    def run(self) -> None:
        """Run callbacks as they come due until none are queued."""
        self._queue.run()


class AnimationController:
    """
    State machine stepping through a drift prediction.

    Args:
        surface: Rendering surface receiving every frame
        registry: Coastal site registry (shared default if None)
        scheduler: Timer for the play loop (EventScheduler if None)
        generator: Density field generator (unseeded if None)
        interval_seconds: Play loop period (from config if None)
    """

    def __init__(self, surface: RenderingSurfaceInterface,
                 registry: Optional[CoastalSiteRegistry] = None,
                 scheduler: Optional[SchedulerInterface] = None,
                 generator: Optional[DensityFieldGenerator] = None,
                 interval_seconds: Optional[float] = None):
        self.surface = surface
        self.renderer = FrameRenderer(surface, registry, generator)
        self.aggregator = StatisticsAggregator(registry)
        self.scheduler = scheduler or EventScheduler()
        if interval_seconds is None:
            interval_seconds = config.ANIMATION_CONFIG['interval_seconds']
        self.interval_seconds = interval_seconds

        self.state = AnimationState()
        self.steps: List[TrajectoryStep] = []
        self.statistics = DerivedStatistics()
        self.site_filter = ''
        self.date_range: Tuple[Optional[str], Optional[str]] = (None, None)
        self.last_frame: Optional[FrameSummary] = None

        self._timer: Optional[TimerHandle] = None
        self._schedule_id = 0
        self._torn_down = False

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def total_steps(self) -> int:
        return self.state.total_steps

    @property
    def is_animating(self) -> bool:
        return self.state.is_animating

    @property
    def is_loaded(self) -> bool:
        return self.state.total_steps > 0

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def load(self, trajectories: Sequence[Trajectory],
             samples: Sequence[ConcentrationSample]) -> bool:
        """
        Load a trajectory and its concentration samples.

        Resets the animation to step 0, recomputes the statistics from the
        full sample sequence and renders the first frame. Ignored once the
        controller has been torn down.

        Args:
            trajectories: Trajectories from the adapter
            samples: Index-aligned concentration samples from the adapter

        Returns:
            True if the data was loaded, False if it was ignored
        """
        if self._torn_down:
            logger.debug("Ignoring data received after teardown")
            return False

        self.steps = build_steps(trajectories, samples)
        self.state.total_steps = len(self.steps)
        self.state.current_step = 0
        self.statistics = self.aggregator.compute([s.sample for s in self.steps])

        logger.info(f"Loaded {self.state.total_steps} animation steps")

        self._fit_viewport()
        self.update_animation_step()
        return True

    def matches_filter(self, step: TrajectoryStep) -> bool:
        """
        Check whether a step passes the active site filter.

        A selection matches a step whose site tag equals it, or whose point
        lies inside the filter zone of that name.
        """
        if not self.site_filter:
            return True
        if step.location == self.site_filter:
            return True
        return in_filter_zone(self.site_filter, step.point.latitude, step.point.longitude)

    def filtered_steps(self) -> List[TrajectoryStep]:
        return [step for step in self.steps if self.matches_filter(step)]

    def next_step(self) -> bool:
        """
        Advance one step; a no-op at the terminal step.

        Returns:
            True if the step changed
        """
        if self.state.current_step < self.state.total_steps - 1:
            self.state.current_step += 1
            self.update_animation_step()
            return True
        return False

    def previous_step(self) -> bool:
        """
        Go back one step; a no-op at step 0.

        Returns:
            True if the step changed
        """
        if self.state.current_step > 0:
            self.state.current_step -= 1
            self.update_animation_step()
            return True
        return False

    def go_to(self, step: int) -> int:
        """
        Jump to a step, clamped to the loaded range.

        Returns:
            The step actually reached
        """
        if self.state.total_steps == 0:
            return 0
        target = max(0, min(step, self.state.total_steps - 1))
        if target != step:
            logger.debug(f"Step {step} out of range, clamped to {target}")
        if target != self.state.current_step:
            self.state.current_step = target
            self.update_animation_step()
        return target

    def play(self) -> None:
        """Start the play loop, replacing any pending timer."""
        if self._torn_down:
            return
        self._cancel_timer()
        self.state.is_animating = True
        logger.info(f"Animation started ({self.interval_seconds}s per step)")
        self._schedule()

    def pause(self) -> None:
        """Stop the play loop."""
        self.state.is_animating = False
        self._cancel_timer()
        logger.info(f"Animation paused at step {self.state.current_step + 1}/{self.state.total_steps}")

    def toggle_animation(self) -> bool:
        """
        Switch between playing and paused.

        Returns:
            Whether the animation is now playing
        """
        if self.state.is_animating:
            self.pause()
        else:
            self.play()
        return self.state.is_animating

    def set_site_filter(self, selection: Optional[str]) -> FrameSummary:
        """
        Apply a site filter to the loaded data and redraw.

        Args:
            selection: Site tag or filter zone slug; empty for all sites

        Returns:
            Summary of the redrawn frame
        """
        self.site_filter = selection or ''
        logger.info(f"Site filter: {self.site_filter or 'all sites'}")
        frame = self.update_animation_step()
        self._fit_viewport()
        return frame

    def set_date_range(self, start: Optional[str], end: Optional[str]) -> None:
        """
        Record the selected date range.

        Samples carry no date, so the range does not change what is drawn.
        """
        self.date_range = (start, end)
        logger.debug(f"Date range set to {start} - {end}")

    def update_animation_step(self) -> Optional[FrameSummary]:
        """
        Redraw the current frame.

        Returns:
            Summary of the frame, or None after teardown
        """
        if self._torn_down:
            return None

        visible = self.filtered_steps()
        trajectories, _ = split_steps(visible)
        self.last_frame = self.renderer.render(
            trajectories, visible, self.state.current_step, self.state.total_steps
        )
        return self.last_frame

    def teardown(self) -> None:
        """Cancel any pending timer and ignore everything that arrives later."""
        self._cancel_timer()
        self.state.is_animating = False
        if not self._torn_down:
            logger.info("Animation controller torn down")
        self._torn_down = True

    def _fit_viewport(self) -> None:
        points = [step.point.position for step in self.filtered_steps()]
        bounds = bounding_box(points)
        if bounds is not None:
            self.surface.fit_bounds(bounds[0], bounds[1], config.MAP_CONFIG['fit_padding_px'])

    def _schedule(self) -> None:
        self._schedule_id += 1
        schedule_id = self._schedule_id
        self._timer = self.scheduler.call_later(self.interval_seconds,
                                                lambda: self._tick(schedule_id))

    def _cancel_timer(self) -> None:
        self._schedule_id += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self, schedule_id: int) -> None:
        """
        Advance the play loop by one step, wrapping to 0 after the terminal step.

        A tick belonging to a cancelled or replaced schedule does nothing, and
        a tick only reschedules itself while its schedule is still current.
        """
        if schedule_id != self._schedule_id:
            return
        self._timer = None
        if self._torn_down or not self.state.is_animating:
            return

        if self.state.total_steps > 0:
            if self.state.current_step < self.state.total_steps - 1:
                self.next_step()
            else:
                self.state.current_step = 0
                self.update_animation_step()

        # pause() or play() during the redraw replaced this schedule
        if schedule_id != self._schedule_id:
            return
        self._schedule()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.to_dict(),
            'site_filter': self.site_filter,
            'statistics': self.statistics.to_dict(),
            'frame': self.last_frame.to_dict() if self.last_frame else None
        }
