"""Simulated live tracking of a worker travelling to a task location.

A TrackingSession is Idle until start() and Running until stop() or arrival.
Each tick moves the tracked position a fixed fraction of the remaining way to the
destination and emits a TrackingUpdate. Ticks are driven either by an APScheduler
interval job or by calling tick() directly, which keeps the session testable
without a clock.
"""

import logging
import math
import uuid
from collections.abc import Callable
from enum import StrEnum

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import BaseModel

from worklink.core.config import Constants, settings
from worklink.core.geo import distance_between, interpolate_towards
from worklink.core.scheduler import cancel_job, schedule_interval
from worklink.domain.task import GeoPoint


logger = logging.getLogger(__name__)


class TrackingState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"


class TrackingUpdate(BaseModel):
    """Position report emitted after every tick."""

    tick: int
    position: GeoPoint
    remaining_km: float
    eta_minutes: int
    arrived: bool


def estimate_eta_minutes(remaining_km: float, *, speed_km_per_minute: float | None = None) -> int:
    """Whole minutes needed to cover ``remaining_km``, at least one minute unless already there."""
    speed = settings.tracking_speed_km_per_minute if speed_km_per_minute is None else speed_km_per_minute
    if speed <= 0:
        msg = f"speed_km_per_minute must be positive, got {speed}"
        raise ValueError(msg)
    if remaining_km <= 0:
        return 0
    return max(Constants.MIN_ETA_MINUTES, math.ceil(remaining_km / speed))


class TrackingSession:
    """One worker-to-destination tracking feed."""

    def __init__(
        self,
        *,
        fraction: float | None = None,
        epsilon_km: float | None = None,
        on_update: Callable[[TrackingUpdate], None] | None = None,
        scheduler: AsyncIOScheduler | None = None,
        session_id: str | None = None,
    ) -> None:
        self.fraction = settings.tracking_step_fraction if fraction is None else fraction
        self.epsilon_km = settings.tracking_arrival_epsilon_km if epsilon_km is None else epsilon_km
        if not 0 < self.fraction <= 1:
            msg = f"fraction must be in (0, 1], got {self.fraction}"
            raise ValueError(msg)
        if self.epsilon_km <= 0:
            msg = f"epsilon_km must be positive, got {self.epsilon_km}"
            raise ValueError(msg)
        self.on_update = on_update
        self.session_id = session_id or f"tracking-{uuid.uuid4().hex[:12]}"
        self._scheduler = scheduler
        self._job_scheduled = False

        self.state = TrackingState.IDLE
        self.position: GeoPoint | None = None
        self.destination: GeoPoint | None = None
        self.eta_minutes = 0
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self.state == TrackingState.RUNNING

    @property
    def remaining_km(self) -> float:
        if self.position is None or self.destination is None:
            return 0.0
        return distance_between(self.position, self.destination)

    def start(
        self,
        *,
        origin: GeoPoint,
        destination: GeoPoint,
        tick_interval_seconds: float | None = None,
    ) -> None:
        """Begin tracking from ``origin`` towards ``destination``.

        Raises:
            RuntimeError: If the session is already running
        """
        if self.is_running:
            msg = f"Tracking session {self.session_id} is already running"
            raise RuntimeError(msg)

        self.position = origin
        self.destination = destination
        self.ticks = 0
        self.eta_minutes = estimate_eta_minutes(self.remaining_km)
        self.state = TrackingState.RUNNING

        if self._scheduler is not None:
            if tick_interval_seconds is None:
                tick_interval_seconds = settings.tracking_tick_seconds
            schedule_interval(
                self._scheduler,
                job_id=self.session_id,
                func=self._scheduled_tick,
                seconds=tick_interval_seconds,
            )
            self._job_scheduled = True

        logger.info(
            "Started tracking session %s (%.3f km to go, eta %d min)",
            self.session_id,
            self.remaining_km,
            self.eta_minutes,
        )

    async def _scheduled_tick(self) -> None:
        self.tick()

    def tick(self) -> TrackingUpdate | None:
        """Advance the simulated position once; returns None when the session is not running."""
        if not self.is_running or self.position is None or self.destination is None:
            return None

        self.position = interpolate_towards(self.position, self.destination, self.fraction, epsilon_km=self.epsilon_km)
        self.ticks += 1
        arrived = self.position == self.destination
        self.eta_minutes = 0 if arrived else max(Constants.MIN_ETA_MINUTES, self.eta_minutes - 1)

        update = TrackingUpdate(
            tick=self.ticks,
            position=self.position,
            remaining_km=self.remaining_km,
            eta_minutes=self.eta_minutes,
            arrived=arrived,
        )
        if self.on_update is not None:
            self.on_update(update)

        if arrived:
            logger.info("Tracking session %s arrived after %d ticks", self.session_id, self.ticks)
            self.stop()
        return update

    def stop(self) -> None:
        """Stop ticking. Safe to call more than once."""
        if self._job_scheduled and self._scheduler is not None:
            cancel_job(self._scheduler, job_id=self.session_id)
            self._job_scheduled = False

        if self.is_running:
            self.state = TrackingState.IDLE
            logger.info("Stopped tracking session %s", self.session_id)
