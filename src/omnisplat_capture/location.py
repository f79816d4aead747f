"""Continuous position feed.

Wraps an external location provider, turns each provider reading into an
immutable :class:`GeoFix`, and keeps a reference to the latest one. Readers
take that reference without locking; the feed only ever swaps it.
"""
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Protocol, Union

from .config import CaptureConfig
from .errors import LocationUnavailable, PermissionDenied
from .models import GeoFix, GpsQuality
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LocationOptions:
    """Subscription parameters handed to the provider."""
    min_interval_ms: int = 1000
    min_distance_m: float = 0.1
    high_accuracy: bool = True

    @classmethod
    def from_config(cls, config: CaptureConfig) -> "LocationOptions":
        return cls(
            min_interval_ms=config.gps_update_interval_ms,
            min_distance_m=config.gps_distance_interval_m,
        )


@dataclass(frozen=True)
class PositionReading:
    """Raw provider output. Missing altitude/heading/speed are None."""
    latitude: float
    longitude: float
    accuracy: float
    altitude: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    timestamp_ms: int = 0


class LocationProvider(Protocol):
    """External positioning capability."""

    def request_permission(self) -> bool:
        ...

    def subscribe(
        self,
        options: LocationOptions,
        handler: Callable[[Union[PositionReading, GeoFix]], None],
    ) -> Any:
        ...

    def unsubscribe(self, handle: Any) -> None:
        ...


FixHandler = Callable[[GeoFix], None]


@dataclass(frozen=True)
class SubscriptionHandle:
    """Returned by :meth:`LocationFeed.subscribe`."""
    token: int


def classify_accuracy(accuracy: Optional[float], config: Optional[CaptureConfig] = None) -> GpsQuality:
    """Bucket a horizontal accuracy (meters) into a GpsQuality."""
    cfg = config or CaptureConfig()
    if accuracy is None:
        return GpsQuality.NONE
    if accuracy < cfg.precision_threshold_m:
        return GpsQuality.RTK
    if accuracy < cfg.gps_accuracy_threshold_m:
        return GpsQuality.GOOD
    if accuracy < cfg.gps_fair_threshold_m:
        return GpsQuality.FAIR
    return GpsQuality.POOR


class LocationFeed:
    """Latest-fix cache over a provider subscription."""

    def __init__(self, provider: LocationProvider, config: Optional[CaptureConfig] = None):
        self.provider = provider
        self.config = config or CaptureConfig()

        self._current_fix: Optional[GeoFix] = None
        self._provider_handle: Any = None
        self._running = False
        # Bumped on every start/stop; readings tagged with an older value are dropped
        self._generation = 0
        self._handlers: Dict[int, FixHandler] = {}
        self._handler_ids = itertools.count(1)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Provider lifecycle
    # ------------------------------------------------------------------

    def request_permission(self) -> None:
        """Ask the provider for location access.

        Raises:
            PermissionDenied: If access is refused.
        """
        if not self.provider.request_permission():
            logger.error("Location permission denied")
            raise PermissionDenied("Location access is required for georeferencing")

    def start(self, options: Optional[LocationOptions] = None) -> None:
        """Begin the continuous position subscription.

        Args:
            options: Subscription parameters (defaults from config).

        Raises:
            LocationUnavailable: If the provider cannot be started.
        """
        with self._lock:
            if self._running:
                return
            self._generation += 1
            generation = self._generation

        opts = options or LocationOptions.from_config(self.config)

        def _on_reading(reading):
            self._handle_reading(generation, reading)

        try:
            handle = self.provider.subscribe(opts, _on_reading)
        except Exception as e:
            logger.error(f"Location tracking failed to start: {e}")
            raise LocationUnavailable(f"Failed to start location tracking: {e}") from e

        with self._lock:
            self._provider_handle = handle
            self._running = True

        logger.info(
            f"Location tracking started ({opts.min_interval_ms}ms / {opts.min_distance_m}m, "
            f"high_accuracy={opts.high_accuracy})"
        )

    def stop(self) -> None:
        """Cancel the subscription. Safe to call repeatedly."""
        with self._lock:
            if not self._running:
                return
            handle = self._provider_handle
            self._provider_handle = None
            self._running = False
            self._generation += 1

        self.provider.unsubscribe(handle)
        logger.info("Location tracking stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Consumers
    # ------------------------------------------------------------------

    def subscribe(self, handler: FixHandler) -> SubscriptionHandle:
        """Register a handler called with every new fix."""
        token = next(self._handler_ids)
        with self._lock:
            self._handlers[token] = handler
        return SubscriptionHandle(token=token)

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        with self._lock:
            self._handlers.pop(handle.token, None)

    @property
    def current_fix(self) -> Optional[GeoFix]:
        return self._current_fix

    @property
    def accuracy(self) -> Optional[float]:
        fix = self._current_fix
        return fix.accuracy if fix else None

    @property
    def is_precise(self) -> bool:
        fix = self._current_fix
        return bool(fix and fix.is_precise)

    @property
    def gps_quality(self) -> GpsQuality:
        return classify_accuracy(self.accuracy, self.config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _to_fix(self, reading: Union[PositionReading, GeoFix]) -> GeoFix:
        threshold = self.config.precision_threshold_m
        if isinstance(reading, GeoFix):
            return replace(reading, is_precise=reading.accuracy < threshold)
        return GeoFix.create(
            latitude=reading.latitude,
            longitude=reading.longitude,
            accuracy=reading.accuracy,
            altitude=reading.altitude,
            heading=reading.heading,
            speed=reading.speed,
            timestamp_ms=reading.timestamp_ms,
            precision_threshold=threshold,
        )

    def _handle_reading(self, generation: int, reading: Union[PositionReading, GeoFix]) -> None:
        if generation != self._generation:
            return

        fix = self._to_fix(reading)
        self._current_fix = fix

        with self._lock:
            handlers = list(self._handlers.values())

        for handler in handlers:
            try:
                handler(fix)
            except Exception:
                logger.error("Location handler raised", exc_info=True)
