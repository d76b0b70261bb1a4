"""
Circuit breaker for the upstream pricing feed.
Stops hammering the Azure Retail Prices API while it is failing.
"""
from enum import Enum
import logging
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


FAILURE_THRESHOLD = 3  # Consecutive failures before the breaker opens
OPEN_STATE_DURATION = 60  # Seconds spent OPEN before a trial request


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Requests pass through
    OPEN = "open"  # Requests rejected without calling upstream
    HALF_OPEN = "half_open"  # One trial request allowed


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    CLOSED -> OPEN after `failure_threshold` failures in a row.
    OPEN -> HALF_OPEN once `open_duration` seconds have passed.
    HALF_OPEN -> CLOSED on success, back to OPEN on failure.
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = FAILURE_THRESHOLD,
        open_duration: float = OPEN_STATE_DURATION,
        clock: Callable[[], float] = time.monotonic
    ):
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.open_duration = open_duration
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._trial_in_flight = False

    def _transition(self, new_state: CircuitState, reason: str) -> None:
        logger.warning(
            "Circuit breaker for %s: %s -> %s (%s)",
            self.service_name, self.state.name, new_state.name, reason
        )
        self.state = new_state

    def allow_request(self) -> bool:
        """
        Check whether a call to the upstream service may proceed.

        Returns:
            True if the call should be made, False if it must be skipped
        """
        if self.state == CircuitState.OPEN:
            if self.opened_at is not None and self._clock() - self.opened_at >= self.open_duration:
                self._transition(CircuitState.HALF_OPEN, "testing recovery")
                self._trial_in_flight = True
                return True
            return False

        if self.state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

        return True

    def record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED, "service recovered")
            self.opened_at = None
        self.failure_count = 0
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self._trial_in_flight = False

        if self.state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN, "service still failing")
            self.opened_at = self._clock()
        elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            self._transition(CircuitState.OPEN, f"{self.failure_count} consecutive failures")
            self.opened_at = self._clock()


# One breaker per upstream service
_circuit_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(service_name: str) -> CircuitBreaker:
    """
    Get or create the circuit breaker for a service.

    Args:
        service_name: Name of the upstream service

    Returns:
        CircuitBreaker instance for the service
    """
    if service_name not in _circuit_breakers:
        _circuit_breakers[service_name] = CircuitBreaker(service_name)
    return _circuit_breakers[service_name]
