"""Reconnect state machine for the upstream subscription.

The supervisor owns one connection at a time and moves through four phases::

    disconnected -> connecting -> subscribed -> streaming
          ^                                        |
          +---------- closed / failed -------------+

``transition`` is the only place phases and backoff change, so the backoff
schedule can be exercised without a network: feed it ``FAILED`` and
``CLOSED`` signals and read ``delay`` off the resulting states.

Examples
--------
>>> policy = BackoffPolicy()
>>> state = initial_state(policy)
>>> delays = []
>>> for _ in range(7):
...     state = transition(state, Signal.RETRY, policy)
...     state = transition(state, Signal.FAILED, policy)
...     delays.append(state.delay)
>>> delays
[1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

"""

from __future__ import annotations

import dataclasses
import enum

from .errors import InvalidTransitionError


class Phase(enum.StrEnum):
    """Connection lifecycle phases."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    STREAMING = "streaming"


class Signal(enum.StrEnum):
    """Inputs that drive the reconnect state machine."""

    RETRY = "retry"
    SUBSCRIBED = "subscribed"
    UPDATE = "update"
    CLOSED = "closed"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Capped exponential backoff between connection attempts (seconds)."""

    initial: float = 1.0
    maximum: float = 30.0
    factor: float = 2.0

    def escalate(self, current: float) -> float:
        """Return the delay that follows *current* after another failure."""
        return min(current * self.factor, self.maximum)


@dataclasses.dataclass(frozen=True, slots=True)
class SupervisorState:
    """Snapshot of the supervisor's position in the reconnect cycle.

    Attributes
    ----------
    phase
        Current lifecycle phase.
    delay
        Seconds to wait before the next connection attempt. Only meaningful
        while disconnected; zero means connect immediately.
    backoff
        Delay that the next failure will impose.

    """

    phase: Phase
    delay: float
    backoff: float

    @property
    def is_live(self) -> bool:
        """Return True once a subscription has been accepted upstream."""
        return self.phase in {Phase.SUBSCRIBED, Phase.STREAMING}


def initial_state(policy: BackoffPolicy) -> SupervisorState:
    """Return the starting state: disconnected, no wait, backoff at the floor."""
    return SupervisorState(Phase.DISCONNECTED, delay=0.0, backoff=policy.initial)


_ALLOWED: dict[Phase, frozenset[Signal]] = {
    Phase.DISCONNECTED: frozenset({Signal.RETRY}),
    Phase.CONNECTING: frozenset({Signal.SUBSCRIBED, Signal.FAILED}),
    Phase.SUBSCRIBED: frozenset({Signal.UPDATE, Signal.CLOSED, Signal.FAILED}),
    Phase.STREAMING: frozenset({Signal.UPDATE, Signal.CLOSED, Signal.FAILED}),
}


def transition(
    state: SupervisorState, signal: Signal, policy: BackoffPolicy
) -> SupervisorState:
    """Return the state that follows *state* on *signal*.

    Raises
    ------
    InvalidTransitionError
        If *signal* cannot occur in the current phase.

    """
    if signal not in _ALLOWED[state.phase]:
        raise InvalidTransitionError.for_signal(state.phase, signal)

    match signal:
        case Signal.RETRY:
            return dataclasses.replace(state, phase=Phase.CONNECTING, delay=0.0)
        case Signal.SUBSCRIBED:
            return dataclasses.replace(state, phase=Phase.SUBSCRIBED)
        case Signal.UPDATE:
            return dataclasses.replace(state, phase=Phase.STREAMING)
        case Signal.CLOSED:
            # Clean close resets the schedule to the floor.
            return SupervisorState(
                Phase.DISCONNECTED, delay=policy.initial, backoff=policy.initial
            )
        case Signal.FAILED:
            return SupervisorState(
                Phase.DISCONNECTED,
                delay=state.backoff,
                backoff=policy.escalate(state.backoff),
            )


__all__ = [
    "BackoffPolicy",
    "Phase",
    "Signal",
    "SupervisorState",
    "initial_state",
    "transition",
]
