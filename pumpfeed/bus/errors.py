"""Event bus signals surfaced to subscribers."""

from __future__ import annotations


class LaggedError(Exception):
    """Raised when a subscriber fell behind the retained history.

    The subscription has already been moved to the oldest retained event;
    the next ``recv`` resumes from there.

    Attributes
    ----------
    skipped
        Number of events the subscriber will never see.

    """

    def __init__(self, skipped: int) -> None:
        """Initialise with the number of dropped events."""
        self.skipped = skipped
        super().__init__(f"subscriber lagged behind by {skipped} events")


class BusClosedError(Exception):
    """Raised when reading from or publishing to a closed bus."""

    @classmethod
    def bus_closed(cls) -> BusClosedError:
        """Return an error for a bus that was shut down."""
        return cls("event bus is closed")

    @classmethod
    def detached(cls) -> BusClosedError:
        """Return an error for a subscription that was closed by its owner."""
        return cls("subscription is closed")
