"""Server-sent event stream of creation events."""
