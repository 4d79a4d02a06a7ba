"""Cancellation support for async operations."""


class CancellationToken:
    """Token for cooperative cancellation of a running query.

    A session creates one token per query. When the client asks to cancel,
    the token is cancelled and the relay loop of the query stops at the next
    event boundary, closing the backend stream it was reading.

    Example:
        token = CancellationToken()

        async def relay(stream):
            async for event in stream:
                if token.is_cancelled:
                    break
                await forward(event)

        # When the client sends "cancel":
        token.cancel()
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation. Calling it again has no further effect."""
        self._cancelled = True
