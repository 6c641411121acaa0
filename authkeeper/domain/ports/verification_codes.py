from typing import Protocol


class VerificationCodeStorePort(Protocol):
    async def generate(self, email: str) -> str:
        """Create a random code for `email`, replacing any pending one, and return it."""

    async def matches(self, email: str, code: str) -> bool:
        """True if `code` is the pending one. Does not consume it."""

    async def check(self, email: str, code: str) -> bool:
        """True if matches (and then delete it for single-use), else False."""

    async def invalidate(self, email: str) -> None:
        """Delete any existing code. Idempotent."""

    async def throttle(self, email: str, seconds: int) -> bool:
        """
        Claim a cool-down marker for `email` lasting `seconds`.
        False if a marker is already held.
        """

    async def release_throttle(self, email: str) -> None:
        """Drop the cool-down marker, if any."""
