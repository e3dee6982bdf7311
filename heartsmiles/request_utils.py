"""Utilities for handling FastAPI requests."""

from fastapi import Request


def get_client_ip(request: Request, trusted_hops: int = 1) -> str:
    """Extract the client IP address, trusting a fixed number of proxy hops.

    Args:
        request: FastAPI request object
        trusted_hops: Number of reverse proxies in front of the app whose
            forwarding headers are trusted

    Returns:
        Client IP address as string. Returns "unknown" if unable to determine.

    Notes:
        - The address chain is read from the socket peer backwards through
          X-Forwarded-For, one entry per trusted proxy
        - With one trusted hop the client is the right-most X-Forwarded-For
          entry, the address our own proxy saw. Left-most entries are written
          by the client and are never trusted
        - Without X-Forwarded-For the socket peer is the client
    """
    peer = request.client.host if request.client and request.client.host else None

    forwarded_for: str | None = request.headers.get("X-Forwarded-For")
    forwarded = (
        [entry.strip() for entry in forwarded_for.split(",") if entry.strip()]
        if forwarded_for
        else []
    )

    chain = [peer or "unknown", *reversed(forwarded)]
    return chain[min(trusted_hops, len(chain) - 1)]
