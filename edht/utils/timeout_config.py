"""Centralized timeout configuration for calls to the tracker backend."""
import httpx


def get_backend_timeout():
    """Get an httpx timeout configuration for regular backend requests."""
    from config import settings

    return httpx.Timeout(
        connect=settings.external_api_connect_timeout,
        read=settings.external_api_timeout,
        write=settings.external_api_write_timeout,
        pool=5.0
    )


def get_quick_timeout():
    """Get a quick timeout for fast operations such as logout."""
    return httpx.Timeout(connect=3.0, read=5.0, write=3.0, pool=3.0)
