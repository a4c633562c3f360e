"""Factory for creating session stores."""

from typing import Any

from .base import SessionStore


def create_session_store(
    backend: str = "json",
    **kwargs: Any
) -> SessionStore:
    """Create a session store.

    Args:
        backend: Backend type ("json" or "memory")
        **kwargs: Backend-specific configuration
            For json:
                - directory: str | Path (required)

    Returns:
        SessionStore instance

    Raises:
        ValueError: If backend type is not supported
        TypeError: If required configuration is missing
    """
    if backend == "json":
        if "directory" not in kwargs:
            raise TypeError("JSON session store requires 'directory'")
        from .json_store import JSONSessionStore
        return JSONSessionStore(**kwargs)

    elif backend == "memory":
        from .in_memory import InMemorySessionStore
        return InMemorySessionStore(**kwargs)

    raise ValueError(
        f"Unsupported session store backend: {backend}. "
        f"Supported backends: json, memory"
    )
