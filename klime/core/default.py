"""Process-wide default client.

Most applications use one write key. They configure a single client once
and call the module-level helpers from anywhere:

    await klime.configure(write_key="your-write-key")
    await klime.track("Button Clicked", {"button": "signup"}, user_id="user_123")
    ...
    await klime.shutdown()
"""

from typing import Any

from klime.core.client import Client, ClientStats
from klime.core.config import ClientConfig
from klime.core.retry import SendResult
from klime.transports.base import Transport

_default_client: Client | None = None


class ClientNotConfiguredError(RuntimeError):
    """Raised when a module-level helper is used before ``configure()``."""


async def configure(
    config: ClientConfig | None = None, *, transport: Transport | None = None, **options: Any
) -> Client:
    """Create, start and install the default client.

    Accepts the same arguments as :class:`Client`. A previous default client
    must be shut down first.

    Raises:
        ConfigurationError: If the options are missing or invalid.
        RuntimeError: If a live default client is already installed.
    """
    global _default_client
    if _default_client is not None and not _default_client.is_shutdown:
        raise RuntimeError("default client already configured; call klime.shutdown() first")
    client = Client(config, transport=transport, **options)
    client.start()
    _default_client = client
    return client


def get_client() -> Client:
    """Return the default client."""
    if _default_client is None:
        raise ClientNotConfiguredError("klime is not configured; call klime.configure() first")
    return _default_client


async def track(
    event_name: str,
    properties: dict[str, Any] | None = None,
    *,
    user_id: str | None = None,
    group_id: str | None = None,
    ip: str | None = None,
) -> None:
    await get_client().track(event_name, properties, user_id=user_id, group_id=group_id, ip=ip)


async def identify(user_id: str, traits: dict[str, Any] | None = None, *, ip: str | None = None) -> None:
    await get_client().identify(user_id, traits, ip=ip)


async def group(
    group_id: str,
    traits: dict[str, Any] | None = None,
    *,
    user_id: str | None = None,
    ip: str | None = None,
) -> None:
    await get_client().group(group_id, traits, user_id=user_id, ip=ip)


async def track_sync(
    event_name: str,
    properties: dict[str, Any] | None = None,
    *,
    user_id: str | None = None,
    group_id: str | None = None,
    ip: str | None = None,
) -> SendResult:
    return await get_client().track_sync(event_name, properties, user_id=user_id, group_id=group_id, ip=ip)


async def identify_sync(
    user_id: str, traits: dict[str, Any] | None = None, *, ip: str | None = None
) -> SendResult:
    return await get_client().identify_sync(user_id, traits, ip=ip)


async def group_sync(
    group_id: str,
    traits: dict[str, Any] | None = None,
    *,
    user_id: str | None = None,
    ip: str | None = None,
) -> SendResult:
    return await get_client().group_sync(group_id, traits, user_id=user_id, ip=ip)


async def flush() -> None:
    await get_client().flush()


async def shutdown() -> None:
    """Shut down and uninstall the default client. No-op if none is installed."""
    global _default_client
    client, _default_client = _default_client, None
    if client is not None:
        await client.shutdown()


def queue_size() -> int:
    return get_client().queue_size()


def get_stats() -> ClientStats:
    return get_client().get_stats()
