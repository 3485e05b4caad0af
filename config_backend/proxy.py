"""
Config proxy: resolve the App Configuration connection string from Key Vault, then read settings.
No value caching and no retries; every upstream call is bounded by upstream_timeout_seconds.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from config_backend.config import (
    KEY_NEW_CHECKOUT,
    KEY_PROMO_COLOR,
    KEY_PROMO_TEXT,
    POLICY_CACHED,
    Settings,
)
from config_backend.errors import ConfigFetchError, SecretResolutionError, UpstreamError
from config_backend.schemas import AppConfig, Features, PromoBanner
from config_backend.stores import ConfigurationEntry, SecretStore, SettingsStore, SettingsStoreFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


def feature_enabled(value: str | None) -> bool:
    """Only the exact string "true" enables a flag ("True", "1", "" and None do not)."""
    return value == "true"


class ConfigProxy:
    def __init__(
        self,
        secret_store: SecretStore,
        settings_store_factory: SettingsStoreFactory,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._secrets = secret_store
        self._factory = settings_store_factory
        self._settings = settings
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cached_client: SettingsStore | None = None
        self._cached_at = 0.0
        # Replaced clients may still be in use by in-flight requests; closed on shutdown
        self._retired: list[SettingsStore] = []

    async def _bounded(self, call: Awaitable[T], error_cls: type[UpstreamError], what: str) -> T:
        timeout = self._settings.upstream_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError:
            raise error_cls(f"{what} timed out after {timeout:g}s")

    async def resolve_settings_client(self) -> SettingsStore:
        """Read the connection string secret and build a new settings store client from it."""
        name = self._settings.connection_string_secret_name
        connection_string = await self._bounded(
            self._secrets.get_secret(name), SecretResolutionError, f"Reading secret {name!r}"
        )
        if not connection_string:
            raise SecretResolutionError(f"Secret {name!r} has no value")
        return self._factory(connection_string)

    def _cache_fresh(self) -> bool:
        if self._cached_client is None:
            return False
        ttl = self._settings.settings_client_ttl_seconds
        return ttl <= 0 or (self._clock() - self._cached_at) < ttl

    async def _get_cached_client(self) -> SettingsStore:
        async with self._lock:
            if not self._cache_fresh():
                client = await self.resolve_settings_client()
                if self._cached_client is not None:
                    self._retired.append(self._cached_client)
                self._cached_client = client
                self._cached_at = self._clock()
                logger.info("Settings store client (re)built from secret")
            return self._cached_client

    @asynccontextmanager
    async def settings_client(self) -> AsyncIterator[SettingsStore]:
        """Yield a settings store client according to the configured policy."""
        if self._settings.settings_client_policy == POLICY_CACHED:
            yield await self._get_cached_client()
            return
        client = await self.resolve_settings_client()
        try:
            yield client
        finally:
            await client.close()

    async def _fetch(self, client: SettingsStore, key: str) -> ConfigurationEntry:
        return await self._bounded(client.get_setting(key), ConfigFetchError, f"Reading setting {key!r}")

    async def get_all_config(self) -> AppConfig:
        """Fetch the three dashboard settings in sequence. Any failure discards the partial result."""
        async with self.settings_client() as client:
            text = await self._fetch(client, KEY_PROMO_TEXT)
            color = await self._fetch(client, KEY_PROMO_COLOR)
            new_checkout = await self._fetch(client, KEY_NEW_CHECKOUT)
        return AppConfig(
            promoBanner=PromoBanner(text=text.value, color=color.value),
            features=Features(newCheckout=feature_enabled(new_checkout.value)),
        )

    async def get_config_by_key(self, key: str) -> ConfigurationEntry:
        # No allow-list: any authenticated caller can read any key
        async with self.settings_client() as client:
            return await self._fetch(client, key)

    async def close(self) -> None:
        clients = self._retired + ([self._cached_client] if self._cached_client is not None else [])
        self._retired = []
        self._cached_client = None
        for client in clients:
            await client.close()
        await self._secrets.close()
