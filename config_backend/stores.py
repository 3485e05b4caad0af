"""
External store interfaces and their Azure implementations.
Key Vault holds the App Configuration connection string; App Configuration holds the settings.
Tests inject fakes that satisfy the same Protocols.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from azure.appconfiguration.aio import AzureAppConfigurationClient
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from config_backend.errors import ConfigFetchError, SecretResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigurationEntry:
    key: str
    value: str | None
    last_modified: datetime | None = None


class SecretStore(Protocol):
    async def get_secret(self, name: str) -> str:
        """Secret value by name. Raises SecretResolutionError."""
        ...

    async def close(self) -> None:
        ...


class SettingsStore(Protocol):
    async def get_setting(self, key: str) -> ConfigurationEntry:
        """Entry by key. Raises ConfigFetchError (including when the key does not exist)."""
        ...

    async def close(self) -> None:
        ...


# connection string -> settings store client
SettingsStoreFactory = Callable[[str], SettingsStore]


class KeyVaultSecretStore:
    """Azure Key Vault via DefaultAzureCredential (env vars locally, managed identity when deployed)."""

    def __init__(self, vault_url: str, credential=None):
        if not vault_url:
            raise ValueError("KEY_VAULT_URL is required for the Key Vault secret store")
        self._owns_credential = credential is None
        self._credential = credential or DefaultAzureCredential()
        self._client = SecretClient(vault_url=vault_url, credential=self._credential)

    async def get_secret(self, name: str) -> str:
        try:
            secret = await self._client.get_secret(name)
        except ResourceNotFoundError as e:
            raise SecretResolutionError(f"Secret {name!r} not found", details=str(e)) from e
        except AzureError as e:
            raise SecretResolutionError(f"Secret {name!r} could not be read", details=str(e)) from e
        if not secret.value:
            raise SecretResolutionError(f"Secret {name!r} has no value")
        return secret.value

    async def close(self) -> None:
        await self._client.close()
        if self._owns_credential:
            await self._credential.close()


class AppConfigurationSettingsStore:
    """Azure App Configuration client built from a connection string."""

    def __init__(self, connection_string: str):
        try:
            self._client = AzureAppConfigurationClient.from_connection_string(connection_string)
        except ValueError as e:
            # Don't echo the connection string; it contains the access key
            raise SecretResolutionError("App Configuration connection string is malformed") from e

    async def get_setting(self, key: str) -> ConfigurationEntry:
        try:
            setting = await self._client.get_configuration_setting(key=key)
        except ResourceNotFoundError as e:
            raise ConfigFetchError(f"Setting {key!r} not found", details=str(e)) from e
        except AzureError as e:
            raise ConfigFetchError(f"Setting {key!r} could not be read", details=str(e)) from e
        if setting is None:
            raise ConfigFetchError(f"Setting {key!r} not found")
        return ConfigurationEntry(key=setting.key, value=setting.value, last_modified=setting.last_modified)

    async def close(self) -> None:
        await self._client.close()
