"""Factory and configuration metadata for the Crowd storage provider."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from .crowd.client import REQUEST_TIMEOUT, CrowdClient, DirectoryClient
from .errors import ConfigurationError
from .provider import CrowdStorageProvider

PROVIDER_NAME = "crowd"

CONFIG_URL = "url"
CONFIG_APPLICATION_NAME = "applicationName"
CONFIG_APPLICATION_PASSWORD = "applicationPassword"

STRING_TYPE = "String"
PASSWORD_TYPE = "Password"


@dataclass(frozen=True)
class ConfigProperty:
    """A provider setting as shown in the host's admin console."""
    name: str
    type: str
    label: str
    help_text: str


CONFIG_PROPERTIES: List[ConfigProperty] = [
    ConfigProperty(CONFIG_URL, STRING_TYPE, "Crowd URL", "Base url for Crowd server"),
    ConfigProperty(
        CONFIG_APPLICATION_NAME, STRING_TYPE,
        "Crowd Application Name", "Application name registered in Crowd server",
    ),
    ConfigProperty(
        CONFIG_APPLICATION_PASSWORD, PASSWORD_TYPE,
        "Crowd Application Password", "Application password registered in Crowd server",
    ),
]

_REQUIRED = [
    (CONFIG_URL, "Please provide base URL to crowd server"),
    (CONFIG_APPLICATION_NAME, "Please provide Application name registered in crowd"),
    (CONFIG_APPLICATION_PASSWORD, "Please provide Application password registered in crowd"),
]

ClientFactory = Callable[[str, str, str, float], DirectoryClient]


class CrowdStorageProviderFactory:
    """Validates provider configuration and builds provider instances."""

    def __init__(self, client_factory: ClientFactory = CrowdClient, timeout: float = REQUEST_TIMEOUT):
        self.client_factory = client_factory
        self.timeout = timeout

    @property
    def id(self) -> str:
        return PROVIDER_NAME

    def get_config_properties(self) -> List[ConfigProperty]:
        return list(CONFIG_PROPERTIES)

    def validate_configuration(self, config: Mapping[str, Optional[str]]) -> None:
        """Check every required setting is present.

        Raises:
            ConfigurationError: Naming the first missing setting
        """
        for key, message in _REQUIRED:
            if not config.get(key):
                raise ConfigurationError(message)

    def create(self, config: Mapping[str, Optional[str]], component_id: str = PROVIDER_NAME) -> CrowdStorageProvider:
        """Build a provider talking to the configured Crowd server.

        Args:
            config: Component config (url, applicationName, applicationPassword)
            component_id: Provider component id used to namespace entity ids
        """
        self.validate_configuration(config)
        client = self.client_factory(
            config[CONFIG_URL],
            config[CONFIG_APPLICATION_NAME],
            config[CONFIG_APPLICATION_PASSWORD],
            self.timeout,
        )
        return CrowdStorageProvider(client, component_id)
