"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from crowd_federation.core.crowd.client import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_ID = "crowd"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info(f"[settings] Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            logger.warning(f"[settings] Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info(f"[settings] Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class CrowdConfig:
    """Crowd connection settings for one provider instance."""
    url: Optional[str] = None
    application_name: Optional[str] = None
    application_password: Optional[str] = None
    provider_id: str = DEFAULT_PROVIDER_ID
    request_timeout: float = REQUEST_TIMEOUT

    def as_component_config(self) -> Dict[str, Optional[str]]:
        """Component-config mapping understood by ``CrowdStorageProviderFactory``."""
        return {
            "url": self.url,
            "applicationName": self.application_name,
            "applicationPassword": self.application_password,
        }


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return REQUEST_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning(f"[settings] Ignoring invalid CROWD_REQUEST_TIMEOUT={raw!r}")
        return REQUEST_TIMEOUT
    if timeout <= 0:
        logger.warning(f"[settings] Ignoring non-positive CROWD_REQUEST_TIMEOUT={raw!r}")
        return REQUEST_TIMEOUT
    return timeout


def load_settings() -> CrowdConfig:
    """Load Crowd settings from environment and /run/secrets.

    Missing values are left as None; ``CrowdStorageProviderFactory``
    decides whether the result is usable.
    """
    url = os.environ.get("CROWD_URL") or None
    application_name = os.environ.get("CROWD_APPLICATION_NAME") or None
    application_password = _load_secret_from_file("crowd_application_password", "CROWD_APPLICATION_PASSWORD")
    provider_id = os.environ.get("CROWD_PROVIDER_ID", "").strip() or DEFAULT_PROVIDER_ID
    request_timeout = _parse_timeout(os.environ.get("CROWD_REQUEST_TIMEOUT"))

    logger.info(
        f"[settings] url={url}; application={application_name}; "
        f"password={'***' if application_password else 'EMPTY'}; provider_id={provider_id}"
    )

    return CrowdConfig(
        url=url,
        application_name=application_name,
        application_password=application_password,
        provider_id=provider_id,
        request_timeout=request_timeout,
    )
