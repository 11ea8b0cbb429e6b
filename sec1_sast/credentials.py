"""API key lookup with a configured-then-default fallback chain."""

import logging
import os
from collections.abc import Mapping
from typing import Protocol

from sec1_sast.consts import DEFAULT_CREDENTIALS_ID
from sec1_sast.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SecretLookup(Protocol):
    """Resolves a secret identifier to its plaintext value."""

    def find(self, identifier: str) -> str | None:
        """Return the secret for ``identifier``, or None if not found."""
        ...


class EnvironmentSecretLookup:
    """Secret lookup backed by environment variables.

    The identifier is the variable name. Blank values count as not found.
    """

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = environ if environ is not None else os.environ

    def find(self, identifier: str) -> str | None:
        value = self.environ.get(identifier, "")
        return value.strip() or None


def resolve_api_key(
    lookup: SecretLookup,
    credentials_id: str | None,
    default_id: str = DEFAULT_CREDENTIALS_ID,
) -> str:
    """Resolve the Sec1 API key.

    Tries the configured identifier first (when set), then ``default_id``.

    Args:
        lookup: Secret store to query
        credentials_id: Identifier configured for this build, may be None
        default_id: Fallback identifier

    Returns:
        Plaintext API key

    Raises:
        ConfigurationError: If no identifier resolves to a secret
    """
    candidates: list[str] = []
    if credentials_id and credentials_id.strip():
        candidates.append(credentials_id.strip())
    else:
        logger.info(f"No credentials id configured, using default credentials id: {default_id}")
    if default_id not in candidates:
        candidates.append(default_id)

    for identifier in candidates:
        logger.info(f"Finding api key for credentials id: {identifier}")
        secret = lookup.find(identifier)
        if secret:
            return secret
        logger.info(f"Credentials id not found: {identifier}")

    raise ConfigurationError("API Key not configured. Please check your configuration.")
