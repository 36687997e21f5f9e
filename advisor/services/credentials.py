"""Per-provider credential storage."""

import json
import os
from pathlib import Path

from advisor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CREDENTIALS_FILE = Path.home() / ".quantum_advisor" / "credentials.json"


class MissingCredentialError(ValueError):
    """No credential is configured for a provider."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"{provider.upper()}_API_KEY is not set")


class CredentialStore:
    """Stores one API key per provider.

    Lookups check ``<PROVIDER>_API_KEY`` in the environment first, then the
    JSON credentials file.
    """

    def __init__(self, path: Path | str | None = None):
        """Initialize the store.

        Args:
            path: Credentials file (defaults to ADVISOR_CREDENTIALS_FILE or ~/.quantum_advisor/credentials.json)
        """
        configured = path or os.getenv("ADVISOR_CREDENTIALS_FILE")
        self.path = Path(configured) if configured else DEFAULT_CREDENTIALS_FILE

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {e}")
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def get(self, provider: str) -> str | None:
        """Return the credential for a provider, if any."""
        from_env = os.getenv(f"{provider.upper()}_API_KEY")
        if from_env:
            return from_env
        return self._load().get(provider.lower()) or None

    def require(self, provider: str) -> str:
        """Return the credential for a provider or raise MissingCredentialError."""
        credential = self.get(provider)
        if not credential:
            raise MissingCredentialError(provider)
        return credential

    def set(self, provider: str, credential: str) -> None:
        """Persist a credential for a provider."""
        data = self._load()
        data[provider.lower()] = credential
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.info(f"Stored credential for provider {provider}")

    def delete(self, provider: str) -> bool:
        """Remove a stored credential; returns False if none was stored."""
        data = self._load()
        if data.pop(provider.lower(), None) is None:
            return False
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return True
