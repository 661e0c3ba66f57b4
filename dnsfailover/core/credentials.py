"""Token storage — Cloudflare API token kept in the OS keyring."""

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from dnsfailover.config import KEYRING_SERVICE, KEYRING_USERNAME, OPT_CLOUDFLARE_TOKEN
from dnsfailover.core.catalog import Options

logger = logging.getLogger(__name__)


def store_token(token: str) -> None:
    """Persist *token* in the OS keyring."""
    keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, token)


def load_token() -> str | None:
    """Return the stored token, or ``None`` if none is stored or the keyring fails."""
    try:
        return keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except KeyringError as exc:
        logger.warning("Keyring unavailable: %s", exc)
        return None


def delete_token() -> bool:
    """Remove the stored token.  Returns ``False`` if there was nothing to remove."""
    try:
        keyring.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except PasswordDeleteError:
        return False
    return True


def resolve_token(options: Options) -> tuple[str, str]:
    """Return ``(token, source)``; options win over the keyring.

    *token* is ``""`` and *source* is ``"none"`` when no token is configured.
    """
    token = options.get(OPT_CLOUDFLARE_TOKEN, "")
    if token:
        return token, "options"
    stored = load_token()
    if stored:
        return stored, "keyring"
    return "", "none"
