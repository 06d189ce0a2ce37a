"""Secrets for authenticating metric submissions to new checks."""

import hashlib
import logging
import secrets
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SECRET_LENGTH = 16
RANDOM_BYTES = 2048

# Used only when the OS random source fails; guessable, see SecretResult
INSECURE_FALLBACK_SECRET = "myS3cr3t"


@dataclass(frozen=True)
class SecretResult:
    """A check secret and whether it is the well-known fallback value."""

    value: str
    insecure_fallback: bool = False


def make_secret() -> str:
    """Create a random check secret.

    Returns:
        First 16 hex characters of the SHA-256 of 2048 random bytes

    Raises:
        OSError: If the random source is unavailable
    """
    digest = hashlib.sha256(secrets.token_bytes(RANDOM_BYTES)).hexdigest()
    return digest[:SECRET_LENGTH]


def generate_secret() -> SecretResult:
    """Create a check secret, falling back to a fixed value if randomness fails.

    Callers that must not accept a guessable secret should check
    ``insecure_fallback`` on the result.
    """
    try:
        return SecretResult(make_secret())
    except (OSError, NotImplementedError) as e:
        logger.warning(
            "Random source unavailable (%s), new check will use the insecure fallback secret",
            e,
        )
        return SecretResult(INSECURE_FALLBACK_SECRET, insecure_fallback=True)
