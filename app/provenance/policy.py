"""Credential issuer allow-list policy.

The policy is an explicit value handed to the pipeline, so callers can
tell whether a restriction was actually applied.

Document format:
    {"issuers": ["did:web:issuer.example", "did:key:z6Mk..."]}
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from app.core.config import ALLOWED_ISSUERS_FILE

from .api_models import IssuerRestriction
from .exceptions import ConfigurationError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuerPolicy:
    """Immutable issuer restriction: UNRESTRICTED or RESTRICTED(issuers)."""
    restriction: IssuerRestriction
    issuers: frozenset = frozenset()

    @classmethod
    def unrestricted(cls) -> "IssuerPolicy":
        return cls(restriction=IssuerRestriction.UNRESTRICTED)

    @classmethod
    def restricted(cls, issuers: Iterable[str]) -> "IssuerPolicy":
        issuer_set = frozenset(i.strip() for i in issuers if i and i.strip())
        if not issuer_set:
            raise ValueError("A restricted issuer policy needs at least one issuer")
        return cls(restriction=IssuerRestriction.RESTRICTED, issuers=issuer_set)

    @property
    def is_restricted(self) -> bool:
        return self.restriction == IssuerRestriction.RESTRICTED

    def allows(self, issuer: Optional[str]) -> bool:
        """True if a credential from issuer is acceptable."""
        if not self.is_restricted:
            return True
        return bool(issuer) and issuer in self.issuers


def parse_issuer_policy(data, source: str = "<document>") -> IssuerPolicy:
    """Build a policy from a parsed allow-list document.

    An empty issuers list means no restriction.

    Raises:
        ConfigurationError: If the document shape is wrong.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Issuer allow-list at {source} must be a JSON object")
    issuers = data.get("issuers", [])
    if not isinstance(issuers, list) or not all(isinstance(i, str) for i in issuers):
        raise ConfigurationError(
            f"Issuer allow-list at {source}: 'issuers' must be a list of strings"
        )
    cleaned = [i.strip() for i in issuers if i.strip()]
    if not cleaned:
        return IssuerPolicy.unrestricted()
    return IssuerPolicy.restricted(cleaned)


def load_issuer_policy(path: Optional[str]) -> IssuerPolicy:
    """Load the issuer policy from a JSON file.

    A missing file yields an unrestricted policy. A present but unreadable or
    malformed file raises ConfigurationError.
    """
    if not path:
        return IssuerPolicy.unrestricted()

    file_path = Path(path)
    if not file_path.is_file():
        log.info(f"issuer allow-list not found at {path}, issuers unrestricted")
        return IssuerPolicy.unrestricted()

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read issuer allow-list at {path}: {e}")

    policy = parse_issuer_policy(data, source=path)
    log.info(
        f"issuer allow-list loaded from {path}: "
        f"restriction={policy.restriction.value} issuers={len(policy.issuers)}"
    )
    return policy


# Singleton instance (loaded once per process)
_issuer_policy: Optional[IssuerPolicy] = None


def get_issuer_policy() -> IssuerPolicy:
    """Get or load the process-wide issuer policy."""
    global _issuer_policy
    if _issuer_policy is None:
        _issuer_policy = load_issuer_policy(ALLOWED_ISSUERS_FILE)
    return _issuer_policy


def reset_issuer_policy() -> None:
    """Forget the cached policy (tests, config reload)."""
    global _issuer_policy
    _issuer_policy = None
