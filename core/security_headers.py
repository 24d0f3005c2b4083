"""
OWASP secure-headers policy shared by every site.

The policy is a fixed table built once at import time: a set of headers that
must never leave the service (they disclose the technology stack) and a set
of headers that must always carry an exact value. Applying it is a single
pass over the table with no branching on the request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class HeaderAction(str, Enum):
    REMOVE = "remove"
    SET_FIXED = "set_fixed"


@dataclass(frozen=True)
class HeaderRule:
    """One entry of the policy table."""

    name: str
    action: HeaderAction
    value: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Header name must be a non-empty string")
        if self.action is HeaderAction.SET_FIXED and self.value is None:
            raise ValueError(f"{self.name}: SET_FIXED rule requires a value")
        if self.action is HeaderAction.REMOVE and self.value is not None:
            raise ValueError(f"{self.name}: REMOVE rule must not carry a value")

    @classmethod
    def remove(cls, name: str) -> "HeaderRule":
        return cls(name, HeaderAction.REMOVE)

    @classmethod
    def set_fixed(cls, name: str, value: str) -> "HeaderRule":
        return cls(name, HeaderAction.SET_FIXED, value)


def _is_valid_value(value: str) -> bool:
    if not value or "\r" in value or "\n" in value:
        return False
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

class HeaderPolicy:
    """
    Immutable header rewrite table.

    Header names are compared case-insensitively. When two rules name the
    same header the later one wins.
    """

    __slots__ = ("_rules", "_removals", "_fixed")

    def __init__(self, rules: Iterable[HeaderRule]) -> None:
        by_name: dict[str, HeaderRule] = {}
        for rule in rules:
            by_name[rule.name.lower()] = rule

        self._rules: tuple[HeaderRule, ...] = tuple(by_name.values())
        self._removals: frozenset[str] = frozenset(
            rule.name for rule in self._rules if rule.action is HeaderAction.REMOVE
        )
        self._fixed: Mapping[str, str] = MappingProxyType(
            {
                rule.name: rule.value
                for rule in self._rules
                if rule.action is HeaderAction.SET_FIXED
            }
        )

    @classmethod
    def from_rules(cls, rules: Iterable[HeaderRule]) -> "HeaderPolicy":
        """
        Build a policy, dropping any fixed value the wire protocol would reject.

        A header that cannot be emitted is omitted (with a warning) instead of
        making every response fail later on.
        """
        accepted: list[HeaderRule] = []
        for rule in rules:
            if rule.action is HeaderAction.SET_FIXED and not _is_valid_value(rule.value):
                logger.warning(
                    "Dropping invalid security header value",
                    extra={"header": rule.name},
                )
                continue
            accepted.append(rule)
        return cls(accepted)

    @property
    def rules(self) -> tuple[HeaderRule, ...]:
        return self._rules

    @property
    def removals(self) -> frozenset[str]:
        return self._removals

    @property
    def fixed(self) -> Mapping[str, str]:
        return self._fixed

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        lowered = name.lower()
        return any(rule.name.lower() == lowered for rule in self._rules)

    def __repr__(self) -> str:
        return f"HeaderPolicy(remove={sorted(self._removals)}, fixed={sorted(self._fixed)})"

    def apply(self, headers: MutableMapping[str, str]) -> None:
        """Rewrite ``headers`` in place. Safe to call any number of times."""
        for name in self._removals:
            if name in headers:
                del headers[name]
        for name, value in self._fixed.items():
            headers[name] = value


# ---------------------------------------------------------------------------
# Default OWASP policy
# ---------------------------------------------------------------------------

DISCLOSURE_HEADERS: tuple[str, ...] = (
    "Server",
    "X-Powered-By",
    "X-AspNet-Version",
    "X-AspNetMvc-Version",
)

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "object-src 'none'; "
    "frame-ancestors 'none'; "
    "base-uri 'self'; "
    "form-action 'self'"
)

PERMISSIONS_POLICY = (
    "accelerometer=(), "
    "autoplay=(), "
    "camera=(), "
    "display-capture=(), "
    "geolocation=(), "
    "gyroscope=(), "
    "magnetometer=(), "
    "microphone=(), "
    "payment=(), "
    "usb=()"
)

HSTS_MAX_AGE_SECONDS = 31_536_000  # one year

SECURE_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Strict-Transport-Security": f"max-age={HSTS_MAX_AGE_SECONDS}; includeSubDomains",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": PERMISSIONS_POLICY,
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Embedder-Policy": "require-corp",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Cache-Control": "no-store, max-age=0",
}

DEFAULT_POLICY = HeaderPolicy.from_rules(
    [HeaderRule.remove(name) for name in DISCLOSURE_HEADERS]
    + [HeaderRule.set_fixed(name, value) for name, value in SECURE_HEADERS.items()]
)


def apply_security_headers(
    headers: MutableMapping[str, str], policy: HeaderPolicy = DEFAULT_POLICY
) -> None:
    policy.apply(headers)
