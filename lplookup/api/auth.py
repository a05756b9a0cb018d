from __future__ import annotations

import hashlib
import hmac
import os
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional, Tuple

READ_SCOPE = "read"
ANONYMOUS = "anonymous"

_TRUTHY = {"1", "true", "yes", "on"}


class AccessDenied(Exception):
    """A lookup request was refused. `status_code` is 401 or 403."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(reason)
        self.status_code = status_code
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Actor:
    """Caller identity resolved from an API key."""

    actor_id: str
    scopes: FrozenSet[str] = frozenset({READ_SCOPE})

    def can_read(self) -> bool:
        return READ_SCOPE in self.scopes


def _digest(api_key: str) -> bytes:
    return hashlib.sha256(api_key.encode("utf-8")).digest()


def parse_api_keys(raw: str) -> Tuple[Tuple[bytes, Actor], ...]:
    """Parse LPLOOKUP_API_KEYS.

    Entries are separated by `;` and look like `<actor_id>=<api_key>`, which
    grants read access, or `<actor_id>=<api_key>|<scope>,...` to list scopes
    explicitly (`bob=k2|` is a known caller with no scopes).

    Raises ValueError on a malformed entry so a typo cannot silently open or
    close the service.
    """

    out = []
    for n, entry in enumerate((raw or "").split(";"), start=1):
        entry = entry.strip()
        if not entry:
            continue
        actor_id, sep, rest = entry.partition("=")
        actor_id = actor_id.strip()
        if not sep or not actor_id:
            raise ValueError(f"LPLOOKUP_API_KEYS entry {n}: expected <actor_id>=<api_key>")
        api_key, bar, scopes_raw = rest.partition("|")
        api_key = api_key.strip()
        if not api_key:
            raise ValueError(f"LPLOOKUP_API_KEYS entry {n}: empty api key for {actor_id!r}")
        scopes = (
            frozenset(s.strip() for s in scopes_raw.split(",") if s.strip())
            if bar
            else frozenset({READ_SCOPE})
        )
        out.append((_digest(api_key), Actor(actor_id=actor_id, scopes=scopes)))
    return tuple(out)


@dataclass(frozen=True, slots=True)
class AccessPolicy:
    """Who may read lifecycle policies through the API.

    With no keys configured and LPLOOKUP_REQUIRE_AUTH unset, every request
    reads as the anonymous actor. Otherwise a key from the X-LPLOOKUP-API-Key
    header is required.
    """

    keys: Tuple[Tuple[bytes, Actor], ...] = ()
    required: bool = False

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "AccessPolicy":
        env = os.environ if env is None else env
        keys = parse_api_keys(env.get("LPLOOKUP_API_KEYS", ""))
        forced = env.get("LPLOOKUP_REQUIRE_AUTH", "").strip().lower() in _TRUTHY
        return AccessPolicy(keys=keys, required=forced or bool(keys))

    def identify(self, api_key: Optional[str]) -> Optional[Actor]:
        """Return the Actor owning `api_key`, or None.

        Every configured key is compared, in constant time, on every call.
        """

        if not api_key:
            return None
        offered = _digest(api_key)
        found: Optional[Actor] = None
        for digest, actor in self.keys:
            if hmac.compare_digest(digest, offered):
                found = actor
        return found

    def authorize_read(self, api_key: Optional[str]) -> Actor:
        """Return the actor allowed to read, or raise AccessDenied (401/403)."""

        if not self.required:
            return Actor(actor_id=ANONYMOUS)
        actor = self.identify(api_key)
        if actor is None:
            raise AccessDenied(401, "missing or unknown API key")
        if not actor.can_read():
            raise AccessDenied(403, f"{actor.actor_id} may not read lifecycle policies")
        return actor
