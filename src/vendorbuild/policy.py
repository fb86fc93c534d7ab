"""Policy configuration and enforcement helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vendorbuild.errors import PolicyError

NetworkMode = Literal["online", "offline"]


@dataclass(frozen=True, slots=True)
class Policy:
    network_mode: NetworkMode = "online"


def ensure_network_allowed(*, policy: Policy, operation: str, url: str = "") -> None:
    if policy.network_mode == "offline":
        raise PolicyError(
            "Network operations are disabled by policy.",
            hint="Populate the archive cache or switch policy.network_mode to 'online'.",
            context={"stage": "fetch", "operation": operation, "url": url},
        )
