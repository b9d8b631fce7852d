from dataclasses import dataclass
from dataclasses_json import DataClassJsonMixin
from typing import Optional

from .constants import DEFAULT_RETRY_COUNT, DEFAULT_TIMEOUT, MULTICAST_TTL, RETRY_DELAY


@dataclass
class DiscoveryConfig(DataClassJsonMixin):
    """Tuning of a search. Times are in ms."""

    timeout: int = DEFAULT_TIMEOUT
    retry_count: int = DEFAULT_RETRY_COUNT
    ttl: int = MULTICAST_TTL
    retry_delay: int = RETRY_DELAY
    #: Run the interface sessions in parallel threads
    concurrent: bool = True
    #: Address used for the group membership, ``None`` for each interface's own
    local_ip: Optional[str] = None

    def validate(self) -> "DiscoveryConfig":
        if self.timeout <= 0:
            raise ValueError("timeout must be positive: " + str(self.timeout))
        if self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative: " + str(self.retry_delay))
        if self.retry_count < 1:
            raise ValueError("retry_count must be at least 1: " + str(self.retry_count))
        if not 0 <= self.ttl <= 255:
            raise ValueError("ttl must be in [0, 255]: " + str(self.ttl))
        return self


def load_config(path: str) -> DiscoveryConfig:
    """Reads a ``DiscoveryConfig`` from a JSON file. Missing fields keep their defaults."""
    with open(path) as f:
        return DiscoveryConfig.from_json(f.read()).validate()
