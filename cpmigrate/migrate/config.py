"""
Migration configuration.

Built once by the CLI and passed explicitly to run_migration; nothing in the
engine reads flags or environment variables on its own.
"""

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from ..broker.client import checkpoint_topic
from ..core.errors import ConfigError


class Mode(str, enum.Enum):
    """Migration direction. Exactly one per run."""

    EXTRACT = "extract"  # topic -> file
    REPLACE = "replace"  # file -> topic
    PATCH = "patch"  # topic + file -> topic


def parse_csv(raw: Optional[str]) -> Tuple[str, ...]:
    """
    Split a comma separated list, dropping empty items.

    "a,,b," -> ("a", "b"); None or "" -> ()
    """
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class MigrationConfig:
    """
    Immutable run configuration.

    Fields:
        brokers: Bootstrap servers
        job_name: Stream job whose checkpoint topic is migrated
        mode: extract / replace / patch
        file_path: Checkpoints file (written by extract, read otherwise)
        include: Keep only these streams (empty = all)
        exclude: Drop these streams (empty = none)
        commit: Persist the result; otherwise only print it
        verbose: Broker client debug logging
    """
    brokers: Tuple[str, ...]
    job_name: str
    mode: Mode
    file_path: str
    include: FrozenSet[str] = field(default_factory=frozenset)
    exclude: FrozenSet[str] = field(default_factory=frozenset)
    commit: bool = False
    verbose: bool = False

    @property
    def topic(self) -> str:
        return checkpoint_topic(self.job_name)

    def validate(self) -> "MigrationConfig":
        """
        Check required settings.

        Raises:
            ConfigError: If brokers, job name or file path is missing
        """
        if not self.brokers:
            raise ConfigError("brokers are required (--brokers or KAFKA_BROKERS)")
        if not self.job_name:
            raise ConfigError("job name is required (--job)")
        if not self.file_path:
            raise ConfigError("checkpoints file path is required (--file)")
        return self

    @classmethod
    def build(
        cls,
        mode: Mode,
        brokers: Optional[str],
        job_name: Optional[str],
        file_path: Optional[str],
        only: Optional[str] = None,
        exclude: Optional[str] = None,
        commit: bool = False,
        verbose: bool = False,
    ) -> "MigrationConfig":
        """Build and validate a config from raw option strings."""
        return cls(
            brokers=parse_csv(brokers),
            job_name=job_name or "",
            mode=mode,
            file_path=file_path or "",
            include=frozenset(parse_csv(only)),
            exclude=frozenset(parse_csv(exclude)),
            commit=commit,
            verbose=verbose,
        ).validate()