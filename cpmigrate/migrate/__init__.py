"""
Migration orchestration: config value object and runner.
"""

from .config import MigrationConfig, Mode, parse_csv
from .runner import MigrationResult, run_migration

__all__ = ["MigrationConfig", "Mode", "parse_csv", "MigrationResult", "run_migration"]
