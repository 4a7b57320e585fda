from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    DEFAULT_LEVEL,
    DEFAULT_POLICY,
    MAX_LEVEL,
    MIN_LEVEL,
    POLICIES,
    POLICY_FRESHEN,
    POLICY_NEVER,
    POLICY_OVERWRITE,
    POLICY_UPDATE,
)


@dataclass(frozen=True)
class BuildOptions:
    recursive: bool = False
    quiet: bool = False
    verbose: bool = False
    compression_level: int = DEFAULT_LEVEL
    update: bool = False
    exclude_patterns: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    exclude_suffixes: List[str] = field(default_factory=list)
    junk_paths: bool = False
    move_files: bool = False
    test_integrity: bool = False
    encrypt: bool = False

    def __post_init__(self):
        if not (MIN_LEVEL <= self.compression_level <= MAX_LEVEL):
            raise ValueError(f"compression level must be {MIN_LEVEL}..{MAX_LEVEL}")


@dataclass(frozen=True)
class ExtractionOptions:
    destination: Optional[str] = None
    list_only: bool = False
    test_only: bool = False
    junk_paths: bool = False
    case_insensitive: bool = False
    quiet: bool = False
    verbose: bool = False
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    file_patterns: List[str] = field(default_factory=list)
    policy: str = DEFAULT_POLICY
    password: Optional[str] = None

    def __post_init__(self):
        if self.policy not in POLICIES:
            raise ValueError(f"unknown conflict policy: {self.policy!r}")


def policy_from_flags(*, overwrite: bool = False, never: bool = False, freshen: bool = False, update: bool = False) -> str:
    """Collapse unzip's -o/-n/-f/-u flags into one policy; -n wins, then -o, -u, -f."""
    if never:
        return POLICY_NEVER
    if overwrite:
        return POLICY_OVERWRITE
    if update:
        return POLICY_UPDATE
    if freshen:
        return POLICY_FRESHEN
    return DEFAULT_POLICY
