"""
ziparc — a small zip/unzip pair over a pluggable hierarchical store.

Features:

- Reversible run-length codec with per-level minimum run thresholds (0 = stored).
- Self-describing ZIPARCHIVE container with an optional ENDZIP trailer.
- Include/exclude/suffix filters with '*' and '?' wildcards.
- Update, move-after-archive and post-write integrity test on the build side.
- Listing, integrity test and conflict-policy driven extraction on the read side.

Archives are read from and written to a Store: MemoryStore for an in-memory tree,
LocalStore for a directory on disk.
"""

__version__ = "1.0.0"

__all__ = [
    "constants",
    "codec",
    "container",
    "builder",
    "reader",
    "extract",
    "store",
]

# Programmatic API: ziparc.builder.ArchiveBuilder / ziparc.extract.Extractor,
# or the CLI functions in ziparc.cli (cmd_zip/cmd_unzip) which take normal parameters.
