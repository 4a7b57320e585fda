from __future__ import annotations

import os
import sys
import argparse

from typing import List, Optional, Sequence

from ziparc.builder import ArchiveBuilder
from ziparc.constants import DEFAULT_LEVEL, ENCRYPTION_UNSUPPORTED, UNZIP_VERSION, ZIP_VERSION
from ziparc.errors import EncryptionNotSupported, IntegrityError, ZipArcError
from ziparc.extract import Extractor, default_destination
from ziparc.options import BuildOptions, ExtractionOptions, policy_from_flags
from ziparc.pattern import ExtractFilter
from ziparc.reader import read_archive
from ziparc.store import LocalStore, Store


_WILDCARDS = ("*", "?")


def _emit(text: str) -> None:
    if text:
        print(text)


def split_unzip_positionals(rest: Sequence[str], destination: Optional[str]) -> tuple[Optional[str], List[str]]:
    """Pick the destination out of the positionals that follow the archive name.

    The first argument without a wildcard becomes the destination unless one was
    given with -d; everything else is a file pattern.
    """
    patterns: List[str] = []
    for arg in rest:
        if destination is None and not any(w in arg for w in _WILDCARDS):
            destination = arg
        else:
            patterns.append(arg)
    return destination, patterns


def cmd_zip(store: Store, archive: str, sources: Sequence[str], options: BuildOptions) -> bool:
    """Build ``archive`` from ``sources`` and print the report.

    Returns:
        True on success. Errors propagate as ZipArcError subclasses.
    """
    builder = ArchiveBuilder(store, options)
    _emit(builder.build(archive, list(sources)))
    return True


def cmd_unzip(store: Store, archive: str, options: ExtractionOptions) -> bool:
    """List, test or extract ``archive`` depending on ``options``.

    Returns:
        False only when an integrity test (-t) found mismatches.
    """
    if options.password:
        raise EncryptionNotSupported(ENCRYPTION_UNSUPPORTED)
    reader = read_archive(store, archive)

    if options.list_only:
        select = ExtractFilter(
            file_patterns=options.file_patterns,
            include=options.include_patterns,
            exclude=options.exclude_patterns,
            case_insensitive=options.case_insensitive,
        )
        _emit(reader.render_listing(verbose=options.verbose, select=select.accepts))
        return True

    if options.test_only:
        report = reader.test()
        if options.quiet and report.ok:
            return True
        _emit(report.render())
        return report.ok

    extractor = Extractor(store, options)
    _emit(extractor.extract(reader, options.destination or default_destination(archive)))
    return True


def _zip_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ziparc zip",
        description="Create a zip archive containing the specified files and directories.",
        epilog=(
            "Patterns support wildcards: * (any chars), ? (single char). "
            "Example: ziparc zip -9 -r archive.zip . -x '*.log'"
        ),
    )
    ap.add_argument("archive", help="Archive path ('.zip' is appended when missing)")
    ap.add_argument("sources", nargs="*", help="Files and directories to add")
    ap.add_argument("-r", "--recursive", action="store_true", help="store directories recursively")
    ap.add_argument("-q", "--quiet", action="store_true", help="suppress output")
    ap.add_argument("-v", "--verbose", action="store_true", help="show files being compressed")
    for level in range(10):
        ap.add_argument(
            f"-{level}",
            dest="level",
            action="store_const",
            const=level,
            help="store only (no compression)" if level == 0 else argparse.SUPPRESS,
        )
    ap.add_argument("-u", "--update", action="store_true", help="update existing archive")
    ap.add_argument("-x", "--exclude", action="append", metavar="PATTERN", help="exclude files matching pattern")
    ap.add_argument("-i", "--include", action="append", metavar="PATTERN", help="include only files matching pattern")
    ap.add_argument("-n", dest="suffixes", action="append", metavar="SUFFIX", help="exclude files with suffix")
    ap.add_argument("-j", "--junk-paths", action="store_true", help="don't store directory names")
    ap.add_argument("-m", "--move", action="store_true", help="delete original files after archiving")
    ap.add_argument("-T", "--test", action="store_true", help="test archive integrity after writing")
    ap.add_argument("-e", "--encrypt", action="store_true", help="encrypt archive (not supported)")
    ap.add_argument("--version", action="version", version=ZIP_VERSION)
    ap.set_defaults(level=None)
    return ap


def _unzip_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ziparc unzip",
        description="Extract files from a zip archive.",
        epilog=(
            "Patterns support wildcards: * (any chars), ? (single char). "
            "A positional without wildcards after ARCHIVE is taken as the destination."
        ),
    )
    ap.add_argument("archive", help="Archive path")
    ap.add_argument("rest", nargs="*", metavar="FILE|DESTINATION", help="File patterns and optional destination")
    ap.add_argument("-d", "--directory", dest="destination", metavar="DIR", help="extract files into DIR")
    ap.add_argument("-l", "--list", action="store_true", help="list archive contents without extracting")
    ap.add_argument("-t", "--test", action="store_true", help="test archive integrity")
    ap.add_argument("-o", "--overwrite", action="store_true", help="overwrite files without prompting")
    ap.add_argument("-n", "--never-overwrite", action="store_true", help="never overwrite existing files")
    ap.add_argument("-f", "--freshen", action="store_true", help="freshen existing files only")
    ap.add_argument("-u", "--update", action="store_true", help="update files")
    ap.add_argument("-j", "--junk-paths", action="store_true", help="junk paths (don't create directories)")
    ap.add_argument("-C", "--case-insensitive", action="store_true", help="match filenames case-insensitively")
    ap.add_argument("-q", "--quiet", action="store_true", help="suppress output")
    ap.add_argument("-v", "--verbose", action="store_true", help="show files being extracted")
    ap.add_argument("-x", "--exclude", action="append", metavar="PATTERN", help="exclude files matching pattern")
    ap.add_argument("-i", "--include", action="append", metavar="PATTERN", help="include only files matching pattern")
    ap.add_argument("-P", "--password", help="password for encrypted archives (not supported)")
    ap.add_argument("--version", action="version", version=UNZIP_VERSION)
    return ap


def build_options_from_args(args: argparse.Namespace) -> BuildOptions:
    return BuildOptions(
        recursive=args.recursive,
        quiet=args.quiet,
        verbose=args.verbose,
        compression_level=DEFAULT_LEVEL if args.level is None else args.level,
        update=args.update,
        exclude_patterns=args.exclude or [],
        include_patterns=args.include or [],
        exclude_suffixes=args.suffixes or [],
        junk_paths=args.junk_paths,
        move_files=args.move,
        test_integrity=args.test,
        encrypt=args.encrypt,
    )


def extraction_options_from_args(args: argparse.Namespace) -> ExtractionOptions:
    destination, patterns = split_unzip_positionals(args.rest, args.destination)
    return ExtractionOptions(
        destination=destination,
        list_only=args.list,
        test_only=args.test,
        junk_paths=args.junk_paths,
        case_insensitive=args.case_insensitive,
        quiet=args.quiet,
        verbose=args.verbose,
        include_patterns=args.include or [],
        exclude_patterns=args.exclude or [],
        file_patterns=patterns,
        policy=policy_from_flags(
            overwrite=args.overwrite,
            never=args.never_overwrite,
            freshen=args.freshen,
            update=args.update,
        ),
        password=args.password,
    )


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="ziparc",
        description="zip/unzip for ZIPARCHIVE containers",
        epilog="Run 'ziparc zip --help' or 'ziparc unzip --help' for the flags of each command.",
    )
    ap.add_argument("cmd", choices=["zip", "unzip"], help="Command to run")
    argv = list(sys.argv[1:] if argv is None else argv)
    # Only the command word goes through this parser; the rest belongs to the subcommand
    top = ap.parse_args(argv[:1])
    rest = argv[1:]

    store = LocalStore(os.getcwd())
    try:
        if top.cmd == "zip":
            args = _zip_parser().parse_intermixed_args(rest)
            ok = cmd_zip(store, args.archive, args.sources, build_options_from_args(args))
        elif top.cmd == "unzip":
            args = _unzip_parser().parse_intermixed_args(rest)
            ok = cmd_unzip(store, args.archive, extraction_options_from_args(args))
        else:
            raise RuntimeError("Unknown command")
    except IntegrityError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (ZipArcError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
