"""Verify configuration before starting the export service.

Checks performed:

1. ``AppSettings`` loads from the given ``.env`` file (the report service URL
   is the only required value).
2. The SQLite cache can be opened and, when ``REPORT_ENCRYPTION_SECRET`` is
   set, any cached report decrypts with it. A rotated secret otherwise only
   shows up later as a malformed-report export failure.
3. Optionally, the ``.env`` file still matches a recorded SHA256 checksum.

Example usages::

    python -m scripts.check_env check --env-file /srv/account-export/.env
    python -m scripts.check_env record --env-file .env --hash-file .env.sha256
    python -m scripts.check_env verify --env-file .env --hash-file .env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sqlite3
import sys
from pathlib import Path

from pydantic import ValidationError

from account_export.clients import SQLiteKeyValueStore
from account_export.core.config import AppSettings, _load_env_file
from account_export.services import MalformedReportError, ReportCipher, ReportStore

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_STORAGE_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _checksum(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _check_storage(settings: AppSettings) -> None:
    """Open the cache and make sure a stored report is still readable."""
    secret = settings.storage.encryption_secret
    store = ReportStore(
        SQLiteKeyValueStore(settings.storage.db_path),
        cipher=ReportCipher(secret=secret) if secret else None,
    )
    record = store.get_record()
    if record.is_empty:
        print(f"Report cache at {settings.storage.db_path} is empty.")
    else:
        print(f"Report cache at {settings.storage.db_path} holds a readable report.")


def _record(env_file: Path, hash_file: Path) -> int:
    checksum = _checksum(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Checksum file {hash_file} is missing; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR
    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _checksum(env_file)
    if expected != actual:
        print(
            f"Environment checksum mismatch (expected {expected}, got {actual}).",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings, the report cache and .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text, needs_hash in (
        ("check", "Validate settings and the report cache.", False),
        ("record", "Validate, then store the .env checksum baseline.", True),
        ("verify", "Validate, then compare the .env checksum with the baseline.", True),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env).",
        )
        if needs_hash:
            subparser.add_argument("--hash-file", required=True, type=Path)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            f"Settings validation failed:\n{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    try:
        _check_storage(settings)
    except (sqlite3.Error, OSError) as exc:
        print(f"Report cache could not be opened: {exc}", file=sys.stderr)
        return EXIT_STORAGE_ERROR
    except MalformedReportError as exc:
        print(
            f"Cached report is unreadable with the configured secret: {exc}",
            file=sys.stderr,
        )
        return EXIT_STORAGE_ERROR

    if args.command == "record":
        return _record(env_file, args.hash_file)
    if args.command == "verify":
        return _verify(env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
