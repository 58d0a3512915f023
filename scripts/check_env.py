"""Operator checks for the Civic Architect ``.env`` file.

Three subcommands share one settings load:

``check``
    Load ``AppSettings`` from the file and confirm a Gemini credential is
    present. The service starts without one, but every analysis, image, and
    speech request then fails with a configuration error.
``record``
    Load the settings, then write the file's SHA256 digest as a baseline.
``verify``
    Load the settings, then compare the digest against the baseline so an
    unreviewed edit to the deployed ``.env`` is caught before a restart.

Example::

    python -m scripts.check_env record --env-file /opt/civic-architect/.env \
        --hash-file /opt/civic-architect/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path

from pydantic import ValidationError

from app.core.config import AppSettings, GeminiSettings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_MISSING_CREDENTIAL = 4
EXIT_RUNTIME_ERROR = 5

_MISSING_CREDENTIAL_MESSAGE = (
    "GEMINI_API_KEY is not set. The service will start, but every analysis, "
    "image, and speech request will fail with a configuration error."
)


def load_settings(env_file: Path) -> AppSettings:
    """Build settings from ``env_file`` exactly as the service would."""
    if not env_file.is_file():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    gemini = GeminiSettings(_env_file=env_file)  # type: ignore[call-arg]
    return AppSettings(_env_file=env_file, gemini=gemini)  # type: ignore[call-arg]


def env_digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def run_check(settings: AppSettings) -> int:
    if not settings.gemini.has_credentials:
        print(_MISSING_CREDENTIAL_MESSAGE, file=sys.stderr)
        return EXIT_MISSING_CREDENTIAL
    print(
        f"Settings OK (environment={settings.environment}, "
        f"analysis model={settings.gemini.analysis_model_name})."
    )
    return EXIT_OK


def run_record(env_file: Path, hash_file: Path) -> int:
    digest = env_digest(env_file)
    hash_file.write_text(digest + "\n", encoding="utf-8")
    print(f"Baseline {digest} written to {hash_file}")
    return EXIT_OK


def run_verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.is_file():
        print(
            f"No baseline at {hash_file}; create one with the 'record' subcommand.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    baseline = hash_file.read_text(encoding="utf-8").strip()
    digest = env_digest(env_file)
    if digest != baseline:
        print(
            f"{env_file} changed since the baseline was recorded "
            f"(baseline {baseline}, now {digest}).",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print(f"{env_file} matches its baseline.")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check_env",
        description="Validate Civic Architect settings and guard the .env file.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    for name, summary, needs_baseline in (
        ("check", "validate settings and the Gemini credential", False),
        ("record", "validate settings and write the checksum baseline", True),
        ("verify", "validate settings and compare against the baseline", True),
    ):
        command = commands.add_parser(name, help=summary)
        command.add_argument("--env-file", type=Path, default=Path(".env"))
        if needs_baseline:
            command.add_argument("--hash-file", type=Path, required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    env_file: Path = args.env_file

    try:
        settings = load_settings(env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Invalid settings in {env_file}:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if args.command == "check":
        return run_check(settings)

    if not settings.gemini.has_credentials:
        print(_MISSING_CREDENTIAL_MESSAGE, file=sys.stderr)
    if args.command == "record":
        return run_record(env_file, args.hash_file)
    return run_verify(env_file, args.hash_file)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
