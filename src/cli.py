"""Command-line interface for bakeconst."""

from __future__ import annotations

import argparse
import ast
import sys
from pathlib import Path

from artifacts.utils import dump_json
from artifacts.write import generate_artifact
from contract.errors import BakeError
from contract.validation import read_manifest, split_header, validate_unit
from logs import configure_logging, get_logger
from rules.config import ConfigError, load_config, resolve_unit_path
from verify.verify import verify_determinism

logger = get_logger("cli")


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Project root (default: .)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _add_unit(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--unit",
        default=None,
        help="Generated unit (default: configured output dir and unit name)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bakeconst")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate", help="Run the generation script and flush the unit"
    )
    _add_common_paths(generate_parser)
    generate_parser.add_argument(
        "--script",
        default=None,
        help="Generation script (default: config script)",
    )
    generate_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for the unit (default: config output dir)",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate a unit")
    _add_common_paths(validate_parser)
    _add_unit(validate_parser)
    validate_parser.add_argument(
        "--strict-schema-version",
        action="store_true",
        help="Treat a missing schema version as an error",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify that the unit regenerates identically"
    )
    _add_common_paths(verify_parser)
    _add_unit(verify_parser)
    verify_parser.add_argument(
        "--script",
        default=None,
        help="Generation script (default: config script)",
    )

    inspect_parser = subparsers.add_parser(
        "inspect", help="Print the declarations of a unit as JSON"
    )
    _add_common_paths(inspect_parser)
    _add_unit(inspect_parser)

    return parser


def _resolve_path(value: str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def _resolve_unit(root: Path, unit: str | None) -> Path:
    if unit is None:
        return resolve_unit_path(root, load_config(root))
    return Path(unit).expanduser().resolve()


def _handle_generate(root: Path, script: str | None, out_dir: str | None) -> int:
    summary = generate_artifact(
        root=root, script=_resolve_path(script), out_dir=_resolve_path(out_dir)
    )
    sys.stdout.write(
        f"{summary['unit']}: {summary['declaration_count']} declaration(s), "
        f"{summary['group_count']} group(s)\n"
    )
    return 0


def _handle_validate(root: Path, unit: str | None, *, strict: bool) -> int:
    result = validate_unit(_resolve_unit(root, unit), strict_schema_version=strict)
    for warning in result.warnings:
        sys.stderr.write(f"{warning.location()}: warning: {warning.message}\n")
    if result.errors:
        for error in result.errors:
            sys.stderr.write(f"{error.location()}: {error.message}\n")
        return 1
    return 0


def _handle_verify(root: Path, unit: str | None, script: str | None) -> int:
    resolved_unit = _resolve_unit(root, unit)
    try:
        result = verify_determinism(
            root=root, unit=resolved_unit, script=_resolve_path(script)
        )
    except (FileNotFoundError, IsADirectoryError) as exc:
        sys.stderr.write(f"unit: {resolved_unit}\n")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if not result.ok:
        for line in result.diff:
            sys.stderr.write(f"{line}\n")
        return 1
    logger.info("%s regenerates identically", resolved_unit)
    return 0


def _handle_inspect(root: Path, unit: str | None) -> int:
    resolved_unit = _resolve_unit(root, unit)
    try:
        source = resolved_unit.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(resolved_unit))
    except (OSError, UnicodeDecodeError, SyntaxError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2
    manifest = read_manifest(tree)
    digest, _ = split_header(source)
    report = {
        "unit": str(resolved_unit),
        "digest": digest,
        "schema_version": manifest.schema_version,
        "declarations": manifest.declarations,
        "groups": manifest.groups,
    }
    sys.stdout.write(dump_json(report).decode("utf-8") + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    root = Path(args.root).expanduser().resolve()

    try:
        if args.command == "generate":
            return _handle_generate(root, args.script, args.out_dir)

        if args.command == "validate":
            return _handle_validate(
                root, args.unit, strict=args.strict_schema_version
            )

        if args.command == "verify":
            return _handle_verify(root, args.unit, args.script)

        if args.command == "inspect":
            return _handle_inspect(root, args.unit)
    except ConfigError as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return 2
    except BakeError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
