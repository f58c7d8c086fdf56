from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .packaging.container import LpkContainer
from .packaging.descriptor import find_descriptor
from .packaging.errors import LpkError
from .packaging.lpk import extract_lpk_report
from .packaging.manifest import locate_manifest
from .packaging.settings import ExtractSettings

DEFAULT_SETTINGS = "rive2d.json"


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="rive2d", description="Live2D LPK package extractor")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--settings", type=str, default=DEFAULT_SETTINGS, help="Settings JSON file")
    sub = parser.add_subparsers(dest="cmd")

    p_extract = sub.add_parser("extract", help="Extract an .lpk into a plain model directory")
    p_extract.add_argument("lpk", type=str, help="Path to .lpk file")
    p_extract.add_argument("-o", "--output", type=str, default=None,
                           help="Output directory (default: <output_root>/<lpk name>); wiped before extraction")
    p_extract.add_argument("--keep-intermediate", action="store_true",
                           help="Keep the decrypted costume file next to the final descriptor")

    p_inspect = sub.add_parser("inspect", help="Print the manifest of an .lpk")
    p_inspect.add_argument("lpk", type=str, help="Path to .lpk file")

    p_find = sub.add_parser("find", help="Find the model descriptor in a directory")
    p_find.add_argument("directory", type=str, help="Directory to search")

    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 2

    try:
        settings = ExtractSettings.load(Path(args.settings))
    except (OSError, ValueError, TypeError) as e:
        print(f"Invalid settings file {args.settings}: {e}")
        return 2

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")

    if args.cmd == "extract":
        return _cmd_extract(args, settings)
    if args.cmd == "inspect":
        return _cmd_inspect(args)
    if args.cmd == "find":
        return _cmd_find(args)
    return 0


def _cmd_extract(args: argparse.Namespace, settings: ExtractSettings) -> int:
    lpk_path = Path(args.lpk)
    if not lpk_path.exists():
        print(f"LPK not found: {lpk_path}")
        return 2
    output_dir = Path(args.output) if args.output else settings.output_dir_for(lpk_path)

    try:
        report = extract_lpk_report(
            lpk_path,
            output_dir,
            placeholder_name=settings.placeholder_name,
            keep_intermediate=args.keep_intermediate or settings.keep_intermediate,
        )
    except LpkError as e:
        print(f"Extraction failed: {e}")
        return 1

    if report.asset_counts:
        summary = ", ".join(f"{kind.value}={n}" for kind, n in sorted(
            report.asset_counts.items(), key=lambda item: item[0].value))
        print(f"Decrypted {len(report.rename_map)} entries ({summary})")
    print(report.descriptor)
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    lpk_path = Path(args.lpk)
    if not lpk_path.exists():
        print(f"LPK not found: {lpk_path}")
        return 2
    try:
        with LpkContainer(lpk_path) as container:
            manifest = locate_manifest(container)
            entries = container.list_entry_names()
    except LpkError as e:
        print(f"Cannot read {lpk_path}: {e}")
        return 1

    if manifest is None:
        print(json.dumps({"kind": "plain", "entries": entries}, ensure_ascii=False, indent=2))
        return 0
    data = manifest.to_dict()
    data["kind"] = "encrypted"
    data["requires_sidecar"] = manifest.requires_sidecar
    print(json.dumps(data, ensure_ascii=False, indent=2))
    return 0


def _cmd_find(args: argparse.Namespace) -> int:
    directory = Path(args.directory)
    found = find_descriptor(directory)
    if found is None:
        print(f"No .model3.json or .model.json under {directory}")
        return 2
    print(found)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
