#!/usr/bin/env python3
"""
reporter_cli.py - Command line tools for Reporter daily exports

Usage:
    reporter list
    reporter show 2015-10-23-reporter-export.json
    reporter show 2014-01-15-reporter-export.json --schema v2 -o converted.json
    reporter summary --latest
    reporter check ~/Dropbox/Apps/Reporter-App/*.json

Settings are read from ~/.reporter.yaml (see report_config).
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from report_codec import ReportCodec
from report_config import load_config
from report_errors import ReporterError
from report_files import FilesystemBackend
from report_model import Day
from schema_version import parse_version


def _schema_arg(value: str):
    try:
        return parse_version(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def cmd_list(args, config, codec) -> int:
    backend = FilesystemBackend(config.storage_location)
    for report in backend.list_reports():
        print(f"{report.date.isoformat()}  {report.modified_time:%Y-%m-%d %H:%M}  {report.path}")
    return 0


def cmd_show(args, config, codec) -> int:
    day = codec.decode(args.input.read_bytes())
    content = json.dumps(codec.to_wire(day, args.schema), indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(content + '\n')
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        print(content)
    return 0


def format_summary(day: Day) -> List[str]:
    lines = [
        f"Schema:     {day.schema_version.label}",
        f"Snapshots:  {len(day.snapshots)}",
    ]
    if day.questions is not None:
        lines.append(f"Questions:  {len(day.questions)}")
    if not day.snapshots:
        return lines

    latest = day.latest_snapshot()
    if latest.date is not None:
        lines.append(f"Latest:     {latest.date}")
    if latest.battery is not None:
        lines.append(f"Battery:    {latest.battery * 100:.0f}%")
    if latest.connection is not None:
        lines.append(f"Connection: {latest.connection.method or latest.connection.code}")
    if latest.report_impetus is not None and latest.report_impetus.description:
        lines.append(f"Impetus:    {latest.report_impetus.description}")
    if latest.audio is not None and latest.audio.average is not None:
        lines.append(f"Audio avg:  {latest.audio.positive_average_db(rounded=True):.2f} dB")
    if latest.audio is not None and latest.audio.peak is not None:
        lines.append(f"Audio peak: {latest.audio.positive_peak_db(rounded=True):.2f} dB")
    return lines


def cmd_summary(args, config, codec) -> int:
    if args.latest:
        report = FilesystemBackend(config.storage_location).get_latest_report()
        day = codec.decode_file(report)
        print(f"File:       {report.path}")
    elif args.input:
        day = codec.decode(args.input.read_bytes())
        print(f"File:       {args.input}")
    else:
        print("Error: give a file or --latest", file=sys.stderr)
        return 2
    for line in format_summary(day):
        print(line)
    return 0


def cmd_check(args, config, codec) -> int:
    failed = 0
    for path in args.inputs:
        raw = path.read_bytes()
        try:
            day = codec.decode(raw)
            encoded = codec.encode(day)
        except ReporterError as e:
            print(f"FAIL  {path}: {e}")
            failed += 1
            continue
        if json.loads(encoded) == json.loads(raw):
            print(f"OK    {path} ({day.schema_version.label})")
        else:
            print(f"DIFF  {path} ({day.schema_version.label}): re-encoded document differs")
            failed += 1
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='reporter',
        description='Decode, inspect and re-encode Reporter daily exports'
    )
    parser.add_argument('-c', '--config', type=Path, help='Config file (default: ~/.reporter.yaml)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    lst = subparsers.add_parser('list', help='List exports in the storage location')
    lst.set_defaults(func=cmd_list)

    show = subparsers.add_parser('show', help='Decode and print an export as JSON')
    show.add_argument('input', type=Path, help='Export file')
    show.add_argument('-s', '--schema', type=_schema_arg,
                      help='Re-encode in this schema version (v1/v2, default: as read)')
    show.add_argument('-o', '--output', type=Path, help='Output file (default: stdout)')
    show.set_defaults(func=cmd_show)

    summ = subparsers.add_parser('summary', help='Summarize the latest snapshot of a day')
    summ.add_argument('input', type=Path, nargs='?', help='Export file')
    summ.add_argument('--latest', action='store_true', help='Use the latest export in the storage location')
    summ.set_defaults(func=cmd_summary)

    chk = subparsers.add_parser('check', help='Verify exports survive decode/encode unchanged')
    chk.add_argument('inputs', type=Path, nargs='+', help='Export files')
    chk.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        codec = ReportCodec(default_version=config.default_version, strict=config.strict)
        return args.func(args, config, codec)
    except (ReporterError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
