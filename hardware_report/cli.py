# hardware_report/cli.py
"""
Command line entry point: hardware-report
"""

import argparse
import os
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

from .collectors.main_collector import MainCollector
from .config.settings import CATEGORIES, OUTPUT_FORMATS, initialize_config, write_default_config
from .publisher import TOKEN_ENV, ReportPublisher
from .report_writer import ReportWriter
from .utils.logging_config import setup_logging, get_logger


def parse_label(value: str) -> Tuple[str, str]:
    """'rack=r12' -> ('rack', 'r12')"""
    key, sep, label = value.partition('=')
    if not sep or not key or '=' in label:
        raise argparse.ArgumentTypeError(f"Label must be in key=value format: {value!r}")
    return key, label


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='hardware-report',
        description='Hardware inventory snapshot for one Linux host',
    )
    parser.add_argument('--config', help='Configuration file (YAML)')
    parser.add_argument('--host', help='Collect from a remote host over SSH')
    parser.add_argument('--port', type=int, help='SSH port')
    parser.add_argument('--user', help='SSH username')
    parser.add_argument('--key', help='SSH private key path')
    parser.add_argument('--format', choices=OUTPUT_FORMATS, help='Output format')
    parser.add_argument('--output', '-o',
                        help='Write the report to a file (or into a directory) instead of stdout')
    parser.add_argument('--categories', nargs='+', choices=CATEGORIES, help='Categories to collect')
    parser.add_argument('--sudo', action='store_true', help='Run privileged probes through sudo -n')
    parser.add_argument('--no-sensitive', action='store_true',
                        help='Omit serial numbers, UUIDs and other host-unique identifiers')
    parser.add_argument('--show-diagnostics', action='store_true',
                        help='Include per-detector failures in the report')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--init-config', metavar='PATH', help='Write a default configuration file and exit')
    parser.add_argument('--post', action='store_true', help='POST the report to --endpoint')
    parser.add_argument('--endpoint', help='Inventory service URL for --post')
    parser.add_argument('--auth-token', default=os.environ.get(TOKEN_ENV),
                        help=f'Bearer token for --post (default: ${TOKEN_ENV})')
    parser.add_argument('--label', dest='labels', action='append', type=parse_label, default=[],
                        metavar='KEY=VALUE', help='Label sent with --post; repeatable')
    parser.add_argument('--save-payload', metavar='PATH', help='Also write the --post payload to a file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command line arguments"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.post and not args.endpoint:
        parser.error("--post requires --endpoint")

    if args.init_config:
        path = write_default_config(args.init_config)
        print(f"Wrote default configuration to {path}", file=sys.stderr)
        return 0

    try:
        config = initialize_config(args.config)
        setup_logging(config.logging.level, enable_debug=args.debug,
                      log_to_file=config.logging.log_to_file, log_dir=config.logging.log_dir)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    logger = get_logger('hardware_report')

    connection = config.connection
    if args.host:
        connection.host = args.host
    if args.port:
        connection.port = args.port
    if args.user:
        connection.username = args.user
    if args.key:
        connection.ssh_key_path = args.key

    overrides = {}
    if args.format:
        overrides['output_format'] = args.format
    if args.categories:
        overrides['categories'] = list(args.categories)
    if args.sudo:
        overrides['use_sudo'] = True
    if args.no_sensitive:
        overrides['include_sensitive'] = False
    report_config = replace(config.report, **overrides)

    collector = MainCollector(connection=connection, report_config=report_config)
    result = collector.collect()

    if not result.success:
        print(f"❌ Collection failed: {result.error}", file=sys.stderr)
        return 1

    report = result.data
    diagnostic_count = sum(len(errors) for errors in report.diagnostics.values())
    logger.info(f"Collected {report.hostname} in {report.collection_time_seconds}s "
                f"({diagnostic_count} detector diagnostics)")

    writer = ReportWriter(report_config.output_format)
    rendered = report.to_dict(include_diagnostics=args.show_diagnostics)
    if args.output:
        path = writer.write(rendered, args.output)
        print(f"💾 Saved to {path}", file=sys.stderr)
    else:
        sys.stdout.write(writer.render(rendered))

    if args.post:
        publisher = ReportPublisher(args.endpoint, auth_token=args.auth_token,
                                    timeout=report_config.command_timeout)
        if not publisher.publish(rendered, labels=dict(args.labels), save_payload=args.save_payload):
            print(f"❌ Failed to publish report to {args.endpoint}", file=sys.stderr)
            return 1
        print(f"📤 Published to {args.endpoint}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
