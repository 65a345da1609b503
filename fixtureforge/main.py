import argparse
import json
import os
import sys

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from fixtureforge.comparator import CollectingFailureHandler, ComparisonOptions
from fixtureforge.config import Configuration
from fixtureforge.constants import Operation, TableMergeStrategy, TableOrderingStrategy
from fixtureforge.exceptions import DatabaseTesterError
from fixtureforge.loader import DataSetLoader
from fixtureforge.logging_config import setup_logging
from fixtureforge.registry import DataSourceRegistry
from fixtureforge.tester import DatabaseTester


def read_version() -> str:
    version_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'VERSION')
    if os.path.exists(version_path):
        with open(version_path, 'r') as f:
            return f.read().strip()
    return 'Unknown'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='FixtureForge - Database test fixtures')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Increase log verbosity (-v info, -vv debug)')
    parser.add_argument('--log-format', choices=['text', 'json'], default='text', help='Log output format')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--config', help='Path to YAML configuration file')
    parser.add_argument('--version', action='version', version=f'FixtureForge v{read_version()}')

    subparsers = parser.add_subparsers(dest='command', required=True)

    load = subparsers.add_parser('load', help='Write datasets into a database')
    load.add_argument('--url', required=True, help='SQLAlchemy database URL')
    load.add_argument('--dataset', required=True, action='append', help='Dataset directory (repeatable)')
    load.add_argument('--operation', choices=[o.value for o in Operation], help='Write operation (default from config)')
    load.add_argument('--ordering', choices=[s.value for s in TableOrderingStrategy], help='Table ordering strategy')
    load.add_argument('--scenario', action='append', default=[], help='Scenario name to keep (repeatable)')
    load.add_argument('--merge-strategy', choices=[s.value for s in TableMergeStrategy],
                      help='How tables from several datasets are combined')

    verify = subparsers.add_parser('verify', help='Compare database contents with an expected dataset')
    verify.add_argument('--url', required=True, help='SQLAlchemy database URL')
    verify.add_argument('--expected', required=True, help='Expected dataset directory')
    verify.add_argument('--exclude', action='append', default=[], help='Column to leave out of the comparison (repeatable)')
    verify.add_argument('--scenario', action='append', default=[], help='Scenario name to keep (repeatable)')
    verify.add_argument('--json-out', help='Path to save the difference report as JSON')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(verbose=args.verbose, log_format=args.log_format, no_color=args.no_color)
    logger.debug(f"Command={args.command}, URL={_safe_url(args.url)}")

    try:
        configuration = Configuration.from_yaml(args.config) if args.config else Configuration.defaults()
        if args.command == 'load':
            return _run_load(args, configuration)
        return _run_verify(args, configuration)
    except DatabaseTesterError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        if e.__cause__ is not None:
            print(f"Cause: {e.__cause__}", file=sys.stderr)
        sys.exit(1)


def _safe_url(url: str) -> str:
    """Render a database URL with its password masked."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable URL>"


def _run_load(args, configuration: Configuration) -> int:
    if args.merge_strategy:
        configuration = Configuration(
            conventions=configuration.conventions.with_table_merge_strategy(TableMergeStrategy(args.merge_strategy)),
            operations=configuration.operations,
            table_ordering=configuration.table_ordering,
        )

    table_set = DataSetLoader(configuration).load_many(args.dataset, args.scenario)
    engine = create_engine(args.url)
    try:
        registry = DataSourceRegistry()
        registry.register_default(engine)
        tester = DatabaseTester(configuration, registry)
        operation = Operation(args.operation) if args.operation else None
        ordering = TableOrderingStrategy(args.ordering) if args.ordering else None
        written = tester.prepare(table_set, operation=operation, ordering=ordering)
    finally:
        engine.dispose()

    rows = sum(t.row_count for t in written)
    print(f"Loaded {rows} rows into {len(written)} tables")
    return 0


def _run_verify(args, configuration: Configuration) -> int:
    expected = DataSetLoader(configuration).load(args.expected, args.scenario)
    handler = CollectingFailureHandler()
    options = ComparisonOptions(exclude_columns=args.exclude, failure_handler=handler)

    engine = create_engine(args.url)
    try:
        registry = DataSourceRegistry()
        registry.register_default(engine)
        result = DatabaseTester(configuration, registry).expect(expected, options=options)
    finally:
        engine.dispose()

    if args.json_out:
        with open(args.json_out, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"JSON report saved to {args.json_out}")

    if handler.has_failures:
        print(handler.messages[-1])
        sys.exit(1)

    print(f"Database matches expected dataset ({len(expected)} tables)")
    return 0


if __name__ == '__main__':
    main()
