import argparse
import datetime
import logging
import sys
import textwrap
import tomllib
from functools import wraps
from pathlib import Path

from . import Harvester, HarvestConfig, HarvestSettings
from .report.store import RunReportStore, get_report_directory_path
from .settings import (
    DEFAULT_OUTPUT_FOLDER,
    DEFAULT_WINDOW_DAYS,
    DEFAULT_FOLDER_NAME,
    DEFAULT_EXCLUSION_MARKER,
    DEFAULT_EXTENSION,
    DEFAULT_PROGRESS_INTERVAL,
    SETTING_LOGGING_PATH,
    SETTING_LOGGING_LEVEL,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '[%(asctime)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def default_log_directory() -> Path:
    """Directory holding the invoked script, or the working directory when there is none."""
    script = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if script is not None and script.is_file():
        return script.resolve().parent
    return Path.cwd()


def default_log_file_name(started: datetime.datetime) -> str:
    return f"csvharvest_{started:%Y%m%d_%H%M%S}.log"


def configure_logging(log_path: Path, level: str = 'INFO', console: bool = False) -> None:
    """Send log records to log_path (appending, UTF-8) and optionally to stderr."""
    handlers: list[logging.Handler] = [logging.FileHandler(log_path, mode='a', encoding='utf-8')]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        handlers=handlers,
        level=getattr(logging, level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=True
    )


def needs_settings(func):
    """Decorator for commands that need settings and a configured log.

    The decorated function will receive (settings, log_path, args).
    The wrapper takes args, loads the settings file, configures logging and returns the
    command's exit status. Settings errors end the command with status 2.
    """
    @wraps(func)
    def wrapper(args):
        started = datetime.datetime.now()
        try:
            settings = HarvestSettings(Path(args.settings) if args.settings else None)
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"Error: cannot read settings file '{args.settings}': {e}", file=sys.stderr)
            return 2

        if args.log_file:
            log_path = Path(args.log_file)
        elif settings.get(SETTING_LOGGING_PATH):
            log_path = Path(str(settings.get(SETTING_LOGGING_PATH)))
        else:
            log_directory = Path(args.log_dir) if args.log_dir else default_log_directory()
            log_path = log_directory / default_log_file_name(started)

        log_level = args.log_level or str(settings.get(SETTING_LOGGING_LEVEL, 'INFO')).upper()
        if log_level not in LOG_LEVELS:
            print(f"Error: unknown log level: {log_level}", file=sys.stderr)
            return 2

        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            configure_logging(log_path, log_level, args.verbose)
        except OSError as e:
            print(f"Error: cannot open log file '{log_path}': {e}", file=sys.stderr)
            return 2

        return func(settings, log_path, args)
    return wrapper


def no_settings(func):
    """Decorator for commands that neither read settings nor log.

    The decorated function will receive (args).
    """
    @wraps(func)
    def wrapper(args):
        return func(args)
    return wrapper


def csvharvest_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog='csvharvest',
        description='Collect recent CSV files from backup folders into one archive directory, setting aside '
                    'files whose name is already archived.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              csvharvest run /data/site-a /data/site-b --output archive
              csvharvest run --days 7 --report /data/site-a
              csvharvest inspect csvharvest_20260101_080000.log.report
            ''').strip()
    )
    parser.add_argument(
        '--settings',
        metavar='PATH',
        help='Path to a TOML settings file. Command-line options take precedence over its values.')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Also print log messages to standard error')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to the log file. If not provided, uses logging.path from the settings, or a file named after '
             'the start time of the run in --log-dir.')
    parser.add_argument(
        '--log-dir',
        metavar='PATH',
        help='Directory of the timestamped log file (default: the directory of the script, or the current '
             'directory)')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=LOG_LEVELS,
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to logging.level from the settings, '
             'or INFO.')
    parser.set_defaults(roots=None, output=None, days=None, folder_name=None, exclusion_marker=None,
                        extension=None, progress_interval=None, report=False, strict=False)
    subparsers = parser.add_subparsers(
        dest='command',
        title='Commands',
        description='Available commands (default: run)',
        help='Use "csvharvest COMMAND --help" for command-specific help'
    )

    parser_run = subparsers.add_parser(
        'run',
        help='Copy recent CSV files from backup folders into the output directory',
        description='Searches every root folder for backup folders, copies their recent CSV files into the output '
                    'directory, and sets aside files whose name already exists there in the duplicates '
                    'subdirectory. Backup folders carrying the exclusion marker are skipped.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(f'''
            A folder is harvested only when its name is exactly the backup folder name
            (default: {DEFAULT_FOLDER_NAME}) and no segment of its path below the root carries the
            exclusion marker (default: {DEFAULT_EXCLUSION_MARKER}).
            ''').strip())
    parser_run.add_argument(
        'roots',
        nargs='*',
        metavar='ROOT',
        help='Root folders to search (default: roots from the settings, or the built-in list)')
    parser_run.add_argument(
        '--output',
        metavar='PATH',
        help=f'Output directory (default: {DEFAULT_OUTPUT_FOLDER})')
    parser_run.add_argument(
        '--days',
        type=int,
        metavar='N',
        help=f'Only copy files modified within the last N days, counted from midnight (default: '
             f'{DEFAULT_WINDOW_DAYS})')
    parser_run.add_argument(
        '--folder-name',
        metavar='NAME',
        help=f'Name of the backup folders to harvest (default: {DEFAULT_FOLDER_NAME})')
    parser_run.add_argument(
        '--exclusion-marker',
        metavar='MARKER',
        help=f'Name fragment marking backup folders to skip (default: {DEFAULT_EXCLUSION_MARKER})')
    parser_run.add_argument(
        '--extension',
        metavar='EXT',
        help=f'Extension of the files to copy (default: {DEFAULT_EXTENSION})')
    parser_run.add_argument(
        '--progress-interval',
        type=int,
        metavar='N',
        help=f'Log progress every N processed files (default: {DEFAULT_PROGRESS_INTERVAL})')
    parser_run.add_argument(
        '--report',
        action='store_true',
        help='Write a run report (manifest and copy records) next to the log file')
    parser_run.add_argument(
        '--strict',
        action='store_true',
        help='Exit with status 1 if any file failed to copy')
    parser_run.set_defaults(method=_run)

    parser_inspect = subparsers.add_parser(
        'inspect',
        help='Display a saved run report',
        description='Prints the manifest and every copy record of a run report directory.')
    parser_inspect.add_argument(
        'report_dir',
        metavar='REPORT_DIR',
        help='Path to the .report directory of a run')
    parser_inspect.set_defaults(method=_inspect)

    args = parser.parse_args(argv)
    if args.command is None:
        return _run(args)
    return args.method(args)


@needs_settings
def _run(settings: HarvestSettings, log_path: Path, args) -> int:
    try:
        config = HarvestConfig.resolve(
            settings,
            roots=args.roots or None,
            output=args.output,
            window_days=args.days,
            folder_name=args.folder_name,
            exclusion_marker=args.exclusion_marker,
            extension=args.extension,
            progress_interval=args.progress_interval,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    report_dir = get_report_directory_path(log_path) if args.report else None
    statistics = Harvester(config, report_dir).run()

    if args.strict and statistics.totals.failed:
        return 1
    return 0


@no_settings
def _inspect(args) -> int:
    store = RunReportStore(Path(args.report_dir))
    try:
        manifest = store.read_manifest()
    except FileNotFoundError:
        print(f"Error: no run report found in {args.report_dir}", file=sys.stderr)
        return 1

    print(f"Started: {manifest.started}")
    print(f"Finished: {manifest.finished}")
    print(f"Cutoff: {manifest.cutoff} ({manifest.window_days} days)")
    print(f"Output: {manifest.output_path}")
    print(f"Duplicates: {manifest.duplicates_path}")
    if manifest.statistics is not None:
        for root, counters in manifest.statistics['roots'].items():
            print(f"Root {root}: " + ', '.join(f"{name}={value}" for name, value in counters.items()))
        totals = manifest.statistics['totals']
        print("Totals: " + ', '.join(f"{name}={value}" for name, value in totals.items()))

    if store.records_path.exists():
        for record in store.read_copy_records():
            print(record.description())
    return 0


if __name__ == '__main__':
    sys.exit(csvharvest_main())
