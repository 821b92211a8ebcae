import tomllib
from pathlib import Path
from typing import NamedTuple, Sequence


# Built-in defaults
DEFAULT_ROOT_FOLDERS = (r'D:\Drishti', r'E:\Drishti', r'F:\Drishti')
DEFAULT_OUTPUT_FOLDER = 'Consolidated_CSV'
DEFAULT_WINDOW_DAYS = 30
DEFAULT_FOLDER_NAME = 'drishti_backup'
DEFAULT_EXCLUSION_MARKER = '_nhp'
DEFAULT_EXTENSION = '.csv'
DEFAULT_PROGRESS_INTERVAL = 100

DUPLICATES_DIRECTORY_NAME = 'duplicates'

# Settings key constants
SETTING_ROOTS = 'roots'
SETTING_OUTPUT = 'output'
SETTING_WINDOW_DAYS = 'window_days'
SETTING_FOLDER_NAME = 'folder_name'
SETTING_EXCLUSION_MARKER = 'exclusion_marker'
SETTING_EXTENSION = 'extension'
SETTING_PROGRESS_INTERVAL = 'progress_interval'
SETTING_LOGGING_PATH = 'logging.path'
SETTING_LOGGING_LEVEL = 'logging.level'


class HarvestSettings:
    """Settings loaded from an optional TOML file.

    Provides a read-only key-value interface over the raw TOML data. This class does not
    validate values; HarvestConfig.resolve() interprets them.

    Example:
        settings = HarvestSettings(Path('csvharvest.toml'))
        window = settings.get(SETTING_WINDOW_DAYS, DEFAULT_WINDOW_DAYS)
        level = settings.get('logging.level', 'INFO')
    """

    def __init__(self, settings_file: Path | None = None):
        """Load settings from settings_file.

        With no file, an empty settings dictionary is used and every get() call returns its
        default.

        Raises:
            FileNotFoundError: settings_file was given but does not exist
            tomllib.TOMLDecodeError: settings_file is not valid TOML
        """
        self._settings_file = settings_file
        self._settings = {}

        if settings_file is not None:
            with open(settings_file, 'rb') as f:
                self._settings = tomllib.load(f)

    @property
    def settings_file(self) -> Path | None:
        return self._settings_file

    def get(self, key: str, default=None):
        """Get a setting value by key with optional default.

        Dot notation reaches into tables: 'logging.level' reads settings['logging']['level'].
        Returns default when any part of the key path is missing or is not a table.

        Examples:
            >>> settings.get(SETTING_ROOTS, [])
            ['/data/site-a', '/data/site-b']
            >>> settings.get('nonexistent.key', 'fallback')
            'fallback'
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value


class HarvestConfig(NamedTuple):
    """Resolved configuration of a harvest run.

    Attributes:
        roots: Root folders to search, in order, without repeats
        output: Output directory receiving unique files
        window_days: Files modified before (today - window_days) at midnight are ignored
        folder_name: Name of backup folders whose files are harvested
        exclusion_marker: Name fragment marking backup folders that must never be harvested
        extension: File extension to harvest, including the leading dot
        progress_interval: Number of processed files between progress log messages
    """
    roots: tuple[Path, ...] = tuple(Path(p) for p in DEFAULT_ROOT_FOLDERS)
    output: Path = Path(DEFAULT_OUTPUT_FOLDER)
    window_days: int = DEFAULT_WINDOW_DAYS
    folder_name: str = DEFAULT_FOLDER_NAME
    exclusion_marker: str = DEFAULT_EXCLUSION_MARKER
    extension: str = DEFAULT_EXTENSION
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL

    @property
    def duplicates(self) -> Path:
        return self.output / DUPLICATES_DIRECTORY_NAME

    @property
    def excluded_folder_name(self) -> str:
        return self.folder_name + self.exclusion_marker

    @classmethod
    def resolve(
            cls,
            settings: HarvestSettings,
            roots: Sequence[str | Path] | None = None,
            output: str | Path | None = None,
            window_days: int | None = None,
            folder_name: str | None = None,
            exclusion_marker: str | None = None,
            extension: str | None = None,
            progress_interval: int | None = None) -> 'HarvestConfig':
        """Combine explicit values, settings and built-in defaults, in that order of precedence.

        Raises:
            ValueError: A value is out of range or of the wrong type
        """
        def pick(explicit, key, default):
            if explicit is not None:
                return explicit
            return settings.get(key, default)

        def text(key, value) -> str:
            if not isinstance(value, (str, Path)):
                raise ValueError(f"{key} must be a string: {value!r}")
            if not str(value):
                raise ValueError(f"{key} must not be empty")
            return str(value)

        root_list = pick(roots, SETTING_ROOTS, DEFAULT_ROOT_FOLDERS)
        if not isinstance(root_list, (list, tuple)) or not root_list:
            raise ValueError("at least one root folder is required")

        unique_roots: list[Path] = []
        for root in root_list:
            path = Path(text(SETTING_ROOTS, root))
            if path not in unique_roots:
                unique_roots.append(path)

        window = pick(window_days, SETTING_WINDOW_DAYS, DEFAULT_WINDOW_DAYS)
        if not isinstance(window, int) or isinstance(window, bool) or window < 0:
            raise ValueError(f"window_days must be a non-negative integer: {window!r}")

        interval = pick(progress_interval, SETTING_PROGRESS_INTERVAL, DEFAULT_PROGRESS_INTERVAL)
        if not isinstance(interval, int) or isinstance(interval, bool) or interval <= 0:
            raise ValueError(f"progress_interval must be a positive integer: {interval!r}")

        name = text(SETTING_FOLDER_NAME, pick(folder_name, SETTING_FOLDER_NAME, DEFAULT_FOLDER_NAME))
        marker = text(SETTING_EXCLUSION_MARKER,
                      pick(exclusion_marker, SETTING_EXCLUSION_MARKER, DEFAULT_EXCLUSION_MARKER))

        ext = text(SETTING_EXTENSION, pick(extension, SETTING_EXTENSION, DEFAULT_EXTENSION))
        if not ext.startswith('.'):
            ext = '.' + ext

        return cls(
            roots=tuple(unique_roots),
            output=Path(text(SETTING_OUTPUT, pick(output, SETTING_OUTPUT, DEFAULT_OUTPUT_FOLDER))),
            window_days=window,
            folder_name=name,
            exclusion_marker=marker,
            extension=ext,
            progress_interval=interval,
        )
