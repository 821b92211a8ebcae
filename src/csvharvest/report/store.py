"""Run report storage: a manifest.json and a stream of msgpack-encoded copy records."""

import json
from dataclasses import dataclass, asdict, field
from enum import StrEnum
from pathlib import Path
from typing import Any, BinaryIO, Iterator

import msgpack


class CopyCategory(StrEnum):
    UNIQUE = 'unique'
    DUPLICATE = 'duplicate'
    FAILED = 'failed'


class CopyRecord:
    """One file handled by a run.

    Attributes:
        source: Path of the harvested file
        destination: Path the file was (or, for failures, would have been) copied to
        category: Whether the file went to the output directory, the duplicates directory,
                  or failed to copy
        error: Error message of a failed copy, None otherwise
    """

    def __init__(self, source: Path, destination: Path, category: CopyCategory, error: str | None = None):
        self.source = source
        self.destination = destination
        self.category = CopyCategory(category)
        self.error = error

    def __eq__(self, other):
        if not isinstance(other, CopyRecord):
            return NotImplemented
        return (self.source, self.destination, self.category, self.error) == \
            (other.source, other.destination, other.category, other.error)

    def __repr__(self):
        return f"CopyRecord({self.source!r}, {self.destination!r}, {self.category!r}, {self.error!r})"

    def to_msgpack(self) -> bytes:
        """Serialize to msgpack.

        Returns:
            Msgpack-encoded bytes containing [source, destination, category, error]
        """
        result = msgpack.dumps([str(self.source), str(self.destination), str(self.category), self.error])
        assert isinstance(result, bytes)
        return result

    @classmethod
    def from_unpacked(cls, decoded: Any) -> "CopyRecord":
        assert isinstance(decoded, list)
        source, destination, category, error = decoded
        return cls(Path(source), Path(destination), CopyCategory(category), error)

    @classmethod
    def from_msgpack(cls, data: bytes) -> "CopyRecord":
        return cls.from_unpacked(msgpack.loads(data))

    def description(self) -> str:
        text = f"{self.category}: {self.source} -> {self.destination}"
        if self.error is not None:
            text += f" ({self.error})"
        return text


@dataclass
class RunManifest:
    """Summary of a run, persisted as manifest.json in the report directory."""
    version: str = "1.0"
    """Report format version"""

    started: str = ""
    """ISO format timestamp when the run started"""

    finished: str = ""
    """ISO format timestamp when the run finished"""

    roots: list[str] = field(default_factory=list)
    """Root folders in processing order"""

    output_path: str = ""
    """Absolute path of the output directory"""

    duplicates_path: str = ""
    """Absolute path of the duplicates directory"""

    window_days: int = 0
    """Age window in days"""

    cutoff: str = ""
    """ISO format timestamp of the age cutoff"""

    statistics: dict[str, Any] | None = None
    """Per-root and total counters, as produced by HarvestStatistics.to_dict()"""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunManifest":
        return cls(**data)


def get_report_directory_path(log_path: Path) -> Path:
    """Report directory of a run, next to its log file (e.g. /logs/run.log.report)."""
    return Path(str(log_path) + '.report')


class RunReportStore:
    """Reads and writes the report directory of a run."""

    def __init__(self, report_dir: Path) -> None:
        self.report_dir: Path = report_dir
        self.manifest_path: Path = report_dir / 'manifest.json'
        self.records_path: Path = report_dir / 'copies.msgpack'
        self._records: BinaryIO | None = None

    def create_report_directory(self) -> None:
        self.report_dir.mkdir(parents=True, exist_ok=True)

    def open_records(self) -> None:
        """Open the copy record stream for appending."""
        self._records = open(self.records_path, 'ab')

    def close_records(self) -> None:
        if self._records is not None:
            self._records.close()
            self._records = None

    def __enter__(self) -> "RunReportStore":
        self.create_report_directory()
        self.open_records()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close_records()

    def write_copy_record(self, record: CopyRecord) -> None:
        if self._records is None:
            raise RuntimeError("Record stream not opened. Use context manager or call open_records().")
        self._records.write(record.to_msgpack())
        self._records.flush()

    def read_copy_records(self) -> Iterator[CopyRecord]:
        """Yield every copy record in the order it was written.

        Raises:
            FileNotFoundError: The run wrote no record stream
        """
        with open(self.records_path, 'rb') as f:
            for decoded in msgpack.Unpacker(f):
                yield CopyRecord.from_unpacked(decoded)

    def write_manifest(self, manifest: RunManifest) -> None:
        with open(self.manifest_path, 'w', encoding='utf-8') as f:
            json.dump(manifest.to_dict(), f, indent=2)

    def read_manifest(self) -> RunManifest:
        """Read the manifest of the run.

        Raises:
            FileNotFoundError: If manifest.json doesn't exist
        """
        with open(self.manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return RunManifest.from_dict(data)
