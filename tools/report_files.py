#!/usr/bin/env python3
"""
report_files.py - Locate and read Reporter export files on disk

Reporter writes one file per day named YYYY-MM-DD-reporter-export.json,
usually synced to ~/Dropbox/Apps/Reporter-App/. Files are ordered by the
date in their name, not by mtime, since sync can touch a file long after
the day it describes.

Usage:
    backend = FilesystemBackend()
    report = backend.get_latest_report()
    day = decode_file(report)
"""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Union

from report_errors import InvalidFilename


FILENAME_SUFFIX = '-reporter-export.json'
FILENAME_FORMAT = '%Y-%m-%d' + FILENAME_SUFFIX
DEFAULT_STORAGE_LOCATION = Path('~/Dropbox/Apps/Reporter-App/')


@dataclass
class ReportFile:
    """One export file and where it came from."""
    name: str
    path: Path
    source: str
    modified_time: datetime
    date: date
    contents: Optional[bytes] = None


def date_for_filename(path: Union[str, Path]) -> date:
    """Date encoded in an export filename."""
    name = Path(path).name
    try:
        return datetime.strptime(name, FILENAME_FORMAT).date()
    except ValueError:
        raise InvalidFilename(f"{name}: expected YYYY-MM-DD{FILENAME_SUFFIX}") from None


def filename_for_date(day: date) -> str:
    return day.strftime(FILENAME_FORMAT)


class FilesystemBackend:
    """Export files in a local directory."""

    source = 'filesystem'

    def __init__(self, storage_location: Union[str, Path, None] = None):
        if storage_location is None:
            storage_location = DEFAULT_STORAGE_LOCATION
        self.storage_location = Path(storage_location).expanduser()

    def _report(self, path: Path, file_date: date, read: bool) -> ReportFile:
        stat = path.stat()
        return ReportFile(
            name=path.name,
            path=path,
            source=self.source,
            modified_time=datetime.fromtimestamp(stat.st_mtime),
            date=file_date,
            contents=path.read_bytes() if read else None,
        )

    def list_reports(self) -> List[ReportFile]:
        """All export files, oldest first. Contents are not read."""
        reports = []
        for path in self.storage_location.iterdir():
            if not path.name.endswith(FILENAME_SUFFIX) or not path.is_file():
                continue
            reports.append(self._report(path, date_for_filename(path), read=False))
        reports.sort(key=lambda r: r.date)
        return reports

    def get_latest_report(self) -> ReportFile:
        """
        Export with the latest date in its filename.

        Raises:
            FileNotFoundError: the directory holds no export files
        """
        reports = self.list_reports()
        if not reports:
            raise FileNotFoundError(f"No Reporter exports in {self.storage_location}")
        latest = reports[-1]
        return self._report(latest.path, latest.date, read=True)

    def get_report_for_path(self, path: Union[str, Path]) -> ReportFile:
        path = Path(path).expanduser()
        file_date = date_for_filename(path)
        return self._report(path, file_date, read=True)

    def get_report_for_time(self, day: date) -> ReportFile:
        return self.get_report_for_path(self.storage_location / filename_for_date(day))
