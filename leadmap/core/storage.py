"""JSON report files read by the map viewer."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from leadmap.etl.transform import slugify
from leadmap.models import RunReport

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def report_filename(sector: str, city: str) -> str:
    """Return e.g. ``colegios_privados_huancayo.json`` for a sector report."""
    return f"{slugify(sector)}_{slugify(city)}.json"


def write_report(report: RunReport, output_dir: PathLike, filename: Optional[str] = None) -> Path:
    """Serialize a report to ``output_dir``; I/O errors propagate."""
    if filename is None:
        filename = report_filename(report.meta.sector or "results", report.meta.city)
    output_path = Path(output_dir).joinpath(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(report.to_dict(), fh, ensure_ascii=False, indent=2)
    logger.info("Saved %d records to %s", report.meta.total_results, output_path)
    return output_path


class SnapshotWriter:
    """Pipeline snapshot hook that overwrites one report file in place."""

    def __init__(self, output_dir: PathLike, filename: str) -> None:
        self.output_dir = Path(output_dir)
        self.filename = filename

    def __call__(self, report: RunReport) -> None:
        write_report(report, self.output_dir, self.filename)


def load_report(path: PathLike) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as fh:
        return json.load(fh)


def list_reports(output_dir: PathLike) -> List[str]:
    directory = Path(output_dir)
    if not directory.is_dir():
        return []
    return sorted(entry.name for entry in directory.glob("*.json") if entry.is_file())
