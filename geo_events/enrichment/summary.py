"""
summary.py - Run statistics for the enrichment pipeline.

RunSummary is accumulated while a run processes rows and is the object handed
to downstream reporting. ProcessingSummary bundles the event and turnout runs
of one build and is written as JSON.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SUSPICIOUS_REJECT_RATIO = 0.10


@dataclass
class RunSummary:
    """
    Counters for one pipeline run.

    Attributes:
        record_type (str): 'event' or 'turnout'.
        rows_total (int): Rows in all sheets that were not skipped.
        rows_processed (int): Rows that entered the pipeline.
        rejects (int): Rows rejected.
        duplicates (int): Rows dropped as duplicates.
        added (int): Rows written to the store.
        issue_counts (Dict[str, int]): Issues per issue type.
        geocodings (int): Addresses sent to the geocoding service.
        wiki_fetches (int): Cities looked up in the encyclopedia.
        elapsed_seconds (float): Wall time of the run.
        skipped_sheets (List[str]): Sheets skipped as known bad or malformed.
    """
    record_type: str = ''
    rows_total: int = 0
    rows_processed: int = 0
    rejects: int = 0
    duplicates: int = 0
    added: int = 0
    issue_counts: Dict[str, int] = field(default_factory=dict)
    geocodings: int = 0
    wiki_fetches: int = 0
    elapsed_seconds: float = 0.0
    skipped_sheets: List[str] = field(default_factory=list)

    def count_issue(self, issue_type: str) -> None:
        self.issue_counts[issue_type] = self.issue_counts.get(issue_type, 0) + 1

    @property
    def reject_ratio(self) -> float:
        if not self.rows_processed:
            return 0.0
        return self.rejects / self.rows_processed

    def is_suspicious(self, max_reject_ratio: float = DEFAULT_SUSPICIOUS_REJECT_RATIO) -> bool:
        """True if more than max_reject_ratio of the processed rows were rejected."""
        return self.reject_ratio > max_reject_ratio

    def as_dict(self) -> dict:
        d = asdict(self)
        d['reject_ratio'] = round(self.reject_ratio, 4)
        return d

    def log(self) -> None:
        logger.info(
            f"{self.record_type or 'record'} run: {self.rows_processed}/{self.rows_total} processed, "
            f"{self.added} added, {self.duplicates} duplicates, {self.rejects} rejects, "
            f"{self.geocodings} geocodings, {self.wiki_fetches} wiki fetches "
            f"in {self.elapsed_seconds:.1f}s"
        )
        for issue_type, count in sorted(self.issue_counts.items()):
            logger.info(f"  {issue_type}: {count}")


@dataclass
class ProcessingSummary:
    """Summaries of the runs of one build."""
    runs: Dict[str, RunSummary] = field(default_factory=dict)
    suspicious_reject_ratio: float = DEFAULT_SUSPICIOUS_REJECT_RATIO
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec='seconds'))

    def add(self, summary: RunSummary) -> None:
        self.runs[summary.record_type] = summary

    @property
    def is_suspicious(self) -> bool:
        return any(run.is_suspicious(self.suspicious_reject_ratio) for run in self.runs.values())

    def as_dict(self) -> dict:
        return {
            'created_at': self.created_at,
            'suspicious': self.is_suspicious,
            'suspicious_reject_ratio': self.suspicious_reject_ratio,
            'runs': {name: run.as_dict() for name, run in self.runs.items()},
        }

    def write_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.as_dict(), f, indent=2)
        logger.info(f"Wrote processing summary to {path}")
        return path

    @classmethod
    def read_json(cls, path: Union[str, Path]) -> Optional['ProcessingSummary']:
        path = Path(path)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            d = json.load(f)
        summary = cls(suspicious_reject_ratio=d.get('suspicious_reject_ratio', DEFAULT_SUSPICIOUS_REJECT_RATIO),
                      created_at=d.get('created_at', ''))
        for name, run in (d.get('runs') or {}).items():
            run = dict(run)
            run.pop('reject_ratio', None)
            summary.runs[name] = RunSummary(**run)
        return summary
