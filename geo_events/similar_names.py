"""
similar_names.py - Post-run scan for near-duplicate event names.

Names that differ only cosmetically ("Hands Off Springfield" and
"Springfield Hands Off!") slip past deduplication. After a run the stored
names are clustered with rapidfuzz's token set ratio so they can be reviewed
and merged at the source.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from rapidfuzz import fuzz

from .issue_log import IssueLog

logger = logging.getLogger(__name__)

_SPACES_RE = re.compile(r"\s+")


def _canonical(name: str) -> str:
    return _SPACES_RE.sub(' ', name.lower()).strip()


def cluster_similar_names(names: Iterable[str], threshold: int = 80) -> List[List[str]]:
    """
    Group names whose token set ratio to the cluster's first name is at least threshold.

    Only clusters with more than one distinct name are returned; order follows
    first appearance.
    """
    unique: List[str] = []
    seen = set()
    for name in names:
        if name and name not in seen:
            seen.add(name)
            unique.append(name)

    canonical = [_canonical(name) for name in unique]
    used = set()
    clusters: List[List[str]] = []
    for i, name in enumerate(unique):
        if i in used:
            continue
        used.add(i)
        group = [name]
        for j in range(i + 1, len(unique)):
            if j in used:
                continue
            if fuzz.token_set_ratio(canonical[i], canonical[j]) >= threshold:
                group.append(unique[j])
                used.add(j)
        if len(group) > 1:
            clusters.append(group)
    return clusters


def scan_for_similar_names(names: Iterable[str], issue_log: Optional[IssueLog] = None, threshold: int = 80) -> List[List[str]]:
    """Cluster names and write the clusters to the issue log."""
    clusters = cluster_similar_names(names, threshold)
    lines = ["Possible combinable names:"]
    for cluster in clusters:
        lines.append("----- Similar -----")
        lines.extend(cluster)
    if not clusters:
        lines.append("No similar-but-not-identical name clusters found.")
    if issue_log is not None:
        for line in lines:
            issue_log.write_line(line)
    logger.info(f"Similar name scan found {len(clusters)} cluster(s)")
    return clusters
