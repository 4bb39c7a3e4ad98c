"""Fold raw keyword records into one canonical node per normalized term."""

import logging
import re

from constellation.models.schemas import GraphNode, RawKeywordRecord

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_term(term: str) -> str:
    """Lowercase, trim and collapse internal whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", term).strip().lower()


def _is_well_formed(record: RawKeywordRecord) -> bool:
    return bool(record.id and record.id.strip() and record.term and record.term.strip())


def deduplicate_records(
    records: list[RawKeywordRecord],
) -> tuple[list[GraphNode], dict[str, str]]:
    """
    Merge records sharing a normalized term into canonical graph nodes.

    The first record seen for a term is the canonical representative: it
    supplies the node id, term casing, orientation, artifact role and notes.
    Later duplicates only contribute to weight (max), active (OR), frequency
    and the set of source papers, even if their categorical fields differ.

    Records with a blank id or term are skipped.

    Args:
        records: Raw keyword records in store order.

    Returns:
        Tuple of (nodes in first-seen term order, map of record id -> node id).
    """
    groups: dict[str, list[RawKeywordRecord]] = {}
    skipped = 0
    for record in records:
        if not _is_well_formed(record):
            skipped += 1
            continue
        groups.setdefault(normalize_term(record.term), []).append(record)

    if skipped:
        logger.debug("Skipped %d malformed keyword records", skipped)

    nodes: list[GraphNode] = []
    record_to_node: dict[str, str] = {}

    for group in groups.values():
        canonical = group[0]
        # dict preserves first-seen order while deduplicating
        source_papers = list(dict.fromkeys(r.source for r in group if r.source))

        nodes.append(
            GraphNode(
                id=canonical.id,
                term=canonical.term,
                orientation=canonical.orientation,
                artifact_role=canonical.artifact_role,
                weight=max(r.weight for r in group),
                active=any(r.active for r in group),
                frequency=len(group),
                source_papers=source_papers,
                notes=canonical.notes,
            )
        )
        for record in group:
            record_to_node[record.id] = canonical.id

    return nodes, record_to_node
