"""
Field classifier for mirrored sheets.

Two keyword heuristics, both driven by ClassifierSettings tables:

1. Role detection - for each role (partner, product, status) the first field
   whose name contains one of the role keywords is a candidate. It becomes a
   FilterField only when it has more than one and at most `max_filter_values`
   distinct non-blank values; otherwise the role is left out.

2. Status classification - a status value is lower-cased and checked against
   the ready, blocked and in-progress keyword tables in that order. A keyword
   matches as a substring that starts a word; keywords of three characters or
   fewer must be whole words. A match is ignored when a keyword from a later
   table that contains it also matches ("not supported" hides "supported").
   First remaining match wins; no match means unclassified.

   Known limitation: a compound value such as "previously supported, now
   deprecated" is classified ready, because "supported" is matched before
   "deprecated" and the latter does not contain it.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from shared.config.settings import ClassifierSettings
from shared.models.records import (
    CertificationSummary,
    FieldRole,
    FilterField,
    Insights,
    SheetRecord,
    StatusBucket,
)
from shared.services.record_store import unique_field_values


SHORT_KEYWORD_LENGTH = 3


def _keyword_pattern(keyword: str) -> re.Pattern:
    """
    Keyword must start a word: "unsupported" never matches "supported" while
    "failures" matches "fail". Short keywords ("no", "ga", "yes") must also
    end the word.
    """
    keyword = keyword.strip().lower()
    pattern = r"(?<![0-9a-z])" + re.escape(keyword)
    if len(keyword) <= SHORT_KEYWORD_LENGTH:
        pattern += r"(?![0-9a-z])"
    return re.compile(pattern)


def field_label(field: str) -> str:
    """support_status -> Support Status"""
    return " ".join(part.capitalize() for part in field.split("_") if part)


def schema_fields(records: Sequence[SheetRecord]) -> List[str]:
    """Field names in first-seen order across the given records."""
    names: List[str] = []
    seen = set()
    for record in records:
        for name in record.fields.keys():
            if name not in seen:
                seen.add(name)
                names.append(name)
    return names


class FieldClassifier:
    def __init__(self, settings: Optional[ClassifierSettings] = None) -> None:
        cfg = settings or ClassifierSettings()
        self.role_keywords: Dict[FieldRole, List[str]] = {
            FieldRole.PARTNER: [k.lower() for k in cfg.partner_field_keywords],
            FieldRole.PRODUCT: [k.lower() for k in cfg.product_field_keywords],
            FieldRole.STATUS: [k.lower() for k in cfg.status_field_keywords],
        }
        self.certification_keywords = [k.lower() for k in cfg.certification_field_keywords]
        self.truthy_values = {k.lower() for k in cfg.truthy_keywords}
        self.min_filter_values = max(2, cfg.min_filter_values)
        self.max_filter_values = cfg.max_filter_values

        tables: List[Tuple[StatusBucket, List[str]]] = [
            (StatusBucket.READY, cfg.ready_keywords),
            (StatusBucket.BLOCKED, cfg.blocked_keywords),
            (StatusBucket.IN_PROGRESS, cfg.in_progress_keywords),
        ]
        self._status_rules: List[Tuple[StatusBucket, List[Tuple[str, re.Pattern]]]] = [
            (bucket, [(k.lower(), _keyword_pattern(k)) for k in keywords if k.strip()])
            for bucket, keywords in tables
        ]

    # -------------------------
    # Role detection
    # -------------------------

    def _find_field(self, field_names: Iterable[str], keywords: Sequence[str]) -> Optional[str]:
        for name in field_names:
            lowered = name.lower()
            if any(keyword in lowered for keyword in keywords):
                return name
        return None

    def find_role_field(self, field_names: Iterable[str], role: FieldRole) -> Optional[str]:
        return self._find_field(field_names, self.role_keywords[role])

    def find_certification_field(self, field_names: Iterable[str]) -> Optional[str]:
        return self._find_field(field_names, self.certification_keywords)

    def detect_filter_fields(self, records: Sequence[SheetRecord]) -> List[FilterField]:
        """Usable filter fields for the given records; roles without one are omitted."""
        names = schema_fields(records)
        detected: List[FilterField] = []
        for role in (FieldRole.PARTNER, FieldRole.PRODUCT, FieldRole.STATUS):
            field = self.find_role_field(names, role)
            if field is None:
                continue
            values = unique_field_values(records, field)
            if not (self.min_filter_values <= len(values) <= self.max_filter_values):
                continue
            detected.append(
                FilterField(role=role, source_field=field, label=field_label(field), values=values)
            )
        return detected

    # -------------------------
    # Status classification
    # -------------------------

    def classify_status(self, value: Optional[str]) -> Optional[StatusBucket]:
        text = (value or "").strip().lower()
        if not text:
            return None

        matched = [
            (bucket, [keyword for keyword, pattern in rules if pattern.search(text)])
            for bucket, rules in self._status_rules
        ]
        for index, (bucket, keywords) in enumerate(matched):
            later = [k for _, ks in matched[index + 1:] for k in ks]
            if any(not any(k != other and k in other for other in later) for k in keywords):
                return bucket
        return None

    # -------------------------
    # Insights
    # -------------------------

    def is_truthy(self, value: Optional[str]) -> bool:
        return (value or "").strip().lower() in self.truthy_values

    def summarize(self, records: Sequence[SheetRecord]) -> Insights:
        names = schema_fields(records)
        status_field = self.find_role_field(names, FieldRole.STATUS)
        partner_field = self.find_role_field(names, FieldRole.PARTNER)
        certification_field = self.find_certification_field(names)

        insights = Insights(
            total_records=len(records),
            status_field=status_field,
            partner_field=partner_field,
        )

        if status_field is not None:
            for record in records:
                bucket = self.classify_status(record.canonical(status_field))
                if bucket is None:
                    insights.unclassified += 1
                else:
                    insights.status_counts[bucket.value] += 1

        if partner_field is not None:
            counts = Counter(
                value
                for value in (record.canonical(partner_field).strip() for record in records)
                if value
            )
            insights.by_partner = dict(sorted(counts.items()))

        if certification_field is not None and records:
            certified = sum(1 for r in records if self.is_truthy(r.canonical(certification_field)))
            insights.certification = CertificationSummary(
                field=certification_field,
                certified=certified,
                total=len(records),
                ratio=round(certified / len(records), 4),
            )

        return insights
