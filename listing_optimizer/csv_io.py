"""Keyword CSV import and keyword/title CSV export.

Accepts spreadsheet exports (Excel, Google Sheets) with English or Korean
headers. Row problems are collected per row; parsing never aborts on a bad
row.
"""
import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from listing_optimizer.models import TERM_MAX_LENGTH, Keyword, KeywordTag, ProductTitle

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    "term": "term", "keyword": "term", "키워드": "term",
    "volume": "volume", "search_volume": "volume", "검색량": "volume",
    "competition": "competition", "comp": "competition", "경쟁도": "competition",
    "weight": "weight", "ctr": "weight", "가중치": "weight",
    "notes": "notes", "memo": "notes", "메모": "notes",
    "tags": "tags", "tag": "tags", "태그": "tags",
}
REQUIRED_FIELDS = ("term", "volume", "competition")
KEYWORD_COLUMNS = ("term", "volume", "competition", "weight", "notes", "tags")

_TAG_SPLIT = re.compile(r"[,;|]")

SAMPLE_ROWS = [
    ("스마트폰", 10000, 85, 0.8, "모바일 디바이스", "trending,category"),
    ("갤럭시", 8500, 90, 0.9, "삼성 브랜드", "brand,trending"),
    ("아이폰", 12000, 95, 0.95, "애플 브랜드", "brand,trending"),
    ("무선이어폰", 6000, 70, 0.7, "블루투스 이어폰", "feature,trending"),
    ("게이밍마우스", 3000, 60, 0.6, "게임용 마우스", "feature,custom"),
]


@dataclass
class CSVParseStats:
    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0
    skipped_rows: int = 0


@dataclass
class CSVParseResult:
    keywords: list[Keyword] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: CSVParseStats = field(default_factory=CSVParseStats)

    @property
    def success(self) -> bool:
        return self.stats.valid_rows > 0

    def summary(self) -> str:
        s = self.stats
        lines = [
            f"📄 CSV Import",
            f"   Rows: {s.total_rows}",
            f"   ✅ Valid: {s.valid_rows}",
            f"   ❌ Errors: {s.error_rows}",
            f"   ⏭️  Skipped: {s.skipped_rows}",
        ]
        for e in self.errors[:10]:
            lines.append(f"   ❌ {e}")
        for w in self.warnings[:10]:
            lines.append(f"   ⚠️ {w}")
        return "\n".join(lines)


def parse_number(value) -> Optional[float]:
    """Parse ``1,234.5`` style numbers; None when empty, not numeric or not finite."""
    if value is None:
        return None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_tags(value: Optional[str]) -> frozenset:
    """Split on , ; or | and keep only known tags."""
    if not value:
        return frozenset()
    tags = set()
    for part in _TAG_SPLIT.split(value):
        tag = KeywordTag.parse(part)
        if tag is not None:
            tags.add(tag)
    return frozenset(tags)


def map_headers(headers: Sequence[str]) -> tuple[list[Optional[str]], list[str]]:
    """Map raw headers to field names. Returns (fields, errors)."""
    fields = []
    errors = []
    seen = set()
    for h in headers:
        name = HEADER_ALIASES.get(h.strip().lower().lstrip("\ufeff"))
        if name is not None and name in seen:
            errors.append(f"중복된 헤더: {h.strip()}")
        if name is not None:
            seen.add(name)
        fields.append(name)
    missing = [f for f in REQUIRED_FIELDS if f not in seen]
    if missing:
        errors.append(f"필수 헤더 누락: {', '.join(missing)}")
    return fields, errors


def _row_keyword(row: dict, line_no: int, result: CSVParseResult) -> Optional[Keyword]:
    term = (row.get("term") or "").strip()
    if not term:
        result.errors.append(f"{line_no}행: 키워드(term)는 필수입니다.")
        return None
    if len(term) > TERM_MAX_LENGTH:
        result.errors.append(f"{line_no}행: 키워드는 {TERM_MAX_LENGTH}자 이하여야 합니다.")
        return None

    volume = parse_number(row.get("volume"))
    competition = parse_number(row.get("competition"))
    if volume is None or competition is None:
        result.errors.append(f"{line_no}행: 검색량과 경쟁도는 숫자여야 합니다.")
        return None
    if volume < 0:
        result.errors.append(f"{line_no}행: 검색량은 0 이상이어야 합니다.")
        return None
    if not 0 <= competition <= 100:
        result.errors.append(f"{line_no}행: 경쟁도는 0-100 사이여야 합니다.")
        return None

    weight = parse_number(row.get("weight"))
    if weight is not None and not 0 <= weight <= 1:
        result.warnings.append(f"{line_no}행: 가중치는 0-1 사이 값을 권장합니다.")
        weight = min(1.0, max(0.0, weight))

    return Keyword(
        term=term,
        volume=int(volume),
        competition=competition,
        weight=weight,
        notes=(row.get("notes") or "").strip() or None,
        tags=parse_tags(row.get("tags")),
    )


def parse_keywords_csv(text: str, max_rows: int = 1000) -> CSVParseResult:
    """Parse keyword rows from CSV text.

    Args:
        text: CSV content with a header row.
        max_rows: Data rows beyond this are ignored with a warning.

    Returns:
        CSVParseResult with the valid keywords and every row error/warning.
    """
    result = CSVParseResult()
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        result.errors.append("빈 파일입니다.")
        return result

    fields, header_errors = map_headers(rows[0])
    if header_errors:
        result.errors.extend(header_errors)
        return result

    data = rows[1:]
    result.stats.total_rows = len(data)
    if len(data) > max_rows:
        result.warnings.append(
            f"최대 {max_rows}행까지만 처리됩니다. 총 {len(data)}행 중 {max_rows}행 처리됨."
        )

    seen_terms = set()
    for i, values in enumerate(data[:max_rows]):
        line_no = i + 2
        if not any(v.strip() for v in values):
            result.stats.skipped_rows += 1
            continue
        row = {f: v for f, v in zip(fields, values) if f is not None}
        kw = _row_keyword(row, line_no, result)
        if kw is None:
            result.stats.error_rows += 1
            continue
        if kw.key in seen_terms:
            result.warnings.append(f"{line_no}행: 중복된 키워드 '{kw.term}' 건너뜀")
            result.stats.skipped_rows += 1
            continue
        seen_terms.add(kw.key)
        result.keywords.append(kw)
        result.stats.valid_rows += 1

    if result.stats.error_rows or result.stats.skipped_rows:
        logger.warning("CSV import: %d rows with errors, %d skipped",
                       result.stats.error_rows, result.stats.skipped_rows)
    logger.debug("CSV import: %d keywords parsed", result.stats.valid_rows)
    return result


def export_keywords_csv(keywords: Sequence[Keyword], include_score: bool = True) -> str:
    """Export keywords to CSV text that ``parse_keywords_csv`` reads back."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    header = list(KEYWORD_COLUMNS) + (["score"] if include_score else [])
    writer.writerow(header)
    for kw in keywords:
        row = [
            kw.term,
            kw.volume,
            _fmt(kw.competition),
            "" if kw.weight is None else _fmt(kw.weight),
            kw.notes or "",
            ",".join(t.value for t in kw.sorted_tags),
        ]
        if include_score:
            row.append("" if kw.score is None else _fmt(kw.score))
        writer.writerow(row)
    return buf.getvalue()


def export_titles_csv(titles: Sequence[ProductTitle]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["rank", "title", "length", "score", "unspaced", "issues"])
    for i, t in enumerate(titles, 1):
        writer.writerow([
            i,
            t.title_text,
            t.length,
            _fmt(t.score),
            t.spacing_variants.unspaced if t.spacing_variants else "",
            "; ".join(t.issues),
        ])
    return buf.getvalue()


def sample_csv() -> str:
    """Template CSV for users preparing a keyword upload."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(KEYWORD_COLUMNS)
    writer.writerows(SAMPLE_ROWS)
    return buf.getvalue()


def _fmt(value: float) -> str:
    return repr(value) if isinstance(value, float) else str(value)
