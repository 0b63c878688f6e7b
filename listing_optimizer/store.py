"""Redis-backed keyword and project store."""
import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from listing_optimizer.errors import FieldError, NotFoundError, ValidationError
from listing_optimizer.models import Keyword, KeywordTag, new_id

logger = logging.getLogger(__name__)

SORT_FIELDS = ("score", "volume", "competition", "created_at", "term")


@dataclass
class Project:
    name: str
    description: str = ""
    keyword_ids: list[str] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "keyword_ids": list(self.keyword_ids),
            "titles": list(self.titles),
            "categories": list(self.categories),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            keyword_ids=list(data.get("keyword_ids", [])),
            titles=list(data.get("titles", [])),
            categories=list(data.get("categories", [])),
            created_at=int(data.get("created_at", 0)),
            updated_at=int(data.get("updated_at", 0)),
        )


@dataclass
class KeywordFilter:
    tags: Optional[Sequence[KeywordTag]] = None  # any of
    min_volume: Optional[int] = None
    max_volume: Optional[int] = None
    min_competition: Optional[float] = None
    max_competition: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    search: Optional[str] = None  # substring of term or notes

    def matches(self, kw: Keyword) -> bool:
        if self.tags:
            wanted = {KeywordTag.parse(t) for t in self.tags}
            if not wanted & kw.tags:
                return False
        if self.min_volume is not None and kw.volume < self.min_volume:
            return False
        if self.max_volume is not None and kw.volume > self.max_volume:
            return False
        if self.min_competition is not None and kw.competition < self.min_competition:
            return False
        if self.max_competition is not None and kw.competition > self.max_competition:
            return False
        score = kw.score or 0
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False
        if self.search:
            q = self.search.lower()
            if q not in kw.key and q not in (kw.notes or "").lower():
                return False
        return True


@dataclass
class Page:
    items: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


class KeywordStore:
    """Keyword and project records in Redis (graceful fallback to in-memory).

    Records are JSON under ``keyword:<id>`` / ``project:<id>`` with the ids
    kept in the ``keywords`` / ``projects`` index sets.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0"):
        self.redis = None
        self._memory: dict[str, dict[str, dict]] = {"keyword": {}, "project": {}}
        try:
            import redis as redis_lib
            self.redis = redis_lib.from_url(redis_url, decode_responses=True)
            self.redis.ping()
        except Exception as e:
            logger.warning("Redis unavailable at %s (%s), using in-memory store", redis_url, e)
            self.redis = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis else "memory"

    # ── Raw records ────────────────────────────────────────

    def _put(self, kind: str, record: dict):
        if self.redis:
            pipe = self.redis.pipeline()
            pipe.set(f"{kind}:{record['id']}", json.dumps(record, ensure_ascii=False))
            pipe.sadd(f"{kind}s", record["id"])
            pipe.execute()
        else:
            self._memory[kind][record["id"]] = record

    def _get(self, kind: str, record_id: str) -> Optional[dict]:
        if self.redis:
            raw = self.redis.get(f"{kind}:{record_id}")
            return json.loads(raw) if raw else None
        return self._memory[kind].get(record_id)

    def _delete(self, kind: str, record_id: str) -> bool:
        if self.redis:
            pipe = self.redis.pipeline()
            pipe.delete(f"{kind}:{record_id}")
            pipe.srem(f"{kind}s", record_id)
            deleted, _ = pipe.execute()
            return bool(deleted)
        return self._memory[kind].pop(record_id, None) is not None

    def _all(self, kind: str) -> list[dict]:
        if self.redis:
            ids = sorted(self.redis.smembers(f"{kind}s"))
            if not ids:
                return []
            raws = self.redis.mget([f"{kind}:{i}" for i in ids])
            records = [json.loads(r) for r in raws if r]
            return sorted(records, key=lambda r: r.get("created_at", 0))
        return list(self._memory[kind].values())

    # ── Keywords ───────────────────────────────────────────

    def _check_unique(self, term: str, exclude_id: Optional[str] = None):
        key = term.strip().lower()
        for record in self._all("keyword"):
            if record["id"] != exclude_id and record["term"].strip().lower() == key:
                raise ValidationError([FieldError("term", f"이미 존재하는 키워드: {term}")])

    def add_keyword(self, keyword: Keyword) -> Keyword:
        keyword.validate()
        self._check_unique(keyword.term)
        now = int(time.time())
        record = keyword.to_dict()
        record["created_at"] = now
        record["updated_at"] = now
        self._put("keyword", record)
        logger.debug("Stored keyword %s (%s)", keyword.id, keyword.term)
        return keyword

    def add_keywords(self, keywords: Sequence[Keyword]) -> list[Keyword]:
        return [self.add_keyword(kw) for kw in keywords]

    def get_keyword(self, keyword_id: str) -> Optional[Keyword]:
        record = self._get("keyword", keyword_id)
        return Keyword.from_dict(record) if record else None

    def find_keyword(self, term: str) -> Optional[Keyword]:
        """Stored keyword with this term, compared case-insensitively."""
        key = term.strip().lower()
        for record in self._all("keyword"):
            if record["term"].strip().lower() == key:
                return Keyword.from_dict(record)
        return None

    def update_keyword(self, keyword_id: str, **changes) -> Keyword:
        """Apply field changes to a stored keyword and return the new version."""
        record = self._get("keyword", keyword_id)
        if record is None:
            raise NotFoundError("keyword", keyword_id)
        changes.pop("id", None)
        updated = replace(Keyword.from_dict(record), **changes).validate()
        if "term" in changes:
            self._check_unique(updated.term, exclude_id=keyword_id)
        new_record = updated.to_dict()
        new_record["created_at"] = record.get("created_at", 0)
        new_record["updated_at"] = int(time.time())
        self._put("keyword", new_record)
        return updated

    def delete_keyword(self, keyword_id: str) -> bool:
        return self._delete("keyword", keyword_id)

    def list_keywords(self, filters: Optional[KeywordFilter] = None,
                      sort_by: str = "score", descending: bool = True,
                      page: int = 1, page_size: int = 20) -> Page:
        """Filter, sort and paginate stored keywords.

        Keywords without a score sort as 0. Pages are 1-based.
        """
        if sort_by not in SORT_FIELDS:
            raise ValidationError([FieldError(
                "sort_by", f"정렬 기준은 {', '.join(SORT_FIELDS)} 중 하나여야 합니다")])
        if page < 1 or page_size < 1:
            raise ValidationError([FieldError("page", "페이지 번호와 크기는 1 이상이어야 합니다")])

        rows = []
        for record in self._all("keyword"):
            kw = Keyword.from_dict(record)
            if filters is None or filters.matches(kw):
                rows.append((record, kw))

        def sort_key(row):
            record, kw = row
            if sort_by == "term":
                return kw.key
            if sort_by == "created_at":
                return record.get("created_at", 0)
            if sort_by == "score":
                return kw.score or 0
            return getattr(kw, sort_by)

        rows.sort(key=sort_key, reverse=descending)
        start = (page - 1) * page_size
        return Page(
            items=[kw for _, kw in rows[start:start + page_size]],
            total=len(rows),
            page=page,
            page_size=page_size,
        )

    def all_keywords(self) -> list[Keyword]:
        return [Keyword.from_dict(r) for r in self._all("keyword")]

    def save_scores(self, keywords: Sequence[Keyword]) -> int:
        """Write computed scores back to stored keywords. Returns how many were saved."""
        saved = 0
        for kw in keywords:
            record = self._get("keyword", kw.id)
            if record is None:
                continue
            record["score"] = kw.score
            record["updated_at"] = int(time.time())
            self._put("keyword", record)
            saved += 1
        logger.debug("Saved %d of %d keyword scores", saved, len(keywords))
        return saved

    def sync_scores(self, keywords: Sequence[Keyword]) -> tuple[int, int]:
        """Store scored keywords matched by term: new terms are added, known
        terms get their score updated. Returns (added, updated).
        """
        known = []
        added = 0
        for kw in keywords:
            stored = self.find_keyword(kw.term)
            if stored is None:
                self.add_keyword(kw)
                added += 1
            else:
                known.append(replace(kw, id=stored.id))
        return added, self.save_scores(known)

    # ── Projects ───────────────────────────────────────────

    def create_project(self, name: str, description: str = "",
                       keyword_ids: Sequence[str] = ()) -> Project:
        if not name or not name.strip():
            raise ValidationError([FieldError("name", "프로젝트명은 필수입니다")])
        now = int(time.time())
        project = Project(name=name.strip(), description=description,
                          keyword_ids=list(keyword_ids), created_at=now, updated_at=now)
        self._put("project", project.to_dict())
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        record = self._get("project", project_id)
        return Project.from_dict(record) if record else None

    def update_project(self, project_id: str, **changes) -> Project:
        record = self._get("project", project_id)
        if record is None:
            raise NotFoundError("project", project_id)
        for key in ("id", "created_at"):
            changes.pop(key, None)
        project = replace(Project.from_dict(record), **changes)
        if not project.name or not project.name.strip():
            raise ValidationError([FieldError("name", "프로젝트명은 필수입니다")])
        project.updated_at = int(time.time())
        self._put("project", project.to_dict())
        return project

    def delete_project(self, project_id: str) -> bool:
        return self._delete("project", project_id)

    def list_projects(self) -> list[Project]:
        projects = [Project.from_dict(r) for r in self._all("project")]
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    def project_keywords(self, project_id: str) -> list[Keyword]:
        """Keywords of a project in the project's order; dangling ids are skipped."""
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        out = []
        for kid in project.keyword_ids:
            kw = self.get_keyword(kid)
            if kw is not None:
                out.append(kw)
        return out
