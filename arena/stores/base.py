from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..documents import Competitor, Tournament
from ..errors import RecordValidationError


RANGE_OPERATORS = ('gt', 'gte', 'lt', 'lte')


@dataclass
class Query:
    """
    Collection query understood by every store.

    filters: field == value for every pair
    any_of: at least one (field, value) pair must match
    ranges: (field, op, value) with op in gt/gte/lt/lte; missing values never match
    search: case-insensitive substring matched against any of search_fields
    sort: (field, descending) pairs, applied in order
    """
    filters: Dict[str, Any] = field(default_factory=dict)
    any_of: List[Tuple[str, Any]] = field(default_factory=list)
    ranges: List[Tuple[str, str, Any]] = field(default_factory=list)
    search: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    sort: List[Tuple[str, bool]] = field(default_factory=lambda: [('id', True)])
    offset: int = 0
    limit: Optional[int] = None

    def __post_init__(self):
        for _, op, _ in self.ranges:
            if op not in RANGE_OPERATORS:
                raise ValueError(f"Unknown range operator: {op}")


class DataStore(ABC):
    """
    Data-access interface shared by the SQL and in-memory implementations.

    Kinds are 'user', 'tournament', 'competitor', 'match' and 'news'.
    Documents handed out are detached copies; mutate them through update().
    """

    backend = 'abstract'

    # ==================== Collections ====================

    @abstractmethod
    def get(self, kind: str, doc_id: str):
        """Return a document by id or None."""

    @abstractmethod
    def get_many(self, kind: str, ids: Iterable[str]) -> Dict[str, Any]:
        """Return {id: document} for the ids that exist."""

    @abstractmethod
    def find(self, kind: str, query: Query = None) -> Tuple[List[Any], int]:
        """Return (page of documents, total matching documents)."""

    def find_one(self, kind: str, **filters):
        docs, _ = self.find(kind, Query(filters=filters, limit=1))
        return docs[0] if docs else None

    @abstractmethod
    def insert(self, kind: str, doc):
        """Validate and store a new document; returns the stored copy."""

    @abstractmethod
    def update(self, kind: str, doc_id: str, changes: Dict[str, Any]):
        """Apply field changes, validate, store; returns the document or None."""

    @abstractmethod
    def delete(self, kind: str, doc_id: str):
        """Delete a document; returns the deleted document or None."""

    # ==================== Tournament operations ====================

    @abstractmethod
    def delete_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """
        Delete a tournament together with its matches and competitors.
        News that referenced the tournament is detached.
        """

    @abstractmethod
    def register_competitor(self, competitor: Competitor) -> Tournament:
        """
        Insert the competitor and increment the tournament's player count
        as one unit. The increment only happens while the tournament is
        upcoming and below capacity; otherwise nothing is written and a
        BusinessRuleError/NotFoundError/ConflictError is raised.
        """

    @abstractmethod
    def withdraw_competitor(self, tournament_id: str, competitor_id: str) -> Tournament:
        """
        Remove the competitor from the tournament, decrement the player count
        and delete the competitor in one transaction.
        """

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the backing store is reachable."""

    # ==================== Joins ====================

    def join(self, docs: List[Any], ref_attr: str, kind: str, target_attr: str) -> List[Any]:
        """Resolve docs[*].ref_attr into docs[*].target_attr from the given collection."""
        ids = {getattr(d, ref_attr) for d in docs if getattr(d, ref_attr)}
        found = self.get_many(kind, ids) if ids else {}
        for d in docs:
            setattr(d, target_attr, found.get(getattr(d, ref_attr)))
        return docs

    def join_competitors(self, tournaments: List[Tournament], with_users: bool = False) -> List[Tournament]:
        """Attach the competitor documents listed in each tournament."""
        ids = {cid for t in tournaments for cid in t.competitor_ids}
        found = self.get_many('competitor', ids) if ids else {}
        if with_users:
            self.join(list(found.values()), 'user_id', 'user', 'user')
        for t in tournaments:
            t.competitors = [found[cid] for cid in t.competitor_ids if cid in found]
        return tournaments

    # ==================== Helpers ====================

    @staticmethod
    def _check(doc) -> None:
        errors = doc.validate()
        if errors:
            raise RecordValidationError(errors)
