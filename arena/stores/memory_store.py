import copy
import logging
import operator
import threading
from dataclasses import fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..documents import DOCUMENTS, Competitor, Tournament
from ..errors import (
    BusinessRuleError, ConflictError, NotFoundError,
    TOURNAMENT_NOT_FOUND, REGISTRATION_CLOSED, TOURNAMENT_FULL, DUPLICATE_REGISTRATION,
)
from ..state_machine import TournamentStatus
from .base import DataStore, Query

logger = logging.getLogger(__name__)

RANGE_FUNCS = {
    'gt': operator.gt,
    'gte': operator.ge,
    'lt': operator.lt,
    'lte': operator.le,
}


def _stored_fields(doc) -> List[str]:
    return [f.name for f in fields(doc) if f.compare]


def _joined_fields(doc) -> List[str]:
    return [f.name for f in fields(doc) if not f.compare]


class MemoryStore(DataStore):
    """
    In-process DataStore used when no database is available, and in tests.

    Every public operation holds one re-entrant lock, so the multi-step
    tournament operations are atomic with respect to each other.
    """

    backend = 'memory'

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[str, Any]] = {kind: {} for kind in DOCUMENTS}

    # ==================== Copies ====================

    def _detach(self, kind: str, doc):
        clone = copy.deepcopy(doc)
        for name in _joined_fields(clone):
            setattr(clone, name, None)
        if kind == 'tournament':
            clone.competitor_ids = sorted(
                c.id for c in self._collections['competitor'].values()
                if c.tournament_id == clone.id
            )
        return clone

    # ==================== Collections ====================

    def get(self, kind: str, doc_id: str):
        with self._lock:
            doc = self._collections[kind].get(doc_id)
            return self._detach(kind, doc) if doc is not None else None

    def get_many(self, kind: str, ids: Iterable[str]) -> Dict[str, Any]:
        with self._lock:
            collection = self._collections[kind]
            return {i: self._detach(kind, collection[i]) for i in set(ids) if i in collection}

    def find(self, kind: str, query: Query = None) -> Tuple[List[Any], int]:
        query = query or Query()
        with self._lock:
            docs = [d for d in self._collections[kind].values() if self._matches(d, query)]
            total = len(docs)

            # Stable sorts applied from the least significant key
            for field_name, descending in reversed(query.sort):
                docs.sort(key=lambda d: self._sort_key(d, field_name), reverse=descending)

            end = None if query.limit is None else query.offset + query.limit
            return [self._detach(kind, d) for d in docs[query.offset:end]], total

    @staticmethod
    def _sort_key(doc, field_name: str):
        value = getattr(doc, field_name)
        return (value is not None, value)

    @staticmethod
    def _matches(doc, query: Query) -> bool:
        for field_name, value in query.filters.items():
            if getattr(doc, field_name) != value:
                return False

        if query.any_of and not any(getattr(doc, f) == v for f, v in query.any_of):
            return False

        for field_name, op, value in query.ranges:
            current = getattr(doc, field_name)
            if current is None or not RANGE_FUNCS[op](current, value):
                return False

        if query.search and query.search_fields:
            term = query.search.lower()
            if not any(term in (getattr(doc, f) or '').lower() for f in query.search_fields):
                return False
        return True

    def insert(self, kind: str, doc):
        self._check(doc)
        with self._lock:
            collection = self._collections[kind]
            if doc.id in collection:
                raise ConflictError('Duplicate key')
            self._check_unique(kind, doc)
            stored = copy.deepcopy(doc)
            for name in _joined_fields(stored):
                setattr(stored, name, None)
            collection[stored.id] = stored
            return self._detach(kind, stored)

    def _check_unique(self, kind: str, doc) -> None:
        others = [d for d in self._collections[kind].values() if d.id != doc.id]
        if kind == 'user' and any(d.email == doc.email for d in others):
            raise ConflictError('User with this email already exists')
        if kind == 'competitor' and doc.user_id is not None and any(
                d.tournament_id == doc.tournament_id and d.user_id == doc.user_id for d in others):
            raise ConflictError(DUPLICATE_REGISTRATION)

    def update(self, kind: str, doc_id: str, changes: Dict[str, Any]):
        with self._lock:
            stored = self._collections[kind].get(doc_id)
            if stored is None:
                return None

            allowed = set(_stored_fields(stored)) - {'id', 'competitor_ids'}
            unknown = set(changes) - allowed
            if unknown:
                raise ValueError(f"Cannot update fields {sorted(unknown)} on {kind}")

            candidate = copy.deepcopy(stored)
            for key, value in changes.items():
                setattr(candidate, key, copy.deepcopy(value))
            self._check(candidate)
            self._check_unique(kind, candidate)

            self._collections[kind][doc_id] = candidate
            return self._detach(kind, candidate)

    def delete(self, kind: str, doc_id: str):
        if kind == 'tournament':
            return self.delete_tournament(doc_id)

        with self._lock:
            doc = self._collections[kind].pop(doc_id, None)
            return self._detach(kind, doc) if doc is not None else None

    # ==================== Tournament operations ====================

    def delete_tournament(self, tournament_id: str) -> Optional[Tournament]:
        with self._lock:
            if tournament_id not in self._collections['tournament']:
                return None
            tournament = self._detach('tournament', self._collections['tournament'][tournament_id])

            matches = self._collections['match']
            for match_id in [m.id for m in matches.values() if m.tournament_id == tournament_id]:
                del matches[match_id]

            for news in self._collections['news'].values():
                if news.tournament_id == tournament_id:
                    news.tournament_id = None

            competitors = self._collections['competitor']
            for competitor_id in tournament.competitor_ids:
                competitors.pop(competitor_id, None)

            del self._collections['tournament'][tournament_id]
            return tournament

    def register_competitor(self, competitor: Competitor) -> Tournament:
        self._check(competitor)
        with self._lock:
            tournament = self._collections['tournament'].get(competitor.tournament_id)
            if tournament is None:
                raise NotFoundError(TOURNAMENT_NOT_FOUND)
            if tournament.status != TournamentStatus.UPCOMING.value:
                raise BusinessRuleError(REGISTRATION_CLOSED)
            if tournament.is_full:
                raise BusinessRuleError(TOURNAMENT_FULL)

            self.insert('competitor', competitor)
            tournament.number_of_players += 1
            return self._detach('tournament', tournament)

    def withdraw_competitor(self, tournament_id: str, competitor_id: str) -> Tournament:
        with self._lock:
            snapshot = {
                kind: copy.deepcopy(self._collections[kind])
                for kind in ('tournament', 'competitor')
            }
            try:
                tournament = self._collections['tournament'].get(tournament_id)
                if tournament is None:
                    raise NotFoundError(TOURNAMENT_NOT_FOUND)
                if tournament.number_of_players <= 0:
                    raise RuntimeError(f"Player count out of sync for tournament {tournament_id}")
                tournament.number_of_players -= 1

                competitor = self._collections['competitor'].get(competitor_id)
                if competitor is None or competitor.tournament_id != tournament_id:
                    raise NotFoundError('Competitor not found')
                del self._collections['competitor'][competitor_id]
            except Exception:
                self._collections.update(snapshot)
                logger.warning("Rolled back withdrawal of %s from %s", competitor_id, tournament_id)
                raise

            return self._detach('tournament', tournament)

    def ping(self) -> bool:
        return True
