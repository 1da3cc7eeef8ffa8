import logging
import operator
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..documents import DOCUMENTS, Competitor, Tournament
from ..errors import (
    BusinessRuleError, ConflictError, NotFoundError,
    TOURNAMENT_NOT_FOUND, REGISTRATION_CLOSED, TOURNAMENT_FULL, DUPLICATE_REGISTRATION,
)
from ..models import db, ORM_MODELS, TournamentORM, CompetitorORM, MatchORM, NewsORM
from ..state_machine import TournamentStatus
from .base import DataStore, Query

logger = logging.getLogger(__name__)

RANGE_FUNCS = {
    'gt': operator.gt,
    'gte': operator.ge,
    'lt': operator.lt,
    'lte': operator.le,
}

CONFLICT_MESSAGES = {
    'user': 'User with this email already exists',
    'competitor': DUPLICATE_REGISTRATION,
}


def _escape_like(term: str) -> str:
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class SqlStore(DataStore):
    """DataStore backed by Flask-SQLAlchemy. Must be used inside an app context."""

    backend = 'sql'

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    # ==================== Mapping ====================

    @staticmethod
    def _columns(kind: str) -> List[str]:
        return ORM_MODELS[kind].__table__.columns.keys()

    def _to_doc(self, kind: str, row):
        values = {name: getattr(row, name) for name in self._columns(kind)}
        if kind == 'news':
            values['images'] = list(values.get('images') or [])
        doc = DOCUMENTS[kind](**values)
        if kind == 'tournament':
            doc.competitor_ids = [c.id for c in row.competitors]
        return doc

    def _row_values(self, kind: str, doc) -> Dict[str, Any]:
        return {name: getattr(doc, name) for name in self._columns(kind)}

    @contextmanager
    def _transaction(self, kind: str = None):
        try:
            yield self.session
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(CONFLICT_MESSAGES.get(kind, 'Duplicate key')) from e
        except Exception:
            self.session.rollback()
            raise

    # ==================== Collections ====================

    def get(self, kind: str, doc_id: str):
        if not doc_id:
            return None
        row = self.session.get(ORM_MODELS[kind], doc_id)
        return self._to_doc(kind, row) if row is not None else None

    def get_many(self, kind: str, ids: Iterable[str]) -> Dict[str, Any]:
        ids = [i for i in ids if i]
        if not ids:
            return {}
        model = ORM_MODELS[kind]
        rows = self.session.scalars(select(model).where(model.id.in_(ids))).all()
        return {row.id: self._to_doc(kind, row) for row in rows}

    def find(self, kind: str, query: Query = None) -> Tuple[List[Any], int]:
        query = query or Query()
        model = ORM_MODELS[kind]
        conditions = self._conditions(model, query)

        count_stmt = select(func.count()).select_from(model)
        stmt = select(model)
        if conditions:
            count_stmt = count_stmt.where(*conditions)
            stmt = stmt.where(*conditions)

        for field_name, descending in query.sort:
            column = getattr(model, field_name)
            stmt = stmt.order_by(column.desc().nulls_last() if descending else column.asc().nulls_first())

        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        total = self.session.scalar(count_stmt)
        rows = self.session.scalars(stmt).all()
        return [self._to_doc(kind, row) for row in rows], total

    def _conditions(self, model, query: Query) -> list:
        conditions = []
        for field_name, value in query.filters.items():
            column = getattr(model, field_name)
            conditions.append(column.is_(None) if value is None else column == value)

        if query.any_of:
            conditions.append(or_(*[getattr(model, f) == v for f, v in query.any_of]))

        for field_name, op, value in query.ranges:
            conditions.append(RANGE_FUNCS[op](getattr(model, field_name), value))

        if query.search and query.search_fields:
            pattern = f"%{_escape_like(query.search)}%"
            conditions.append(or_(*[
                getattr(model, f).ilike(pattern, escape='\\') for f in query.search_fields
            ]))
        return conditions

    def insert(self, kind: str, doc):
        self._check(doc)
        row = ORM_MODELS[kind](**self._row_values(kind, doc))
        with self._transaction(kind):
            self.session.add(row)
        return self.get(kind, doc.id)

    def update(self, kind: str, doc_id: str, changes: Dict[str, Any]):
        model = ORM_MODELS[kind]
        row = self.session.get(model, doc_id) if doc_id else None
        if row is None:
            return None

        unknown = set(changes) - (set(self._columns(kind)) - {'id'})
        if unknown:
            raise ValueError(f"Cannot update fields {sorted(unknown)} on {kind}")

        doc = self._to_doc(kind, row)
        for key, value in changes.items():
            setattr(doc, key, value)
        self._check(doc)

        with self._transaction(kind):
            for key in changes:
                setattr(row, key, getattr(doc, key))
        return self.get(kind, doc_id)

    def delete(self, kind: str, doc_id: str):
        if kind == 'tournament':
            return self.delete_tournament(doc_id)

        doc = self.get(kind, doc_id)
        if doc is None:
            return None
        model = ORM_MODELS[kind]
        with self._transaction(kind):
            self.session.execute(delete(model).where(model.id == doc_id))
        return doc

    # ==================== Tournament operations ====================

    def delete_tournament(self, tournament_id: str) -> Optional[Tournament]:
        tournament = self.get('tournament', tournament_id)
        if tournament is None:
            return None

        with self._transaction():
            self.session.execute(delete(MatchORM).where(MatchORM.tournament_id == tournament_id))
            self.session.execute(
                update(NewsORM)
                .where(NewsORM.tournament_id == tournament_id)
                .values(tournament_id=None)
            )
            self.session.execute(delete(CompetitorORM).where(CompetitorORM.tournament_id == tournament_id))
            self.session.execute(delete(TournamentORM).where(TournamentORM.id == tournament_id))

        logger.debug("Deleted tournament %s with %d competitors",
                     tournament_id, len(tournament.competitor_ids))
        return tournament

    def register_competitor(self, competitor: Competitor) -> Tournament:
        self._check(competitor)
        tournament_id = competitor.tournament_id

        try:
            with self._transaction('competitor'):
                self.session.add(CompetitorORM(**self._row_values('competitor', competitor)))
                self.session.flush()

                # Capacity and status are re-checked by the update itself
                result = self.session.execute(
                    update(TournamentORM)
                    .where(
                        TournamentORM.id == tournament_id,
                        TournamentORM.status == TournamentStatus.UPCOMING.value,
                        or_(
                            TournamentORM.max_players.is_(None),
                            TournamentORM.number_of_players < TournamentORM.max_players,
                        ),
                    )
                    .values(number_of_players=TournamentORM.number_of_players + 1)
                )
                if result.rowcount != 1:
                    raise self._registration_refusal(tournament_id)
        except ConflictError:
            # A tournament deleted mid-registration fails the foreign key, not the unique key
            if self.session.get(TournamentORM, tournament_id) is None:
                raise NotFoundError(TOURNAMENT_NOT_FOUND)
            raise

        return self.get('tournament', tournament_id)

    def _registration_refusal(self, tournament_id: str) -> Exception:
        row = self.session.get(TournamentORM, tournament_id)
        if row is None:
            return NotFoundError(TOURNAMENT_NOT_FOUND)
        if row.status != TournamentStatus.UPCOMING.value:
            return BusinessRuleError(REGISTRATION_CLOSED)
        return BusinessRuleError(TOURNAMENT_FULL)

    def withdraw_competitor(self, tournament_id: str, competitor_id: str) -> Tournament:
        with self._transaction():
            updated = self.session.execute(
                update(TournamentORM)
                .where(TournamentORM.id == tournament_id, TournamentORM.number_of_players > 0)
                .values(number_of_players=TournamentORM.number_of_players - 1)
            )
            if updated.rowcount != 1:
                raise RuntimeError(f"Player count out of sync for tournament {tournament_id}")

            deleted = self.session.execute(
                delete(CompetitorORM)
                .where(CompetitorORM.id == competitor_id, CompetitorORM.tournament_id == tournament_id)
            )
            if deleted.rowcount != 1:
                raise NotFoundError('Competitor not found')

        return self.get('tournament', tournament_id)

    def ping(self) -> bool:
        try:
            self.session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            self.session.rollback()
            return False
