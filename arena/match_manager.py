import logging
from datetime import datetime
from typing import List, Tuple

from .documents import Match, MatchStatus, User
from .errors import BusinessRuleError, NotFoundError, ValidationError, TOURNAMENT_NOT_FOUND
from .pagination import PageRequest
from .stores import DataStore, Query
from .tournament_registry import ensure_can_manage
from .validation import parse_datetime, parse_int, require_id

logger = logging.getLogger(__name__)

MATCH_NOT_FOUND = 'Match not found'
TOURNAMENT_PAGE_LIMIT = 20
UPCOMING_LIMIT = 10

# Scheduled first (earliest first), then newest first
SCHEDULE_ORDER = [('scheduled_at', False), ('id', True)]


def parse_match_status(value) -> str:
    try:
        return MatchStatus(value).value
    except ValueError:
        allowed = ', '.join(s.value for s in MatchStatus)
        raise ValidationError(f'Match status must be one of: {allowed}')


def parse_score(value, label: str) -> int:
    score = parse_int(value, label, minimum=0)
    if score is None:
        raise ValidationError(f'{label} is required')
    return score


class MatchManager:
    """
    Manages matches between competitors of one tournament:
    scheduling, status, results and listings.
    """

    def __init__(self, store: DataStore):
        self.store = store

    # ==================== Helpers ====================

    def _load(self, match_id: str) -> Match:
        require_id(match_id, 'match ID')
        match = self.store.get('match', match_id)
        if match is None:
            raise NotFoundError(MATCH_NOT_FOUND)
        return match

    def _load_managed(self, match_id: str, actor: User) -> Match:
        match = self._load(match_id)
        tournament = self.store.get('tournament', match.tournament_id)
        if tournament is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        ensure_can_manage(tournament, actor)
        return match

    def _populate(self, matches: List[Match]) -> List[Match]:
        self.store.join(matches, 'tournament_id', 'tournament', 'tournament')
        self.store.join(matches, 'team_a_id', 'competitor', 'team_a')
        self.store.join(matches, 'team_b_id', 'competitor', 'team_b')
        return matches

    def _check_teams(self, tournament_id: str, team_a_id, team_b_id) -> None:
        require_id(team_a_id, 'teamA ID')
        require_id(team_b_id, 'teamB ID')
        if team_a_id == team_b_id:
            raise ValidationError('teamA and teamB must be different competitors')

        teams = self.store.get_many('competitor', [team_a_id, team_b_id])
        for team_id in (team_a_id, team_b_id):
            team = teams.get(team_id)
            if team is None or team.tournament_id != tournament_id:
                raise ValidationError('Both teams must be competitors of the tournament')

    def _save(self, match: Match, changes: dict) -> Match:
        updated = self.store.update('match', match.id, changes)
        if updated is None:
            raise NotFoundError(MATCH_NOT_FOUND)
        return self._populate([updated])[0]

    # ==================== CRUD ====================

    def create_match(self, actor: User, data: dict) -> Match:
        tournament_id = data.get('tournamentId')
        if not tournament_id or not data.get('teamA') or not data.get('teamB'):
            raise ValidationError('tournamentId, teamA and teamB are required')
        require_id(tournament_id, 'tournament ID')

        tournament = self.store.get('tournament', tournament_id)
        if tournament is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        ensure_can_manage(tournament, actor)
        self._check_teams(tournament.id, data['teamA'], data['teamB'])

        match = self.store.insert('match', Match(
            tournament_id=tournament.id,
            team_a_id=data['teamA'],
            team_b_id=data['teamB'],
            scheduled_at=parse_datetime(data.get('scheduledAt'), 'scheduledAt'),
        ))
        logger.info("Match %s created in tournament %s", match.id, tournament.id)
        return self._populate([match])[0]

    def get_match(self, match_id: str) -> Match:
        return self._populate([self._load(match_id)])[0]

    def list_matches(self, page: PageRequest, tournament_id: str = None, status: str = None) -> Tuple[List[Match], int]:
        filters = {}
        if tournament_id:
            filters['tournament_id'] = require_id(tournament_id, 'tournament ID')
        if status:
            filters['status'] = parse_match_status(status)

        matches, total = self.store.find('match', Query(
            filters=filters,
            sort=SCHEDULE_ORDER,
            offset=page.offset,
            limit=page.limit,
        ))
        return self._populate(matches), total

    def update_match(self, match_id: str, actor: User, data: dict) -> Match:
        match = self._load_managed(match_id, actor)

        changes = {}
        if 'teamA' in data or 'teamB' in data:
            team_a = data.get('teamA', match.team_a_id)
            team_b = data.get('teamB', match.team_b_id)
            self._check_teams(match.tournament_id, team_a, team_b)
            changes['team_a_id'] = team_a
            changes['team_b_id'] = team_b
        if 'scheduledAt' in data:
            changes['scheduled_at'] = parse_datetime(data['scheduledAt'], 'scheduledAt')
        if 'status' in data:
            changes['status'] = parse_match_status(data['status'])
        if 'score' in data:
            score = data['score']
            if not isinstance(score, dict):
                raise ValidationError('Score must be an object with a and b')
            if 'a' in score:
                changes['score_a'] = parse_score(score['a'], 'Score a')
            if 'b' in score:
                changes['score_b'] = parse_score(score['b'], 'Score b')

        return self._save(match, changes)

    def delete_match(self, match_id: str, actor: User) -> Match:
        match = self._load_managed(match_id, actor)
        deleted = self.store.delete('match', match.id)
        if deleted is None:
            raise NotFoundError(MATCH_NOT_FOUND)
        logger.info("Match %s deleted by %s", match.id, actor.id)
        return deleted

    # ==================== Scorekeeping ====================

    def start_match(self, match_id: str, actor: User) -> Match:
        match = self._load_managed(match_id, actor)
        if match.status == MatchStatus.DONE.value:
            raise BusinessRuleError('Match is already finished')
        return self._save(match, {'status': MatchStatus.PENDING.value})

    def set_result(self, match_id: str, actor: User, score_a, score_b) -> Match:
        if score_a is None or score_b is None:
            raise ValidationError('scoreA and scoreB are required')
        changes = {
            'score_a': parse_score(score_a, 'scoreA'),
            'score_b': parse_score(score_b, 'scoreB'),
            'status': MatchStatus.DONE.value,
        }
        match = self._load_managed(match_id, actor)
        updated = self._save(match, changes)
        logger.info("Match %s result %d-%d", match.id, updated.score_a, updated.score_b)
        return updated

    def reschedule(self, match_id: str, actor: User, new_date) -> Match:
        if not new_date:
            raise ValidationError('newDate is required')
        scheduled_at = parse_datetime(new_date, 'newDate')
        match = self._load_managed(match_id, actor)
        return self._save(match, {'scheduled_at': scheduled_at})

    # ==================== Listings ====================

    def by_tournament(self, tournament_id: str, page: PageRequest) -> Tuple[List[Match], int]:
        require_id(tournament_id, 'tournament ID')
        if self.store.get('tournament', tournament_id) is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        return self.list_matches(page, tournament_id=tournament_id)

    def by_competitor(self, competitor_id: str, page: PageRequest) -> Tuple[List[Match], int]:
        require_id(competitor_id, 'competitor ID')
        matches, total = self.store.find('match', Query(
            any_of=[('team_a_id', competitor_id), ('team_b_id', competitor_id)],
            sort=SCHEDULE_ORDER,
            offset=page.offset,
            limit=page.limit,
        ))
        return self._populate(matches), total

    def upcoming(self, limit: int = UPCOMING_LIMIT, now: datetime = None) -> List[Match]:
        matches, _ = self.store.find('match', Query(
            filters={'status': MatchStatus.PENDING.value},
            ranges=[('scheduled_at', 'gt', now or datetime.utcnow())],
            sort=SCHEDULE_ORDER,
            limit=limit,
        ))
        return self._populate(matches)

    def ongoing(self, now: datetime = None) -> List[Match]:
        matches, _ = self.store.find('match', Query(
            filters={'status': MatchStatus.PENDING.value},
            ranges=[('scheduled_at', 'lte', now or datetime.utcnow())],
            sort=SCHEDULE_ORDER,
        ))
        return self._populate(matches)
