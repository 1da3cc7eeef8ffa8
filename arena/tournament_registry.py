import logging
from datetime import datetime
from typing import List, Optional, Tuple

from .documents import Competitor, Tournament, User, is_valid_id
from .errors import (
    AuthorizationError, BusinessRuleError, NotFoundError, ValidationError,
    TOURNAMENT_NOT_FOUND, REGISTRATION_CLOSED, TOURNAMENT_FULL, ALREADY_REGISTERED,
)
from .pagination import PageRequest
from .state_machine import TournamentStateMachine, TournamentStatus, TransitionError
from .stores import DataStore, Query
from .validation import clean_text, parse_datetime, parse_int, require_id

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('id', True)]
SEARCH_FIELDS = ('name', 'game_name', 'description')
UPCOMING_LIMIT = 10

# API field -> (document attribute, parser)
EDITABLE_FIELDS = {
    'name': ('name', lambda v: clean_text(v, 'Tournament name')),
    'gameName': ('game_name', lambda v: clean_text(v, 'Game name')),
    'format': ('format', lambda v: clean_text(v, 'Format')),
    'description': ('description', lambda v: clean_text(v, 'Description')),
    'avatarUrl': ('avatar_url', lambda v: clean_text(v, 'Avatar URL')),
    'startDate': ('start_date', lambda v: parse_datetime(v, 'startDate')),
    'endDate': ('end_date', lambda v: parse_datetime(v, 'endDate')),
    'maxPlayers': ('max_players', lambda v: parse_int(v, 'Maximum players', minimum=1)),
}


def ensure_can_manage(tournament: Tournament, actor: User) -> None:
    """Only the organizer who owns a tournament, or an admin, may change it."""
    if actor.is_admin or tournament.organizer_id == actor.id:
        return
    raise AuthorizationError('You can only manage your own tournaments')


def parse_status(value) -> TournamentStatus:
    try:
        return TournamentStatus(value)
    except ValueError:
        allowed = ', '.join(s.value for s in TournamentStatus)
        raise ValidationError(f'Status must be one of: {allowed}')


class TournamentRegistry:
    """
    Manages tournament lifecycle:
    - Create/update/delete tournament records
    - Competitor registration and withdrawal
    - Listings (filtered, upcoming, ongoing, by organizer)
    """

    def __init__(self, store: DataStore):
        self.store = store

    # ==================== Lookups ====================

    def get_tournament(self, tournament_id: str, with_competitors: bool = True) -> Tournament:
        """Get a tournament with organizer (and competitors) joined."""
        tournament = self._load(tournament_id)
        self.store.join([tournament], 'organizer_id', 'user', 'organizer')
        if with_competitors:
            self.store.join_competitors([tournament])
        return tournament

    def _load(self, tournament_id: str) -> Tournament:
        require_id(tournament_id, 'tournament ID')
        tournament = self.store.get('tournament', tournament_id)
        if tournament is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        return tournament

    def list_tournaments(
        self,
        page: PageRequest,
        status: str = None,
        format: str = None,
        game_name: str = None,
        search: str = None
    ) -> Tuple[List[Tournament], int]:
        """List tournaments with optional filtering, newest first."""
        filters = {}
        if status:
            filters['status'] = status
        if format:
            filters['format'] = format
        if game_name:
            filters['game_name'] = game_name

        query = Query(
            filters=filters,
            search=(search or '').strip() or None,
            search_fields=SEARCH_FIELDS,
            sort=NEWEST_FIRST,
            offset=page.offset,
            limit=page.limit,
        )
        tournaments, total = self.store.find('tournament', query)
        self.store.join(tournaments, 'organizer_id', 'user', 'organizer')
        return tournaments, total

    def list_by_organizer(self, organizer_id: str) -> List[Tournament]:
        require_id(organizer_id, 'organizer ID')
        tournaments, _ = self.store.find('tournament', Query(
            filters={'organizer_id': organizer_id},
            sort=NEWEST_FIRST,
        ))
        return tournaments

    def list_upcoming(self, now: datetime = None, limit: int = UPCOMING_LIMIT) -> List[Tournament]:
        tournaments, _ = self.store.find('tournament', Query(
            filters={'status': TournamentStatus.UPCOMING.value},
            ranges=[('start_date', 'gte', now or datetime.utcnow())],
            sort=[('start_date', False), ('id', True)],
            limit=limit,
        ))
        return self.store.join(tournaments, 'organizer_id', 'user', 'organizer')

    def list_ongoing(self, now: datetime = None) -> List[Tournament]:
        tournaments, _ = self.store.find('tournament', Query(
            filters={'status': TournamentStatus.ONGOING.value},
            ranges=[('start_date', 'lte', now or datetime.utcnow())],
            sort=[('start_date', False), ('id', True)],
        ))
        return self.store.join(tournaments, 'organizer_id', 'user', 'organizer')

    # ==================== CRUD ====================

    def create_tournament(self, organizer: User, data: dict) -> Tournament:
        """Create a new tournament in upcoming state."""
        name = clean_text(data.get('name'), 'Tournament name')
        if not name:
            raise ValidationError('Tournament name is required')

        start_date = parse_datetime(data.get('startDate'), 'startDate')
        end_date = parse_datetime(data.get('endDate'), 'endDate')
        if start_date and end_date and start_date >= end_date:
            raise ValidationError('End date must be after start date')
        if start_date and start_date <= datetime.utcnow():
            raise ValidationError('Start date must be in the future')

        max_players = parse_int(data.get('maxPlayers'), 'Maximum players')
        if max_players is not None and max_players < 1:
            raise ValidationError('Maximum players must be at least 1')

        tournament = self.store.insert('tournament', Tournament(
            name=name,
            format=clean_text(data.get('format'), 'Format'),
            description=clean_text(data.get('description'), 'Description'),
            game_name=clean_text(data.get('gameName'), 'Game name'),
            organizer_id=organizer.id,
            start_date=start_date,
            end_date=end_date,
            max_players=max_players,
            avatar_url=clean_text(data.get('avatarUrl'), 'Avatar URL'),
            number_of_players=0,
            status=TournamentStatus.UPCOMING.value,
        ))
        logger.info("Tournament %s created by %s", tournament.id, organizer.id)
        return self.get_tournament(tournament.id, with_competitors=False)

    def update_tournament(self, tournament_id: str, actor: User, data: dict) -> Tournament:
        tournament = self._load(tournament_id)
        ensure_can_manage(tournament, actor)

        if 'numberOfPlayers' in data:
            raise ValidationError('numberOfPlayers is maintained by registrations and cannot be set')

        changes = {}
        for key, (attr, parse) in EDITABLE_FIELDS.items():
            if key in data:
                changes[attr] = parse(data[key])

        if 'name' in changes and not changes['name']:
            raise ValidationError('Tournament name is required')
        if changes.get('max_players') is not None and changes['max_players'] < tournament.number_of_players:
            raise BusinessRuleError('Maximum players cannot be lower than the number of registered players')
        if 'status' in data:
            changes['status'] = self._next_status(tournament, data['status'])

        updated = self.store.update('tournament', tournament.id, changes)
        if updated is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        return self.get_tournament(updated.id, with_competitors=False)

    def update_status(self, tournament_id: str, actor: User, status) -> Tournament:
        if not status:
            raise ValidationError('Status is required')
        tournament = self._load(tournament_id)
        ensure_can_manage(tournament, actor)

        new_status = self._next_status(tournament, status)
        if new_status != tournament.status:
            self.store.update('tournament', tournament.id, {'status': new_status})
            logger.info("Tournament %s status %s -> %s", tournament.id, tournament.status, new_status)
        return self.get_tournament(tournament.id, with_competitors=False)

    @staticmethod
    def _next_status(tournament: Tournament, value) -> str:
        target = parse_status(value)
        sm = TournamentStateMachine.from_state_string(tournament.status)
        try:
            return sm.move_to(target).value
        except TransitionError as e:
            raise BusinessRuleError(str(e))

    def delete_tournament(self, tournament_id: str, actor: User) -> Tournament:
        """Delete a tournament together with its matches and competitors."""
        tournament = self._load(tournament_id)
        ensure_can_manage(tournament, actor)

        deleted = self.store.delete_tournament(tournament.id)
        if deleted is None:
            raise NotFoundError(TOURNAMENT_NOT_FOUND)
        logger.info("Tournament %s deleted by %s (%d competitors removed)",
                    deleted.id, actor.id, len(deleted.competitor_ids))
        return deleted

    # ==================== Registration ====================

    def register_competitor(self, tournament_id: str, user: User, data: dict) -> Tuple[Competitor, Tournament]:
        """Register the caller as a competitor in an upcoming tournament."""
        tournament = self._load(tournament_id)

        sm = TournamentStateMachine.from_state_string(tournament.status)
        if not sm.can_perform('register_competitor'):
            raise BusinessRuleError(REGISTRATION_CLOSED)
        if tournament.is_full:
            raise BusinessRuleError(TOURNAMENT_FULL)
        if self.store.find_one('competitor', tournament_id=tournament.id, user_id=user.id):
            raise BusinessRuleError(ALREADY_REGISTERED)

        name = clean_text(data.get('name'), 'Team name') or user.full_name
        if not name:
            raise ValidationError('Team name is required')

        competitor = Competitor(
            name=name,
            logo_url=clean_text(data.get('logoUrl'), 'Logo URL'),
            description=clean_text(data.get('description'), 'Description'),
            mail=clean_text(data.get('mail'), 'Mail') or user.email,
            tournament_id=tournament.id,
            user_id=user.id,
        )
        updated = self.store.register_competitor(competitor)
        logger.info("Competitor %s registered for tournament %s (%d/%s)",
                    competitor.id, tournament.id, updated.number_of_players,
                    updated.max_players or 'unlimited')

        self.store.join_competitors([updated])
        return self.store.get('competitor', competitor.id), updated

    def withdraw_competitor(self, tournament_id: str, user: User, competitor_id: Optional[str]) -> Tournament:
        """Withdraw a competitor; the caller must own it or be an admin."""
        require_id(tournament_id, 'tournament ID')
        if not is_valid_id(competitor_id):
            raise ValidationError('Valid competitorId is required to withdraw')

        tournament = self._load(tournament_id)
        competitor = self.store.get('competitor', competitor_id)
        if competitor is None:
            raise NotFoundError('Competitor not found')
        if competitor.tournament_id != tournament.id:
            raise BusinessRuleError('Competitor does not belong to this tournament')
        if competitor.user_id != user.id and not user.is_admin:
            raise AuthorizationError('You can only withdraw your own registration')

        sm = TournamentStateMachine.from_state_string(tournament.status)
        if not sm.can_perform('withdraw_competitor'):
            raise BusinessRuleError('Cannot withdraw from a finished tournament')

        _, scheduled = self.store.find('match', Query(
            any_of=[('team_a_id', competitor.id), ('team_b_id', competitor.id)],
            limit=1,
        ))
        if scheduled:
            raise BusinessRuleError('Cannot withdraw a competitor that is scheduled in matches')

        updated = self.store.withdraw_competitor(tournament.id, competitor.id)
        logger.info("Competitor %s withdrew from tournament %s", competitor.id, tournament.id)
        return updated

    def list_participants(self, tournament_id: str) -> Tuple[List[Competitor], Tournament]:
        tournament = self._load(tournament_id)
        self.store.join_competitors([tournament], with_users=True)
        return tournament.competitors, tournament
