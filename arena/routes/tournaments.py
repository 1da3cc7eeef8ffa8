from flask import Blueprint, current_app, request
from flask_login import login_required

from ..auth import get_current_user, roles_required
from ..documents import Role
from ..pagination import parse_page_args
from ..responses import handles_errors, success
from ..validation import get_json_body

bp = Blueprint('tournaments', __name__, url_prefix='/api/tournaments')

MANAGERS = (Role.ORGANIZER.value, Role.ADMIN.value)


def _dicts(tournaments):
    return [t.to_dict() for t in tournaments]


# ==================== Listings ====================

@bp.route('', methods=['GET'])
@handles_errors('Server error while fetching tournaments')
def list_tournaments():
    page = parse_page_args(request.args)
    tournaments, total = current_app.tournaments.list_tournaments(
        page,
        status=request.args.get('status'),
        format=request.args.get('format'),
        game_name=request.args.get('gameName'),
        search=request.args.get('search'),
    )
    return success('Tournaments retrieved successfully', {
        'tournaments': _dicts(tournaments),
        'pagination': page.meta(total),
    })


@bp.route('/upcoming', methods=['GET'])
@handles_errors('Server error while fetching upcoming tournaments')
def upcoming_tournaments():
    tournaments = current_app.tournaments.list_upcoming()
    return success('Upcoming tournaments retrieved successfully', {'tournaments': _dicts(tournaments)})


@bp.route('/ongoing', methods=['GET'])
@handles_errors('Server error while fetching ongoing tournaments')
def ongoing_tournaments():
    tournaments = current_app.tournaments.list_ongoing()
    return success('Ongoing tournaments retrieved successfully', {'tournaments': _dicts(tournaments)})


@bp.route('/organizer/<organizer_id>', methods=['GET'])
@handles_errors('Server error while fetching organizer tournaments')
def organizer_tournaments(organizer_id):
    tournaments = current_app.tournaments.list_by_organizer(organizer_id)
    return success('Organizer tournaments retrieved successfully', {'tournaments': _dicts(tournaments)})


# ==================== CRUD ====================

@bp.route('', methods=['POST'])
@roles_required(*MANAGERS)
@handles_errors('Server error while creating tournament')
def create_tournament():
    tournament = current_app.tournaments.create_tournament(get_current_user(), get_json_body())
    return success('Tournament created successfully', {'tournament': tournament.to_dict()}, 201)


@bp.route('/<tournament_id>', methods=['GET'])
@handles_errors('Server error while fetching tournament')
def get_tournament(tournament_id):
    tournament = current_app.tournaments.get_tournament(tournament_id)
    return success('Tournament retrieved successfully', {'tournament': tournament.to_dict()})


@bp.route('/<tournament_id>', methods=['PUT'])
@roles_required(*MANAGERS)
@handles_errors('Server error while updating tournament')
def update_tournament(tournament_id):
    tournament = current_app.tournaments.update_tournament(
        tournament_id, get_current_user(), get_json_body())
    return success('Tournament updated successfully', {'tournament': tournament.to_dict()})


@bp.route('/<tournament_id>/status', methods=['PATCH'])
@roles_required(*MANAGERS)
@handles_errors('Server error while updating tournament status')
def update_status(tournament_id):
    tournament = current_app.tournaments.update_status(
        tournament_id, get_current_user(), get_json_body().get('status'))
    return success('Tournament status updated successfully', {'tournament': tournament.to_dict()})


@bp.route('/<tournament_id>', methods=['DELETE'])
@roles_required(*MANAGERS)
@handles_errors('Server error while deleting tournament')
def delete_tournament(tournament_id):
    current_app.tournaments.delete_tournament(tournament_id, get_current_user())
    return success('Tournament deleted successfully')


# ==================== Registration ====================

@bp.route('/<tournament_id>/register', methods=['POST'])
@login_required
@handles_errors('Server error during tournament registration')
def register(tournament_id):
    competitor, tournament = current_app.tournaments.register_competitor(
        tournament_id, get_current_user(), get_json_body())
    return success('Successfully registered for tournament', {
        'competitor': competitor.to_dict(),
        'tournament': tournament.to_dict(),
    }, 201)


@bp.route('/<tournament_id>/withdraw', methods=['POST'])
@login_required
@handles_errors('Server error during tournament withdrawal')
def withdraw(tournament_id):
    tournament = current_app.tournaments.withdraw_competitor(
        tournament_id, get_current_user(), get_json_body().get('competitorId'))
    return success('Successfully withdrew from tournament', {'tournament': tournament.to_dict()})


@bp.route('/<tournament_id>/participants', methods=['GET'])
@handles_errors('Server error while fetching participants')
def participants(tournament_id):
    competitors, tournament = current_app.tournaments.list_participants(tournament_id)
    return success('Participants retrieved successfully', {
        'participants': [c.to_dict() for c in competitors],
        'total': len(competitors),
        'tournament': tournament.summary(),
    })
