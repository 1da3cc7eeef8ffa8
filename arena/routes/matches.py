from flask import Blueprint, current_app, request

from ..auth import get_current_user, roles_required
from ..documents import Role
from ..match_manager import TOURNAMENT_PAGE_LIMIT, UPCOMING_LIMIT
from ..pagination import parse_limit, parse_page_args
from ..responses import handles_errors, success
from ..validation import get_json_body

bp = Blueprint('matches', __name__, url_prefix='/api/matches')

MANAGERS = (Role.ORGANIZER.value, Role.ADMIN.value)


def _page_payload(matches, page, total):
    return {
        'matches': [m.to_dict() for m in matches],
        'pagination': page.meta(total),
    }


@bp.route('', methods=['POST'])
@roles_required(*MANAGERS)
@handles_errors('Server error while creating match')
def create_match():
    match = current_app.matches.create_match(get_current_user(), get_json_body())
    return success('Match created successfully', {'match': match.to_dict()}, 201)


@bp.route('', methods=['GET'])
@handles_errors('Server error while fetching matches')
def list_matches():
    page = parse_page_args(request.args)
    matches, total = current_app.matches.list_matches(
        page,
        tournament_id=request.args.get('tournamentId'),
        status=request.args.get('status'),
    )
    return success('Matches retrieved successfully', _page_payload(matches, page, total))


@bp.route('/upcoming', methods=['GET'])
@handles_errors('Server error while fetching upcoming matches')
def upcoming_matches():
    matches = current_app.matches.upcoming(limit=parse_limit(request.args, UPCOMING_LIMIT))
    return success('Upcoming matches retrieved successfully', {'matches': [m.to_dict() for m in matches]})


@bp.route('/ongoing', methods=['GET'])
@handles_errors('Server error while fetching ongoing matches')
def ongoing_matches():
    matches = current_app.matches.ongoing()
    return success('Ongoing matches retrieved successfully', {'matches': [m.to_dict() for m in matches]})


@bp.route('/tournament/<tournament_id>', methods=['GET'])
@handles_errors('Server error while fetching tournament matches')
def tournament_matches(tournament_id):
    page = parse_page_args(request.args, default_limit=TOURNAMENT_PAGE_LIMIT)
    matches, total = current_app.matches.by_tournament(tournament_id, page)
    return success('Tournament matches retrieved successfully', _page_payload(matches, page, total))


@bp.route('/competitor/<competitor_id>', methods=['GET'])
@handles_errors('Server error while fetching competitor matches')
def competitor_matches(competitor_id):
    page = parse_page_args(request.args)
    matches, total = current_app.matches.by_competitor(competitor_id, page)
    return success('Competitor matches retrieved successfully', _page_payload(matches, page, total))


@bp.route('/<match_id>', methods=['GET'])
@handles_errors('Server error while fetching match')
def get_match(match_id):
    match = current_app.matches.get_match(match_id)
    return success('Match retrieved successfully', {'match': match.to_dict()})


@bp.route('/<match_id>', methods=['PUT'])
@roles_required(*MANAGERS)
@handles_errors('Server error while updating match')
def update_match(match_id):
    match = current_app.matches.update_match(match_id, get_current_user(), get_json_body())
    return success('Match updated successfully', {'match': match.to_dict()})


@bp.route('/<match_id>', methods=['DELETE'])
@roles_required(*MANAGERS)
@handles_errors('Server error while deleting match')
def delete_match(match_id):
    current_app.matches.delete_match(match_id, get_current_user())
    return success('Match deleted successfully')


# ==================== Scorekeeping ====================

@bp.route('/<match_id>/start', methods=['POST'])
@roles_required(*MANAGERS)
@handles_errors('Server error while starting match')
def start_match(match_id):
    match = current_app.matches.start_match(match_id, get_current_user())
    return success('Match started successfully', {'match': match.to_dict()})


@bp.route('/<match_id>/result', methods=['POST'])
@roles_required(*MANAGERS)
@handles_errors('Server error while updating match result')
def set_result(match_id):
    data = get_json_body()
    match = current_app.matches.set_result(
        match_id, get_current_user(), data.get('scoreA'), data.get('scoreB'))
    return success('Match result updated successfully', {'match': match.to_dict()})


@bp.route('/<match_id>/reschedule', methods=['POST'])
@roles_required(*MANAGERS)
@handles_errors('Server error while rescheduling match')
def reschedule(match_id):
    match = current_app.matches.reschedule(
        match_id, get_current_user(), get_json_body().get('newDate'))
    return success('Match rescheduled successfully', {'match': match.to_dict()})
