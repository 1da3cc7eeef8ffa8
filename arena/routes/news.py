from flask import Blueprint, current_app, request

from ..auth import get_current_user, get_optional_user, roles_required
from ..documents import Role
from ..news_manager import FEATURED_LIMIT
from ..pagination import parse_limit, parse_page_args
from ..responses import handles_errors, success
from ..validation import get_json_body

bp = Blueprint('news', __name__, url_prefix='/api/news')

AUTHORS = (Role.ORGANIZER.value, Role.ADMIN.value)


def _page_payload(items, page, total):
    return {
        'news': [n.to_dict() for n in items],
        'pagination': page.meta(total),
    }


@bp.route('', methods=['POST'])
@roles_required(*AUTHORS)
@handles_errors('Server error while creating news')
def create_news():
    news = current_app.news.create_news(get_current_user(), get_json_body())
    return success('News created successfully', {'news': news.to_dict()}, 201)


@bp.route('', methods=['GET'])
@handles_errors('Server error while fetching news')
def list_news():
    page = parse_page_args(request.args)
    items, total = current_app.news.list_public(
        page,
        tournament_id=request.args.get('tournamentId'),
        search=request.args.get('search'),
    )
    return success('News retrieved successfully', _page_payload(items, page, total))


@bp.route('/featured', methods=['GET'])
@handles_errors('Server error while fetching featured news')
def featured_news():
    items = current_app.news.featured(limit=parse_limit(request.args, FEATURED_LIMIT))
    return success('Featured news retrieved successfully', {'news': [n.to_dict() for n in items]})


@bp.route('/search', methods=['GET'])
@handles_errors('Server error while searching news')
def search_news():
    page = parse_page_args(request.args)
    items, total = current_app.news.search(request.args.get('q'), page)
    return success('Search results retrieved successfully', _page_payload(items, page, total))


@bp.route('/tournament/<tournament_id>', methods=['GET'])
@handles_errors('Server error while fetching tournament news')
def tournament_news(tournament_id):
    page = parse_page_args(request.args)
    items, total = current_app.news.by_tournament(tournament_id, page)
    return success('Tournament news retrieved successfully', _page_payload(items, page, total))


@bp.route('/author/<author_id>', methods=['GET'])
@handles_errors('Server error while fetching author news')
def author_news(author_id):
    page = parse_page_args(request.args)
    items, total = current_app.news.by_author(author_id, page, viewer=get_optional_user())
    return success('Author news retrieved successfully', _page_payload(items, page, total))


@bp.route('/<news_id>', methods=['GET'])
@handles_errors('Server error while fetching news')
def get_news(news_id):
    news = current_app.news.get_news(news_id, viewer=get_optional_user())
    return success('News retrieved successfully', {'news': news.to_dict()})


@bp.route('/<news_id>', methods=['PUT'])
@roles_required(*AUTHORS)
@handles_errors('Server error while updating news')
def update_news(news_id):
    news = current_app.news.update_news(news_id, get_current_user(), get_json_body())
    return success('News updated successfully', {'news': news.to_dict()})


@bp.route('/<news_id>', methods=['DELETE'])
@roles_required(*AUTHORS)
@handles_errors('Server error while deleting news')
def delete_news(news_id):
    current_app.news.delete_news(news_id, get_current_user())
    return success('News deleted successfully')


@bp.route('/<news_id>/publish', methods=['POST'])
@roles_required(*AUTHORS)
@handles_errors('Server error while publishing news')
def publish_news(news_id):
    news = current_app.news.publish(news_id, get_current_user())
    return success('News published successfully', {'news': news.to_dict()})
