import logging
from datetime import datetime
from typing import List, Optional, Tuple

from .documents import News, NewsStatus, User
from .errors import AuthorizationError, NotFoundError, ValidationError
from .pagination import PageRequest
from .stores import DataStore, Query
from .validation import clean_text, parse_url_list, require_id

logger = logging.getLogger(__name__)

NEWS_NOT_FOUND = 'News not found'
FEATURED_LIMIT = 5
SEARCH_FIELDS = ('title', 'content')
LATEST_FIRST = [('published_at', True), ('id', True)]


class NewsManager:
    """News articles: drafts, publishing, and public listings."""

    def __init__(self, store: DataStore):
        self.store = store

    def _load(self, news_id: str) -> News:
        require_id(news_id, 'news ID')
        news = self.store.get('news', news_id)
        if news is None:
            raise NotFoundError(NEWS_NOT_FOUND)
        return news

    @staticmethod
    def _can_edit(news: News, actor: Optional[User]) -> bool:
        return actor is not None and (actor.is_admin or news.author_id == actor.id)

    def _load_editable(self, news_id: str, actor: User) -> News:
        news = self._load(news_id)
        if not self._can_edit(news, actor):
            raise AuthorizationError('You can only manage your own news')
        return news

    def _populate(self, items: List[News]) -> List[News]:
        self.store.join(items, 'author_id', 'user', 'author')
        self.store.join(items, 'tournament_id', 'tournament', 'tournament')
        return items

    def _optional_tournament(self, value) -> Optional[str]:
        if value is None or value == '':
            return None
        require_id(value, 'tournament ID')
        if self.store.get('tournament', value) is None:
            raise NotFoundError('Tournament not found')
        return value

    def _public_page(self, page: PageRequest, filters: dict = None, search: str = None) -> Tuple[List[News], int]:
        filters = dict(filters or {})
        filters['status'] = NewsStatus.PUBLIC.value
        items, total = self.store.find('news', Query(
            filters=filters,
            search=search,
            search_fields=SEARCH_FIELDS,
            sort=LATEST_FIRST,
            offset=page.offset,
            limit=page.limit,
        ))
        return self._populate(items), total

    # ==================== CRUD ====================

    def create_news(self, author: User, data: dict) -> News:
        title = clean_text(data.get('title'), 'Title')
        content = clean_text(data.get('content'), 'Content')
        if not title or not content:
            raise ValidationError('Title and content are required')

        news = self.store.insert('news', News(
            title=title,
            content=content,
            author_id=author.id,
            tournament_id=self._optional_tournament(data.get('tournamentId')),
            images=parse_url_list(data.get('images'), 'Images'),
            status=NewsStatus.DRAFT.value,
        ))
        logger.info("News %s drafted by %s", news.id, author.id)
        return self._populate([news])[0]

    def get_news(self, news_id: str, viewer: Optional[User] = None) -> News:
        """Drafts are visible to their author and admins only."""
        news = self._load(news_id)
        if news.status != NewsStatus.PUBLIC.value and not self._can_edit(news, viewer):
            raise NotFoundError(NEWS_NOT_FOUND)
        return self._populate([news])[0]

    def update_news(self, news_id: str, actor: User, data: dict) -> News:
        news = self._load_editable(news_id, actor)

        changes = {}
        if 'title' in data:
            changes['title'] = clean_text(data['title'], 'Title')
            if not changes['title']:
                raise ValidationError('Title is required')
        if 'content' in data:
            changes['content'] = clean_text(data['content'], 'Content')
            if not changes['content']:
                raise ValidationError('Content is required')
        if 'tournamentId' in data:
            changes['tournament_id'] = self._optional_tournament(data['tournamentId'])
        if 'images' in data:
            changes['images'] = parse_url_list(data['images'], 'Images')

        updated = self.store.update('news', news.id, changes)
        if updated is None:
            raise NotFoundError(NEWS_NOT_FOUND)
        return self._populate([updated])[0]

    def delete_news(self, news_id: str, actor: User) -> News:
        news = self._load_editable(news_id, actor)
        deleted = self.store.delete('news', news.id)
        if deleted is None:
            raise NotFoundError(NEWS_NOT_FOUND)
        logger.info("News %s deleted by %s", news.id, actor.id)
        return deleted

    def publish(self, news_id: str, actor: User, now: datetime = None) -> News:
        news = self._load_editable(news_id, actor)
        updated = self.store.update('news', news.id, {
            'status': NewsStatus.PUBLIC.value,
            'published_at': now or datetime.utcnow(),
        })
        if updated is None:
            raise NotFoundError(NEWS_NOT_FOUND)
        logger.info("News %s published", news.id)
        return self._populate([updated])[0]

    # ==================== Listings ====================

    def list_public(self, page: PageRequest, tournament_id: str = None, search: str = None) -> Tuple[List[News], int]:
        filters = {}
        if tournament_id:
            filters['tournament_id'] = require_id(tournament_id, 'tournament ID')
        return self._public_page(page, filters, (search or '').strip() or None)

    def featured(self, limit: int = FEATURED_LIMIT) -> List[News]:
        items, _ = self._public_page(PageRequest(page=1, limit=limit))
        return items

    def search(self, q, page: PageRequest) -> Tuple[List[News], int]:
        term = (q or '').strip() if isinstance(q, str) else ''
        if not term:
            raise ValidationError('Search query is required')
        return self._public_page(page, search=term)

    def by_tournament(self, tournament_id: str, page: PageRequest) -> Tuple[List[News], int]:
        require_id(tournament_id, 'tournament ID')
        return self._public_page(page, {'tournament_id': tournament_id})

    def by_author(self, author_id: str, page: PageRequest, viewer: Optional[User] = None) -> Tuple[List[News], int]:
        """All news by an author; drafts only when the author or an admin asks."""
        require_id(author_id, 'author ID')
        filters = {'author_id': author_id}
        if viewer is None or not (viewer.is_admin or viewer.id == author_id):
            filters['status'] = NewsStatus.PUBLIC.value

        items, total = self.store.find('news', Query(
            filters=filters,
            sort=[('id', True)],
            offset=page.offset,
            limit=page.limit,
        ))
        return self._populate(items), total
