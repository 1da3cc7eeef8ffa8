"""
Documents exchanged between the managers and the data stores.

Each dataclass mirrors one collection. References to other collections are
plain id fields; the referenced documents are attached by the store's join
helpers and only then appear in ``to_dict`` output.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from flask_login import UserMixin

from .state_machine import TournamentStatus


EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def generate_id() -> str:
    return str(ObjectId())


def is_valid_id(value) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Role(str, Enum):
    USER = "user"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class MatchStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


class NewsStatus(str, Enum):
    DRAFT = "draft"
    PUBLIC = "public"


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


@dataclass
class User(UserMixin):
    email: str
    full_name: str
    password_hash: str = ''
    role: str = Role.USER.value
    avatar_url: Optional[str] = None
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def validate(self) -> List[str]:
        errors = []
        if not self.email:
            errors.append('Email is required')
        elif not EMAIL_PATTERN.match(self.email):
            errors.append('Please enter a valid email')
        if not self.full_name or not self.full_name.strip():
            errors.append('Full name is required')
        if not self.password_hash:
            errors.append('Password is required')
        if self.role not in _enum_values(Role):
            errors.append(f'`{self.role}` is not a valid role')
        return errors

    def summary(self, with_avatar: bool = False) -> dict:
        data = {'id': self.id, 'fullName': self.full_name, 'email': self.email}
        if with_avatar:
            data['avatarUrl'] = self.avatar_url
        return data

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'email': self.email,
            'fullName': self.full_name,
            'role': self.role,
            'avatarUrl': self.avatar_url,
            'createdAt': _iso(self.created_at),
        }


@dataclass
class Competitor:
    name: str
    tournament_id: str
    user_id: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    mail: Optional[str] = None
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Joined
    user: Optional[User] = field(default=None, compare=False, repr=False)

    def validate(self) -> List[str]:
        errors = []
        if not self.name or not self.name.strip():
            errors.append('Competitor name is required')
        if not self.tournament_id:
            errors.append('Tournament is required')
        return errors

    def summary(self) -> dict:
        return {'id': self.id, 'name': self.name, 'logoUrl': self.logo_url}

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'name': self.name,
            'logoUrl': self.logo_url,
            'description': self.description,
            'mail': self.mail,
            'tournamentId': self.tournament_id,
            'userId': self.user_id,
        }
        if self.user is not None:
            data['user'] = self.user.summary(with_avatar=True)
        return data


@dataclass
class Tournament:
    name: str
    organizer_id: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    game_name: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_players: Optional[int] = None
    number_of_players: int = 0
    status: str = TournamentStatus.UPCOMING.value
    avatar_url: Optional[str] = None
    competitor_ids: List[str] = field(default_factory=list)
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Joined
    organizer: Optional[User] = field(default=None, compare=False, repr=False)
    competitors: Optional[List[Competitor]] = field(default=None, compare=False, repr=False)

    @property
    def is_full(self) -> bool:
        return self.max_players is not None and self.number_of_players >= self.max_players

    def validate(self) -> List[str]:
        errors = []
        if not self.name or not self.name.strip():
            errors.append('Tournament name is required')
        if self.max_players is not None and self.max_players < 1:
            errors.append('Maximum players must be at least 1')
        if self.number_of_players < 0:
            errors.append('Number of players cannot be negative')
        if self.status not in _enum_values(TournamentStatus):
            errors.append(f'`{self.status}` is not a valid tournament status')
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            errors.append('End date must be after start date')
        return errors

    def summary(self) -> dict:
        return {'id': self.id, 'name': self.name, 'format': self.format, 'status': self.status}

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'name': self.name,
            'format': self.format,
            'description': self.description,
            'gameName': self.game_name,
            'organizerId': self.organizer_id,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'maxPlayers': self.max_players,
            'numberOfPlayers': self.number_of_players,
            'status': self.status,
            'avatarUrl': self.avatar_url,
            'competitor': list(self.competitor_ids),
            'createdAt': _iso(self.created_at),
        }
        if self.organizer is not None:
            data['organizer'] = self.organizer.summary()
        if self.competitors is not None:
            data['competitors'] = [c.to_dict() for c in self.competitors]
        return data


@dataclass
class Match:
    tournament_id: str
    team_a_id: str
    team_b_id: str
    scheduled_at: Optional[datetime] = None
    status: str = MatchStatus.PENDING.value
    score_a: int = 0
    score_b: int = 0
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Joined
    tournament: Optional[Tournament] = field(default=None, compare=False, repr=False)
    team_a: Optional[Competitor] = field(default=None, compare=False, repr=False)
    team_b: Optional[Competitor] = field(default=None, compare=False, repr=False)

    def validate(self) -> List[str]:
        errors = []
        if not self.tournament_id:
            errors.append('Tournament is required')
        if not self.team_a_id or not self.team_b_id:
            errors.append('Both teams are required')
        elif self.team_a_id == self.team_b_id:
            errors.append('A team cannot play against itself')
        if self.status not in _enum_values(MatchStatus):
            errors.append(f'`{self.status}` is not a valid match status')
        if self.score_a < 0 or self.score_b < 0:
            errors.append('Scores cannot be negative')
        return errors

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'tournamentId': self.tournament_id,
            'teamA': self.team_a_id,
            'teamB': self.team_b_id,
            'scheduledAt': _iso(self.scheduled_at),
            'status': self.status,
            'score': {'a': self.score_a, 'b': self.score_b},
            'createdAt': _iso(self.created_at),
        }
        if self.tournament is not None:
            data['tournament'] = self.tournament.summary()
        if self.team_a is not None:
            data['teamAInfo'] = self.team_a.summary()
        if self.team_b is not None:
            data['teamBInfo'] = self.team_b.summary()
        return data


@dataclass
class News:
    title: str
    content: str
    author_id: Optional[str] = None
    tournament_id: Optional[str] = None
    images: List[str] = field(default_factory=list)
    status: str = NewsStatus.DRAFT.value
    published_at: Optional[datetime] = None
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    # Joined
    author: Optional[User] = field(default=None, compare=False, repr=False)
    tournament: Optional[Tournament] = field(default=None, compare=False, repr=False)

    def validate(self) -> List[str]:
        errors = []
        if not self.title or not self.title.strip():
            errors.append('Title is required')
        if not self.content or not self.content.strip():
            errors.append('Content is required')
        if self.status not in _enum_values(NewsStatus):
            errors.append(f'`{self.status}` is not a valid news status')
        if not isinstance(self.images, list) or not all(isinstance(i, str) for i in self.images):
            errors.append('Images must be a list of URLs')
        return errors

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'authorId': self.author_id,
            'tournamentId': self.tournament_id,
            'images': list(self.images),
            'status': self.status,
            'publishedAt': _iso(self.published_at),
            'createdAt': _iso(self.created_at),
        }
        if self.author is not None:
            data['author'] = self.author.summary()
        if self.tournament is not None:
            data['tournament'] = self.tournament.summary()
        return data


DOCUMENTS = {
    'user': User,
    'tournament': Tournament,
    'competitor': Competitor,
    'match': Match,
    'news': News,
}
