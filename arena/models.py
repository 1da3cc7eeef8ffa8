from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

from .documents import generate_id

db = SQLAlchemy()


class UserORM(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(24), primary_key=True, default=generate_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='user')
    avatar_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class TournamentORM(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.String(24), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False)
    format = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)
    game_name = db.Column(db.String(200), nullable=True, index=True)
    organizer_id = db.Column(db.String(24), db.ForeignKey('users.id'), nullable=True, index=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)
    max_players = db.Column(db.Integer, nullable=True)
    number_of_players = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='upcoming', index=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    competitors = db.relationship('CompetitorORM', back_populates='tournament', order_by='CompetitorORM.id')

    __table_args__ = (
        db.CheckConstraint('number_of_players >= 0', name='non_negative_player_count'),
    )


class CompetitorORM(db.Model):
    __tablename__ = 'competitors'

    id = db.Column(db.String(24), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False)
    logo_url = db.Column(db.String(500), nullable=True)
    description = db.Column(db.Text, nullable=True)
    mail = db.Column(db.String(255), nullable=True)
    tournament_id = db.Column(db.String(24), db.ForeignKey('tournaments.id'), nullable=False, index=True)
    user_id = db.Column(db.String(24), db.ForeignKey('users.id'), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('TournamentORM', back_populates='competitors')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'user_id', name='unique_competitor_per_user'),
    )


class MatchORM(db.Model):
    __tablename__ = 'matches'

    id = db.Column(db.String(24), primary_key=True, default=generate_id)
    tournament_id = db.Column(db.String(24), db.ForeignKey('tournaments.id'), nullable=False, index=True)
    team_a_id = db.Column(db.String(24), db.ForeignKey('competitors.id'), nullable=False, index=True)
    team_b_id = db.Column(db.String(24), db.ForeignKey('competitors.id'), nullable=False, index=True)
    scheduled_at = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)  # pending, done
    score_a = db.Column(db.Integer, nullable=False, default=0)
    score_b = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class NewsORM(db.Model):
    __tablename__ = 'news'

    id = db.Column(db.String(24), primary_key=True, default=generate_id)
    title = db.Column(db.String(300), nullable=False)
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.String(24), db.ForeignKey('users.id'), nullable=True, index=True)
    tournament_id = db.Column(db.String(24), db.ForeignKey('tournaments.id'), nullable=True, index=True)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default='draft', index=True)  # draft, public
    published_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


ORM_MODELS = {
    'user': UserORM,
    'tournament': TournamentORM,
    'competitor': CompetitorORM,
    'match': MatchORM,
    'news': NewsORM,
}
