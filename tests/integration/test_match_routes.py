"""
Integration tests for /api/matches routes.
"""
import json
from datetime import datetime, timedelta

import pytest

from arena.documents import Competitor, Match

MISSING_ID = '5f1d7c2e9b1e8a3d4c6b2a10'


def body(response):
    return json.loads(response.data)


def in_hours(hours):
    return (datetime.utcnow() + timedelta(hours=hours)).isoformat()


@pytest.fixture
def teams(registered_competitors):
    return registered_competitors


@pytest.fixture
def match(client, sample_tournament, teams, organizer_headers):
    response = client.post('/api/matches', headers=organizer_headers, json={
        'tournamentId': sample_tournament.id,
        'teamA': teams[0].id,
        'teamB': teams[1].id,
        'scheduledAt': in_hours(24),
    })
    assert response.status_code == 201
    return body(response)['data']['match']


class TestCreateMatch:

    def test_create(self, match, teams, sample_tournament):
        assert match['status'] == 'pending'
        assert match['score'] == {'a': 0, 'b': 0}
        assert match['teamAInfo']['name'] == teams[0].name
        assert match['tournament']['id'] == sample_tournament.id

    def test_same_team_twice(self, client, sample_tournament, teams, organizer_headers):
        response = client.post('/api/matches', headers=organizer_headers, json={
            'tournamentId': sample_tournament.id, 'teamA': teams[0].id, 'teamB': teams[0].id})
        assert response.status_code == 400

    def test_team_from_other_tournament(self, client, app, sample_tournament, teams, organizer, organizer_headers):
        with app.app_context():
            other = app.tournaments.create_tournament(organizer, {'name': 'Other'})
            stranger = app.store.insert('competitor', Competitor(name='Stranger', tournament_id=other.id))
        response = client.post('/api/matches', headers=organizer_headers, json={
            'tournamentId': sample_tournament.id, 'teamA': teams[0].id, 'teamB': stranger.id})
        assert response.status_code == 400
        assert body(response)['message'] == 'Both teams must be competitors of the tournament'

    def test_missing_tournament(self, client, teams, organizer_headers):
        response = client.post('/api/matches', headers=organizer_headers, json={
            'tournamentId': MISSING_ID, 'teamA': teams[0].id, 'teamB': teams[1].id})
        assert response.status_code == 404

    def test_missing_fields(self, client, organizer_headers, db_session):
        assert client.post('/api/matches', headers=organizer_headers, json={}).status_code == 400

    def test_players_cannot_create(self, client, sample_tournament, teams, player_headers):
        response = client.post('/api/matches', headers=player_headers, json={
            'tournamentId': sample_tournament.id, 'teamA': teams[0].id, 'teamB': teams[1].id})
        assert response.status_code == 403


class TestScorekeeping:

    def test_result(self, client, match, organizer_headers):
        response = client.post(f"/api/matches/{match['id']}/result", headers=organizer_headers,
                               json={'scoreA': 3, 'scoreB': 1})
        assert response.status_code == 200
        updated = body(response)['data']['match']
        assert updated['status'] == 'done'
        assert updated['score'] == {'a': 3, 'b': 1}

    @pytest.mark.parametrize("scores", [
        {'scoreA': 1},
        {'scoreA': -1, 'scoreB': 0},
        {'scoreA': 'two', 'scoreB': 0},
        {'scoreA': 10 ** 30, 'scoreB': 0},
    ])
    def test_bad_result(self, client, match, organizer_headers, scores):
        response = client.post(f"/api/matches/{match['id']}/result", headers=organizer_headers, json=scores)
        assert response.status_code == 400

    def test_start(self, client, match, organizer_headers):
        response = client.post(f"/api/matches/{match['id']}/start", headers=organizer_headers)
        assert response.status_code == 200
        assert body(response)['data']['match']['status'] == 'pending'

    def test_reschedule(self, client, match, organizer_headers):
        new_date = '2031-05-01T18:00:00Z'
        response = client.post(f"/api/matches/{match['id']}/reschedule", headers=organizer_headers,
                               json={'newDate': new_date})
        assert response.status_code == 200
        assert body(response)['data']['match']['scheduledAt'] == '2031-05-01T18:00:00'

    def test_reschedule_requires_date(self, client, match, organizer_headers):
        response = client.post(f"/api/matches/{match['id']}/reschedule", headers=organizer_headers, json={})
        assert response.status_code == 400

    def test_other_organizer_forbidden(self, client, match, other_organizer_headers):
        response = client.post(f"/api/matches/{match['id']}/result", headers=other_organizer_headers,
                               json={'scoreA': 1, 'scoreB': 0})
        assert response.status_code == 403


class TestMatchCrud:

    def test_get(self, client, match):
        response = client.get(f"/api/matches/{match['id']}")
        assert response.status_code == 200
        assert body(response)['data']['match']['id'] == match['id']

    def test_get_missing_and_malformed(self, client, db_session):
        assert client.get(f'/api/matches/{MISSING_ID}').status_code == 404
        assert client.get('/api/matches/xyz').status_code == 400

    def test_update(self, client, match, teams, organizer_headers):
        response = client.put(f"/api/matches/{match['id']}", headers=organizer_headers, json={
            'teamA': teams[1].id, 'teamB': teams[0].id, 'score': {'a': 2}})
        assert response.status_code == 200
        updated = body(response)['data']['match']
        assert updated['teamA'] == teams[1].id
        assert updated['score'] == {'a': 2, 'b': 0}

    def test_update_rejects_same_teams(self, client, match, teams, organizer_headers):
        response = client.put(f"/api/matches/{match['id']}", headers=organizer_headers,
                              json={'teamB': teams[0].id})
        assert response.status_code == 400

    def test_delete(self, client, match, organizer_headers):
        assert client.delete(f"/api/matches/{match['id']}", headers=organizer_headers).status_code == 200
        assert client.get(f"/api/matches/{match['id']}").status_code == 404


class TestListings:

    @pytest.fixture
    def schedule(self, app, sample_tournament, teams):
        """One past pending match, one future pending match, one finished match."""
        a, b = teams
        with app.app_context():
            past = app.store.insert('match', Match(
                tournament_id=sample_tournament.id, team_a_id=a.id, team_b_id=b.id,
                scheduled_at=datetime.utcnow() - timedelta(hours=1)))
            upcoming = app.store.insert('match', Match(
                tournament_id=sample_tournament.id, team_a_id=b.id, team_b_id=a.id,
                scheduled_at=datetime.utcnow() + timedelta(hours=3)))
            finished = app.store.insert('match', Match(
                tournament_id=sample_tournament.id, team_a_id=a.id, team_b_id=b.id,
                scheduled_at=datetime.utcnow() - timedelta(days=1), status='done', score_a=1))
        return past, upcoming, finished

    def test_list_sorted_by_schedule(self, client, schedule):
        past, upcoming, finished = schedule
        data = body(client.get('/api/matches'))['data']
        assert [m['id'] for m in data['matches']] == [finished.id, past.id, upcoming.id]
        assert data['pagination'] == {'current': 1, 'pages': 1, 'total': 3}

    def test_filter_by_status(self, client, schedule):
        data = body(client.get('/api/matches?status=done'))['data']
        assert [m['id'] for m in data['matches']] == [schedule[2].id]

    def test_upcoming_and_ongoing(self, client, schedule):
        past, upcoming, _ = schedule
        assert [m['id'] for m in body(client.get('/api/matches/upcoming'))['data']['matches']] == [upcoming.id]
        assert [m['id'] for m in body(client.get('/api/matches/ongoing'))['data']['matches']] == [past.id]

    def test_by_tournament_default_limit(self, client, sample_tournament, schedule):
        data = body(client.get(f'/api/matches/tournament/{sample_tournament.id}'))['data']
        assert data['pagination']['total'] == 3
        assert len(data['matches']) == 3

    def test_by_tournament_missing(self, client, db_session):
        assert client.get(f'/api/matches/tournament/{MISSING_ID}').status_code == 404

    def test_by_competitor(self, client, teams, schedule):
        data = body(client.get(f'/api/matches/competitor/{teams[0].id}'))['data']
        assert data['pagination']['total'] == 3
