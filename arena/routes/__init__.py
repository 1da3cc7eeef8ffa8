from . import auth, matches, news, tournaments

BLUEPRINTS = (auth.bp, tournaments.bp, matches.bp, news.bp)
