import os


def _normalized_database_url() -> str:
    url = os.getenv('DATABASE_URL', 'sqlite:///arena.db')
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    ENV_NAME = 'development'
    
    # Database
    SQLALCHEMY_DATABASE_URI = _normalized_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}
    
    # Data store: sql, memory, or auto (sql with in-memory fallback)
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'auto').lower()
    
    # Tokens
    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-jwt-secret-change-in-prod')
    JWT_EXPIRES_IN = int(os.getenv('JWT_EXPIRES_IN', str(7 * 24 * 3600)))
    JWT_REFRESH_SECRET = os.getenv('JWT_REFRESH_SECRET', 'dev-jwt-refresh-secret-change-in-prod')
    JWT_REFRESH_EXPIRES_IN = int(os.getenv('JWT_REFRESH_EXPIRES_IN', str(30 * 24 * 3600)))
    
    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    STRUCTURED_LOGGING = os.getenv('STRUCTURED_LOGGING', '1') == '1'
    
    # Include raw exception text in 500 responses
    EXPOSE_ERROR_DETAIL = os.getenv('EXPOSE_ERROR_DETAIL', 'true').lower() == 'true'


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    ENV_NAME = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STORE_BACKEND = 'sql'
    STRUCTURED_LOGGING = False
    JWT_SECRET = 'testing-jwt-secret'
    JWT_REFRESH_SECRET = 'testing-jwt-refresh-secret'


class ProductionConfig(Config):
    DEBUG = False
    ENV_NAME = 'production'
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'sql').lower()
    EXPOSE_ERROR_DETAIL = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


WEAK_SECRETS = {
    'dev-secret-key-change-in-prod',
    'dev-jwt-secret-change-in-prod',
    'dev-jwt-refresh-secret-change-in-prod',
    'changeme',
    'secret',
}


def validate_runtime(app_config: dict) -> None:
    """Fail fast for production misconfiguration."""
    if app_config.get('ENV_NAME') != 'production':
        return
    
    for key in ('SECRET_KEY', 'JWT_SECRET', 'JWT_REFRESH_SECRET'):
        value = app_config.get(key) or ''
        if len(value) < 16 or value.lower() in WEAK_SECRETS:
            raise RuntimeError(f'Invalid {key} for production. Set a strong random secret.')
