import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent  # <project>
INSTANCE_DIR = BASE_DIR / "instance"
INSTANCE_DIR.mkdir(parents=True, exist_ok=True)

def _default_sqlite_uri():
    return f"sqlite:///{(INSTANCE_DIR / 'backoffice.db').as_posix()}"

def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or _default_sqlite_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # токены
    JWT_SECRET = os.getenv("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))
    AUTH_COOKIE_NAME = "auth-token"
    AUTH_COOKIE_SECURE = _bool("AUTH_COOKIE_SECURE", False)

    # бизнес-константы
    USD_EXCHANGE_RATE = os.getenv("USD_EXCHANGE_RATE", "1.0")
    PINK_CARDS_DAILY_LIMIT = int(os.getenv("PINK_CARDS_DAILY_LIMIT", "5"))

    # сколько обратных прокси перед приложением; 0: X-Forwarded-For игнорируется
    TRUSTED_PROXIES = int(os.getenv("TRUSTED_PROXIES", "0"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-secret-key-with-enough-length-for-hs256"
    LOG_LEVEL = "WARNING"

def ensure_instance(app):
    # Flask instance path
    os.makedirs(app.instance_path, exist_ok=True)
