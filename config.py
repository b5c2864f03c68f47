"""Environment-driven settings for the lead discovery pipeline.

Values are read once at import from the process environment (a local .env file
is loaded first). Provider credentials are read lazily by the tools that need
them so that importing the pipeline never requires them.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


# Postgres; validated by db.connection
DATABASE_URL = os.environ.get("DATABASE_URL")
DB_POOL_SIZE = _int_env("DB_POOL_SIZE", 5)
DB_MAX_OVERFLOW = _int_env("DB_MAX_OVERFLOW", 10)
DB_POOL_TIMEOUT = _int_env("DB_POOL_TIMEOUT", 30)

# Synchronous people search
SEARCH_RESULT_COUNT = _int_env("SEARCH_RESULT_COUNT", 20)
SEARCH_TEXT_MAX_CHARACTERS = _int_env("SEARCH_TEXT_MAX_CHARACTERS", 1000)
MAX_QUERY_LENGTH = 500

# Credits
DEFAULT_CREDIT_BUDGET = _int_env("DEFAULT_CREDIT_BUDGET", 10)
LOW_CREDIT_RATIO = 0.1

# Sliding-window limiter for the search endpoints
RATE_LIMIT_MAX_REQUESTS = _int_env("RATE_LIMIT_MAX_REQUESTS", 10)
RATE_LIMIT_WINDOW_SECONDS = _int_env("RATE_LIMIT_WINDOW_SECONDS", 60)
RATE_LIMIT_RETENTION_HOURS = 24

# Websets
WEBSET_DEFAULT_COUNT = _int_env("WEBSET_DEFAULT_COUNT", 25)
EXA_WEBHOOK_URL = os.environ.get("EXA_WEBHOOK_URL")
EXA_WEBHOOK_SECRET = os.environ.get("EXA_WEBHOOK_SECRET")

# Supabase (auth user lookup + notification function)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
