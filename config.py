from dotenv import load_dotenv
import os
import logging


load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Configure Logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "crm_db")
DB_USERNAME = os.getenv("DB_USERNAME", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "password")

# full SQLAlchemy URL, wins over the DB_* parts when set
DATABASE_URL = os.getenv("DATABASE_URL")

# seconds a computed dashboard stays in the cache
DASHBOARD_CACHE_TTL = int(os.getenv("DASHBOARD_CACHE_TTL", "60"))

# upper bound on aggregator queries in flight for one fan-out
ANALYTICS_MAX_CONCURRENCY = int(os.getenv("ANALYTICS_MAX_CONCURRENCY", "8"))
