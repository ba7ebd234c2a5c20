from sqlmodel import create_engine, Session
from typing import Optional
import os
from dotenv import load_dotenv

from core.config import DB_STATEMENT_TIMEOUT_MS

# Load environment variables from .env file
load_dotenv()

# Connects app to PostgreSQL database

required_vars_for_tcp = ["DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"]
required_vars_for_socket = ["DB_NAME", "DB_USER", "DB_PASSWORD", "INSTANCE_CONNECTION_NAME"]

_engine = None


def build_database_url() -> str:
    """Builds the connection URL from the environment.

    DATABASE_URL wins when set. Otherwise a Cloud SQL socket URL is built when
    INSTANCE_CONNECTION_NAME is present, else a plain TCP URL.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    db_port = os.getenv("DB_PORT", "5432")  # Default PostgreSQL port
    instance_connection_name = os.getenv("INSTANCE_CONNECTION_NAME")

    if instance_connection_name:
        missing_vars = [var for var in required_vars_for_socket if not os.getenv(var)]
        if missing_vars:
            raise ValueError(f"Missing required environment variables for Cloud SQL (socket): {', '.join(missing_vars)}")
        return (
            f"postgresql+psycopg2://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
            f"@/{os.getenv('DB_NAME')}?host=/cloudsql/{instance_connection_name}"
        )

    missing_vars = [var for var in required_vars_for_tcp if not os.getenv(var)]
    if missing_vars:
        raise ValueError(f"Missing required environment variables for TCP: {', '.join(missing_vars)}")
    return (
        f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
        f"@{os.getenv('DB_HOST')}:{db_port}/{os.getenv('DB_NAME')}"
    )


def make_engine(database_url: Optional[str] = None):
    url = database_url or build_database_url()
    connect_args = {}
    if url.startswith("postgresql"):
        # Bound every statement so a hung call surfaces as an OperationalError
        connect_args["options"] = f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"
    # Note: echo=True will log all SQL statements, set to False in production
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)


# The Wire / Link That Lets Us Pass Data from App -> db
def get_engine():
    global _engine
    if _engine is None:
        _engine = make_engine()
    return _engine


# Getter for this Wire, modified for FastAPI dependency injection
def get_session():
    with Session(get_engine()) as session:
        try:
            yield session
        finally:
            session.close()
