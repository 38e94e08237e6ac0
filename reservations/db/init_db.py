import psycopg2
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.core.security import get_password_hash
from reservations.models.admin import Admin
from reservations.services.system_settings import seed_system_settings
import logging

logger = logging.getLogger(__name__)

def create_database():
    """Create database if it doesn't exist."""
    if not settings.DATABASE_URL.startswith("postgresql"):
        return
    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            host=settings.POSTGRES_SERVER,
            port=settings.POSTGRES_PORT,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (settings.POSTGRES_DB,))
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", settings.POSTGRES_DB)
            cur.execute(f'CREATE DATABASE "{settings.POSTGRES_DB}"')
            logger.info("Database %s created successfully.", settings.POSTGRES_DB)
        else:
            logger.info("Database %s already exists.", settings.POSTGRES_DB)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        # Connection params may point at the target DB directly
        logger.error("Error creating database: %s", e)


def seed_first_admin(db: Session) -> None:
    if db.query(Admin).first():
        return
    if not settings.FIRST_ADMIN_PASSWORD:
        logger.warning("No admin account exists and FIRST_ADMIN_PASSWORD is empty; skipping admin seed.")
        return
    db.add(
        Admin(
            username=settings.FIRST_ADMIN_USERNAME,
            email=settings.FIRST_ADMIN_EMAIL,
            password_hash=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            role="superadmin",
            is_active=True,
        )
    )
    db.commit()
    logger.info("Seeded admin account '%s'.", settings.FIRST_ADMIN_USERNAME)


def init_db(db: Session) -> None:
    seed_system_settings(db)
    seed_first_admin(db)


if __name__ == "__main__":
    create_database()
