"""
Snowflake Connection - Procurement Rating Service
app/services/snowflake.py

Connection factory used by repositories.
"""

import snowflake.connector

from app.config import settings
from app.core.exceptions import DatabaseConnectionException


def get_snowflake_connection() -> snowflake.connector.SnowflakeConnection:
    """Open a new Snowflake connection from application settings."""
    if not settings.snowflake_configured:
        raise DatabaseConnectionException(
            f"Snowflake not configured: missing {', '.join(settings.missing_snowflake_vars)}"
        )
    return snowflake.connector.connect(
        account=settings.SNOWFLAKE_ACCOUNT,
        user=settings.SNOWFLAKE_USER,
        password=settings.SNOWFLAKE_PASSWORD.get_secret_value(),
        warehouse=settings.SNOWFLAKE_WAREHOUSE,
        database=settings.SNOWFLAKE_DATABASE,
        schema=settings.SNOWFLAKE_SCHEMA,
        role=settings.SNOWFLAKE_ROLE,
    )
