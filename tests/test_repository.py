"""
Submission Repository Tests
tests/test_repository.py

Snowflake connection and cursor are mocked; checks the SQL shape, VARIANT
encoding and error translation.
"""

import json
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from snowflake.connector.errors import DatabaseError, InterfaceError, ProgrammingError

from app.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    EntityNotFoundException,
    RepositoryException,
)
from app.models.enumerations import RatingStatus
from app.models.submission import SubmissionCreate
from app.repositories.base import BaseRepository
from app.repositories.submission_repository import SubmissionRepository


@pytest.fixture
def cursor():
    cursor = MagicMock()
    cursor.rowcount = 1
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    return cursor


@pytest.fixture
def connection(cursor):
    conn = MagicMock()
    conn.cursor.return_value = cursor
    cursor.connection = conn
    return conn


@pytest.fixture
def repository(connection):
    with patch("app.repositories.base.get_snowflake_connection", return_value=connection):
        yield SubmissionRepository(table_name="SUBMISSIONS")


def _executed(cursor):
    sql, params = cursor.execute.call_args.args
    return " ".join(sql.split()), params


STORED_ROW = {
    "SUBMISSION_ID": "sub-1",
    "PROCUREMENT_ID": "proc-2024-001",
    "CORE_DATA": '{"license": "https://files.example.com/a/b/license.pdf"}',
    "EXPERIENCE_DATA": None,
    "TEAM_DATA": '{"members": {}}',
    "PROPOSED_PRICE": 125000.0,
    "RATING_STATUS": None,
    "RATING_DATA": None,
    "CREATED_AT": datetime(2024, 3, 1, 9, 30),
}


# =============================================================================
# BASE REPOSITORY
# =============================================================================

class TestBaseRepository:

    def test_build_update_query_wraps_variant_columns(self):
        sql, params = BaseRepository().build_update_query(
            "SUBMISSIONS",
            {"rating_data": '{"a":1}', "rating_status": "completed"},
            "SUBMISSION_ID",
            "sub-1",
            variant_columns=("rating_data",),
        )
        assert "RATING_DATA = PARSE_JSON(%s)" in sql
        assert "RATING_STATUS = %s" in sql
        assert "WHERE SUBMISSION_ID = %s" in sql
        assert params == ['{"a":1}', "completed", "sub-1"]

    def test_variant_round_trip(self):
        repo = BaseRepository()
        value = {"overallScore": 6.5, "details": [{"rating": 8}]}
        assert repo.from_variant(repo.to_variant(value)) == value
        assert repo.to_variant(None) is None
        assert repo.from_variant({"already": "decoded"}) == {"already": "decoded"}
        assert repo.from_variant("not json") == "not json"

    def test_normalize_timestamp(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert BaseRepository().normalize_timestamp(naive).tzinfo is not None
        assert BaseRepository().normalize_timestamp(None) is None

    def test_connection_failure_translated(self):
        with patch("app.repositories.base.get_snowflake_connection", side_effect=InterfaceError(msg="refused")):
            with pytest.raises(DatabaseConnectionException):
                BaseRepository().execute_query("SELECT 1", fetch_one=True)

    def test_missing_configuration(self):
        with patch("app.services.snowflake.settings") as settings:
            settings.snowflake_configured = False
            settings.missing_snowflake_vars = ["SNOWFLAKE_ACCOUNT"]
            with pytest.raises(DatabaseConnectionException, match="SNOWFLAKE_ACCOUNT"):
                BaseRepository().execute_query("SELECT 1", fetch_one=True)

    def test_duplicate_error_translated(self, repository, cursor):
        cursor.execute.side_effect = ProgrammingError(msg="Duplicate key value violates unique constraint")
        with pytest.raises(DuplicateEntityException):
            repository.execute_query("INSERT ...", commit=True)

    def test_database_error_translated(self, repository, cursor):
        cursor.execute.side_effect = DatabaseError(msg="warehouse suspended")
        with pytest.raises(RepositoryException, match="Database error"):
            repository.execute_query("SELECT 1", fetch_one=True)

    def test_connection_closed(self, repository, connection, cursor):
        repository.execute_query("SELECT 1", fetch_one=True)
        cursor.close.assert_called_once()
        connection.close.assert_called_once()


# =============================================================================
# SUBMISSION REPOSITORY
# =============================================================================

class TestSubmissionRepository:

    def test_fetch_decodes_variants(self, repository, cursor):
        cursor.fetchone.return_value = dict(STORED_ROW)
        record = repository.fetch_submission_by_id("sub-1")

        sql, params = _executed(cursor)
        assert "FROM SUBMISSIONS WHERE submission_id = %s" in sql
        assert params == ("sub-1",)
        assert record.core_data == {"license": "https://files.example.com/a/b/license.pdf"}
        assert record.team_data == {"members": {}}
        assert record.experience_data is None
        assert record.rating_status == RatingStatus.PENDING
        assert record.created_at.tzinfo is not None

    def test_fetch_missing(self, repository, cursor):
        with pytest.raises(EntityNotFoundException):
            repository.fetch_submission_by_id("missing")

    def test_processing_status_leaves_rating_data(self, repository, cursor, connection):
        repository.update_submission_status("sub-1", RatingStatus.PROCESSING)
        sql, params = _executed(cursor)
        assert "RATING_STATUS = %s" in sql
        assert "RATING_DATA" not in sql
        assert params[0] == "processing"
        assert params[-1] == "sub-1"
        connection.commit.assert_called_once()

    def test_error_status_writes_minimal_rating_data(self, repository, cursor):
        repository.update_submission_status("sub-1", RatingStatus.ERROR, "Submission is missing procurement_id")
        sql, params = _executed(cursor)
        assert "RATING_DATA = PARSE_JSON(%s)" in sql
        stored = json.loads(params[2])
        assert stored == {"status": "error", "errorMessage": "Submission is missing procurement_id"}

    def test_update_rating_single_statement(self, repository, cursor):
        record = {"ratingVersion": "1.0", "status": "completed", "overallScore": 6}
        repository.update_submission_rating("sub-1", record, RatingStatus.COMPLETED)
        assert cursor.execute.call_count == 1
        sql, params = _executed(cursor)
        assert "RATING_DATA = PARSE_JSON(%s)" in sql
        assert json.loads(params[0]) == record
        assert params[1] == "completed"

    def test_update_rating_unknown_submission(self, repository, cursor):
        cursor.rowcount = 0
        with pytest.raises(EntityNotFoundException):
            repository.update_submission_rating("ghost", {}, RatingStatus.COMPLETED)

    def test_list_by_procurement(self, repository, cursor):
        cursor.fetchall.return_value = [
            {"SUBMISSION_ID": "sub-1", "PROCUREMENT_ID": "p", "PROPOSED_PRICE": 100.0,
             "RATING_STATUS": "completed", "RATING_DATA": '{"overallScore": 6}', "CREATED_AT": None},
            {"SUBMISSION_ID": "sub-2", "PROCUREMENT_ID": "p", "PROPOSED_PRICE": 50.0,
             "RATING_STATUS": "pending", "RATING_DATA": None, "CREATED_AT": None},
        ]
        records = repository.list_submissions_by_procurement("p")
        assert [r.submission_id for r in records] == ["sub-1", "sub-2"]
        assert records[0].rating_data == {"overallScore": 6}
        assert records[0].rating_status == RatingStatus.COMPLETED

    def test_list_filtered_by_status(self, repository, cursor):
        repository.list_submissions(RatingStatus.ERROR)
        sql, params = _executed(cursor)
        assert "WHERE rating_status = %s" in sql
        assert sql.endswith("ORDER BY created_at DESC")
        assert params == ("error",)

    def test_create_submission(self, repository, cursor):
        submission = SubmissionCreate(
            submission_id="sub-7",
            procurement_id="proc-2024-001",
            proposed_price=99000,
            core_data={"business_registration_number": "BRN-7"},
        )
        record = repository.create_submission(submission)
        sql, params = _executed(cursor)
        assert sql.startswith("INSERT INTO SUBMISSIONS")
        assert "PARSE_JSON(%s)" in sql
        assert json.loads(params[2]) == {"business_registration_number": "BRN-7"}
        assert params[6] == "pending"
        assert record.rating_status == RatingStatus.PENDING
