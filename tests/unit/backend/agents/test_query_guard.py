"""
Unit Tests for the Query Guard.

Tests normalization and rejection of generated SQL.
"""

import pytest

from clinic.backend.agents.vertical.clinical.assistant.query_guard import (
    UnsafeQueryError,
    friendly_error,
    sanitize_query,
)


class TestSanitizeQueryNormalization:
    """Tests for query clean-up."""

    def test_strips_code_fences_and_semicolons(self):
        result = sanitize_query("```sql\nSELECT name FROM clients LIMIT 5;\n```")
        assert result == "SELECT name FROM clients LIMIT 5"

    def test_appends_default_limit(self):
        assert sanitize_query("SELECT name FROM clients") == "SELECT name FROM clients LIMIT 100"

    def test_appends_configured_limit(self):
        result = sanitize_query("SELECT name FROM clients", max_rows=25)
        assert result.endswith("LIMIT 25")

    def test_keeps_existing_limit(self):
        query = "SELECT name FROM clients ORDER BY name limit 3"
        assert sanitize_query(query) == query

    def test_rewrites_mysql_limit(self):
        result = sanitize_query("SELECT name FROM clients LIMIT 10, 20")
        assert result == "SELECT name FROM clients LIMIT 20 OFFSET 10"

    def test_accepts_common_table_expressions(self):
        query = (
            "WITH recent AS (SELECT client_id FROM therapy_sessions) "
            "SELECT client_id FROM recent LIMIT 10"
        )
        assert sanitize_query(query) == query

    def test_column_names_containing_keywords_are_allowed(self):
        """Word boundaries keep updated_at and created_at usable."""
        query = "SELECT name, updated_at, created_at FROM clients LIMIT 10"
        assert sanitize_query(query) == query


class TestSanitizeQueryRejection:
    """Tests for unsafe queries."""

    @pytest.mark.parametrize("query", ["", "   ", "SELECT 1", None])
    def test_rejects_short_or_empty(self, query):
        with pytest.raises(UnsafeQueryError, match="too short"):
            sanitize_query(query)

    @pytest.mark.parametrize(
        "query",
        [
            "SELECT name FROM clients -- everything",
            "SELECT name /* hidden */ FROM clients",
        ],
    )
    def test_rejects_comments(self, query):
        with pytest.raises(UnsafeQueryError, match="comments"):
            sanitize_query(query)

    def test_rejects_multiple_statements(self):
        with pytest.raises(UnsafeQueryError, match="Multiple"):
            sanitize_query("SELECT name FROM clients; DROP TABLE clients")

    def test_rejects_non_select(self):
        with pytest.raises(UnsafeQueryError, match="Only SELECT"):
            sanitize_query("DELETE FROM clients WHERE id = 'x'")

    @pytest.mark.parametrize("keyword", ["DELETE", "DROP", "UPDATE", "INSERT", "TRUNCATE"])
    def test_names_forbidden_keyword(self, keyword):
        query = f"WITH x AS ({keyword.lower()} something) SELECT name FROM clients"
        with pytest.raises(UnsafeQueryError, match=keyword):
            sanitize_query(query)

    def test_rejects_union_select(self):
        with pytest.raises(UnsafeQueryError, match="UNION"):
            sanitize_query("SELECT name FROM clients UNION SELECT model FROM assistant_settings")

    def test_rejects_tautology(self):
        with pytest.raises(UnsafeQueryError, match="dangerous"):
            sanitize_query("SELECT name FROM clients WHERE name = 'x' OR 1=1")


class TestSanitizeQueryWriteMode:
    """Tests with read_only disabled."""

    def test_allows_updates(self):
        query = "UPDATE clients SET gender = 'F' WHERE id = 'x'"
        assert sanitize_query(query, read_only=False) == query

    def test_still_rejects_comments_and_stacking(self):
        with pytest.raises(UnsafeQueryError):
            sanitize_query("UPDATE clients SET name = 'a'; DELETE FROM clients", read_only=False)


class TestFriendlyError:
    """Tests for friendly_error."""

    def test_missing_postgres_table(self):
        assert friendly_error('relation "client" does not exist') == (
            "The table 'client' does not exist in the database."
        )

    def test_missing_sqlite_table(self):
        assert friendly_error(Exception("no such table: client")) == (
            "The table 'client' does not exist in the database."
        )

    def test_missing_column(self):
        assert friendly_error("no such column: c.age") == (
            "The column 'c.age' does not exist in the database."
        )

    def test_syntax_error(self):
        assert "syntax error" in friendly_error('syntax error at or near "FORM"')

    def test_timeout(self):
        assert "too long" in friendly_error("canceling statement due to statement timeout")

    def test_rejected_query(self):
        message = friendly_error(UnsafeQueryError("UNION queries are not allowed"))
        assert message == "The generated query was rejected: UNION queries are not allowed"

    def test_unknown_error_uses_first_line(self):
        assert friendly_error("something odd\ndetails") == "Error executing query: something odd"
