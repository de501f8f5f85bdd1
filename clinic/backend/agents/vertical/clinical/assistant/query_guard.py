"""
Query Guard.

Validates and normalizes SQL produced by the assistant before it runs.

Usage:
    from clinic.backend.agents.vertical.clinical.assistant.query_guard import sanitize_query
    sql = sanitize_query("```sql\nSELECT name FROM clients;\n```")
    # "SELECT name FROM clients LIMIT 100"
"""

import re

MIN_QUERY_LENGTH = 10
DEFAULT_MAX_ROWS = 100

FORBIDDEN_KEYWORDS = (
    "DELETE",
    "DROP",
    "INSERT",
    "UPDATE",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "CONNECT",
    "COPY",
    "VACUUM",
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_TRAILING_SEMICOLONS_RE = re.compile(r"[;\s]+$")
_READ_PREFIX_RE = re.compile(r"^\s*(SELECT|WITH)\b", re.IGNORECASE)
_FORBIDDEN_RE = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b", re.IGNORECASE)
_UNION_SELECT_RE = re.compile(r"\bUNION\b.*\bSELECT\b", re.IGNORECASE | re.DOTALL)
_TAUTOLOGY_RE = re.compile(r"\bOR\b\s+(\d+)\s*=\s*(\d+)", re.IGNORECASE)
_MYSQL_LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+)\s*,\s*(\d+)", re.IGNORECASE)
_LIMIT_RE = re.compile(r"\bLIMIT\b", re.IGNORECASE)


class UnsafeQueryError(ValueError):
    """Raised when a generated query is rejected."""


def sanitize_query(
    query: str,
    read_only: bool = True,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> str:
    """
    Clean up a generated query and reject anything unsafe.

    Markdown fences and trailing semicolons are stripped, MySQL-style
    "LIMIT offset, count" becomes "LIMIT count OFFSET offset", and a
    "LIMIT max_rows" is appended to reads without one.

    In read-only mode the query must be a single SELECT (or WITH ... SELECT)
    containing none of FORBIDDEN_KEYWORDS, no UNION ... SELECT and no
    "OR n = n" tautology.

    Args:
        query: Raw SQL text from the model
        read_only: Enforce the read-only rules
        max_rows: Row cap appended when the query has no LIMIT

    Returns:
        The normalized query

    Raises:
        UnsafeQueryError: If the query is rejected
    """
    sanitized = _FENCE_RE.sub("", (query or "").strip()).strip()
    sanitized = _TRAILING_SEMICOLONS_RE.sub("", sanitized)

    if len(sanitized) < MIN_QUERY_LENGTH:
        raise UnsafeQueryError("Query is too short or empty")
    if "--" in sanitized or "/*" in sanitized or "*/" in sanitized:
        raise UnsafeQueryError("SQL comments are not allowed")
    if ";" in sanitized:
        raise UnsafeQueryError("Multiple SQL statements are not allowed")

    is_read = bool(_READ_PREFIX_RE.match(sanitized))
    if read_only:
        if not is_read:
            raise UnsafeQueryError("Only SELECT queries are allowed")
        match = _FORBIDDEN_RE.search(sanitized)
        if match:
            raise UnsafeQueryError(f"SQL operation {match.group(1).upper()} is not allowed")
        if _UNION_SELECT_RE.search(sanitized):
            raise UnsafeQueryError("UNION queries are not allowed")
        if _TAUTOLOGY_RE.search(sanitized):
            raise UnsafeQueryError("Potentially dangerous SQL pattern detected")

    sanitized = _MYSQL_LIMIT_RE.sub(r"LIMIT \2 OFFSET \1", sanitized)
    if is_read and not _LIMIT_RE.search(sanitized):
        sanitized = f"{sanitized} LIMIT {max_rows}"

    return sanitized


_FRIENDLY_ERRORS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r'relation "([^"]+)" does not exist|no such table: (\S+)'), "The table '{0}' does not exist in the database."),
    (re.compile(r'column "([^"]+)" does not exist|no such column: (\S+)'), "The column '{0}' does not exist in the database."),
    (re.compile(r"syntax error", re.IGNORECASE), "The query had a syntax error. Please rephrase your question."),
    (re.compile(r"invalid input syntax|cannot cast", re.IGNORECASE), "Data type mismatch in the query. Please be more specific about the values involved."),
    (re.compile(r"timeout|timed out", re.IGNORECASE), "The query took too long to execute. Try simplifying your question."),
    (re.compile(r"permission denied|read-only", re.IGNORECASE), "The query is not permitted."),
    (re.compile(r"division by zero", re.IGNORECASE), "The query divides by zero."),
    (re.compile(r"out of range", re.IGNORECASE), "A numeric value in the query is out of the allowed range."),
)


def friendly_error(error: Exception | str) -> str:
    """
    Turn a database or guard error into a short message for the answer prompt.

    >>> friendly_error('relation "client" does not exist')
    "The table 'client' does not exist in the database."
    """
    if isinstance(error, UnsafeQueryError):
        return f"The generated query was rejected: {error}"

    message = str(error) or "Failed to execute query"
    for pattern, template in _FRIENDLY_ERRORS:
        match = pattern.search(message)
        if match:
            name = next((group for group in match.groups() if group), "")
            return template.format(name)
    return f"Error executing query: {message.splitlines()[0]}"
