"""
Unit Test Fixtures.

Fixtures for unit tests - external dependencies are mocked.
Unit tests should be fast and isolated; model calls never leave the process.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_service(mock_db_session: AsyncMock):
            service = ClientService(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.get = AsyncMock()
    return session


# =============================================================================
# Assistant Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_assistant() -> MagicMock:
    """
    Mock ClinicalAssistant whose model calls return canned replies.

    Usage:
        async def test_answer(mock_db_session, mock_assistant):
            mock_assistant.answer.return_value = "Two sessions."
            service = AssistantService(mock_db_session, mock_assistant)
    """
    assistant = MagicMock()
    assistant.answer = AsyncMock(return_value="An answer")
    assistant.is_data_question = AsyncMock(return_value=False)
    assistant.generate_query = AsyncMock(return_value="SELECT 1 AS one")
    assistant.check_connection = AsyncMock(return_value=True)
    return assistant


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.logger", mock_logger):
                ...
                mock_logger.info.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
