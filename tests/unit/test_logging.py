"""Tests for logging helpers."""
import logging

import pytest

from pinupload import setup_logging
from pinupload.core.logging import get_logger
from pinupload.core.upload import UploadCoordinator


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_returns_named_logger(self):
        logger = get_logger('pinupload.tests.named')

        assert isinstance(logger, logging.Logger)
        assert logger.name == 'pinupload.tests.named'
        assert logger.propagate is True

    def test_same_instance(self):
        assert get_logger('pinupload.tests.same') is get_logger('pinupload.tests.same')


LOGGER_NAMES = [
    'pinupload',
    'pinupload.upload',
    'pinupload.upload.coordinator',
    'pinupload.upload.session',
    'pinupload.upload.chunk',
    'pinupload.upload.finalize',
]


@pytest.fixture
def restore_levels():
    saved = {name: logging.getLogger(name).level for name in LOGGER_NAMES}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.mark.usefixtures("restore_levels")
class TestSetupLogging:
    """Test suite for setup_logging function."""

    def test_sets_level(self):
        setup_logging(logging.DEBUG)

        assert logging.getLogger('pinupload').level == logging.DEBUG
        assert logging.getLogger('pinupload.upload.chunk').level == logging.DEBUG

    def test_default_level(self):
        setup_logging()

        assert logging.getLogger('pinupload.upload').level == logging.INFO


class TestUploadLogging:
    """Upload steps are logged under the pinupload namespace."""

    @pytest.fixture(autouse=True)
    def info_level(self, restore_levels):
        setup_logging(logging.INFO)

    @pytest.mark.asyncio
    async def test_failure_logged(self, upload_server, chunked_config, source, caplog):
        upload_server.send_location = False

        with caplog.at_level(logging.INFO, logger='pinupload'):
            async with UploadCoordinator(chunked_config) as coordinator:
                await coordinator.start(source, 'public', upload_server.url())
                await coordinator.wait()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert any('Upload failed' in r.getMessage() for r in errors)
        assert all(r.name.startswith('pinupload') for r in caplog.records)

    @pytest.mark.asyncio
    async def test_start_and_completion_logged(self, upload_server, chunked_config, source, caplog):
        with caplog.at_level(logging.INFO, logger='pinupload'):
            async with UploadCoordinator(chunked_config) as coordinator:
                await coordinator.start(source, 'public', upload_server.url())
                await coordinator.wait()

        messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
        assert any(m.startswith('Starting chunked upload') for m in messages)
        assert any(m.startswith('Upload session created') for m in messages)
        assert any(m.startswith('Upload completed') for m in messages)
