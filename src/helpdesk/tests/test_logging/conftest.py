import logging

import pytest

from helpdesk.config import get_settings
from helpdesk.core.logging.builder import setup_logging, stop_queue_logging


@pytest.fixture(autouse=True)
def restore_logging(request):
    """Tests here reconfigure logging; put the session configuration back afterwards."""
    yield
    stop_queue_logging()
    setup_logging(get_settings())
    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)
