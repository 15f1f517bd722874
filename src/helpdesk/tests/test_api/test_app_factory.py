import helpdesk.main as main
from helpdesk.config import Settings


def record_setup_logging(monkeypatch) -> list:
    calls = []
    monkeypatch.setattr(main, "setup_logging", calls.append)
    return calls


def test_import_builds_no_app():
    assert not hasattr(main, "app")


def test_create_app_can_skip_logging(monkeypatch):
    calls = record_setup_logging(monkeypatch)

    application = main.create_app(configure_logging=False)

    assert calls == []
    paths = {route.path for route in application.routes}
    assert "/api/v1/conversations/{conversation_id}" in paths


def test_create_app_configures_logging_with_given_settings(monkeypatch):
    calls = record_setup_logging(monkeypatch)
    settings = Settings(APP_TIMEZONE="Europe/Paris")

    main.create_app(settings)

    assert calls == [settings]
