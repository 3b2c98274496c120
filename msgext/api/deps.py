from __future__ import annotations

from msgext.application import Application
from msgext.config import get_application_path, load_application_from_path


_APPLICATION: Application | None = None


def init_application(application: Application | None = None) -> Application:
    """Install the bot application served by `/api/messages`.

    Without an argument, loads the one named by `MSGEXT_APPLICATION`, falling back to an
    empty `Application` (every invoke then answers 501). Safe to call multiple times;
    subsequent calls without an argument return the already installed instance.
    """

    global _APPLICATION
    if application is not None:
        _APPLICATION = application
    elif _APPLICATION is None:
        path = get_application_path()
        _APPLICATION = load_application_from_path(path) if path else Application()
    return _APPLICATION


def reset_application_for_tests() -> None:
    global _APPLICATION
    _APPLICATION = None


def get_application() -> Application:
    if _APPLICATION is None:
        raise RuntimeError("Application not initialized. Call init_application() at startup.")
    return _APPLICATION
