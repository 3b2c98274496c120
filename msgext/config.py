from __future__ import annotations

import importlib
import os

from msgext.application import Application


def get_log_level() -> str:
    return os.environ.get("MSGEXT_LOG_LEVEL", "INFO").upper()


def get_application_path() -> str | None:
    # e.g. "mybot.bot:app"
    return os.environ.get("MSGEXT_APPLICATION") or None


def load_application_from_path(path: str) -> Application:
    """Import `module:attribute` and return the `Application` it names."""

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"MSGEXT_APPLICATION must look like 'module:attribute', got {path!r}")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ValueError(f"{module_name!r} has no attribute {attr!r}") from e

    if not isinstance(target, Application):
        raise ValueError(f"{path!r} is not an Application (got {type(target).__name__})")
    return target
