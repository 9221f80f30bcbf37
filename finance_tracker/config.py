from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "fintrack.db",
    "jwt_secret": "change-me",
    "token_ttl_minutes": 60,
    "reset_token_ttl_minutes": 60,
    "page_size": 10,
    "client_url": "http://localhost:3000",
    "api_prefix": "/api",
    "log_level": "INFO",
    "notifier": "log",
    "notifiers": {
        "log": "finance_tracker.notifications.log.LogNotifier",
        "smtp": "finance_tracker.notifications.smtp.SMTPNotifier",
    },
    "smtp": {
        "host": "localhost",
        "port": 587,
        "username": None,
        "password": None,
        "sender": "noreply@fintrack.local",
        "use_tls": True,
    },
}

# environment variable -> (config path, converter)
ENV_OVERRIDES = {
    "FINTRACK_DB_PATH": (("db_path",), str),
    "FINTRACK_JWT_SECRET": (("jwt_secret",), str),
    "FINTRACK_CLIENT_URL": (("client_url",), str),
    "FINTRACK_LOG_LEVEL": (("log_level",), str),
    "FINTRACK_NOTIFIER": (("notifier",), str),
    "FINTRACK_SMTP_HOST": (("smtp", "host"), str),
    "FINTRACK_SMTP_PORT": (("smtp", "port"), int),
    "FINTRACK_SMTP_USER": (("smtp", "username"), str),
    "FINTRACK_SMTP_PASSWORD": (("smtp", "password"), str),
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = dict(value) if isinstance(value, dict) else value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def _apply_env(config: Dict[str, object], environ=None) -> Dict[str, object]:
    environ = os.environ if environ is None else environ
    for var, (path, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        target = config
        for key in path[:-1]:
            target = target.setdefault(key, {})  # type: ignore[assignment]
        target[path[-1]] = convert(raw)
    return config


def load_config(path: str | Path | None = None, environ=None) -> Dict[str, object]:
    """Return the effective configuration.

    Values come from *path* (YAML, optional) merged over ``DEFAULT_CONFIG``,
    then ``FINTRACK_*`` environment variables win over both.
    """
    data: Dict[str, object] = {}
    if path is not None:
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(f"Config file not found: {target}")
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {target} must contain a mapping")
    config = _merge_defaults(data, DEFAULT_CONFIG)
    return _apply_env(config, environ)
