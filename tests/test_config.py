import pytest

from finance_tracker.config import DEFAULT_CONFIG, load_config


def test_defaults_without_file():
    config = load_config(environ={})
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG
    assert config["page_size"] == 10
    assert config["token_ttl_minutes"] == 60


def test_file_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "db_path: /var/lib/fintrack.db\n"
        "smtp:\n"
        "  host: mail.example.com\n"
    )

    config = load_config(path, environ={})

    assert config["db_path"] == "/var/lib/fintrack.db"
    assert config["smtp"]["host"] == "mail.example.com"
    assert config["smtp"]["port"] == 587
    assert config["notifier"] == "log"


def test_environment_wins(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("jwt_secret: from-file\n")
    environ = {
        "FINTRACK_JWT_SECRET": "from-env",
        "FINTRACK_SMTP_PORT": "2525",
        "FINTRACK_DB_PATH": "",
    }

    config = load_config(path, environ=environ)

    assert config["jwt_secret"] == "from-env"
    assert config["smtp"]["port"] == 2525
    assert config["db_path"] == "fintrack.db"


def test_defaults_are_not_mutated():
    load_config(environ={"FINTRACK_SMTP_HOST": "relay"})
    assert DEFAULT_CONFIG["smtp"]["host"] == "localhost"


def test_bad_config_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml", environ={})

    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_config(path, environ={})
