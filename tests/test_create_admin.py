import pytest

from conftest import PASSWORD, login
from smarthive import create_admin as cli


@pytest.fixture
def cli_db(sessionmaker, monkeypatch):
    engine = sessionmaker.kw["bind"]
    monkeypatch.setattr(cli, "get_engine", lambda: engine)
    monkeypatch.setattr(cli, "get_sessionmaker", lambda: sessionmaker)


def test_create_admin(client, cli_db):
    assert cli.main(["Root@Example.com", PASSWORD, "--firstname", "Ada"]) == 0

    res = login(client, "root@example.com")
    assert res.status_code == 200
    assert res.json()["user"]["role"] == "admin"
    assert res.json()["user"]["firstname"] == "Ada"


def test_promote_existing_user(client, cli_db, seed_user):
    seed_user("bee@example.com")
    cli.main(["bee@example.com", "new-password"])

    assert login(client, "bee@example.com").status_code == 401
    res = login(client, "bee@example.com", "new-password")
    assert res.json()["user"]["role"] == "admin"


def test_rejects_invalid_email(cli_db):
    with pytest.raises(SystemExit):
        cli.main(["not-an-email", PASSWORD])
