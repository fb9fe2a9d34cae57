"""Tests for the command-line entry point."""

from unittest.mock import MagicMock, patch

import pytest

from runfile.config import PASSWORD_ENV
from runfile.errors import CredentialError
from runfile.runner import build_parser, main


@pytest.fixture(autouse=True)
def no_password_env(monkeypatch):
    monkeypatch.delenv(PASSWORD_ENV, raising=False)


@pytest.fixture
def task_file(tmp_path):
    path = tmp_path / "Runfile"
    path.write_text("# deploy\nRUN echo hi\nPUT ./a.sh /tmp/a.sh 0755\n")
    return path


@pytest.fixture
def fake_dial(make_dialer):
    dialer = make_dialer()
    with patch("runfile.runner.dial", dialer):
        yield dialer


@pytest.fixture
def auth():
    with patch("runfile.runner.resolve_auth", return_value={"password": "secret"}) as mock:
        yield mock


class TestArguments:
    """Argument parsing."""

    def test_flags(self) -> None:
        args = build_parser().parse_args(
            ["-v", "-p", "-d", "-f", "-", "-i", "key", "--port", "2222", "-u", "root", "a", "b"]
        )
        assert args.verbose and args.parallel and args.dry_run
        assert args.task_file == "-"
        assert args.key_file == "key"
        assert args.port == "2222"
        assert args.user == "root"
        assert args.hosts == ["a", "b"]


class TestMain:
    """Exit codes and output."""

    def test_success(self, task_file, fake_dial, auth, capsys) -> None:
        code = main(["-f", str(task_file), "-u", "deploy", "web1", "web2"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Execution completed successfully" in out
        assert "[web1:22]" in out
        assert ("web2:22", "run", "echo hi") in fake_dial.events

    def test_dry_run_skips_credentials(self, task_file, fake_dial, capsys) -> None:
        with patch("runfile.runner.resolve_auth") as resolve:
            code = main(["-d", "-f", str(task_file), "web1"])

        assert code == 0
        resolve.assert_not_called()
        assert fake_dial.events == []
        assert "Executing Task 1 - PUT ./a.sh /tmp/a.sh 0755" in capsys.readouterr().out

    def test_no_hosts(self, task_file, capsys) -> None:
        assert main(["-f", str(task_file)]) == 1
        assert "No hosts given" in capsys.readouterr().err

    def test_parse_error(self, tmp_path, fake_dial, auth, capsys) -> None:
        path = tmp_path / "Runfile"
        path.write_text("RUN ok\nCOPY a b\n")

        assert main(["-f", str(path), "web1"]) == 1
        assert "Unable to parse task file" in capsys.readouterr().err
        assert fake_dial.events == []

    def test_credential_error(self, task_file, fake_dial, capsys) -> None:
        with patch("runfile.runner.resolve_auth", side_effect=CredentialError("bad key")):
            assert main(["-f", str(task_file), "web1"]) == 1
        assert "bad key" in capsys.readouterr().err
        assert fake_dial.events == []

    def test_host_failure(self, task_file, make_dialer, auth, capsys) -> None:
        dialer = make_dialer(unreachable={"web2:22"})
        with patch("runfile.runner.dial", dialer):
            code = main(["-p", "-f", str(task_file), "web1", "web2", "web3"])

        assert code == 1
        err = capsys.readouterr().err
        assert "Execution failed with 1 errors" in err
        assert "web2:22" in err
        assert ("web3:22", "put", "./a.sh") in dialer.events

    def test_quiet(self, task_file, fake_dial, auth, capsys) -> None:
        assert main(["-q", "-f", str(task_file), "web1"]) == 0
        out = capsys.readouterr().out
        assert "[web1:22]" not in out
        assert "Execution completed successfully" in out

    def test_config_file(self, tmp_path, task_file, fake_dial, auth) -> None:
        config = tmp_path / "runfile.yaml"
        config.write_text(
            f"defaults:\n  user: ops\n  port: 2200\n  task_file: {task_file}\nhosts:\n  - db1\n"
        )

        assert main(["-c", str(config)]) == 0
        assert ("db1:2200", "dial", "ops") in fake_dial.events

    def test_missing_config_file(self, tmp_path, capsys) -> None:
        assert main(["-c", str(tmp_path / "nope.yaml"), "web1"]) == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_invalid_config_value(self, tmp_path, capsys) -> None:
        config = tmp_path / "runfile.yaml"
        config.write_text("defaults:\n  connect_timeout: abc\n")

        assert main(["-c", str(config), "web1"]) == 1
        assert "must be a number" in capsys.readouterr().err

    def test_dashboard(self, task_file, auth) -> None:
        app = MagicMock()
        app.result = None
        with patch("runfile.dashboard.Dashboard", return_value=app) as dashboard:
            assert main(["--dashboard", "-f", str(task_file), "web1"]) == 1

        dashboard.assert_called_once()
        app.run.assert_called_once()
