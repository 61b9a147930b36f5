from __future__ import annotations

import pytest

import app_main


def _fail(*args, **kwargs):
    raise AssertionError("no socket should be opened without questions")


def test_missing_questions_exit_before_listening(tmp_path, monkeypatch):
    monkeypatch.setenv("QUIZ_QUESTIONS_PATH", str(tmp_path / "missing.txt"))
    monkeypatch.delenv("QUIZ_QUESTIONS_URL", raising=False)
    monkeypatch.setattr(app_main, "QuizTcpServer", _fail)
    monkeypatch.setattr(app_main, "start_tcp_server", _fail)

    with pytest.raises(SystemExit) as excinfo:
        app_main.main()

    assert excinfo.value.code == 1


def test_invalid_configuration_exits_with_usage_code(monkeypatch):
    monkeypatch.setenv("QUIZ_PORT", "not-a-port")
    monkeypatch.setattr(app_main, "QuizTcpServer", _fail)

    with pytest.raises(SystemExit) as excinfo:
        app_main.main()

    assert excinfo.value.code == 2
