import json

import pytest

from customization.cli import main


@pytest.fixture(autouse=True)
def no_log_files(monkeypatch):
    monkeypatch.setenv("CUSTOMIZATION_LOG_ENABLED", "0")


@pytest.fixture
def user_file(tmp_path):
    path = tmp_path / "customization.yaml"
    path.write_text(
        "toolbox_commands:\n"
        "  ask:\n"
        "    description: Ask a question\n"
        "    messages:\n"
        "    - role: user\n"
        "      content: 'Question: %ARGS%'\n",
        encoding="utf-8",
    )
    return path


def test_check(user_file, capsys):
    assert main(["--user", str(user_file), "check"]) == 0
    out = capsys.readouterr().out
    assert "(found)" in out
    assert out.strip().endswith("OK")


def test_list_json(user_file, capsys):
    assert main(["--user", str(user_file), "--json", "list"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert {"id": "ask", "description": "Ask a question"} in info["commands"]


def test_render(tmp_path, capsys):
    code = main([
        "--user", str(tmp_path / "absent.yaml"),
        "render", "exploration_tools",
        "--set", "WORKSPACE_INFO=ws", "--set", "PROJECT_SUMMARY=summary",
    ])
    assert code == 0
    assert capsys.readouterr().out.startswith("[mode2]")


def test_run_with_selection_file(tmp_path, capsys):
    snippet = tmp_path / "snippet.py"
    snippet.write_text("a = 1\n", encoding="utf-8")
    code = main([
        "--user", str(tmp_path / "absent.yaml"), "--json",
        "run", "bugs", "--file", "snippet.py", "--line", "1", "--selection-file", str(snippet),
    ])
    assert code == 0
    messages = json.loads(capsys.readouterr().out)
    assert messages[0]["role"] == "user"
    assert messages[0]["content"].startswith("@file snippet.py:1\n")


def test_run_help_prints_listing(tmp_path, capsys):
    assert main(["--user", str(tmp_path / "absent.yaml"), "run", "help"]) == 0
    assert "Available commands:" in capsys.readouterr().out


def test_route(user_file, capsys):
    assert main(["--user", str(user_file), "route", "/ask why?"]) == 0
    assert "Question: why?" in capsys.readouterr().out


def test_selection_out_of_range_exit_code(tmp_path, capsys):
    code = main([
        "--user", str(tmp_path / "absent.yaml"),
        "run", "bugs", "--file", "a.py", "--line", "1",
    ])
    assert code == 1
    assert "needs a selection of 1..50 lines, got 0" in capsys.readouterr().err


def test_broken_user_config_exit_code(tmp_path, capsys):
    broken = tmp_path / "broken.yaml"
    broken.write_text("system_prompts: [oops]\n", encoding="utf-8")
    assert main(["--user", str(broken), "check"]) == 1
    assert "system_prompts" in capsys.readouterr().err


def test_subchat(tmp_path, capsys):
    assert main(["--user", str(tmp_path / "absent.yaml"), "--json", "subchat", "grep"]) == 0
    params = json.loads(capsys.readouterr().out)
    assert params["tool_name"] == "grep"
    assert params["subchat_reasoning_effort"] == "low"


def test_bad_set_argument(tmp_path, capsys):
    code = main(["--user", str(tmp_path / "absent.yaml"), "render", "default", "--set", "novalue"])
    assert code == 1
    assert "KEY=VALUE" in capsys.readouterr().err


def test_route_to_command_without_messages_prints_listing(tmp_path, capsys):
    assert main(["--user", str(tmp_path / "absent.yaml"), "route", "/help"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Available commands:")
    assert "(no messages)" not in out


def test_max_length_option(tmp_path, capsys):
    code = main([
        "--user", str(tmp_path / "absent.yaml"), "--max-length", "50",
        "render", "default",
    ])
    assert code == 1
    assert "exceeds 50 characters" in capsys.readouterr().err
