import json

import pytest

from customization import Customization
from customization.config import ConfigLoader, Visibility
from customization.errors import (
    CommandNotFoundError,
    ConfigError,
    SelectionOutOfRangeError,
    TypeMismatchError,
)
from customization.logger import configure_logger, get_logger


def test_engine_requires_load():
    assert not Customization.is_loaded()
    with pytest.raises(ConfigError):
        Customization.run_command("help")


def test_engine_answers_against_loaded_config(compiled_doc, editor_ctx):
    Customization.load(compiled_doc)

    assert Customization.system_prompt("default").visibility == Visibility.ALWAYS
    assert len(Customization.run_command("shorter", editor_ctx)) == 2
    assert Customization.run_code_lens("open_chat") == []
    assert Customization.subchat_parameters("locate").model_type == "thinking"
    assert Customization.route("/ask hi").messages[0].content == "hi"
    assert [p.id for p in Customization.list_prompts()] == ["default", "agentic_tools"]


def test_engine_reload(compiled_doc):
    Customization.load(compiled_doc, {"PROMPT_DEFAULT": "user prompt"})
    assert Customization.system_prompt("default").text == "user prompt"

    Customization.reload(None)
    assert Customization.system_prompt("default").text.startswith("You are a coding assistant.")
    assert Customization.version == 2


def test_engine_rejected_reload_keeps_serving(compiled_doc):
    Customization.load(compiled_doc, {"PROMPT_DEFAULT": "user prompt"})
    with pytest.raises(TypeMismatchError):
        Customization.reload({"PROMPT_DEFAULT": {"text": "nope"}})
    assert Customization.system_prompt("default").text == "user prompt"


def test_load_default_reads_user_file(tmp_path):
    user_file = tmp_path / "customization.yaml"
    user_file.write_text("PROMPT_DEFAULT: 'Short answers only.'\n", encoding="utf-8")
    loader = ConfigLoader(user_path=str(user_file), max_expansion_depth=4, max_expansion_length=9000)

    Customization.load_default(loader)

    assert Customization.system_prompt("default").text == "Short answers only."
    assert Customization.expander.max_depth == 4
    assert Customization.expander.max_length == 9000

    user_file.write_text("", encoding="utf-8")
    Customization.reload_from_file()
    assert Customization.system_prompt("default").text.startswith("[mode1]")


def test_get_info(compiled_doc):
    Customization.load(compiled_doc)
    info = Customization.get_info()
    assert info["version"] == 1
    assert len(info["fingerprint"]) == 64
    assert {"id": "agentic_tools", "visibility": "never", "description": ""} in info["prompts"]
    assert info["subchat_tools"] == ["locate"]


def test_singleton():
    from customization.engine import _CustomizationRegistry

    assert _CustomizationRegistry() is Customization


def test_rejections_logged_at_engine(tmp_path, compiled_doc):
    configure_logger(log_directory=str(tmp_path), session_id="engine")
    Customization.load(compiled_doc)
    with pytest.raises(SelectionOutOfRangeError):
        Customization.run_command("shorter", {"CODE_SELECTION": "x\n" * 51})
    with pytest.raises(CommandNotFoundError):
        Customization.route("/nope now")
    get_logger().close()

    lines = (tmp_path / "customization_engine.jsonl").read_text(encoding="utf-8").splitlines()
    rejected = [r for r in map(json.loads, lines) if r["event"] == "rejected"]
    assert [(r["component"], r["data"]["id"], r["data"]["error_type"]) for r in rejected] == [
        ("command", "shorter", "SelectionOutOfRangeError"),
        ("command", "nope", "CommandNotFoundError"),
    ]
