import pytest

from customization.config import COMPILED_IN_PATH, ConfigLoader, parse_document
from customization.errors import MalformedConfigError


def test_defaults(monkeypatch):
    for var in ConfigLoader.ENV_MAPPINGS:
        monkeypatch.delenv(var, raising=False)
    loader = ConfigLoader()
    assert loader.compiled_path == COMPILED_IN_PATH
    assert loader.user_path.name == "customization.yaml"
    assert loader.settings.max_expansion_depth == 16
    assert loader.settings.max_expansion_length == 1_000_000


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CUSTOMIZATION_USER_CONFIG", str(tmp_path / "env.yaml"))
    monkeypatch.setenv("CUSTOMIZATION_MAX_DEPTH", "5")
    loader = ConfigLoader()
    assert loader.user_path == tmp_path / "env.yaml"
    assert loader.settings.max_expansion_depth == 5


def test_runtime_overrides_beat_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CUSTOMIZATION_USER_CONFIG", str(tmp_path / "env.yaml"))
    loader = ConfigLoader(user_path=str(tmp_path / "explicit.yaml"), max_expansion_depth=3)
    assert loader.user_path == tmp_path / "explicit.yaml"
    assert loader.settings.max_expansion_depth == 3


@pytest.mark.parametrize("depth", ["zero", "0"])
def test_invalid_depth_setting(monkeypatch, depth):
    monkeypatch.setenv("CUSTOMIZATION_MAX_DEPTH", depth)
    with pytest.raises(MalformedConfigError):
        ConfigLoader()


def test_length_setting(monkeypatch):
    monkeypatch.setenv("CUSTOMIZATION_MAX_LENGTH", "5000")
    assert ConfigLoader().settings.max_expansion_length == 5000
    assert ConfigLoader(max_expansion_length=50).settings.max_expansion_length == 50


@pytest.mark.parametrize("length", ["huge", "-1"])
def test_invalid_length_setting(monkeypatch, length):
    monkeypatch.setenv("CUSTOMIZATION_MAX_LENGTH", length)
    with pytest.raises(MalformedConfigError) as exc_info:
        ConfigLoader()
    assert "max expansion length" in str(exc_info.value)


def test_settings_hold_only_engine_options():
    assert set(ConfigLoader().settings.to_dict()) == {
        "compiled_path",
        "user_path",
        "max_expansion_depth",
        "max_expansion_length",
    }


def test_missing_user_file_is_none(tmp_path):
    loader = ConfigLoader(user_path=str(tmp_path / "absent.yaml"))
    assert loader.load_user() is None


def test_empty_user_file_is_empty_document(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text("# nothing yet\n", encoding="utf-8")
    assert ConfigLoader(user_path=str(path)).load_user() == {}


def test_user_file_parsed(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text(
        "toolbox_commands:\n"
        "  mine:\n"
        "    description: Mine\n"
        "    messages:\n"
        "    - role: user\n"
        "      content: |\n"
        "        Do %ARGS%\n",
        encoding="utf-8",
    )
    document = ConfigLoader(user_path=str(path)).load_user()
    assert document["toolbox_commands"]["mine"]["messages"][0]["content"] == "Do %ARGS%\n"


def test_broken_user_file_raises(tmp_path):
    path = tmp_path / "user.yaml"
    path.write_text("toolbox_commands: [\n", encoding="utf-8")
    with pytest.raises(MalformedConfigError) as exc_info:
        ConfigLoader(user_path=str(path)).load_user()
    assert exc_info.value.source == "user"


def test_missing_compiled_file_raises(tmp_path):
    loader = ConfigLoader(compiled_path=str(tmp_path / "missing.yaml"))
    with pytest.raises(MalformedConfigError) as exc_info:
        loader.load_compiled()
    assert exc_info.value.source == "compiled"


def test_parse_document_rejects_empty_compiled():
    with pytest.raises(MalformedConfigError):
        parse_document("", "compiled")
