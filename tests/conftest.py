import pytest

from customization.config import merge_documents
from customization.engine import Customization
from customization.logger import configure_logger


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    configure_logger(enabled=False, log_directory=str(tmp_path / "logs"))
    yield
    configure_logger(enabled=False)


@pytest.fixture(autouse=True)
def reset_engine():
    Customization.clear()
    yield
    Customization.clear()


@pytest.fixture
def compiled_doc():
    return {
        "GREETING": "Hello from %NAME%",
        "CD_INSTRUCTIONS": "Answer in the user's language.",
        "PROMPT_DEFAULT": "You are a coding assistant.\n  Keep the indent.\n",
        "PROMPT_AGENT": "Agent mode.\n%CD_INSTRUCTIONS%\n%WORKSPACE_INFO%\n",
        "system_prompts": {
            "default": {"text": "%PROMPT_DEFAULT%"},
            "agentic_tools": {"text": "%PROMPT_AGENT%", "show": "never"},
        },
        "subchat_tool_parameters": {
            "locate": {
                "subchat_model_type": "thinking",
                "subchat_tokens_for_rag": 150000,
                "subchat_n_ctx": 200000,
                "subchat_max_new_tokens": 10000,
                "subchat_reasoning_effort": "low",
            },
        },
        "code_lens": {
            "open_chat": {"label": "Open Chat", "auto_submit": False, "new_tab": True},
            "explain": {
                "label": "Explain",
                "auto_submit": True,
                "messages": [
                    {"role": "user", "content": "@file %CURRENT_FILE%:%CURSOR_LINE%\n%CODE_SELECTION%\n"},
                ],
            },
        },
        "toolbox_commands": {
            "shorter": {
                "selection_needed": [1, 50],
                "description": "Make code shorter",
                "messages": [
                    {
                        "role": "user",
                        "content": "@file %CURRENT_FILE%:%CURSOR_LINE%\nRewrite shorter\n```\n%CODE_SELECTION%\n```\n",
                    },
                    {"role": "cd_instruction", "content": "%CD_INSTRUCTIONS%"},
                ],
            },
            "ask": {
                "description": "Ask about the project",
                "messages": [{"role": "user", "content": "%ARGS%"}],
            },
            "help": {"description": "Show available commands", "messages": []},
        },
    }


@pytest.fixture
def config(compiled_doc):
    return merge_documents(compiled_doc)


@pytest.fixture
def editor_ctx():
    return {
        "CURRENT_FILE": "src/main.py",
        "CURSOR_LINE": 10,
        "CODE_SELECTION": "def f(x):\n    return x + 1",
    }
