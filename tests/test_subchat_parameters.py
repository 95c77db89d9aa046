from customization.config import DEFAULT_SUBCHAT_PARAMETERS, ReasoningEffort, merge_documents
from customization.subchat import SubchatParameterResolver


def test_configured_tool(config):
    params = SubchatParameterResolver().resolve("locate", config)
    assert params.tool_name == "locate"
    assert params.model_type == "thinking"
    assert params.tokens_for_rag == 150000
    assert params.n_ctx == 200000
    assert params.max_new_tokens == 10000
    assert params.reasoning_effort == ReasoningEffort.LOW


def test_unknown_tool_gets_default_record(config):
    params = SubchatParameterResolver().resolve("cat", config)
    assert params.tool_name == "cat"
    assert params.model_type == DEFAULT_SUBCHAT_PARAMETERS.model_type
    assert params.model_type != "thinking"
    assert params.reasoning_effort == ReasoningEffort.LOW
    assert params.max_new_tokens < params.n_ctx
    assert params.n_ctx <= config.subchat_parameters["locate"].n_ctx


def test_default_record_is_not_modified(config):
    SubchatParameterResolver().resolve("cat", config)
    assert DEFAULT_SUBCHAT_PARAMETERS.tool_name == ""


def test_partial_entry_fills_missing_fields_from_default(compiled_doc):
    user = {"subchat_tool_parameters": {"deep_think": {"subchat_reasoning_effort": "high"}}}
    config = merge_documents(compiled_doc, user)
    params = SubchatParameterResolver().resolve("deep_think", config)
    assert params.reasoning_effort == ReasoningEffort.HIGH
    assert params.n_ctx == DEFAULT_SUBCHAT_PARAMETERS.n_ctx


def test_user_entry_replaces_compiled_entry(compiled_doc):
    user = {"subchat_tool_parameters": {"locate": {"subchat_model_type": "light"}}}
    config = merge_documents(compiled_doc, user)
    params = SubchatParameterResolver().resolve("locate", config)
    assert params.model_type == "light"
    # compiled fields are not carried over
    assert params.n_ctx == DEFAULT_SUBCHAT_PARAMETERS.n_ctx


def test_has_override_and_list_tools(config):
    resolver = SubchatParameterResolver()
    assert resolver.has_override("locate", config)
    assert not resolver.has_override("cat", config)
    assert resolver.list_tools(config) == ["locate"]


def test_describe(config):
    described = SubchatParameterResolver().describe(config)
    assert described["locate"]["subchat_reasoning_effort"] == "low"
    assert described["locate"]["subchat_n_ctx"] == 200000
