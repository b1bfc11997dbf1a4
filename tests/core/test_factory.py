import pytest

from ideate_agent.context.memory_store import MemoryConversationLog
from ideate_agent.core.factory import ServiceFactory, load
from ideate_agent.core.tool_registry import ToolRegistry
from ideate_agent.protocol.service.agent_service import AgentService
from ideate_agent.providers.dummy.provider import EchoProvider
from ideate_agent.tools.workspace_tools import LoggingNotifier

WORKSPACE_ENTRY = {"name": "workspace", "impl": "ideate_agent.tools.workspace_tools.WorkspaceToolset", "args": {}}


def test_load_filters_unknown_kwargs():
    provider = load("ideate_agent.providers.dummy.provider.EchoProvider", chunk_size=3, unrelated=True)
    assert isinstance(provider, EchoProvider)
    assert provider.chunk_size == 3


def test_load_rejects_bad_paths():
    with pytest.raises(ImportError):
        load("ideate_agent.nope.Thing")
    with pytest.raises(AttributeError):
        load("ideate_agent.providers.dummy.provider.Nope")
    with pytest.raises(ValueError):
        load("")


def test_registry_filters_enabled_tools_and_shares_notifier():
    notifier = LoggingNotifier()
    registry = ToolRegistry([WORKSPACE_ENTRY], ["workspace_list", "document_get"], notifier=notifier)
    assert set(registry.all()) == {"workspace_list", "document_get"}
    assert registry.get("workspace_list").notifier is notifier
    # tools of one toolset share one repository
    assert registry.get("workspace_list").repository is registry.get("document_get").repository


def test_registry_enables_whole_toolset_by_entry_name():
    registry = ToolRegistry([WORKSPACE_ENTRY], ["workspace"])
    assert len(registry.all()) == 7


def test_registry_skips_invalid_entries():
    registry = ToolRegistry(
        [{"name": "broken", "impl": "ideate_agent.tools.missing.Tool"}, WORKSPACE_ENTRY],
        ["workspace_list"],
    )
    assert list(registry.all()) == ["workspace_list"]


def test_factory_builds_agent_service_from_config():
    config = {
        "limits": {"max_tool_iterations": 2, "history_limit": 6, "tool_timeout_sec": 3},
        "generation": {"model": "m1", "turn_limit": 1},
        "system": {"prompt": "Be kind.", "acting_identity": "dana"},
        "blocks": {"enabled": ["suggested_responses"]},
        "providers": {
            "generation": {"impl": "ideate_agent.providers.dummy.provider.EchoProvider", "args": {}},
            "conversation_log": {"impl": "ideate_agent.context.memory_store.MemoryConversationLog"},
            "notifier": {"impl": "ideate_agent.tools.workspace_tools.LoggingNotifier"},
        },
        "tools": {"enabled": ["workspace_list"], "registry": [WORKSPACE_ENTRY]},
    }
    factory = ServiceFactory(config)
    svc = factory.get_agent_service()

    assert isinstance(svc, AgentService)
    assert isinstance(svc.log, MemoryConversationLog)
    assert svc.acting_identity == "dana"
    assert svc.dispatcher.timeout == 3
    assert svc.orchestrator.max_tool_iterations == 2
    assert svc.orchestrator.block_tags == ["suggested_responses"]
    assert svc.system_instructions.startswith("Be kind.")
    assert "workspace_list" in svc.system_instructions
    assert [t["name"] for t in svc.list_tools()] == ["workspace_list"]
    assert factory.get_provider() is factory.get_provider()
