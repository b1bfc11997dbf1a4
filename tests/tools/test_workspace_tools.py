"""
Workspace/document tools.

Tests tool behavior including:
- Definitions generated from run() signatures and docstrings
- Owner scoping by acting identity
- Input validation through BaseTool.execute
- Notifier calls for mutations, and notifier failures not failing the tool
"""
import pytest
from unittest.mock import AsyncMock

from ideate_agent.core.interfaces import ResourceNotifier
from ideate_agent.tools.base import BaseTool
from ideate_agent.tools.workspace_tools import ResourceNotFound, WorkspaceToolset


@pytest.fixture
def notifier():
    mock = AsyncMock(spec=ResourceNotifier)
    return mock


@pytest.fixture
def tools(notifier):
    return {tool.name: tool for tool in WorkspaceToolset(notifier=notifier).tools()}


class TestDefinitions:
    def test_all_tools_present(self, tools):
        assert set(tools) == {
            "workspace_list",
            "workspace_create",
            "workspace_delete",
            "document_list",
            "document_create",
            "document_get",
            "document_update",
        }
        assert all(isinstance(t, BaseTool) for t in tools.values())

    def test_definition_from_signature(self, tools):
        definition = tools["document_create"].definition
        assert definition.description == "Create a document, optionally inside a workspace."
        assert definition.input_schema.required_fields == ["title"]
        assert set(definition.input_schema.field_descriptions) == {"title", "workspace_id", "content"}
        assert definition.input_schema.field_descriptions["title"] == "Title of the new document."

    def test_acting_identity_is_not_an_input_field(self, tools):
        for tool in tools.values():
            assert "acting_identity" not in tool.definition.input_schema.field_descriptions


class TestExecution:
    @pytest.mark.anyio
    async def test_workspace_lifecycle(self, tools, notifier):
        created = await tools["workspace_create"].execute({"name": "Launch"}, "alice")
        ws_id = created["data"]["id"]
        assert created["data"]["owner"] == "alice"

        listed = await tools["workspace_list"].execute({}, "alice")
        assert [w["id"] for w in listed["data"]] == [ws_id]

        deleted = await tools["workspace_delete"].execute({"workspace_id": ws_id}, "alice")
        assert deleted["data"] == {"deleted": ws_id}
        assert (await tools["workspace_list"].execute({}, "alice"))["data"] == []

        actions = [call.args[0].action for call in notifier.resource_changed.await_args_list]
        assert actions == ["created", "deleted"]

    @pytest.mark.anyio
    async def test_resources_are_scoped_to_owner(self, tools):
        created = await tools["workspace_create"].execute({"name": "Private"}, "alice")
        assert (await tools["workspace_list"].execute({}, "bob"))["data"] == []
        with pytest.raises(ResourceNotFound):
            await tools["workspace_delete"].execute({"workspace_id": created["data"]["id"]}, "bob")

    @pytest.mark.anyio
    async def test_document_create_get_update(self, tools):
        ws = await tools["workspace_create"].execute({"name": "Notes"}, "alice")
        ws_id = ws["data"]["id"]
        doc = await tools["document_create"].execute(
            {"title": "Plan", "workspace_id": ws_id, "content": "# Plan"}, "alice"
        )
        doc_id = doc["data"]["id"]

        await tools["document_update"].execute({"document_id": doc_id, "content": "# Plan v2"}, "alice")
        fetched = await tools["document_get"].execute({"document_id": doc_id}, "alice")
        assert fetched["data"]["content"] == "# Plan v2"
        assert fetched["data"]["title"] == "Plan"

        in_ws = await tools["document_list"].execute({"workspace_id": ws_id}, "alice")
        assert [d["id"] for d in in_ws["data"]] == [doc_id]

    @pytest.mark.anyio
    async def test_deleting_workspace_unfiles_documents(self, tools):
        ws = await tools["workspace_create"].execute({"name": "Tmp"}, "alice")
        doc = await tools["document_create"].execute({"title": "Kept", "workspace_id": ws["data"]["id"]}, "alice")
        await tools["workspace_delete"].execute({"workspace_id": ws["data"]["id"]}, "alice")
        fetched = await tools["document_get"].execute({"document_id": doc["data"]["id"]}, "alice")
        assert fetched["data"]["workspace_id"] is None

    @pytest.mark.anyio
    async def test_missing_and_unknown_fields_are_rejected(self, tools):
        with pytest.raises(ValueError, match="Missing required"):
            await tools["workspace_create"].execute({}, "alice")
        with pytest.raises(ValueError, match="Unexpected"):
            await tools["workspace_create"].execute({"name": "x", "colour": "red"}, "alice")

    @pytest.mark.anyio
    async def test_notifier_failure_does_not_fail_the_tool(self, tools, notifier):
        notifier.resource_changed.side_effect = RuntimeError("listener down")
        created = await tools["workspace_create"].execute({"name": "Still works"}, "alice")
        assert created["success"] is True


@pytest.mark.anyio
async def test_toolset_without_notifier():
    tools = {t.name: t for t in WorkspaceToolset().tools()}
    created = await tools["workspace_create"].execute({"name": "Quiet"}, "alice")
    assert created["success"] is True
