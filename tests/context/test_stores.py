import pytest

from ideate_agent.context.memory_store import MemoryConversationLog
from ideate_agent.context.sqlite_store import SqliteConversationLog
from ideate_agent.core.types import ConversationTurn, Role, ToolCallRecord


@pytest.fixture(params=["memory", "sqlite"])
def conversation_log(request, tmp_path):
    if request.param == "memory":
        yield MemoryConversationLog()
    else:
        log = SqliteConversationLog(f"sqlite:///{tmp_path / 'turns.db'}")
        yield log
        log.close()


@pytest.mark.anyio
async def test_append_and_list_preserve_order(conversation_log):
    call = ToolCallRecord(name="workspace_list", input={}, output='{"success": true, "data": []}')
    await conversation_log.append("c1", ConversationTurn(role=Role.USER, content="hi", id="u1"))
    await conversation_log.append(
        "c1", ConversationTurn(role=Role.ASSISTANT, content="hello", id="a1", tool_calls=[call])
    )

    turns = await conversation_log.list("c1")

    assert [t.id for t in turns] == ["u1", "a1"]
    assert turns[1].role is Role.ASSISTANT
    assert turns[1].tool_calls == [call]


@pytest.mark.anyio
async def test_unknown_conversation_is_empty(conversation_log):
    assert await conversation_log.list("nope") == []
    assert await conversation_log.clear("nope") == 0


@pytest.mark.anyio
async def test_clear_only_touches_one_conversation(conversation_log):
    for cid in ("c1", "c1", "c2"):
        await conversation_log.append(cid, ConversationTurn(role=Role.USER, content=cid))

    assert await conversation_log.clear("c1") == 2
    assert await conversation_log.list("c1") == []
    assert len(await conversation_log.list("c2")) == 1
    assert await conversation_log.list_conversations() == ["c2"]


@pytest.mark.anyio
async def test_listed_turns_are_not_affected_by_later_appends():
    log = MemoryConversationLog()
    await log.append("c1", ConversationTurn(role=Role.USER, content="one"))
    snapshot = await log.list("c1")
    await log.append("c1", ConversationTurn(role=Role.ASSISTANT, content="two"))
    assert len(snapshot) == 1


@pytest.mark.anyio
async def test_sqlite_in_memory_dsn():
    log = SqliteConversationLog("sqlite:///:memory:")
    await log.append("c1", ConversationTurn(role=Role.USER, content="hi"))
    assert (await log.list("c1"))[0].content == "hi"
    log.close()
