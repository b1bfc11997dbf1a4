import pytest

from ideate_agent.protocol.parsers.stream_gate import StreamGate


@pytest.fixture
def gate():
    return StreamGate(["open_questions", "tool_use"])


def test_plain_text_is_fully_releasable(gate):
    text = "Hello there, nothing special here."
    assert gate.safe_cut(text) == len(text)
    assert gate.flush_limit(text) == len(text)


def test_partial_tag_start_at_tail_is_held(gate):
    text = "Let me ask you something <open_qu"
    assert gate.safe_cut(text) == text.index("<open_qu")


def test_lone_angle_bracket_at_tail_is_held(gate):
    assert gate.safe_cut("a <") == 2


def test_complete_tag_name_without_bracket_close_is_held(gate):
    text = "calling <tool_use"
    assert gate.safe_cut(text) == text.index("<tool_use")


def test_minimum_cut_across_guarded_strings():
    gate = StreamGate(["ab"], extra_prefixes=["xyz"])
    # "<a" is guarded by "<ab", "xy" by "xyz"; the tail only ends with "xy"
    assert gate.safe_cut("hello xy") == len("hello ")
    assert gate.safe_cut("hello <a") == len("hello ")


def test_angle_bracket_in_the_middle_is_released(gate):
    text = "if a < b then"
    assert gate.safe_cut(text) == len(text)


def test_find_tag_start_returns_earliest_complete_opening(gate):
    text = 'pre <tool_use>{"name": "x"}</tool_use> <open_questions>'
    assert gate.find_tag_start(text) == 4


def test_find_tag_start_none_without_complete_opening(gate):
    assert gate.find_tag_start("pre <open_questions") is None


def test_flush_limit_holds_everything_from_complete_opening(gate):
    text = "Here you go <open_questions>[{\"id\": \"q1\""
    assert gate.flush_limit(text) == text.index("<open_questions>")


def test_released_prefix_never_contains_a_guarded_opening():
    gate = StreamGate(["open_questions", "suggested_responses", "tool_use"])
    full = 'Some text <suggested_responses>[{"label": "Yes", "value": "yes"}]</suggested_responses>'
    # feed the text one character at a time like a stream would
    for end in range(1, len(full) + 1):
        released = full[: gate.flush_limit(full[:end])]
        assert "<suggested_responses" not in released
        assert not released.endswith("<")


def test_extra_prefixes_are_guarded_without_duplicates():
    gate = StreamGate(["tool_use"], extra_prefixes=["<tool_use", "<thinking"])
    assert gate.prefixes == ["<tool_use", "<thinking"]
    assert gate.openings == ["<tool_use>"]
