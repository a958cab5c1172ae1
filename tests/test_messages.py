import pytest
from pydantic import ValidationError

from groq_completion.messages import (
    AssistantMessage,
    FunctionCall,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
    assistant,
    parse_message,
    tool_result,
    user,
)


def test_user_message_omits_absent_fields():
    assert UserMessage(content="hi").model_dump_json(exclude_none=True) == '{"role":"user","content":"hi"}'


def test_system_message_with_name_encodes_in_field_order():
    msg = SystemMessage(content="Be brief.", name="policy")
    assert msg.model_dump_json(exclude_none=True) == '{"role":"system","content":"Be brief.","name":"policy"}'


def test_assistant_tool_calls_encode_byte_for_byte():
    msg = AssistantMessage(
        tool_calls=[ToolCall(id="call_1", function=FunctionCall(name="get_weather", arguments='{"city":"Oslo"}'))]
    )
    expected = (
        '{"role":"assistant","tool_calls":[{"id":"call_1","type":"function",'
        '"function":{"name":"get_weather","arguments":"{\\"city\\":\\"Oslo\\"}"}}]}'
    )
    assert msg.model_dump_json(exclude_none=True) == expected


def test_tool_message_payload_carries_linkage_id():
    assert tool_result("call_1", "12C").to_payload() == {
        "role": "tool",
        "content": "12C",
        "tool_call_id": "call_1",
    }


def test_tool_message_requires_tool_call_id():
    with pytest.raises(ValidationError):
        ToolMessage(content="12C")


def test_assistant_message_requires_content_or_tool_calls():
    with pytest.raises(ValidationError):
        AssistantMessage()
    assert assistant("ok").to_payload() == {"role": "assistant", "content": "ok"}


def test_user_message_requires_content():
    with pytest.raises(ValidationError):
        UserMessage()


def test_variants_reject_fields_of_other_variants():
    with pytest.raises(ValidationError):
        UserMessage(content="hi", tool_calls=[])


def test_parse_message_dispatches_on_role():
    msg = parse_message({"role": "tool", "content": "x", "tool_call_id": "call_9"})
    assert isinstance(msg, ToolMessage)
    assert isinstance(parse_message({"role": "user", "content": "hi"}), UserMessage)


def test_parse_message_rejects_unknown_role():
    with pytest.raises(ValidationError):
        parse_message({"role": "narrator", "content": "x"})


def test_messages_are_frozen():
    msg = user("hi")
    with pytest.raises(ValidationError):
        msg.content = "changed"
