import pytest

from legalchat.services.ai_backend import infer_response_kind, parse_ai_response


@pytest.mark.parametrize(
    "payload, kind",
    [
        ({"document_id": "d", "agent_response": "x", "session_id": "s"}, "upload_and_chat"),
        ({"response": "x", "session_id": "s"}, "agent_chat"),
        ({"response": "x", "session_id": "s", "document_id": "d"}, "chat"),
        ({"response": "x"}, "chat"),
    ],
)
def test_infer_response_kind(payload, kind):
    assert infer_response_kind(payload) == kind


def test_explicit_kind_wins_over_structure():
    response = parse_ai_response({"response": "x"}, kind="agent_chat")
    assert response.kind == "agent_chat"
    assert response.session_id is None


def test_tag_survives_dump_and_parse():
    original = parse_ai_response({"document_id": "d", "agent_response": "a", "session_id": "s"})
    restored = parse_ai_response(original.model_dump(mode="json"))
    assert restored.kind == "upload_and_chat"
    assert restored.document_id == "d"


def test_unknown_fields_are_kept():
    response = parse_ai_response({"response": "x", "session_id": "s", "trace": {"id": 1}}, kind="agent_chat")
    assert response.model_dump()["trace"] == {"id": 1}


def test_numeric_ids_become_text():
    response = parse_ai_response({"document_id": 17, "agent_response": "a", "session_id": 5})
    assert response.document_id == "17"
    assert response.session_id == "5"


def test_null_lists_are_accepted():
    response = parse_ai_response({"response": "x", "session_id": "s", "intermediate_steps": None}, kind="agent_chat")
    assert response.intermediate_steps is None
