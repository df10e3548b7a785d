from __future__ import annotations

import pytest

from wangku.errors import MalformedResponseError
from wangku.resolver import (
    EMPTY_REPLY_MESSAGE,
    FAILURE_PREFIX,
    ReplyContent,
    ReplyEmpty,
    ReplyFailure,
    extract_generated_text,
    resolve_chat_response,
    strip_code_fence,
)


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        ({"status": True, "data": {"msg": "dari data.msg"}}, "dari data.msg"),
        ({"status": True, "data": {"text": "dari data.text"}}, "dari data.text"),
        ({"status": True, "data": {"content": "dari data.content"}}, "dari data.content"),
        ({"status": True, "msg": "dari msg"}, "dari msg"),
        ({"status": True, "text": "dari text"}, "dari text"),
        ({"status": True, "reply": "dari reply"}, "dari reply"),
        ({"status": True, "message": "dari message"}, "dari message"),
        ({"status": True, "result": "dari result"}, "dari result"),
        ({"status": True, "answer": "dari answer"}, "dari answer"),
    ],
)
def test_each_reply_field_is_found(response, expected):
    assert resolve_chat_response(response) == ReplyContent(expected)


def test_priority_prefers_nested_msg_over_everything():
    response = {
        "status": True,
        "data": {"msg": "nested", "text": "nested text", "content": "nested content"},
        "msg": "top",
        "answer": "top answer",
    }

    assert resolve_chat_response(response) == ReplyContent("nested")


def test_blank_fields_are_skipped_in_priority_order():
    response = {"status": True, "data": {"msg": "   ", "text": ""}, "reply": "dipakai"}

    assert resolve_chat_response(response) == ReplyContent("dipakai")


def test_reply_value_is_returned_unmodified():
    text = "  Halo!\nSaldo kamu Rp500.000.  "
    assert resolve_chat_response({"status": True, "data": {"msg": text}}).render() == text


def test_empty_data_is_empty_success_not_failure():
    outcome = resolve_chat_response({"status": True, "data": {}})

    assert isinstance(outcome, ReplyEmpty)
    assert outcome.render() == EMPTY_REPLY_MESSAGE
    assert not outcome.render().startswith(FAILURE_PREFIX)


@pytest.mark.parametrize(
    "data",
    [{"msg": ""}, {"msg": "", "text": "  "}, {"msg": None, "content": "", "extra": ""}],
)
def test_only_empty_fields_is_empty_success(data):
    outcome = resolve_chat_response({"status": True, "data": data})

    assert isinstance(outcome, ReplyEmpty)
    assert outcome.render() == EMPTY_REPLY_MESSAGE


def test_unknown_nested_reply_object_is_shown_as_json():
    outcome = resolve_chat_response({"status": True, "data": {"foo": "bar"}})

    assert outcome == ReplyContent('{"foo": "bar"}')


@pytest.mark.parametrize(
    ("response", "detail"),
    [
        ({"status": False, "msg": "Limit tercapai", "message": "x"}, "Limit tercapai"),
        ({"status": False, "message": "Key tidak valid"}, "Key tidak valid"),
        ({"status": False, "error": "internal"}, "internal"),
    ],
)
def test_failure_uses_most_specific_field(response, detail):
    outcome = resolve_chat_response(response)

    assert outcome == ReplyFailure(detail)
    assert outcome.render() == f"{FAILURE_PREFIX}{detail}"


def test_failure_without_detail_falls_back_to_full_response():
    outcome = resolve_chat_response({"status": False, "code": 500})

    assert isinstance(outcome, ReplyFailure)
    assert '"code": 500' in outcome.detail


@pytest.mark.parametrize("status", ["true", 1, None])
def test_only_boolean_true_counts_as_success(status):
    assert isinstance(resolve_chat_response({"status": status, "msg": "x"}), ReplyFailure)


def test_non_object_response_is_malformed():
    with pytest.raises(MalformedResponseError):
        resolve_chat_response(["not", "an", "object"])


def test_strip_code_fence():
    assert strip_code_fence("```html\n<p>Hai</p>\n```") == "<p>Hai</p>"
    assert strip_code_fence("<p>tanpa fence</p>") == "<p>tanpa fence</p>"


def test_extract_generated_text_path_and_missing_pieces():
    body = {"candidates": [{"content": {"parts": [{"text": "```html\n<p>OK</p>\n```"}]}}]}

    assert extract_generated_text(body) == "<p>OK</p>"
    assert extract_generated_text({"candidates": []}) == ""
    with pytest.raises(MalformedResponseError):
        extract_generated_text("oops")
