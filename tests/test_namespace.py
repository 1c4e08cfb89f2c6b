import pytest

from rmqkit.namespace import without_namespace, wrap_namespace


def test_wrap_adds_prefix():
    assert wrap_namespace("ns", "topic") == "ns%topic"


@pytest.mark.parametrize("namespace,resource", [("", "topic"), ("  ", "topic"), ("ns", ""), ("ns", " ")])
def test_wrap_with_empty_part_returns_resource(namespace, resource):
    assert wrap_namespace(namespace, resource) == resource


def test_wrap_is_idempotent():
    once = wrap_namespace("ns", "topic")
    assert wrap_namespace("ns", once) == once


def test_round_trip():
    assert without_namespace(wrap_namespace("ns", "topic")) == "topic"


def test_without_namespace_keeps_retry_prefix():
    assert without_namespace("%RETRY%ns%group") == "%RETRY%group"


def test_without_namespace_keeps_dlq_prefix():
    assert without_namespace("%DLQ%ns%group") == "%DLQ%group"


@pytest.mark.parametrize("resource", ["", "plain", "%leading"])
def test_without_namespace_leaves_unnamespaced(resource):
    assert without_namespace(resource) == resource