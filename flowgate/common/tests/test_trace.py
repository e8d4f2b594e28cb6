import pytest

from flowgate.common.core.trace import TraceParent, generate_span_id

HEADER = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"


def test_generate_has_fresh_trace_id():
    first = TraceParent.generate()
    second = TraceParent.generate()

    assert len(first.trace_id) == 32
    assert first.trace_id != second.trace_id
    assert first.parent_id is None


def test_generate_span_id_is_16_hex():
    span_id = generate_span_id()

    assert len(span_id) == 16
    int(span_id, 16)


def test_parse_valid_header():
    trace = TraceParent.parse(HEADER)

    assert trace.trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert trace.parent_id == "00f067aa0ba902b7"
    assert trace.sampled is True
    assert str(trace) == HEADER


def test_parse_unsampled_and_uppercase():
    trace = TraceParent.parse(HEADER.upper()[:-2] + "00")

    assert trace.trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert trace.sampled is False
    assert str(trace).endswith("-00")


@pytest.mark.parametrize(
    "header",
    [
        "",
        "garbage",
        "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7",
        "ff-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01",
        "00-00000000000000000000000000000000-00f067aa0ba902b7-01",
        "00-4bf92f3577b34da6a3ce929d0e0e4736-0000000000000000-01",
    ],
)
def test_parse_rejects_invalid_headers(header):
    with pytest.raises(ValueError):
        TraceParent.parse(header)


def test_child_keeps_trace_and_replaces_parent():
    parent = TraceParent.parse(HEADER)

    child = parent.child()
    explicit = parent.child("1111111111111111")

    assert child.trace_id == parent.trace_id
    assert child.parent_id != parent.parent_id
    assert len(child.parent_id) == 16
    assert explicit.parent_id == "1111111111111111"


def test_str_without_parent_uses_zero_span():
    trace = TraceParent(trace_id="a" * 32)

    assert str(trace) == f"00-{'a' * 32}-{'0' * 16}-01"
