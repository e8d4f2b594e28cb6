"""
Where: flowgate/gateway/tests/test_status.py
What: Status name -> HTTP code mapping.
Why: The table is part of the wire contract; unknown names must stay total (500).
"""

import pytest

from flowgate.gateway.core.status import HTTP_STATUS_BY_NAME, StatusName, map_status

EXPECTED = {
    "INVALID_ARGUMENT": 400,
    "FAILED_PRECONDITION": 400,
    "OUT_OF_RANGE": 400,
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "ALREADY_EXISTS": 409,
    "ABORTED": 409,
    "RESOURCE_EXHAUSTED": 429,
    "CANCELLED": 499,
    "UNAVAILABLE": 503,
    "DATA_LOSS": 500,
    "UNKNOWN": 500,
    "INTERNAL": 500,
    "UNIMPLEMENTED": 501,
    "DEADLINE_EXCEEDED": 504,
}


@pytest.mark.parametrize("name,code", sorted(EXPECTED.items()))
def test_map_status_documented_codes(name, code):
    assert map_status(name) == code
    assert map_status(StatusName(name)) == code


def test_table_covers_every_status_name():
    assert {s.value for s in HTTP_STATUS_BY_NAME} == set(EXPECTED)
    assert {s.value for s in StatusName} == set(EXPECTED)


@pytest.mark.parametrize("name", ["TEAPOT", "", "not_found", None])
def test_map_status_unknown_falls_back_to_500(name):
    assert map_status(name) == 500


def test_map_status_is_stable_across_calls():
    assert map_status("NOT_FOUND") == map_status("NOT_FOUND") == 404
    assert map_status("TEAPOT") == map_status("TEAPOT") == 500
