import pytest

from hrms.utils.pagination import PageParams, clamp_int, contains_pattern, paginated


@pytest.mark.parametrize(
    "raw,expected",
    [(None, 10), ("", 10), ("abc", 10), ("0", 1), ("-4", 1), ("25", 25), ("500", 100)],
)
def test_limit_is_clamped(raw, expected):
    assert PageParams(limit=raw).limit == expected


@pytest.mark.parametrize("raw,expected", [(None, 1), ("x", 1), ("0", 1), ("3", 3), ("5000", 1000)])
def test_page_is_clamped(raw, expected):
    assert PageParams(page=raw).page == expected


def test_offset_follows_page_and_limit():
    assert PageParams(page="3", limit="20").offset == 40


def test_clamp_int_accepts_ints():
    assert clamp_int(7, default=1, minimum=1, maximum=5) == 5


def test_paginated_envelope():
    body = paginated("employees", [{"id": 1}], total=21, params=PageParams(page="2", limit="10"))
    assert body == {
        "status": "success",
        "data": {
            "employees": [{"id": 1}],
            "pagination": {"total": 21, "page": 2, "limit": 10, "pages": 3},
        },
    }


@pytest.mark.parametrize(
    "raw,expected",
    [("  Nov ", "%nov%"), ("%", "%\\%%"), ("a_b", "%a\\_b%"), ("50\\%", "%50\\\\\\%%")],
)
def test_contains_pattern_escapes_wildcards(raw, expected):
    assert contains_pattern(raw) == expected
