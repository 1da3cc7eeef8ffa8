"""
Unit tests for page/limit parsing and pagination metadata.
"""
import pytest

from arena.errors import ValidationError
from arena.pagination import MAX_LIMIT, MAX_PAGE, PageRequest, parse_limit, parse_page_args


class TestPageRequest:

    def test_offset(self):
        assert PageRequest(page=1, limit=10).offset == 0
        assert PageRequest(page=3, limit=7).offset == 14

    @pytest.mark.parametrize("total,limit,pages", [
        (0, 10, 0),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (25, 5, 5),
    ])
    def test_pages_is_ceiling(self, total, limit, pages):
        meta = PageRequest(page=1, limit=limit).meta(total)
        assert meta == {'current': 1, 'pages': pages, 'total': total}


class TestParsePageArgs:

    def test_defaults(self):
        page = parse_page_args({})
        assert (page.page, page.limit) == (1, 10)

    def test_endpoint_default_limit(self):
        assert parse_page_args({}, default_limit=20).limit == 20

    def test_explicit_values(self):
        page = parse_page_args({'page': '2', 'limit': '5'})
        assert (page.page, page.limit) == (2, 5)

    def test_limit_is_capped(self):
        assert parse_page_args({'limit': '1000'}).limit == MAX_LIMIT

    def test_page_upper_bound(self):
        assert parse_page_args({'page': str(MAX_PAGE)}).page == MAX_PAGE
        with pytest.raises(ValidationError, match='at most'):
            parse_page_args({'page': str(MAX_PAGE + 1)})
        with pytest.raises(ValidationError):
            parse_page_args({'page': '100000000000000000000'})

    @pytest.mark.parametrize("args", [
        {'page': '0'},
        {'page': '-1'},
        {'page': 'abc'},
        {'limit': '0'},
        {'limit': '2.5'},
    ])
    def test_invalid_values_rejected(self, args):
        with pytest.raises(ValidationError):
            parse_page_args(args)


class TestParseLimit:

    def test_default_and_cap(self):
        assert parse_limit({}, 5) == 5
        assert parse_limit({'limit': '3'}, 5) == 3
        assert parse_limit({'limit': '500'}, 5) == MAX_LIMIT
