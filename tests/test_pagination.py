"""Tests for page parsing and the pagination walker."""

import logging

import pytest

from cf_resource_client.decoders import Organization, decode_organization
from cf_resource_client.errors import APIError, ResponseDecodeError
from cf_resource_client.pagination import Page, parse_page

BASE = "https://api.cf.example.com"


@pytest.fixture
def serve(session, make_response):
    """Route GETs by URL to canned payloads (or status codes)."""

    def _serve(routes):
        def _get(url, **kwargs):
            value = routes[url]
            if isinstance(value, int):
                return make_response(value, {"description": "boom"})
            return make_response(200, value)

        session.get.side_effect = _get

    return _serve


def _requested(session):
    return [c.args[0] for c in session.get.call_args_list]


class TestParsePage:
    def test_v2_shape(self):
        page = parse_page({"resources": [1, 2], "total_pages": 3, "next_url": "/v2/apps?page=2"})
        assert page == Page(resources=[1, 2], total_pages=3, next_url="/v2/apps?page=2")

    def test_v3_shape(self):
        page = parse_page(
            {
                "pagination": {
                    "total_pages": 2,
                    "next": {"href": "https://api.cf.example.com/v3/apps?page=2"},
                },
                "resources": [{"guid": "a"}],
            }
        )
        assert page.total_pages == 2
        assert page.next_url == "https://api.cf.example.com/v3/apps?page=2"

    def test_v3_last_page_has_no_next(self):
        page = parse_page({"pagination": {"total_pages": 1, "next": None}, "resources": []})
        assert page.next_url is None

    def test_empty_next_url_means_none(self):
        assert parse_page({"resources": [], "total_pages": 1, "next_url": ""}).next_url is None

    def test_missing_total_pages_defaults_to_one(self):
        assert parse_page({"resources": []}).total_pages == 1

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "text",
            {"resources": {"guid": "a"}},
            {"resources": [], "total_pages": "many"},
            {"resources": [], "next_url": 42},
        ],
    )
    def test_malformed_pages_rejected(self, payload):
        with pytest.raises(ResponseDecodeError):
            parse_page(payload)


class TestFetchAllPages:
    def test_two_page_scenario(self, walker, session, serve):
        serve(
            {
                f"{BASE}/p1": {"resources": [{"id": "a"}], "total_pages": 2, "next_url": "/p2"},
                f"{BASE}/p2": {"resources": [{"id": "b"}], "total_pages": 2, "next_url": ""},
            }
        )

        assert walker.fetch_all_pages("/p1") == [{"id": "a"}, {"id": "b"}]
        assert _requested(session) == [f"{BASE}/p1", f"{BASE}/p2"]

    @pytest.mark.parametrize("n_pages", [1, 2, 5])
    def test_concatenates_pages_in_order(self, walker, session, serve, n_pages):
        routes = {}
        for i in range(1, n_pages + 1):
            routes[f"{BASE}/v2/apps?page={i}"] = {
                "resources": [{"page": i, "n": 0}, {"page": i, "n": 1}],
                "total_pages": n_pages,
                "next_url": f"/v2/apps?page={i + 1}" if i < n_pages else None,
            }
        serve(routes)

        result = walker.fetch_all_pages("/v2/apps?page=1")

        assert result == [{"page": i, "n": n} for i in range(1, n_pages + 1) for n in (0, 1)]
        assert session.get.call_count == n_pages

    @pytest.mark.parametrize("total_pages", [0, 1])
    def test_single_page_issues_one_request(self, walker, session, serve, total_pages):
        serve(
            {
                f"{BASE}/v2/spaces": {
                    "resources": [{"id": "only"}] if total_pages else [],
                    "total_pages": total_pages,
                    "next_url": "/v2/spaces?page=2",
                }
            }
        )

        walker.fetch_all_pages("/v2/spaces")

        assert session.get.call_count == 1

    def test_missing_next_url_stops_early(self, walker, session, serve, caplog):
        serve(
            {
                f"{BASE}/v2/apps": {"resources": [1], "total_pages": 4, "next_url": "/v2/apps?page=2"},
                f"{BASE}/v2/apps?page=2": {"resources": [2], "total_pages": 4, "next_url": None},
            }
        )

        with caplog.at_level(logging.WARNING, logger="cf-page-walker"):
            result = walker.fetch_all_pages("/v2/apps")

        assert result == [1, 2]
        assert session.get.call_count == 2
        assert "claimed 4 page(s) but 2 were walked" in caplog.text

    def test_page_count_caps_walk_even_with_next_url(self, walker, session, serve, caplog):
        serve(
            {
                f"{BASE}/v2/apps": {"resources": [1], "total_pages": 2, "next_url": "/v2/apps?page=2"},
                f"{BASE}/v2/apps?page=2": {"resources": [2], "total_pages": 2, "next_url": "/v2/apps?page=3"},
            }
        )

        with caplog.at_level(logging.WARNING, logger="cf-page-walker"):
            result = walker.fetch_all_pages("/v2/apps")

        assert result == [1, 2]
        assert session.get.call_count == 2
        assert "left unfollowed" in caplog.text

    def test_consistent_listing_logs_no_warning(self, walker, serve, caplog):
        serve(
            {
                f"{BASE}/p1": {"resources": [1], "total_pages": 2, "next_url": "/p2"},
                f"{BASE}/p2": {"resources": [2], "total_pages": 2, "next_url": None},
            }
        )

        with caplog.at_level(logging.WARNING, logger="cf-page-walker"):
            walker.fetch_all_pages("/p1")

        assert caplog.records == []

    def test_duplicates_are_preserved(self, walker, serve):
        serve(
            {
                f"{BASE}/p1": {"resources": [{"id": "a"}], "total_pages": 2, "next_url": "/p2"},
                f"{BASE}/p2": {"resources": [{"id": "a"}], "total_pages": 2, "next_url": None},
            }
        )

        assert walker.fetch_all_pages("/p1") == [{"id": "a"}, {"id": "a"}]

    def test_error_mid_walk_discards_partial_results(self, walker, serve):
        serve(
            {
                f"{BASE}/p1": {"resources": [{"id": "a"}], "total_pages": 3, "next_url": "/p2"},
                f"{BASE}/p2": 500,
            }
        )

        with pytest.raises(APIError) as exc_info:
            walker.fetch_all_pages("/p1")

        assert exc_info.value.status_code == 500

    def test_v3_absolute_next_links(self, walker, session, serve):
        serve(
            {
                f"{BASE}/v3/apps": {
                    "pagination": {"total_pages": 2, "next": {"href": f"{BASE}/v3/apps?page=2"}},
                    "resources": [{"guid": "a"}],
                },
                f"{BASE}/v3/apps?page=2": {
                    "pagination": {"total_pages": 2, "next": None},
                    "resources": [{"guid": "b"}],
                },
            }
        )

        assert walker.fetch_all_pages("/v3/apps") == [{"guid": "a"}, {"guid": "b"}]

    def test_decoder_applied_to_every_record(self, walker, serve):
        serve(
            {
                f"{BASE}/v2/organizations": {
                    "resources": [
                        {"metadata": {"guid": "o1"}, "entity": {"name": "alpha"}},
                        {"metadata": {"guid": "o2"}, "entity": {"name": "beta"}},
                    ],
                    "total_pages": 1,
                }
            }
        )

        result = walker.fetch_all_pages("/v2/organizations", decoder=decode_organization)

        assert result == [Organization("o1", "alpha"), Organization("o2", "beta")]

    def test_decoder_failure_is_decode_error(self, walker, serve):
        serve({f"{BASE}/v2/organizations": {"resources": [{"entity": {}}], "total_pages": 1}})

        with pytest.raises(ResponseDecodeError):
            walker.fetch_all_pages("/v2/organizations", decoder=decode_organization)

    def test_iter_pages_yields_page_objects(self, walker, serve):
        serve(
            {
                f"{BASE}/p1": {"resources": [1], "total_pages": 2, "next_url": "/p2"},
                f"{BASE}/p2": {"resources": [2], "total_pages": 2},
            }
        )

        pages = list(walker.iter_pages("/p1"))

        assert [p.resources for p in pages] == [[1], [2]]

    def test_next_link_to_other_host_is_not_followed(self, walker, session, serve):
        serve(
            {
                f"{BASE}/v3/apps": {
                    "pagination": {"total_pages": 2, "next": {"href": "https://other.example.net/v3/apps?page=2"}},
                    "resources": [{"guid": "a"}],
                },
            }
        )

        with pytest.raises(ResponseDecodeError):
            walker.fetch_all_pages("/v3/apps")

        assert _requested(session) == [f"{BASE}/v3/apps"]
