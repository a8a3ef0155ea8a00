"""Unit tests for detail enrichment."""

import pytest

from nearby.models import NetworkError, ParseError, Place
from nearby.services.place_details import (
    PlaceDetails,
    PlaceDetailsService,
    apply_details,
    parse_page_details,
)


def make_places() -> list[Place]:
    return [
        Place(id=1, title="Ferry Building", distance_meters=120.0),
        Place(id=2, title="Coit Tower", distance_meters=950.2),
        Place(id=3, title="Lombard Street", distance_meters=1500.0),
    ]


class TestParsePageDetails:
    """Tests for mapping the detail response."""

    def test_full_page(self) -> None:
        payload = {
            "query": {
                "pages": {
                    "2": {
                        "pageid": 2,
                        "title": "Coit Tower",
                        "extract": "Coit Tower is a tower in San Francisco.",
                        "pageprops": {"wikibase-shortdesc": "Tower in San Francisco"},
                        "thumbnail": {"source": "https://upload.wikimedia.org/coit.jpg", "width": 200},
                    }
                }
            }
        }
        details = parse_page_details(payload)
        assert details[2].long_description == "Coit Tower is a tower in San Francisco."
        assert details[2].short_description == "Tower in San Francisco"
        assert details[2].image_url == "https://upload.wikimedia.org/coit.jpg"

    def test_missing_optional_fields(self) -> None:
        details = parse_page_details({"query": {"pages": {"1": {"pageid": 1, "title": "Ferry Building"}}}})
        assert details[1] == PlaceDetails(page_id=1)

    def test_shortdesc_alias(self) -> None:
        details = parse_page_details({"query": {"pages": {"1": {"pageprops": {"shortdesc": "Terminal"}}}}})
        assert details[1].short_description == "Terminal"

    def test_non_numeric_keys_skipped(self) -> None:
        details = parse_page_details({"query": {"pages": {"-1": {"missing": ""}, "abc": {}}}})
        assert list(details) == [-1]

    def test_missing_pages_raises_parse_error(self) -> None:
        with pytest.raises(ParseError):
            parse_page_details({"query": {}})


class TestApplyDetails:
    """Tests for merging details into places."""

    def test_merges_by_id_only(self) -> None:
        places = make_places()
        changed = apply_details(
            places,
            {
                2: PlaceDetails(page_id=2, long_description="A tower.", short_description="Tower"),
                99: PlaceDetails(page_id=99, long_description="Unknown page."),
            },
        )
        assert [place.id for place in changed] == [2]
        assert places[1].long_description == "A tower."
        assert places[1].short_description == "Tower"
        assert places[0].long_description == ""

    def test_never_touches_identity_fields(self) -> None:
        places = make_places()
        before = [(place.id, place.title, place.distance_meters) for place in places]
        apply_details(
            places,
            {place.id: PlaceDetails(page_id=place.id, long_description="x", image_url="https://img/x.jpg") for place in places},
        )
        assert [(place.id, place.title, place.distance_meters) for place in places] == before

    def test_absent_fields_leave_place_unchanged(self) -> None:
        places = make_places()
        places[0].short_description = "Ferry terminal"
        apply_details(places, {1: PlaceDetails(page_id=1)})
        assert places[0].short_description == "Ferry terminal"
        assert places[0].image_url is None

    def test_existing_image_not_overwritten(self) -> None:
        places = make_places()
        places[0].set_image("https://img/first.jpg")
        apply_details(places, {1: PlaceDetails(page_id=1, image_url="https://img/second.jpg")})
        assert places[0].image_url == "https://img/first.jpg"


class TestPlaceDetailsService:
    """Tests for PlaceDetailsService against the fake API."""

    @pytest.mark.asyncio
    async def test_single_batched_request(self, fake_api, wikipedia) -> None:
        fake_api.pages = {
            "1": {"extract": "Ferry terminal.", "thumbnail": {"source": "https://img/ferry.jpg"}},
            "3": {"extract": "Crooked street."},
        }
        places = make_places()
        service = PlaceDetailsService(wikipedia)

        details = await service.fetch_details(places)

        assert len(fake_api.requests) == 1
        params = fake_api.calls("details")[0].url.params
        assert params["pageids"] == "1|2|3"
        assert params["pithumbsize"] == "200"
        assert "extracts" in params["prop"]
        assert set(details) == {1, 3}
        assert details[1].image_url == "https://img/ferry.jpg"

    @pytest.mark.asyncio
    async def test_empty_set_makes_no_request(self, fake_api, wikipedia) -> None:
        service = PlaceDetailsService(wikipedia)
        assert await service.fetch_details([]) == {}
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_failure_raises_network_error(self, fake_api, wikipedia) -> None:
        fake_api.fail.add("details")
        service = PlaceDetailsService(wikipedia)
        with pytest.raises(NetworkError):
            await service.fetch_details(make_places())
