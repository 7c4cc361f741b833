"""
Integration tests for the hybrid location engine
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlmodel import select

from app.cli.seed_commands import seed_locations
from app.models.location import City, LocationCache
from app.models.user import User
from app.schemas.location import SuggestionSource

COUNTRIES = [
    {
        "name": "Lithuania",
        "code": "LT",
        "states": [
            {
                "name": "Kaunas County",
                "cities": [
                    {"name": "Kaunas", "lat": 54.8985, "lng": 23.9036, "pop": 298753},
                    {"name": "Kaišiadorys", "lat": 54.8667, "lng": 24.45, "pop": 7634},
                ],
            }
        ],
    },
    {
        "name": "Latvia",
        "code": "LV",
        "states": [
            {
                "name": "Vidzeme",
                "cities": [
                    {"name": "Valmiera", "lat": 57.5384, "lng": 25.4263, "pop": 23050},
                    {"name": "Cēsis", "pop": 15000},
                ],
            }
        ],
    },
]


@pytest_asyncio.fixture
async def cities(db_session):
    await seed_locations(db_session, COUNTRIES)
    result = await db_session.exec(select(City))
    return {city.name: city for city in result.all()}


@pytest.mark.asyncio
async def test_short_query_returns_empty(location_service, places):
    result = await location_service.get_suggestions("r")

    assert result.data == []
    assert result.source == "none"
    assert result.query_length == 1
    assert places.autocomplete_calls == 0


@pytest.mark.asyncio
async def test_config_match_ranks_first(location_service):
    result = await location_service.get_suggestions("riga")

    assert result.data[0].id == "config_riga"
    assert result.data[0].source == SuggestionSource.CONFIG
    assert result.config_count == 1
    assert result.region == "baltic"
    # Provider duplicate of the gazetteer entry is dropped
    assert [s.main_text.lower() for s in result.data].count("riga") == 1
    assert result.source == "hybrid"


@pytest.mark.asyncio
async def test_no_match_anywhere(location_service):
    result = await location_service.get_suggestions("xx")

    assert result.data == []
    assert result.source == "none"
    assert result.total_results == 0


@pytest.mark.asyncio
async def test_local_and_external_tiers(location_service, cities, places):
    result = await location_service.get_suggestions("kaunas")

    assert result.local_count == 1
    assert result.data[0].id == f"city_{cities['Kaunas'].id}"
    assert result.data[0].secondary_text == "Kaunas County, Lithuania"
    assert result.total_results == 1
    assert places.autocomplete_calls >= 1


@pytest.mark.asyncio
async def test_external_not_called_when_budget_filled(location_service, places):
    result = await location_service.get_suggestions("latvia", limit=3)

    assert result.total_results == 3
    assert result.config_count == 3
    assert places.autocomplete_calls == 0


@pytest.mark.asyncio
async def test_suggestions_are_cached(location_service, places, db_session):
    first = await location_service.get_suggestions("riga")
    calls = places.autocomplete_calls

    second = await location_service.get_suggestions("riga")

    assert places.autocomplete_calls == calls
    assert second.model_dump_json() == first.model_dump_json()

    result = await db_session.exec(select(LocationCache))
    rows = result.all()
    assert len(rows) == 1
    assert rows[0].type == "autocomplete"


@pytest.mark.asyncio
async def test_expired_cache_is_ignored(location_service, places, db_session):
    await location_service.get_suggestions("riga")
    result = await db_session.exec(select(LocationCache))
    row = result.one()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db_session.add(row)
    await db_session.commit()
    calls = places.autocomplete_calls

    await location_service.get_suggestions("riga")

    assert places.autocomplete_calls > calls


@pytest.mark.asyncio
async def test_failing_provider_is_absorbed(location_service, places):
    async def broken(*args, **kwargs):
        raise RuntimeError("provider down")

    places.autocomplete = broken
    result = await location_service.get_suggestions("riga")

    assert result.data[0].id == "config_riga"
    assert result.external_count == 0


@pytest.mark.asyncio
async def test_geocode_from_gazetteer_alias(location_service, places):
    result = await location_service.geocode_address("jurmala")

    assert result.source == "config_geocoding"
    assert result.city == "Jūrmala"
    assert result.latitude == pytest.approx(56.9681)
    assert result.region == "baltic"
    assert places.geocode_calls == 0


@pytest.mark.asyncio
async def test_geocode_prefers_external_over_local(location_service, places, cities):
    places.geocode_results["valmiera"] = {
        "latitude": 57.54,
        "longitude": 25.43,
        "formatted_address": "Valmiera, Latvia",
        "place_id": "gp_valmiera",
    }

    result = await location_service.geocode_address("Valmiera")

    assert result.source == "external_geocoding"
    assert result.place_id == "gp_valmiera"


@pytest.mark.asyncio
async def test_geocode_falls_back_to_local(location_service, places, cities):
    result = await location_service.geocode_address("Valmiera")

    assert places.geocode_calls == 1
    assert result.source == "local_geocoding"
    assert result.city_id == cities["Valmiera"].id
    assert result.country == "Latvia"


@pytest.mark.asyncio
async def test_geocode_skips_cities_without_coordinates(location_service, cities):
    assert await location_service.geocode_address("Cēsis") is None


@pytest.mark.asyncio
async def test_geocode_cached(location_service, places, cities):
    await location_service.geocode_address("Valmiera")
    await location_service.geocode_address("Valmiera")

    assert places.geocode_calls == 1


@pytest.mark.asyncio
async def test_popular_locations_config_then_local(location_service, cities, db_session):
    db_session.add(User(name="Seller", email="seller@example.com", city_id=cities["Valmiera"].id))
    await db_session.commit()

    config_total = len(location_service.config.popular_locations)
    result = await location_service.get_popular_locations(limit=config_total + 2)

    priorities = [item["priority"] for item in result.data if item["source"] == "config"]
    assert priorities == sorted(priorities, reverse=True)
    assert result.data[0]["id"] == "config_riga"

    local = [item for item in result.data if item["source"] == "local"]
    assert local[0]["name"] == "Valmiera"
    assert local[0]["users_count"] == 1
    assert result.source == "hybrid"


@pytest.mark.asyncio
async def test_popular_locations_config_only(location_service):
    result = await location_service.get_popular_locations(limit=3)

    assert [item["name"] for item in result.data] == ["Riga", "Latvia", "Vilnius"]
    assert result.source == "config"


@pytest.mark.asyncio
async def test_enrich_local_city(location_service, cities):
    city = cities["Kaunas"]
    enriched = await location_service.validate_and_enrich_location({"local_id": f"city_{city.id}"})

    assert enriched["source"] == "local_enriched"
    assert enriched["formatted_address"] == "Kaunas, Kaunas County, Lithuania"
    assert enriched["latitude"] == pytest.approx(54.8985)


@pytest.mark.asyncio
async def test_enrich_external_place(location_service, places):
    places.details["gp_kaunas"] = {
        "formatted_address": "Kaunas, Lithuania",
        "latitude": 54.9,
        "longitude": 23.9,
        "address_components": [],
        "types": ["locality"],
    }

    enriched = await location_service.validate_and_enrich_location({"source": "external", "place_id": "gp_kaunas"})

    assert enriched["source"] == "external_enriched"
    assert enriched["formatted_address"] == "Kaunas, Lithuania"
    assert "enriched_at" in enriched


@pytest.mark.asyncio
async def test_enrich_config_passthrough(location_service):
    data = {"source": "config", "id": "config_riga", "main_text": "Riga"}
    assert await location_service.validate_and_enrich_location(data) == data


@pytest.mark.asyncio
async def test_enrich_free_text(location_service):
    enriched = await location_service.validate_and_enrich_location({"address": "Tallinn"})

    assert enriched["source"] == "geocoded"
    assert enriched["original_input"] == "Tallinn"
    assert enriched["country"] == "Estonia"


@pytest.mark.asyncio
async def test_enrich_unrecognised_payload_unchanged(location_service):
    assert await location_service.validate_and_enrich_location({"foo": "bar"}) == {"foo": "bar"}


@pytest.mark.asyncio
async def test_seed_locations_is_idempotent(db_session, cities):
    assert await seed_locations(db_session, COUNTRIES) == 0
    assert len(cities) == 4


@pytest.mark.asyncio
async def test_describe_region(location_service):
    region = location_service.describe_region("Berlin apartments")

    assert region.region == "central_europe"
    assert "Germany" in region.countries
    assert location_service.detect_query_region("qqqq") == "baltic"
