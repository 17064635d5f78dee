import pytest

from frontsnap.core import wiring
from frontsnap.core.config import ConfigError, Settings
from frontsnap.vendors.google_places import GooglePlacesSearch
from frontsnap.vendors.serp_places import SerpPlacesSearch


def test_google_is_the_default_provider():
    search = wiring.build_place_search(Settings(google_api_key="g", openai_api_key="o", request_timeout_seconds=7))
    assert isinstance(search, GooglePlacesSearch)
    assert search.timeout == 7


def test_serpapi_provider():
    settings = Settings(google_api_key="", openai_api_key="o", serpapi_api_key="s", places_provider="serpapi")
    assert isinstance(wiring.build_place_search(settings), SerpPlacesSearch)


def test_missing_keys_raise_config_error():
    with pytest.raises(ConfigError, match="GOOGLE_API_KEY"):
        wiring.build_place_search(Settings(google_api_key="", openai_api_key="o"))
    with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
        wiring.build_analyzer(Settings(google_api_key="g", openai_api_key=""))


def test_build_resolver_uses_settings():
    settings = Settings(
        google_api_key="g", openai_api_key="o", openai_model="gpt-4o-mini", direction_tolerance_degrees=30
    )
    resolver = wiring.build_resolver(settings)
    assert resolver.tolerance_degrees == 30
    assert resolver.analyzer.model == "gpt-4o-mini"
    assert resolver.analyzer.timeout == 30
