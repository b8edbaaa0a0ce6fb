"""
Tests for request descriptors, outcomes and the result cache.
"""

import pytest

from finops_console.api import endpoints
from finops_console.api.models import ApiConfig
from finops_console.api.outcome import Err, ErrorKind, Ok, RequestDescriptor
from finops_console.utils.cache import ResultCache


class TestRequestDescriptor:
    """Test cases for RequestDescriptor."""

    def test_params_are_sorted_and_unset_values_dropped(self):
        descriptor = RequestDescriptor.build(
            "/api/forecast", params={"refresh": False, "historical_days": 180, "days": 90, "x": None}
        )

        assert descriptor.params == (("days", "90"), ("historical_days", "180"))
        assert str(descriptor) == "GET /api/forecast?days=90&historical_days=180"

    def test_true_flags_become_lowercase(self):
        descriptor = RequestDescriptor.build("/api/dashboard", params={"refresh": True})

        assert descriptor.query == {"refresh": "true"}

    def test_equal_descriptors_share_cache_key(self):
        first = RequestDescriptor.build("/api/forecast", params={"days": 90, "historical_days": 180})
        second = RequestDescriptor.build("/api/forecast", params={"historical_days": 180, "days": 90})

        assert first == second
        assert first.cache_key == second.cache_key

    def test_cache_key_depends_on_method_and_params(self):
        get = RequestDescriptor.build("/api/reports")
        post = RequestDescriptor.build("/api/reports", method="post")

        assert post.method == "POST"
        assert get.cache_key != post.cache_key
        assert endpoints.forecast(90).cache_key != endpoints.forecast(30).cache_key


class TestOutcome:
    """Test cases for Ok and Err."""

    def test_ok(self):
        outcome = Ok(3)

        assert outcome.is_ok
        assert outcome.value == 3

    def test_err_flags(self):
        assert Err(ErrorKind.DISABLED, "off").is_disabled
        assert Err(ErrorKind.HTTP, "missing", status_code=404).is_not_found
        assert not Err(ErrorKind.NETWORK, "down").is_ok

    def test_outcomes_are_immutable(self):
        outcome = Err(ErrorKind.HTTP, "boom", 500)

        with pytest.raises(AttributeError):
            outcome.message = "changed"


class TestEndpoints:
    """Test cases for the endpoint catalogue."""

    def test_path_segments_are_escaped(self):
        request = endpoints.service_forecast("Cloud Storage/EU")

        assert request.descriptor.path == "/api/forecast/service/Cloud%20Storage%2FEU"

    def test_question_is_required(self):
        with pytest.raises(ValueError, match="must not be empty"):
            endpoints.ai_ask("   ")

    def test_question_is_stripped(self):
        assert endpoints.ai_ask("  why?  ").descriptor.query == {"question": "why?"}

    def test_invalid_report_format(self):
        with pytest.raises(ValueError, match="Invalid report format"):
            endpoints.generate_report("docx")

    def test_invalid_priority(self):
        with pytest.raises(ValueError, match="Invalid priority"):
            endpoints.recommendations(priority="urgent")

    def test_dashboard_refresh_flag(self):
        assert endpoints.dashboard().descriptor.params == ()
        assert endpoints.dashboard(refresh=True).descriptor.query == {"refresh": "true"}

    def test_update_config_body_omits_unset_fields(self):
        request = endpoints.update_config(ApiConfig(project_id="prod-core", regions=["eu-west1"]))

        assert request.descriptor.method == "POST"
        assert request.descriptor.body == {"project_id": "prod-core", "regions": ["eu-west1"]}


class TestResultCache:
    """Test cases for ResultCache."""

    def test_settle_current_generation(self):
        cache = ResultCache("test")
        generation = cache.issue("key")

        assert cache.settle("key", generation, Ok(1)) is True
        assert cache.get("key") == Ok(1)

    def test_stale_generation_is_dropped(self):
        cache = ResultCache("test")
        old = cache.issue("key")
        new = cache.issue("key")

        assert cache.settle("key", new, Ok("new"))
        assert cache.settle("key", old, Ok("old")) is False
        assert cache.get("key") == Ok("new")

    def test_delete_invalidates_in_flight_generation(self):
        cache = ResultCache("test")
        generation = cache.issue("key")
        cache.store("key", Ok(1))
        in_flight = cache.issue("key")

        assert cache.delete("key") is True
        assert cache.settle("key", in_flight, Ok(2)) is False
        assert cache.get("key") is None
        assert generation < in_flight

    def test_clear(self):
        cache = ResultCache("test")
        cache.store("a", Ok(1))
        cache.store("b", Err(ErrorKind.NETWORK, "down"))

        assert cache.stats() == {"namespace": "test", "entries": 2, "errors": 1}
        cache.clear()
        assert cache.keys() == []
