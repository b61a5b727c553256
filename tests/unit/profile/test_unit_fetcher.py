# tests/unit/profile/test_unit_fetcher.py — v1
"""Tests for profile/fetcher.py — URL validation, extraction, fetch and cache."""

from __future__ import annotations

import httpx
import pytest

from careerlens.cache.json_store import JsonCacheStore
from careerlens.cache.memory_cache import KeyValueCache
from careerlens.cache.tiered_cache import TieredCache
from careerlens.core.errors import (
    ConfigurationError,
    InputValidationError,
    ServiceResponseError,
    TransientServiceError,
)
from careerlens.llm.http_client import ExternalCallClient
from careerlens.llm.retry import RetryPolicy
from careerlens.profile.fetcher import (
    INSUFFICIENT_DATA_PROMPT,
    PROFILE_NAMESPACE,
    ProfileFetchClient,
    build_analysis_prompt,
    extract_profile,
    lightweight_extract,
    validate_profile_url,
)
from careerlens.profile.models import (
    FetchedProfile,
    LinkedInProfileDocument,
    PartiallyExtracted,
    ValidatedProfile,
)

URL = "https://www.linkedin.com/in/ada-lovelace"

DOCUMENT = {
    "full_name": "Ada Lovelace",
    "headline": "Staff Engineer",
    "summary": "Builds reliable data platforms.",
    "experiences": [
        {"company": "Analytical Engines", "title": "Staff Engineer",
         "description": "Led platform work", "starts_at": {"year": 2020}},
    ],
    "skills": ["Python", {"name": "Kafka"}],
}


class TestValidateProfileUrl:
    @pytest.mark.parametrize("url", [
        URL,
        "linkedin.com/in/ada",
        "https://LinkedIn.com/in/ada?trk=public",
        "  https://www.linkedin.com/in/ada/  ",
    ])
    def test_valid(self, url):
        assert validate_profile_url(url) == url.strip()

    @pytest.mark.parametrize("url", [
        "",
        "https://www.linkedin.com/company/acme",
        "https://example.com/in/ada",
        "https://www.linkedin.com/in/",
    ])
    def test_invalid(self, url):
        with pytest.raises(InputValidationError, match="Invalid LinkedIn profile URL"):
            validate_profile_url(url)


class TestExtractProfile:
    def test_validated(self):
        extraction = extract_profile(DOCUMENT)
        assert isinstance(extraction, ValidatedProfile)
        assert extraction.profile.full_name == "Ada Lovelace"

    def test_partial_on_schema_mismatch(self):
        raw = dict(DOCUMENT, follower_count="many")
        extraction = extract_profile(raw)
        assert isinstance(extraction, PartiallyExtracted)
        assert extraction.warnings
        assert extraction.profile.full_name == "Ada Lovelace"

    def test_non_mapping_is_partial(self):
        extraction = extract_profile(["unexpected"])
        assert isinstance(extraction, PartiallyExtracted)
        assert not extraction.profile.has_usable_data


class TestLightweightExtract:
    def test_limits(self):
        raw = {
            "full_name": "Ada",
            "summary": "s" * 900,
            "experiences": [
                {"company": f"c{i}", "title": "t", "description": "d" * 300,
                 "starts_at": {"year": 2000 + i}, "ends_at": {"year": "soon"}}
                for i in range(5)
            ],
            "skills": [f"skill{i}" for i in range(15)],
        }
        doc = lightweight_extract(raw)
        assert len(doc.summary) == 500
        assert len(doc.experiences) == 3
        assert doc.experiences[0].description == "d" * 200 + "..."
        assert doc.experiences[2].starts_at.year == 2002
        assert doc.experiences[0].ends_at is None
        assert len(doc.skills) == 10

    def test_tolerates_garbage(self):
        doc = lightweight_extract({
            "full_name": 7,
            "experiences": [None, {"company": 1, "title": ["x"]}],
            "skills": [None, {"name": None}, {"name": "Go"}],
        })
        assert doc.full_name == ""
        assert [e.company for e in doc.experiences] == ["", ""]
        assert doc.skill_names == ["Go"]


class TestBuildAnalysisPrompt:
    def test_sections(self):
        doc = LinkedInProfileDocument.model_validate({
            **DOCUMENT,
            "summary": "x" * 250,
            "experiences": [
                {"company": "A", "title": "Lead", "description": "y" * 200,
                 "starts_at": {"year": 2018}, "ends_at": {"year": 2021}},
                {"company": "B", "title": "Dev"},
            ],
            "skills": [f"s{i}" for i in range(10)],
        })
        prompt = build_analysis_prompt(doc)
        sections = prompt.split("\n\n")
        assert sections[0] == "PROFILE: Ada Lovelace | Staff Engineer"
        assert sections[1] == "SUMMARY: " + "x" * 200 + "..."
        assert sections[2] == (
            "EXPERIENCE:\n"
            f"- Lead at A (2018-2021) Highlights: {'y' * 150}...\n"
            "- Dev at B ()"
        )
        assert sections[3] == "SKILLS: " + ", ".join(f"s{i}" for i in range(8))

    def test_open_ended_experience(self):
        doc = LinkedInProfileDocument.model_validate({
            "experiences": [{"company": "A", "title": "Lead", "starts_at": {"year": 2022}}],
        })
        assert "- Lead at A (2022-Present)" in build_analysis_prompt(doc)

    def test_empty(self):
        assert build_analysis_prompt(LinkedInProfileDocument()) == INSUFFICIENT_DATA_PROMPT


class _Endpoint:
    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            self.response.status_code,
            content=self.response.content,
            headers=self.response.headers,
        )


def _fetcher(endpoint, durable=None, api_key="rapid-key", max_attempts=2):
    http = ExternalCallClient(
        RetryPolicy(max_attempts=max_attempts, base_delay_s=0.0, max_delay_s=0.0),
        transport=httpx.MockTransport(endpoint),
    )
    cache = TieredCache(
        PROFILE_NAMESPACE,
        FetchedProfile,
        KeyValueCache(max_size=10, ttl_s=3600),
        durable,
    )
    return ProfileFetchClient(
        http,
        cache,
        api_key=api_key,
        api_url="https://profiles.example/get-profile-data-by-url",
        api_host="profiles.example",
        fields=["full_name", "headline"],
    )


class TestProfileFetchClient:
    @pytest.mark.asyncio
    async def test_fetch_request(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        extraction = await _fetcher(endpoint).fetch(URL)
        assert isinstance(extraction, ValidatedProfile)
        request = endpoint.requests[0]
        assert request.method == "GET"
        assert request.url.params["url"] == URL
        assert request.url.params["fields"] == "full_name,headline"
        assert request.headers["x-rapidapi-key"] == "rapid-key"
        assert request.headers["x-rapidapi-host"] == "profiles.example"

    @pytest.mark.asyncio
    async def test_cached_after_first_fetch(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        fetcher = _fetcher(endpoint)
        await fetcher.fetch(URL)
        await fetcher.fetch(URL)
        assert len(endpoint.requests) == 1

    @pytest.mark.asyncio
    async def test_force_refresh(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        fetcher = _fetcher(endpoint)
        await fetcher.fetch(URL)
        await fetcher.fetch(URL, force_refresh=True)
        assert len(endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_invalidate(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        fetcher = _fetcher(endpoint)
        await fetcher.fetch(URL)
        await fetcher.invalidate(URL)
        await fetcher.fetch(URL)
        assert len(endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_durable_tier_survives_new_client(self, tmp_path):
        durable = JsonCacheStore(tmp_path / "cache")
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        await _fetcher(endpoint, durable).fetch(URL)
        extraction = await _fetcher(endpoint, durable).fetch(URL)
        assert len(endpoint.requests) == 1
        assert extraction.profile.full_name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_partial_extraction_cached(self):
        endpoint = _Endpoint(httpx.Response(200, json=dict(DOCUMENT, skills="many")))
        fetcher = _fetcher(endpoint)
        extraction = await fetcher.fetch(URL)
        assert isinstance(extraction, PartiallyExtracted)
        again = await fetcher.fetch(URL)
        assert isinstance(again, PartiallyExtracted)

    @pytest.mark.asyncio
    async def test_not_found(self):
        endpoint = _Endpoint(httpx.Response(404))
        with pytest.raises(InputValidationError, match="not found"):
            await _fetcher(endpoint).fetch(URL)
        assert len(endpoint.requests) == 1

    @pytest.mark.asyncio
    async def test_forbidden(self):
        with pytest.raises(ServiceResponseError) as exc_info:
            await _fetcher(_Endpoint(httpx.Response(403))).fetch(URL)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        endpoint = _Endpoint(httpx.Response(429))
        with pytest.raises(TransientServiceError):
            await _fetcher(endpoint, max_attempts=2).fetch(URL)
        assert len(endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_empty_body(self):
        with pytest.raises(ServiceResponseError, match="empty"):
            await _fetcher(_Endpoint(httpx.Response(200, json={}))).fetch(URL)

    @pytest.mark.asyncio
    async def test_invalid_url_no_request(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        with pytest.raises(InputValidationError):
            await _fetcher(endpoint).fetch("https://example.com/ada")
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        endpoint = _Endpoint(httpx.Response(200, json=DOCUMENT))
        with pytest.raises(ConfigurationError):
            await _fetcher(endpoint, api_key="").fetch(URL)
