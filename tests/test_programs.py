"""
Tests for the HackerOne program source
"""

import base64

import pytest
import requests

from bounty_dice.errors import MissingCredentialsError, ProgramSourceError
from bounty_dice.programs import (
    API_BASE,
    HackerOneProgramSource,
    Program,
    build_auth,
    category_types,
    handle_from_url,
)


class FakeResponse:

    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Answers GETs from a url -> response map"""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append((url, params, headers))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        return route


def program(handle, submission_state="open", offers_bounties=True):
    return {"id": handle, "type": "program", "attributes": {
        "handle": handle,
        "submission_state": submission_state,
        "offers_bounties": offers_bounties,
    }}


def scope(identifier, asset_type, submit=True):
    return {"attributes": {
        "asset_identifier": identifier,
        "asset_type": asset_type,
        "eligible_for_submission": submit,
        "instruction": None,
    }}


def scopes_url(handle):
    return f"{API_BASE}/hackers/programs/{handle}/structured_scopes"


@pytest.fixture
def routes():
    page2 = f"{API_BASE}/hackers/programs?page%5Bnumber%5D=2&page%5Bsize%5D=100"
    return {
        f"{API_BASE}/hackers/programs": FakeResponse({
            "data": [program("acme"), program("closed", submission_state="paused"), program("vdp", offers_bounties=False)],
            "links": {"next": page2},
        }),
        page2: FakeResponse({"data": [program("mobileco")], "links": {}}),
        scopes_url("acme"): FakeResponse({"data": [
            scope("*.acme.com", "WILDCARD"),
            scope("legacy.acme.com", "URL", submit=False),
            scope("github.com/acme/app", "SOURCE_CODE"),
        ]}),
        scopes_url("vdp"): FakeResponse({"data": [scope("vdp.org", "URL")]}),
        scopes_url("mobileco"): FakeResponse({"data": [scope("com.mobileco.app", "GOOGLE_PLAY_APP_ID")]}),
    }


def source_with(routes, user="hunter", token="secret"):
    session = FakeSession(routes)
    return HackerOneProgramSource(user, token, session=session), session


class TestGetPrograms:

    def test_lists_open_programs_across_pages(self, routes):
        source, session = source_with(routes)
        programs = source.get_programs(False, "all")

        assert [p.handle for p in programs] == ["acme", "vdp", "mobileco"]
        acme = programs[0]
        assert acme.url == "https://hackerone.com/acme"
        assert [e.target for e in acme.in_scope] == ["*.acme.com", "github.com/acme/app"]
        assert [e.target for e in acme.out_of_scope] == ["legacy.acme.com"]
        assert acme.offers_bounties
        assert not programs[1].offers_bounties

    def test_first_page_requests_page_size_and_auth(self, routes):
        source, session = source_with(routes)
        source.get_programs(False, "all")

        url, params, headers = session.requests[0]
        assert url == f"{API_BASE}/hackers/programs"
        assert params == {"page[size]": 100}
        expected = base64.b64encode(b"hunter:secret").decode()
        assert headers["Authorization"] == f"Basic {expected}"

    def test_bounty_only(self, routes):
        source, _ = source_with(routes)
        assert [p.handle for p in source.get_programs(True, "all")] == ["acme", "mobileco"]

    def test_scope_category_filters_and_drops_empty_programs(self, routes):
        source, _ = source_with(routes)
        programs = source.get_programs(False, "android")
        assert [p.handle for p in programs] == ["mobileco"]

        programs = source.get_programs(False, "code")
        assert [p.handle for p in programs] == ["acme"]
        assert [e.target for e in programs[0].in_scope] == ["github.com/acme/app"]

    def test_missing_credentials_raise_before_any_request(self, routes):
        source, session = source_with(routes, token="")
        with pytest.raises(MissingCredentialsError):
            source.get_programs(False, "all")
        assert session.requests == []

    def test_non_200_raises(self, routes):
        routes[f"{API_BASE}/hackers/programs"] = FakeResponse({"errors": ["unauthorized"]}, status_code=401)
        source, _ = source_with(routes)
        with pytest.raises(ProgramSourceError, match="401"):
            source.get_programs(False, "all")

    def test_transport_error_raises(self, routes):
        routes[scopes_url("acme")] = requests.exceptions.ConnectionError("reset")
        source, _ = source_with(routes)
        with pytest.raises(ProgramSourceError):
            source.get_programs(False, "all")

    def test_invalid_json_raises(self, routes):
        routes[f"{API_BASE}/hackers/programs"] = FakeResponse(ValueError("bad json"))
        source, _ = source_with(routes)
        with pytest.raises(ProgramSourceError):
            source.get_programs(False, "all")

    def test_unknown_category(self, routes):
        source, _ = source_with(routes)
        with pytest.raises(ValueError):
            source.get_programs(False, "satellites")


def test_category_types():
    assert category_types("all") is None
    assert category_types("URL") == {"URL", "WILDCARD", "IP_ADDRESS", "API"}


def test_handle_from_url():
    assert handle_from_url("https://hackerone.com/acme") == "acme"
    assert handle_from_url("acme") == "acme"


def test_build_auth():
    assert base64.b64decode(build_auth("user", "tok")) == b"user:tok"


def test_program_from_legacy_dict():
    legacy = {
        "Url": "https://hackerone.com/acme",
        "InScope": [{"Target": "*.acme.com", "Description": "main", "Category": "wildcard"}],
        "OutOfScope": [{"Target": "blog.acme.com"}],
    }
    prog = Program.from_dict(legacy)
    assert prog.handle == "acme"
    assert prog.in_scope[0].description == "main"
    assert prog.out_of_scope[0].target == "blog.acme.com"
    assert Program.from_dict(prog.to_dict()) == prog
