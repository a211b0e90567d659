#!/usr/bin/env python3
"""
Program Source
Lists HackerOne programs and their in-scope assets through the Hacker API v1.

Endpoints used:
  GET /v1/hackers/programs                              - List programs
  GET /v1/hackers/programs/{handle}/structured_scopes   - Get scope
"""

import base64
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterator, List, Optional

import requests

from .errors import MissingCredentialsError, ProgramSourceError
from .utils.http_client import create_session

logger = logging.getLogger(__name__)

API_BASE = "https://api.hackerone.com/v1"
PROGRAM_URL_PREFIX = "https://hackerone.com/"
PAGE_SIZE = 100

# --scope value -> HackerOne asset types
SCOPE_CATEGORIES = {
    "url": {"URL", "WILDCARD", "IP_ADDRESS", "API"},
    "cidr": {"CIDR", "IP_ADDRESS"},
    "mobile": {"GOOGLE_PLAY_APP_ID", "OTHER_APK", "APPLE_STORE_APP_ID", "TESTFLIGHT", "OTHER_IPA"},
    "android": {"GOOGLE_PLAY_APP_ID", "OTHER_APK"},
    "apple": {"APPLE_STORE_APP_ID", "TESTFLIGHT", "OTHER_IPA"},
    "ai": {"AI_MODEL"},
    "other": {"OTHER"},
    "hardware": {"HARDWARE"},
    "code": {"SOURCE_CODE", "SMART_CONTRACT"},
    "executable": {"DOWNLOADABLE_EXECUTABLES", "WINDOWS_APP_STORE_APP_ID"},
}


@dataclass
class ScopeElement:
    """A single structured scope entry"""
    target: str
    description: str = ""
    category: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScopeElement':
        return cls(
            target=data.get("target", data.get("Target", "")),
            description=data.get("description", data.get("Description", "")),
            category=data.get("category", data.get("Category", "")),
        )


@dataclass
class Program:
    """Snapshot of a bug bounty program as listed by the program source"""
    url: str
    in_scope: List[ScopeElement] = field(default_factory=list)
    out_of_scope: List[ScopeElement] = field(default_factory=list)
    offers_bounties: bool = False

    @property
    def handle(self) -> str:
        return handle_from_url(self.url)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Program':
        """Build from either the current shape or the legacy capitalised one"""
        in_scope = data.get("in_scope", data.get("InScope")) or []
        out_of_scope = data.get("out_of_scope", data.get("OutOfScope")) or []
        return cls(
            url=data.get("url", data.get("Url", "")),
            in_scope=[ScopeElement.from_dict(e) for e in in_scope],
            out_of_scope=[ScopeElement.from_dict(e) for e in out_of_scope],
            offers_bounties=bool(data.get("offers_bounties", False)),
        )


def handle_from_url(url: str) -> str:
    if url.startswith(PROGRAM_URL_PREFIX):
        return url[len(PROGRAM_URL_PREFIX):]
    return url


def build_auth(api_user: str, api_token: str) -> str:
    """Base64 value for HTTP Basic auth"""
    return base64.b64encode(f"{api_user}:{api_token}".encode()).decode()


def category_types(scope_category: str) -> Optional[set]:
    """Asset types for a --scope value, None meaning no filter"""
    scope_category = (scope_category or "all").lower()
    if scope_category == "all":
        return None
    if scope_category not in SCOPE_CATEGORIES:
        valid = ", ".join(["all"] + sorted(SCOPE_CATEGORIES))
        raise ValueError(f"Unknown scope category '{scope_category}'. Valid: {valid}")
    return SCOPE_CATEGORIES[scope_category]


class HackerOneProgramSource:
    """Fetches the program list for a hacker from the HackerOne API"""

    def __init__(self, api_user: str, api_token: str,
                 session: Optional[requests.Session] = None,
                 timeout: int = 30,
                 user_agent: str = "bounty-dice/1.0"):
        self.api_user = api_user
        self.api_token = api_token
        self.timeout = timeout
        self.session = session or create_session(user_agent)

    def _get(self, url: str, params: Optional[Dict] = None) -> Dict:
        headers = {"Authorization": f"Basic {build_auth(self.api_user, self.api_token)}"}
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ProgramSourceError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise ProgramSourceError(
                f"non-200 status code returned ({response.status_code}) for {url}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProgramSourceError(f"Invalid JSON returned for {url}") from e

    def _paginate(self, url: str) -> Iterator[Dict]:
        params = {"page[size]": PAGE_SIZE}
        while url:
            payload = self._get(url, params=params)
            for item in payload.get("data", []):
                yield item
            url = (payload.get("links") or {}).get("next")
            # next links already carry the page parameters
            params = None

    def _program_scopes(self, handle: str, types: Optional[set]) -> tuple:
        in_scope, out_of_scope = [], []
        url = f"{API_BASE}/hackers/programs/{handle}/structured_scopes"
        for item in self._paginate(url):
            attrs = item.get("attributes", {})
            element = ScopeElement(
                target=attrs.get("asset_identifier", ""),
                description=attrs.get("instruction") or "",
                category=attrs.get("asset_type", ""),
            )
            if not attrs.get("eligible_for_submission"):
                out_of_scope.append(element)
            elif types is None or element.category in types:
                in_scope.append(element)
        return in_scope, out_of_scope

    def get_programs(self, bounty_only: bool, scope_category: str) -> List[Program]:
        """
        List open programs with at least one in-scope asset of the category.

        Args:
            bounty_only: Only keep programs that offer bounties
            scope_category: 'all' or one of SCOPE_CATEGORIES

        Returns:
            Programs in the order the API lists them
        """
        if not (self.api_user and self.api_token):
            raise MissingCredentialsError("HACKERONE_API_USER and HACKERONE_API_TOKEN must be set")

        types = category_types(scope_category)
        logger.debug(f"Fetching programs from HackerOne with bounty_only={bounty_only}, scope={scope_category}")

        programs = []
        for item in self._paginate(f"{API_BASE}/hackers/programs"):
            attrs = item.get("attributes", {})
            handle = attrs.get("handle")
            if not handle or attrs.get("submission_state") != "open":
                continue
            offers_bounties = bool(attrs.get("offers_bounties"))
            if bounty_only and not offers_bounties:
                continue

            in_scope, out_of_scope = self._program_scopes(handle, types)
            if not in_scope:
                logger.debug(f"[{handle}] no matching in-scope assets, skipping")
                continue

            programs.append(Program(
                url=PROGRAM_URL_PREFIX + handle,
                in_scope=in_scope,
                out_of_scope=out_of_scope,
                offers_bounties=offers_bounties,
            ))

        logger.debug(f"Found {len(programs)} programs with at least one in-scope item")
        return programs
