#!/usr/bin/env python3
"""
High-Quality Program Scorer
Flags programs whose payouts are consistently close to their bounty table,
using the public profile metrics from the HackerOne GraphQL API.

Checks (each adds one finding):
- Average high payout >= 75% of the table's max high bounty
- Average critical payout >= 75% of the table's max critical bounty
- High, critical, and high+critical reports each >= 40% of all reports
- Top bounty paid exceeds the table's max critical bounty
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from tqdm import tqdm

from .errors import HQFetchError
from .utils.http_client import create_session

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://hackerone.com/graphql"

PAYOUT_RATIO = 0.75
REPORT_RATIO = 0.40

ME_QUERY = """query MeQuery {
  me {
    id
  }
}"""

TEAMPROFILE_QUERY = """query TeamProfile($handle: String!) {
  team(handle: $handle) {
    ...BountyTable
    ...ProfileMetrics
  }
}

fragment BountyTable on Team {
  profile_metrics_snapshot {
    average_bounty_per_severity_low
    average_bounty_per_severity_medium
    average_bounty_per_severity_high
    average_bounty_per_severity_critical
    report_count_per_severity_low
    report_count_per_severity_medium
    report_count_per_severity_high
    report_count_per_severity_critical
  }
  bounty_table {
    use_range
    bounty_table_rows(first: 100) {
      nodes {
        low
        medium
        high
        critical
        low_minimum
        medium_minimum
        high_minimum
        critical_minimum
        updated_at
      }
    }
    updated_at
  }
}

fragment ProfileMetrics on Team {
  currency
  offers_bounties
  average_bounty_lower_amount
  average_bounty_upper_amount
  top_bounty_lower_amount
  top_bounty_upper_amount
  resolved_report_count
  reports_received_last_90_days
  last_report_resolved_at
}"""


@dataclass
class HQProgram:
    """A program that passed the high-quality checks"""
    handle: str
    findings: List[str] = field(default_factory=list)


def _number(value: Any) -> Optional[float]:
    """Numeric JSON value as float, None for anything else"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _amount(row: Dict, key: str) -> float:
    return _number(row.get(key)) or 0.0


def _max_bounty(rows: List[Any], severity: str) -> float:
    """Highest of <severity> and <severity>_minimum across bounty table rows"""
    best = 0.0
    for row in rows:
        if not isinstance(row, dict):
            continue
        best = max(best, _amount(row, severity), _amount(row, f"{severity}_minimum"))
    return best


def check_program_data(handle: str, min_req: int, team_data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Score one program's team data.

    Args:
        handle: Program handle (for logging)
        min_req: Findings required to qualify
        team_data: Raw 'team' object from the TeamProfile query

    Returns:
        (qualifies, findings); findings is empty unless the program qualifies
    """
    bounty_table = team_data.get("bounty_table")
    if not isinstance(bounty_table, dict):
        logger.debug(f"[{handle}] 'bounty_table' not found")
        return False, []
    table_rows = bounty_table.get("bounty_table_rows")
    if not isinstance(table_rows, dict):
        logger.debug(f"[{handle}] 'bounty_table_rows' not found")
        return False, []
    rows = table_rows.get("nodes")
    if not isinstance(rows, list) or not rows:
        logger.debug(f"[{handle}] bounty table has no rows")
        return False, []

    max_payout = _number(team_data.get("top_bounty_upper_amount")) or 0.0
    max_crit = _max_bounty(rows, "critical")
    max_high = _max_bounty(rows, "high")
    logger.debug(f"[{handle}] Max Payout: ${max_payout:.2f}, Max Crit Bounty: ${max_crit:.2f}, "
                 f"Max High Bounty: ${max_high:.2f}")

    findings = []
    metrics = team_data.get("profile_metrics_snapshot")
    if isinstance(metrics, dict):
        avg_high = _number(metrics.get("average_bounty_per_severity_high"))
        if max_high > 0 and avg_high is not None and avg_high / max_high >= PAYOUT_RATIO:
            findings.append(f"Avg high payout is >= 75% of max high (${avg_high:.0f} vs ${max_high:.0f})")

        avg_crit = _number(metrics.get("average_bounty_per_severity_critical"))
        if max_crit > 0 and avg_crit is not None and avg_crit / max_crit >= PAYOUT_RATIO:
            findings.append(f"Avg crit payout is >= 75% of max crit (${avg_crit:.0f} vs ${max_crit:.0f})")

        counts = {
            severity: _number(metrics.get(f"report_count_per_severity_{severity}")) or 0.0
            for severity in ("low", "medium", "high", "critical")
        }
        total = sum(counts.values())
        if total > 0:
            high_ratio = counts["high"] / total
            crit_ratio = counts["critical"] / total
            both_ratio = (counts["high"] + counts["critical"]) / total
            if high_ratio >= REPORT_RATIO:
                findings.append(f"High-severity reports make up {high_ratio * 100:.0f}% of total")
            if crit_ratio >= REPORT_RATIO:
                findings.append(f"Crit-severity reports make up {crit_ratio * 100:.0f}% of total")
            if both_ratio >= REPORT_RATIO:
                findings.append(f"High+Crit reports make up {both_ratio * 100:.0f}% of total")

    if max_payout > 0 and max_crit > 0 and max_payout > max_crit:
        findings.append(f"Max bounty (${max_payout:.0f}) > max crit bounty (${max_crit:.0f})")

    for finding in findings:
        logger.debug(f"[{handle}] Finding: {finding}")

    is_hq = len(findings) >= min_req
    logger.debug(f"[{handle}] Total findings: {len(findings)}. Program is HQ: {is_hq}")
    if is_hq:
        return True, findings
    return False, []


class HQSession:
    """GraphQL session, optionally authenticated with a hackerone.com browser session"""

    def __init__(self, host_session_cookie: str = "", csrf_token: str = "",
                 session: Optional[requests.Session] = None,
                 timeout: int = 30,
                 user_agent: str = "bounty-dice/1.0"):
        self.csrf_token = csrf_token
        self.timeout = timeout
        self.session = session or create_session(user_agent, {
            'Content-Type': 'application/json',
            'Origin': 'https://hackerone.com',
        })
        if host_session_cookie:
            self.session.cookies.set("__Host-session", host_session_cookie, domain="hackerone.com")

    def post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"X-Csrf-Token": self.csrf_token} if self.csrf_token else {}
        try:
            response = self.session.post(
                GRAPHQL_URL,
                json={"query": query, "variables": variables},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise HQFetchError(f"GraphQL request failed: {e}") from e

        if response.status_code != 200:
            raise HQFetchError(f"non-200 status code returned ({response.status_code}): {response.text[:200]}")
        try:
            return response.json()
        except ValueError as e:
            raise HQFetchError("Invalid JSON in GraphQL response") from e

    def check_auth(self) -> bool:
        """True when the session belongs to a logged-in user"""
        try:
            result = self.post(ME_QUERY, {})
        except HQFetchError as e:
            logger.debug(f"Auth check failed: {e}")
            return False
        me = (result.get("data") or {}).get("me")
        return isinstance(me, dict) and "id" in me

    def get_program_info(self, handle: str) -> Dict[str, Any]:
        logger.debug(f"Getting program info for handle: {handle}")
        return self.post(TEAMPROFILE_QUERY, {"handle": handle})


def fetch_program_data(session: HQSession, handles: List[str], show_progress: bool = True,
                       info: Callable[[str], None] = logger.info,
                       warning: Callable[[str], None] = logger.warning) -> Dict[str, Any]:
    """
    Fetch team data for every handle. Handles that fail are skipped.

    info and warning receive the user-facing progress messages.
    """
    if not session.check_auth():
        warning("WARNING: Accessing HackerOne API unauthenticated. Only public programs will be fetched!")

    info(f"Got {len(handles)} program handles, fetching and saving program data now...")
    program_data = {}
    for handle in tqdm(handles, disable=not show_progress):
        try:
            response = session.get_program_info(handle)
        except HQFetchError as e:
            logger.warning(f"Null team data returned for program {handle}: {e}")
            continue
        team = (response.get("data") or {}).get("team")
        if team is None:
            logger.debug(f"'team' not found in response for handle: {handle}")
            continue
        program_data[handle] = team
    return program_data


def load_program_data(cache_path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(Path(cache_path).read_text())
    except (OSError, ValueError) as e:
        raise HQFetchError(f"error reading {cache_path}: {e}") from e
    if not isinstance(data, dict):
        raise HQFetchError(f"{cache_path} does not contain a program data object")
    logger.debug(f"Loaded {len(data)} programs from cache")
    return data


def save_program_data(cache_path: Path, program_data: Dict[str, Any]) -> None:
    cache_path = Path(cache_path)
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(json.dumps(program_data, indent=2))
    except OSError as e:
        raise HQFetchError(f"error writing {cache_path}: {e}") from e
    logger.debug(f"Saved program data to {cache_path}")


def fetch_and_check(session: HQSession, handles: List[str], force: bool, min_req: int,
                    cache_path: Path, show_progress: bool = True,
                    info: Callable[[str], None] = logger.info,
                    warning: Callable[[str], None] = logger.warning) -> List[HQProgram]:
    """
    Score the given handles, using the program data cache when present.

    The cache is refetched wholesale when it is missing or force is set.
    Results follow the order of handles.
    """
    cache_path = Path(cache_path)
    if force or not cache_path.exists():
        if force:
            logger.debug("Force flag is set. Re-fetching all program data.")
        else:
            logger.debug(f"'{cache_path}' not found. Fetching new program data.")
        program_data = fetch_program_data(session, handles, show_progress, info, warning)
        try:
            save_program_data(cache_path, program_data)
        except HQFetchError as e:
            logger.warning(f"Program data not cached: {e}")
    else:
        program_data = load_program_data(cache_path)

    hq_programs = []
    for handle in dict.fromkeys(handles):
        team_data = program_data.get(handle)
        if not isinstance(team_data, dict):
            continue
        is_hq, findings = check_program_data(handle, min_req, team_data)
        if is_hq:
            hq_programs.append(HQProgram(handle=handle, findings=findings))

    logger.debug(f"Found {len(hq_programs)} HQ programs after checking")
    return hq_programs
