#!/usr/bin/env python3
"""
HTTP session setup for the HackerOne clients
"""

import requests


def create_session(user_agent: str, headers: dict = None) -> requests.Session:
    """
    Create a session with the default headers set.

    No retry adapter is mounted: a failed call fails the run.
    """
    session = requests.Session()
    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'application/json',
        'Accept-Language': 'en-US,en;q=0.9',
    })
    if headers:
        session.headers.update(headers)
    return session
