"""HTTP helper utilities for tests."""

from __future__ import annotations

from werkzeug.http import parse_cookie


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.

    Returns
    -------
    dict[str, str]
        HTTP headers dictionary.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def cookie_header(**cookies: str) -> dict[str, str]:
    """Build a ``Cookie`` request header from keyword pairs."""

    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def set_cookies(response) -> dict[str, str]:
    """Map cookie name to the raw ``Set-Cookie`` line of ``response``."""

    out: dict[str, str] = {}
    for line in response.headers.getlist("Set-Cookie"):
        name = line.split("=", 1)[0]
        out[name] = line
    return out


def cookie_value(set_cookie_line: str) -> str:
    """Return the value part of a ``Set-Cookie`` line."""

    name = set_cookie_line.split("=", 1)[0]
    return parse_cookie(set_cookie_line.split(";", 1)[0]).get(name, "")
