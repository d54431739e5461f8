"""Parse LeetCode auth cookies pasted by the user (Cookie header, JSON export or Netscape cookies.txt)."""
import json
from typing import Any

COOKIE_NAMES = {"csrftoken": "csrftoken", "LEETCODE_SESSION": "session"}


def _is_leetcode(domain: str) -> bool:
    return "leetcode.com" in (domain or "").strip().lower()


def _pick(pairs: list[tuple[str, str]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for name, value in pairs:
        key = COOKIE_NAMES.get(name)
        if key and value:
            out[key] = value
    return out


def _from_json(items: list[Any]) -> list[tuple[str, str]]:
    pairs = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("name") or item.get("Name")
        value = item.get("value") or item.get("Value")
        domain = item.get("domain") or item.get("Domain") or ".leetcode.com"
        if name and _is_leetcode(domain):
            pairs.append((str(name), str(value or "")))
    return pairs


def _from_netscape(paste: str) -> list[tuple[str, str]]:
    # domain  flag  path  secure  expiration  name  value
    pairs = []
    for line in paste.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split("\t")
        if len(parts) < 7 or not _is_leetcode(parts[0]):
            continue
        pairs.append((parts[5], parts[6]))
    return pairs


def _from_header(paste: str) -> list[tuple[str, str]]:
    if paste.lower().startswith("cookie:"):
        paste = paste[len("cookie:"):]
    pairs = []
    for part in paste.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name.strip():
            pairs.append((name.strip(), value.strip()))
    return pairs


def parse_leetcode_cookies(paste: str) -> dict[str, str]:
    """Return {"csrftoken": ..., "session": ...} with whichever of the two were found.

    Cookies scoped to other domains are ignored.
    """
    paste = (paste or "").strip()
    if not paste:
        return {}

    if paste[0] in "[{":
        try:
            data = json.loads(paste)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            data = data.get("cookies") or data.get("cookie")
        if isinstance(data, list):
            return _pick(_from_json(data))

    if "\t" in paste:
        return _pick(_from_netscape(paste))
    return _pick(_from_header(paste))
