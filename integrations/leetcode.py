"""LeetCode GraphQL/REST client. Supplies solved history, question details and per-tag candidate pools."""
from typing import Any

import httpx

from config import settings
from db.collections import AUTH_COOKIES_KEY, solved_record
from utils.logging import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 50
OWNER_SCAN_LIMIT = 2000

Q_SIGNED_IN = "query globalData { userStatus { isSignedIn username } }"

Q_QUESTION_DETAIL = """
query questionDetail($titleSlug: String!) {
  question(titleSlug: $titleSlug) {
    title
    difficulty
    topicTags { name }
  }
}"""

Q_OWNER_LIST = """
query problemsetQuestionList($skip: Int!, $limit: Int!, $filters: QuestionListFilterInput) {
  questionList(skip: $skip, limit: $limit, filters: $filters) {
    data { title titleSlug difficulty status topicTags { name } }
  }
}"""

Q_RECENT_AC = """
query recentAcSubmissions($username: String!) {
  recentAcSubmissionList(username: $username) { title titleSlug }
}"""

Q_BY_TAG = """
query problemsetByTag($skip: Int!, $limit: Int!, $filters: QuestionListFilterInput) {
  questionList(skip: $skip, limit: $limit, filters: $filters) {
    data { titleSlug title topicTags { name } }
  }
}"""

Q_TAGS_LIST = """
query tagsByQuestionList($skip: Int!, $limit: Int!) {
  questionList(skip: $skip, limit: $limit, filters: {}) {
    data { titleSlug topicTags { name } }
  }
}"""

Q_TAGS_PROBLEMSET = """
query tagsByProblemset($categorySlug: String, $skip: Int!, $limit: Int!, $filters: QuestionListFilterInput) {
  problemsetQuestionList(categorySlug: $categorySlug, skip: $skip, limit: $limit, filters: $filters) {
    questions { titleSlug topicTags { name } }
  }
}"""

_LEVELS = {1: "Easy", 2: "Medium", 3: "Hard"}


class LeetCodeAPIError(RuntimeError):
    """A LeetCode request failed: transport error, bad status or GraphQL errors payload."""


def _tag_names(q: dict) -> list[str]:
    return [t.get("name") for t in (q.get("topicTags") or []) if t and t.get("name")]


class LeetCodeAPI:
    def __init__(
        self,
        csrftoken: str | None = None,
        session: str | None = None,
        base: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.csrftoken = csrftoken or ""
        self.session = session or ""
        self.base = (base or settings.LEETCODE_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.transport = transport

    @classmethod
    def from_settings(cls, store=None) -> "LeetCodeAPI":
        """Cookies imported via the API win over LEETCODE_CSRFTOKEN / LEETCODE_SESSION."""
        cookies: dict = {}
        if store is not None:
            cookies = store.get([AUTH_COOKIES_KEY]).get(AUTH_COOKIES_KEY) or {}
        return cls(
            csrftoken=cookies.get("csrftoken") or settings.LEETCODE_CSRFTOKEN,
            session=cookies.get("session") or settings.LEETCODE_SESSION,
        )

    def _client(self) -> httpx.AsyncClient:
        cookies = {}
        if self.csrftoken:
            cookies["csrftoken"] = self.csrftoken
        if self.session:
            cookies["LEETCODE_SESSION"] = self.session
        return httpx.AsyncClient(
            timeout=self.timeout,
            cookies=cookies,
            transport=self.transport,
            headers={"Referer": f"{self.base}/"},
        )

    async def gql(self, query: str, variables: dict | None = None) -> dict[str, Any]:
        headers = {"Content-Type": "application/json", "X-CSRFToken": self.csrftoken}
        try:
            async with self._client() as client:
                r = await client.post(
                    f"{self.base}/graphql",
                    json={"query": query, "variables": variables or {}},
                    headers=headers,
                )
                r.raise_for_status()
                payload = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LeetCodeAPIError(f"GraphQL request failed: {e}") from e
        if not isinstance(payload, dict):
            raise LeetCodeAPIError("GraphQL response is not an object")
        if payload.get("errors") and not payload.get("data"):
            raise LeetCodeAPIError(f"GraphQL errors: {payload['errors']}")
        return payload.get("data") or {}

    async def signed_in_username(self) -> str | None:
        try:
            data = await self.gql(Q_SIGNED_IN)
        except LeetCodeAPIError as e:
            logger.warning("Signed-in check failed: %s", e)
            return None
        status = data.get("userStatus") or {}
        return (status.get("username") or None) if status.get("isSignedIn") else None

    async def question_detail(self, slug: str) -> dict | None:
        data = await self.gql(Q_QUESTION_DETAIL, {"titleSlug": slug})
        q = data.get("question")
        if not q:
            return None
        return {"title": q.get("title"), "difficulty": q.get("difficulty"), "tags": _tag_names(q)}

    async def solved_by_owner(self) -> list[dict]:
        """Page through the signed-in user's problem list and keep accepted ones."""
        solved: list[dict] = []
        for skip in range(0, OWNER_SCAN_LIMIT, PAGE_SIZE):
            data = await self.gql(Q_OWNER_LIST, {"skip": skip, "limit": PAGE_SIZE, "filters": {}})
            arr = (data.get("questionList") or {}).get("data") or []
            if not arr:
                break
            for q in arr:
                if q and q.get("status") == "ac":
                    solved.append(solved_record(q.get("titleSlug") or "", q.get("title"), q.get("difficulty"), _tag_names(q)))
            if len(arr) < PAGE_SIZE:
                break
        return solved

    async def solved_by_rest(self) -> list[dict]:
        try:
            async with self._client() as client:
                r = await client.get(f"{self.base}/api/problems/all/")
                r.raise_for_status()
                j = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("REST solved fallback failed: %s", e)
            return []
        solved = []
        for it in j.get("stat_status_pairs") or []:
            if it.get("status") != "ac":
                continue
            stat = it.get("stat") or {}
            slug = (stat.get("question__title_slug") or "").lower()
            if not slug:
                continue
            level = (it.get("difficulty") or {}).get("level")
            solved.append(solved_record(slug, stat.get("question__title") or slug, _LEVELS.get(level)))
        return solved

    async def recent_ac(self, username: str) -> list[dict]:
        data = await self.gql(Q_RECENT_AC, {"username": username})
        seen: set[str] = set()
        out = []
        for s in data.get("recentAcSubmissionList") or []:
            slug = ((s or {}).get("titleSlug") or "").lower()
            if not slug or slug in seen:
                continue
            seen.add(slug)
            out.append(solved_record(slug, s.get("title") or s.get("titleSlug")))
        return out

    async def query_by_tag(self, tag: str, limit: int = 100) -> list[dict]:
        """Candidate pool for one topic tag: [{slug, title, tags}], de-duplicated."""
        out = []
        seen: set[str] = set()
        for skip in range(0, limit, PAGE_SIZE):
            data = await self.gql(Q_BY_TAG, {"skip": skip, "limit": PAGE_SIZE, "filters": {"tags": [tag]}})
            arr = (data.get("questionList") or {}).get("data") or []
            if not arr:
                break
            for q in arr:
                slug = ((q or {}).get("titleSlug") or "").lower()
                if not slug or slug in seen:
                    continue
                seen.add(slug)
                out.append({"slug": slug, "title": q.get("title"), "tags": _tag_names(q)})
            if len(arr) < PAGE_SIZE:
                break
        return out

    async def question_list_page(self, skip: int, limit: int = PAGE_SIZE) -> list[dict]:
        """One page of [{slug, tags}] from questionList."""
        data = await self.gql(Q_TAGS_LIST, {"skip": skip, "limit": limit})
        arr = (data.get("questionList") or {}).get("data") or []
        return [{"slug": (q.get("titleSlug") or "").lower(), "tags": _tag_names(q)} for q in arr if q]

    async def problemset_page(self, category_slug: str, skip: int, limit: int = PAGE_SIZE) -> list[dict]:
        """One page of [{slug, tags}] from problemsetQuestionList within a category."""
        data = await self.gql(
            Q_TAGS_PROBLEMSET,
            {"categorySlug": category_slug, "skip": skip, "limit": limit, "filters": {}},
        )
        arr = (data.get("problemsetQuestionList") or {}).get("questions") or []
        return [{"slug": (q.get("titleSlug") or "").lower(), "tags": _tag_names(q)} for q in arr if q]
