"""HTTP client for the public course API with a stale-while-error cache."""

from __future__ import annotations

from typing import Any

import httpx

from app.client.cache import ClientCache
from app.core.error_codes import ErrorCode
from app.core.errors import UpstreamError
from app.core.logging import get_logger

logger = get_logger(__name__)

COURSES_KEY = "courses"
FEATURED_LESSONS_KEY = "featured_lessons"

COURSES_TTL = 5 * 60
COURSE_DETAIL_TTL = 10 * 60
FEATURED_LESSONS_TTL = 5 * 60
USER_ACCESS_TTL = 2 * 60


def course_detail_key(course_id: str) -> str:
    return f"course_{course_id}"


def user_access_key(course_id: str) -> str:
    return f"user_access_{course_id}"


class CourseApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        cache: ClientCache | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cache = cache if cache is not None else ClientCache()
        self._token = token
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def __enter__(self) -> "CourseApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def set_token(self, token: str | None) -> None:
        """Switch identity; cached entries from the previous identity are dropped."""
        if token != self._token:
            self.cache.clear()
        self._token = token

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def fetch_with_cache(self, path: str, key: str, ttl: float, params: dict[str, Any] | None = None) -> Any:
        if self.cache.has(key):
            return self.cache.get(key)

        stale = self.cache.get_stale(key)
        try:
            resp = self._http.get(path, params=params, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            if stale is not None:
                logger.warning("course_api_serving_stale", path=path, key=key, error=str(exc))
                return stale
            raise UpstreamError(f"Course API request failed: {path}", code=ErrorCode.UPSTREAM_UNAVAILABLE) from exc

        self.cache.set(key, data, ttl)
        return data

    def list_courses(self) -> dict[str, Any]:
        return self.fetch_with_cache("/v1/courses", COURSES_KEY, COURSES_TTL)

    def get_course(self, course_id: str) -> dict[str, Any]:
        return self.fetch_with_cache(f"/v1/courses/{course_id}", course_detail_key(course_id), COURSE_DETAIL_TTL)

    def featured_lessons(self) -> dict[str, Any]:
        return self.fetch_with_cache("/v1/lessons/featured", FEATURED_LESSONS_KEY, FEATURED_LESSONS_TTL)

    def user_access(self, course_id: str, module_id: str | None = None) -> dict[str, Any]:
        params = {"course_id": course_id}
        key = user_access_key(course_id)
        if module_id:
            params["module_id"] = module_id
            key = f"{key}_{module_id}"
        return self.fetch_with_cache("/v1/access", key, USER_ACCESS_TTL, params=params)

    def cache_read(self, key: str) -> Any | None:
        return self.cache.get(key)

    def cache_write(self, key: str, value: Any, ttl: float | None = None) -> None:
        self.cache.set(key, value, ttl)

    def cache_invalidate(self, key: str | None = None) -> None:
        if key is None:
            self.cache.clear()
        else:
            self.cache.delete(key)
