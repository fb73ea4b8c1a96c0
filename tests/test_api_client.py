import httpx
import pytest

from app.client.api_client import COURSES_KEY, CourseApiClient, course_detail_key, user_access_key
from app.client.cache import ClientCache
from app.core.errors import UpstreamError


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeServer:
    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.down:
            return httpx.Response(503, json={"error": {"code": "UPSTREAM_UNAVAILABLE", "message": "down"}})
        if request.url.path == "/v1/courses":
            return httpx.Response(200, json={"courses": [{"id": "c1"}], "n": len(self.calls)})
        if request.url.path == "/v1/access":
            return httpx.Response(
                200,
                json={"course_id": request.url.params["course_id"], "auth": request.headers.get("authorization")},
            )
        return httpx.Response(200, json={"path": request.url.path})


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def api_client(server: FakeServer, clock: FakeClock):
    with CourseApiClient(
        "http://testserver",
        cache=ClientCache(clock=clock),
        transport=httpx.MockTransport(server.handler),
    ) as c:
        yield c


def test_fresh_entry_is_served_without_request(api_client: CourseApiClient, server: FakeServer):
    first = api_client.list_courses()
    second = api_client.list_courses()

    assert first == second
    assert len(server.calls) == 1
    assert api_client.cache_read(COURSES_KEY) == first


def test_expired_entry_is_refetched(api_client: CourseApiClient, server: FakeServer, clock: FakeClock):
    api_client.list_courses()
    clock.now += 5 * 60 + 1

    refreshed = api_client.list_courses()

    assert len(server.calls) == 2
    assert refreshed["n"] == 2


def test_failure_falls_back_to_stale_value(api_client: CourseApiClient, server: FakeServer, clock: FakeClock):
    original = api_client.get_course("c1")
    clock.now += 10 * 60 + 1
    server.down = True

    assert api_client.get_course("c1") == original
    assert api_client.cache.is_stale(course_detail_key("c1"))


def test_failure_without_stale_value_raises_upstream_error(api_client: CourseApiClient, server: FakeServer):
    server.down = True
    with pytest.raises(UpstreamError):
        api_client.featured_lessons()


def test_set_token_clears_identity_scoped_entries(api_client: CourseApiClient, server: FakeServer):
    api_client.set_token("token-a")
    access_a = api_client.user_access("c1")
    assert access_a["auth"] == "Bearer token-a"

    api_client.set_token("token-b")
    assert api_client.cache_read(user_access_key("c1")) is None

    access_b = api_client.user_access("c1")
    assert access_b["auth"] == "Bearer token-b"
    assert len(server.calls) == 2


def test_manual_cache_write_and_invalidate(api_client: CourseApiClient, server: FakeServer):
    api_client.cache_write(COURSES_KEY, {"courses": []}, ttl=60)
    assert api_client.list_courses() == {"courses": []}
    assert server.calls == []

    api_client.cache_invalidate(COURSES_KEY)
    assert api_client.cache_read(COURSES_KEY) is None
    api_client.list_courses()
    assert len(server.calls) == 1
