from app.models import Lesson, Quiz, QuizQuestion


def test_healthz(api):
    assert api.get("/healthz").json() == {"status": "ok"}


def test_course_list_shows_published_courses_with_outlines(api, make_course):
    published, modules = make_course(price_minor=0)
    draft, _ = make_course(is_published=False)

    resp = api.get("/v1/courses")

    assert resp.status_code == 200
    courses = {item["id"]: item for item in resp.json()["courses"]}
    assert str(draft.id) not in courses
    listed = courses[str(published.id)]
    assert listed["is_free"] is True
    assert [m["id"] for m in listed["modules"]] == [str(m.id) for m in modules]


def test_course_detail_by_id_or_slug(api, make_course):
    course, _ = make_course()

    by_id = api.get(f"/v1/courses/{course.id}")
    by_slug = api.get(f"/v1/courses/{course.slug}")

    assert by_id.status_code == 200
    assert by_slug.json()["id"] == str(course.id)
    assert by_slug.json()["price_minor"] == 49900
    assert len(by_slug.json()["modules"]) == 2


def test_unpublished_course_detail_is_not_found(api, make_course):
    draft, _ = make_course(is_published=False)
    resp = api.get(f"/v1/courses/{draft.slug}")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "COURSE_NOT_FOUND"


def test_free_module_content_requires_enrollment(api, db, make_account, make_course, auth_headers):
    account = make_account()
    course, modules = make_course()
    db.add(Lesson(module_id=modules[0].id, title="Intro", slug="intro-free", content="hello", is_published=True))
    db.add(Lesson(module_id=modules[0].id, title="Draft", slug="intro-draft", content="wip", is_published=False))
    quiz = Quiz(module_id=modules[0].id, title="Warm-up")
    db.add(quiz)
    db.flush()
    db.add(QuizQuestion(quiz_id=quiz.id, type="single", question="2+2?", options=["3", "4"], correct=1))
    db.commit()
    headers = auth_headers(account)
    url = f"/v1/courses/{course.id}/modules/{modules[0].id}/content"

    denied = api.get(url, headers=headers)
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "MODULE_ACCESS_DENIED"

    assert api.post("/v1/enrollments", headers=headers, json={"course_id": str(course.id)}).status_code == 201

    content = api.get(url, headers=headers)
    assert content.status_code == 200, content.text
    body = content.json()
    assert [lesson["slug"] for lesson in body["lessons"]] == ["intro-free"]
    assert body["quizzes"][0]["questions"][0]["options"] == ["3", "4"]

    paid = api.get(f"/v1/courses/{course.id}/modules/{modules[1].id}/content", headers=headers)
    assert paid.status_code == 403


def test_enrolled_account_opens_every_module_of_free_course(api, make_account, make_course, auth_headers):
    account = make_account()
    course, modules = make_course(price_minor=0)
    headers = auth_headers(account)
    api.post("/v1/enrollments", headers=headers, json={"course_id": str(course.id)})

    resp = api.get(f"/v1/courses/{course.id}/modules/{modules[1].id}/content", headers=headers)

    assert resp.status_code == 200


def test_module_from_other_course_is_not_found(api, make_account, make_course, auth_headers):
    account = make_account()
    course, _ = make_course()
    _, other_modules = make_course()

    resp = api.get(f"/v1/courses/{course.id}/modules/{other_modules[0].id}/content", headers=auth_headers(account))

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "MODULE_NOT_FOUND"


def test_enrollment_list_and_duplicate(api, make_account, make_course, auth_headers):
    account = make_account()
    course, _ = make_course(price_minor=0)
    headers = auth_headers(account)

    created = api.post("/v1/enrollments", headers=headers, json={"course_id": str(course.id)})
    duplicate = api.post("/v1/enrollments", headers=headers, json={"course_id": str(course.id)})

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "ALREADY_ENROLLED"

    listed = api.get("/v1/enrollments", headers=headers).json()["enrollments"]
    assert len(listed) == 1
    assert listed[0]["course"]["slug"] == course.slug


def test_enroll_in_unpublished_course_is_not_found(api, make_account, make_course, auth_headers):
    account = make_account()
    draft, _ = make_course(is_published=False)

    resp = api.post("/v1/enrollments", headers=auth_headers(account), json={"course_id": str(draft.id)})

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "COURSE_UNAVAILABLE"


def test_request_validation_uses_error_envelope(api, make_account, auth_headers):
    account = make_account()
    resp = api.post("/v1/enrollments", headers=auth_headers(account), json={"course_id": "not-a-uuid"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert "course_id" in resp.json()["error"]["message"]


def test_me_returns_account(api, make_account, auth_headers):
    account = make_account()
    resp = api.get("/v1/me", headers=auth_headers(account))
    assert resp.json() == {
        "id": str(account.id),
        "external_id": account.external_id,
        "email": account.email,
        "role": "user",
    }
