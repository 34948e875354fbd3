from urllib.parse import quote

STAFF_HEADERS = {"X-User-Id": "u1", "X-User-Name": quote("민지"), "X-User-Role": "staff"}
OWNER_HEADERS = {"X-User-Id": "o1", "X-User-Name": quote("원장"), "X-User-Role": "owner"}


def _file_request(client):
    return client.post(
        "/api/employee-purchase/requests",
        json={"itemName": "크림", "amount": 30000, "photoUrls": ["https://img.example.com/c.jpg"]},
        headers=STAFF_HEADERS,
    )


def test_me_reports_role_name(client):
    body = client.get("/api/employee-purchase/me", headers=OWNER_HEADERS).get_json()
    assert body["user"] == {"id": "o1", "name": "원장", "role": "owner", "roleName": "master"}


def test_missing_user_is_unauthorized(client):
    response = client.get("/api/employee-purchase/requests")
    assert response.status_code == 401


def test_unknown_role_is_unauthorized(client):
    response = client.get("/api/employee-purchase/me", headers={"X-User-Id": "x", "X-User-Role": "admin"})
    assert response.status_code == 401


def test_request_lifecycle(client):
    created = _file_request(client)
    assert created.status_code == 201
    request_id = created.get_json()["request"]["id"]

    mine = client.get("/api/employee-purchase/requests", headers=STAFF_HEADERS).get_json()
    assert [r["id"] for r in mine["requests"]] == [request_id]

    pending = client.get("/api/employee-purchase/requests/pending", headers=OWNER_HEADERS).get_json()
    assert [r["id"] for r in pending["requests"]] == [request_id]

    approved = client.post(f"/api/employee-purchase/requests/{request_id}/approve", headers=OWNER_HEADERS)
    assert approved.get_json()["request"]["status"] == "approved"

    again = client.post(f"/api/employee-purchase/requests/{request_id}/reject", headers=OWNER_HEADERS)
    assert again.status_code == 409

    report = client.get("/api/employee-purchase/reports", headers=OWNER_HEADERS).get_json()
    assert report["report"]["approvedTotal"] == 30000


def test_staff_cannot_approve(client):
    request_id = _file_request(client).get_json()["request"]["id"]
    response = client.post(f"/api/employee-purchase/requests/{request_id}/approve", headers=STAFF_HEADERS)
    assert response.status_code == 403


def test_missing_photo_is_bad_request(client):
    response = client.post(
        "/api/employee-purchase/requests",
        json={"itemName": "크림", "amount": 30000},
        headers=STAFF_HEADERS,
    )
    assert response.status_code == 400


def test_unknown_request_is_not_found(client):
    response = client.post("/api/employee-purchase/requests/nope/approve", headers=OWNER_HEADERS)
    assert response.status_code == 404
