def test_update_consultation(client, repositories):
    response = client.put("/api/consultation/note-1", json={
        "content": "두통 호소, 수면 부족",
        "consultDate": "2024-03-02",
        "imageUrls": ["https://img.example.com/a.jpg", "", 3],
    })

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "consultation": {"object": "page", "id": "note-1"}}
    page_id, update = repositories["consultations"].updated[0]
    assert page_id == "note-1"
    assert update.consult_date == "2024-03-02"
    assert update.image_urls == ["https://img.example.com/a.jpg"]


def test_update_consultation_requires_content(client, repositories):
    response = client.put("/api/consultation/note-1", json={"medicine": "타이레놀"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "상담내용은 필수 입력 항목입니다."}
    assert repositories["consultations"].updated == []


def test_delete_consultation(client, repositories):
    response = client.delete("/api/consultation/note-2")
    assert response.get_json() == {"success": True, "message": "상담일지가 삭제되었습니다."}
    assert repositories["consultations"].archived == ["note-2"]


def test_daily_income_round_trip(client):
    assert client.get("/api/daily-income/2024-05-01").get_json() == {"success": True, "income": None}

    response = client.put("/api/daily-income/2024-05-01", json={"현금": {"number": 120000}})
    assert response.get_json()["income"]["id"] == "income-2024-05-01"

    body = client.get("/api/daily-income/2024-05-01").get_json()
    assert body["income"]["properties"] == {"현금": {"number": 120000}}


def test_daily_income_rejects_bad_date(client):
    response = client.get("/api/daily-income/yesterday")
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_daily_income_requires_properties(client):
    response = client.put("/api/daily-income/2024-05-01", json={})
    assert response.status_code == 400
