import json
from typing import Dict, List, Optional

import pytest

from app import create_app
from config import Config
from domain.exceptions import RecordStoreError
from domain.interfaces import (
    ConsultationRepositoryInterface,
    CustomerRepositoryInterface,
    DailyIncomeRepositoryInterface,
    PurchaseRepositoryInterface,
)
from domain.models import CandidateRecord, PurchaseStatus


MALE_QUERY = {
    "eyeDistanceRatio": 0.45,
    "eyeNoseRatio": 0.35,
    "noseMouthRatio": 0.25,
    "symmetryScore": 0.8,
    "contourFeatures": "각진 형태",
    "gender": "남성",
    "age": 30,
    "imageQualityScore": 100,
}


def make_page(page_id: str, name: Optional[str] = None, embedding: Optional[str] = None) -> dict:
    properties = {}
    if name is not None:
        properties["고객명"] = {"rich_text": [{"type": "text", "text": {"content": name}}]}
    if embedding is not None:
        properties["얼굴_임베딩"] = {"rich_text": [{"type": "text", "text": {"content": embedding}}]}
    return {"object": "page", "id": page_id, "properties": properties}


def make_candidate(page_id: str, embedding, name: Optional[str] = None) -> CandidateRecord:
    text = embedding if isinstance(embedding, str) else json.dumps(embedding, ensure_ascii=False)
    return CandidateRecord(id=page_id, page=make_page(page_id, name, text), embedding_text=text)


class FakeCustomerRepository(CustomerRepositoryInterface):
    def __init__(self, candidates: Optional[List[CandidateRecord]] = None, configured: bool = True):
        self.candidates = candidates or []
        self.configured = configured
        self.fail_with: Optional[Exception] = None
        self.created = []
        self.updated = []
        self.archived = []
        self.searches = []

    def is_configured(self) -> bool:
        return self.configured

    def fetch_candidates_with_embedding(self) -> List[CandidateRecord]:
        if self.fail_with:
            raise self.fail_with
        return list(self.candidates)

    def get_customer_display_name(self, record: CandidateRecord) -> str:
        return record.id

    def search(self, name=None, phone=None, gender=None):
        self.searches.append((name, phone, gender))
        return [c.page for c in self.candidates]

    def create(self, customer):
        self.created.append(customer)
        return {"object": "page", "id": f"customer-{len(self.created)}"}

    def update(self, page_id, customer):
        if self.fail_with:
            raise self.fail_with
        self.updated.append((page_id, customer))
        return {"object": "page", "id": page_id}

    def archive(self, page_id):
        if self.fail_with:
            raise self.fail_with
        self.archived.append(page_id)


class FakeConsultationRepository(ConsultationRepositoryInterface):
    def __init__(self):
        self.updated = []
        self.archived = []

    def update(self, page_id, consultation):
        self.updated.append((page_id, consultation))
        return {"object": "page", "id": page_id}

    def archive(self, page_id):
        self.archived.append(page_id)


class FakeDailyIncomeRepository(DailyIncomeRepositoryInterface):
    def __init__(self):
        self.pages: Dict[str, dict] = {}

    def get(self, day):
        return self.pages.get(day)

    def save(self, day, properties):
        page = {"id": f"income-{day}", "properties": properties}
        self.pages[day] = page
        return page


class FakePurchaseRepository(PurchaseRepositoryInterface):
    def __init__(self):
        self.requests = {}

    def add(self, request):
        request.id = f"purchase-{len(self.requests) + 1}"
        self.requests[request.id] = request
        return request

    def get(self, request_id):
        return self.requests.get(request_id)

    def list(self, requester_id=None, status=None):
        return [
            r for r in self.requests.values()
            if (requester_id is None or r.requester_id == requester_id)
            and (status is None or r.status == status)
        ]

    def set_status(self, request_id, status: PurchaseStatus, decided_by: str):
        request = self.requests[request_id]
        request.status = status
        request.decided_by = decided_by
        return request


class StubConfig(Config):
    DEBUG = False
    TESTING = True
    MATCH_THRESHOLD = 0.6


@pytest.fixture
def repositories():
    return {
        "customers": FakeCustomerRepository(),
        "consultations": FakeConsultationRepository(),
        "daily_income": FakeDailyIncomeRepository(),
        "purchases": FakePurchaseRepository(),
    }


@pytest.fixture
def client(repositories):
    app = create_app(StubConfig(), repositories=repositories)
    app.testing = True
    return app.test_client()


@pytest.fixture
def store_error():
    return RecordStoreError("Records service unreachable", "connection refused")
