from datetime import date

import pytest

from application.purchase_service import PurchaseService, can_decide
from domain.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from domain.models import PurchaseStatus, Role, User

from conftest import FakePurchaseRepository

STAFF = User(id="u1", name="민지", role=Role.STAFF)
OTHER_STAFF = User(id="u2", name="서준", role=Role.STAFF)
MANAGER = User(id="m1", name="비서", role=Role.MANAGER)
OWNER = User(id="o1", name="원장", role=Role.OWNER)

PHOTO = ["https://img.example.com/item.jpg"]


@pytest.fixture
def service():
    return PurchaseService(FakePurchaseRepository(), today=lambda: date(2024, 6, 3))


def test_staff_files_request(service):
    request = service.create(STAFF, "마스크팩", 15000, PHOTO, quantity=2)
    assert request.id == "purchase-1"
    assert request.status == PurchaseStatus.PENDING
    assert request.request_date == date(2024, 6, 3)
    assert request.requester_role == Role.STAFF
    assert service.my_requests(STAFF) == [request]
    assert service.my_requests(OTHER_STAFF) == []


def test_owner_cannot_file_request(service):
    with pytest.raises(PermissionDeniedError):
        service.create(OWNER, "마스크팩", 15000, PHOTO)


@pytest.mark.parametrize("item, amount, photos, quantity", [
    ("", 1000, PHOTO, 1),
    ("크림", 0, PHOTO, 1),
    ("크림", "1000", PHOTO, 1),
    ("크림", True, PHOTO, 1),
    ("크림", 1000, [], 1),
    ("크림", 1000, PHOTO, 0),
])
def test_create_validates_input(service, item, amount, photos, quantity):
    with pytest.raises(ValidationError):
        service.create(STAFF, item, amount, photos, quantity=quantity)


def test_manager_decides_staff_requests_only(service):
    staff_request = service.create(STAFF, "크림", 30000, PHOTO)
    manager_request = service.create(MANAGER, "앰플", 50000, PHOTO)

    assert service.pending(MANAGER) == [staff_request]
    assert can_decide(MANAGER, staff_request)
    assert not can_decide(MANAGER, manager_request)

    approved = service.approve(MANAGER, staff_request.id)
    assert approved.status == PurchaseStatus.APPROVED
    assert approved.decided_by == "비서"

    with pytest.raises(PermissionDeniedError):
        service.approve(MANAGER, manager_request.id)


def test_owner_decides_any_request(service):
    manager_request = service.create(MANAGER, "앰플", 50000, PHOTO)
    assert service.pending(OWNER) == [manager_request]
    assert service.reject(OWNER, manager_request.id).status == PurchaseStatus.REJECTED


def test_staff_cannot_see_pending(service):
    with pytest.raises(PermissionDeniedError):
        service.pending(STAFF)


def test_decided_request_cannot_change(service):
    request = service.create(STAFF, "크림", 30000, PHOTO)
    service.approve(OWNER, request.id)
    with pytest.raises(InvalidStateError):
        service.reject(OWNER, request.id)


def test_unknown_request(service):
    with pytest.raises(NotFoundError):
        service.approve(OWNER, "missing")


def test_report_totals(service):
    first = service.create(STAFF, "크림", 30000, PHOTO)
    second = service.create(OTHER_STAFF, "토너", 20000, PHOTO)
    third = service.create(STAFF, "앰플", 10000, PHOTO)
    service.create(MANAGER, "마스크", 5000, PHOTO)
    service.approve(OWNER, first.id)
    service.approve(OWNER, third.id)
    service.reject(OWNER, second.id)

    report = service.report(OWNER, month="2024-06")

    assert report.counts == {"pending": 1, "approved": 2, "rejected": 1}
    assert report.approved_total == 40000
    assert report.approved_by_requester == {"민지": 40000}
    assert service.report(OWNER, month="2024-05").counts == {"pending": 0, "approved": 0, "rejected": 0}


def test_report_is_owner_only(service):
    with pytest.raises(PermissionDeniedError):
        service.report(MANAGER)
    with pytest.raises(ValidationError):
        service.report(OWNER, month="2024-13")
