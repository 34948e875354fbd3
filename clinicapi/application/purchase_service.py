"""
Employee purchase workflow - application layer

Family (staff) and secretaries (managers) file purchase requests with a
photo of the item. Secretaries decide requests filed by family members;
the master (owner) decides any request and sees the reports. Nobody
decides their own request.
"""
import logging
import re
from collections import Counter, defaultdict
from datetime import date
from typing import Callable, List, Optional

from domain.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from domain.interfaces import PurchaseRepositoryInterface
from domain.models import PurchaseReport, PurchaseRequest, PurchaseStatus, Role, User

logger = logging.getLogger(__name__)

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _positive_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", value)
    return value


def can_decide(user: User, request: PurchaseRequest) -> bool:
    """Whether user may approve or reject request"""
    if user.id == request.requester_id:
        return False
    if user.role == Role.OWNER:
        return True
    return user.role == Role.MANAGER and request.requester_role == Role.STAFF


class PurchaseService:
    """Employee purchase request workflow"""

    def __init__(
        self,
        repository: PurchaseRepositoryInterface,
        today: Callable[[], date] = date.today,
    ):
        self.repository = repository
        self.today = today

    def create(
        self,
        user: User,
        item_name: str,
        amount,
        photo_urls: List[str],
        quantity=1,
        note: str = "",
    ) -> PurchaseRequest:
        if user.role == Role.OWNER:
            raise PermissionDeniedError("master 계정은 구매 신청을 할 수 없습니다.")
        if not isinstance(item_name, str) or not item_name.strip():
            raise ValidationError("물품명은 필수 입력 항목입니다.")
        amount = _positive_int(amount, "amount")
        quantity = _positive_int(quantity, "quantity")
        photos = [url for url in (photo_urls or []) if isinstance(url, str) and url]
        if not photos:
            raise ValidationError("물품 사진을 첨부해주세요.")

        request = self.repository.add(PurchaseRequest(
            item_name=item_name.strip(),
            amount=amount,
            quantity=quantity,
            note=note or "",
            requester_id=user.id,
            requester_name=user.name,
            requester_role=user.role,
            photo_urls=photos,
            request_date=self.today(),
        ))
        logger.info(f"Purchase request {request.id} filed by {user.id}: {item_name} ({amount})")
        return request

    def my_requests(self, user: User) -> List[PurchaseRequest]:
        if user.role == Role.OWNER:
            raise PermissionDeniedError("master 계정은 구매 내역이 없습니다.")
        return self.repository.list(requester_id=user.id)

    def pending(self, user: User) -> List[PurchaseRequest]:
        """Pending requests the user is allowed to decide"""
        if user.role == Role.STAFF:
            raise PermissionDeniedError("승인 권한이 없습니다.")
        requests = self.repository.list(status=PurchaseStatus.PENDING)
        return [r for r in requests if can_decide(user, r)]

    def approve(self, user: User, request_id: str) -> PurchaseRequest:
        return self._decide(user, request_id, PurchaseStatus.APPROVED)

    def reject(self, user: User, request_id: str) -> PurchaseRequest:
        return self._decide(user, request_id, PurchaseStatus.REJECTED)

    def _decide(self, user: User, request_id: str, status: PurchaseStatus) -> PurchaseRequest:
        request = self.repository.get(request_id)
        if request is None:
            raise NotFoundError("구매 요청을 찾을 수 없습니다.", request_id)
        if not can_decide(user, request):
            raise PermissionDeniedError("이 요청을 처리할 권한이 없습니다.")
        if request.status != PurchaseStatus.PENDING:
            raise InvalidStateError("이미 처리된 요청입니다.", request.status.value)

        updated = self.repository.set_status(request_id, status, decided_by=user.name)
        logger.info(f"Purchase request {request_id} {status.value} by {user.id}")
        return updated

    def report(self, user: User, month: Optional[str] = None) -> PurchaseReport:
        """Owner statistics, optionally limited to one month (YYYY-MM)"""
        if user.role != Role.OWNER:
            raise PermissionDeniedError("통계는 master만 확인할 수 있습니다.")
        if month and not _MONTH_PATTERN.match(month):
            raise ValidationError("월 형식이 올바르지 않습니다. (YYYY-MM)", month)

        requests = self.repository.list()
        if month:
            requests = [
                r for r in requests
                if r.request_date and r.request_date.strftime("%Y-%m") == month
            ]

        counts = Counter(r.status.value for r in requests)
        by_requester = defaultdict(int)
        for r in requests:
            if r.status == PurchaseStatus.APPROVED:
                by_requester[r.requester_name] += r.amount

        return PurchaseReport(
            month=month or None,
            counts={status.value: counts.get(status.value, 0) for status in PurchaseStatus},
            approved_total=sum(by_requester.values()),
            approved_by_requester=dict(by_requester),
        )
