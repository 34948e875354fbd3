"""
Notion implementations of the repository interfaces
"""
import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from domain.exceptions import ConfigurationError, NotFoundError, RecordStoreError
from domain.interfaces import (
    ConsultationRepositoryInterface,
    CustomerRepositoryInterface,
    DailyIncomeRepositoryInterface,
    PurchaseRepositoryInterface,
)
from domain.models import (
    CandidateRecord,
    ConsultationUpdate,
    CustomerUpdate,
    NewCustomer,
    PurchaseRequest,
    PurchaseStatus,
    Role,
)
from infrastructure import notion_schema as schema
from infrastructure.notion_client import NotionClient

logger = logging.getLogger(__name__)


def _require(database_id: str, label: str) -> str:
    if not database_id:
        raise ConfigurationError(f"Notion {label} database id is not configured")
    return database_id


class NotionCustomerRepository(CustomerRepositoryInterface):
    """Customer pages in the Notion customer database"""

    def __init__(self, client: NotionClient, database_id: str, max_photo_url_length: int = 2000):
        self.client = client
        self.database_id = database_id
        self.max_photo_url_length = max_photo_url_length

    def is_configured(self) -> bool:
        return bool(self.database_id)

    def fetch_candidates_with_embedding(self) -> List[CandidateRecord]:
        database_id = _require(self.database_id, "customer")
        pages = self.client.iter_database(database_id, filter={
            "property": schema.CUSTOMER_FACE_EMBEDDING,
            "rich_text": {"is_not_empty": True},
        })

        candidates = []
        for page in pages:
            text = schema.read_text(page, schema.CUSTOMER_FACE_EMBEDDING)
            if text:
                candidates.append(CandidateRecord(id=page.get("id", ""), page=page, embedding_text=text))

        logger.info(f"Fetched {len(candidates)} customers with face embeddings")
        return candidates

    def get_customer_display_name(self, record: CandidateRecord) -> str:
        try:
            name = schema.read_text(record.page, schema.CUSTOMER_NAME)
        except AttributeError:
            name = ""
        return name or record.id

    def search(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        if name:
            filter = {"property": schema.CUSTOMER_NAME, "rich_text": {"contains": name}}
        elif phone:
            filter = {"property": schema.CUSTOMER_PHONE, "phone_number": {"contains": phone}}
        elif gender:
            filter = {"property": schema.CUSTOMER_GENDER, "select": {"equals": gender}}
        else:
            return []

        database_id = _require(self.database_id, "customer")
        return list(self.client.iter_database(database_id, filter=filter))

    def create(self, customer: NewCustomer) -> Dict[str, Any]:
        database_id = _require(self.database_id, "customer")

        properties: Dict[str, Any] = {schema.CUSTOMER_NAME: schema.rich_text(customer.name)}
        if customer.phone:
            properties[schema.CUSTOMER_PHONE] = schema.phone_number(customer.phone)
        if customer.gender:
            properties[schema.CUSTOMER_GENDER] = schema.select(customer.gender)
        if customer.birth:
            properties[schema.CUSTOMER_BIRTH] = schema.date_value(customer.birth)
        if customer.address:
            properties[schema.CUSTOMER_ADDRESS] = schema.rich_text(customer.address)

        if customer.photo_url:
            if len(customer.photo_url) <= self.max_photo_url_length:
                properties[schema.CUSTOMER_PHOTO] = schema.files([
                    schema.external_file(f"{customer.name}_photo.jpg", customer.photo_url),
                ])
            else:
                logger.warning(f"Photo URL too long, not stored (length: {len(customer.photo_url)})")

        if customer.face_embedding:
            properties[schema.CUSTOMER_FACE_EMBEDDING] = schema.rich_text(customer.face_embedding)

        return self.client.create_page(database_id, properties)

    def update(self, page_id: str, customer: CustomerUpdate) -> Dict[str, Any]:
        properties = {
            schema.CUSTOMER_ID: schema.title(customer.customer_id),
            schema.CUSTOMER_NAME: schema.rich_text(customer.name),
            schema.CUSTOMER_PHONE: schema.phone_number(customer.phone),
            schema.CUSTOMER_GENDER: schema.select(customer.gender),
            schema.CUSTOMER_BIRTH: schema.date_value(customer.birth),
            schema.CUSTOMER_ESTIMATED_AGE: schema.number(customer.estimated_age),
            schema.CUSTOMER_ADDRESS: schema.rich_text(customer.address),
            schema.CUSTOMER_FOLDER_ID: schema.rich_text(customer.customer_folder_id),
            schema.CUSTOMER_SPECIAL_NOTE: schema.rich_text(customer.special_note),
        }
        logger.info(f"Updating customer {page_id}")
        return self.client.update_page(page_id, properties=properties)

    def archive(self, page_id: str) -> None:
        self.client.update_page(page_id, archived=True)


class NotionConsultationRepository(ConsultationRepositoryInterface):
    """Consultation note pages"""

    def __init__(self, client: NotionClient):
        self.client = client

    def update(self, page_id: str, consultation: ConsultationUpdate) -> Dict[str, Any]:
        properties: Dict[str, Any] = {
            schema.CONSULTATION_CONTENT: schema.rich_text(consultation.content),
        }
        if consultation.consult_date:
            properties[schema.CONSULTATION_DATE] = schema.date_value(consultation.consult_date)
        if consultation.medicine:
            properties[schema.CONSULTATION_MEDICINE] = schema.rich_text(consultation.medicine)
        if consultation.result:
            properties[schema.CONSULTATION_RESULT] = schema.rich_text(consultation.result)

        if consultation.image_urls:
            page = self.client.retrieve_page(page_id)
            existing = schema.read_files(page, schema.CONSULTATION_IMAGES)
            added = [
                schema.external_file(f"새로운_이미지_{index}.jpg", url)
                for index, url in enumerate(consultation.image_urls, start=1)
            ]
            properties[schema.CONSULTATION_IMAGES] = schema.files(existing + added)

        return self.client.update_page(page_id, properties=properties)

    def archive(self, page_id: str) -> None:
        self.client.update_page(page_id, archived=True)


class NotionDailyIncomeRepository(DailyIncomeRepositoryInterface):
    """Daily income ledger with a short-lived read cache"""

    def __init__(
        self,
        client: NotionClient,
        database_id: str,
        cache_duration: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.database_id = database_id
        self.cache_duration = cache_duration
        self.clock = clock
        self._cache: Dict[str, Tuple[float, Optional[Dict[str, Any]]]] = {}

    def get(self, day: str) -> Optional[Dict[str, Any]]:
        cached = self._cache.get(day)
        if cached and self.clock() - cached[0] < self.cache_duration:
            return cached[1]

        database_id = _require(self.database_id, "daily income")
        response = self.client.query_database(database_id, filter={
            "property": schema.INCOME_DATE,
            "date": {"equals": day},
        })
        results = response.get("results") or []
        page = results[0] if results else None
        self._cache[day] = (self.clock(), page)
        return page

    def save(self, day: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        existing = self.get(day)
        self._cache.pop(day, None)

        if existing:
            return self.client.update_page(existing["id"], properties=properties)

        database_id = _require(self.database_id, "daily income")
        return self.client.create_page(database_id, {
            schema.INCOME_DATE: schema.date_value(day),
            **properties,
        })


_STATUS_LABELS = {
    PurchaseStatus.PENDING: "대기",
    PurchaseStatus.APPROVED: "승인",
    PurchaseStatus.REJECTED: "거절",
}
_STATUS_BY_LABEL = {label: status for status, label in _STATUS_LABELS.items()}


class NotionPurchaseRepository(PurchaseRepositoryInterface):
    """Employee purchase requests"""

    def __init__(self, client: NotionClient, database_id: str):
        self.client = client
        self.database_id = database_id

    def _to_properties(self, request: PurchaseRequest) -> Dict[str, Any]:
        return {
            schema.PURCHASE_ITEM: schema.title(request.item_name),
            schema.PURCHASE_AMOUNT: schema.number(request.amount),
            schema.PURCHASE_QUANTITY: schema.number(request.quantity),
            schema.PURCHASE_NOTE: schema.rich_text(request.note),
            schema.PURCHASE_REQUESTER_ID: schema.rich_text(request.requester_id),
            schema.PURCHASE_REQUESTER_NAME: schema.rich_text(request.requester_name),
            schema.PURCHASE_REQUESTER_ROLE: schema.select(request.requester_role.value),
            schema.PURCHASE_PHOTOS: schema.files([
                schema.external_file(f"purchase_{index}.jpg", url)
                for index, url in enumerate(request.photo_urls, start=1)
            ]),
            schema.PURCHASE_STATUS: schema.select(_STATUS_LABELS[request.status]),
            schema.PURCHASE_DATE: schema.date_value(
                request.request_date.isoformat() if request.request_date else None
            ),
        }

    def _from_page(self, page: Dict[str, Any]) -> PurchaseRequest:
        try:
            role = Role(schema.read_select(page, schema.PURCHASE_REQUESTER_ROLE))
            status = _STATUS_BY_LABEL[schema.read_select(page, schema.PURCHASE_STATUS)]
        except (KeyError, ValueError) as e:
            raise RecordStoreError("Malformed purchase request page", page.get("id")) from e

        request_date = schema.read_date(page, schema.PURCHASE_DATE)
        photos = [schema.file_url(item) for item in schema.read_files(page, schema.PURCHASE_PHOTOS)]
        return PurchaseRequest(
            id=page.get("id"),
            item_name=schema.read_text(page, schema.PURCHASE_ITEM),
            amount=int(schema.read_number(page, schema.PURCHASE_AMOUNT) or 0),
            quantity=int(schema.read_number(page, schema.PURCHASE_QUANTITY) or 1),
            note=schema.read_text(page, schema.PURCHASE_NOTE),
            requester_id=schema.read_text(page, schema.PURCHASE_REQUESTER_ID),
            requester_name=schema.read_text(page, schema.PURCHASE_REQUESTER_NAME),
            requester_role=role,
            photo_urls=[url for url in photos if url],
            status=status,
            request_date=date.fromisoformat(request_date[:10]) if request_date else None,
            decided_by=schema.read_text(page, schema.PURCHASE_DECIDED_BY) or None,
        )

    def add(self, request: PurchaseRequest) -> PurchaseRequest:
        database_id = _require(self.database_id, "purchase")
        page = self.client.create_page(database_id, self._to_properties(request))
        return self._from_page(page)

    def get(self, request_id: str) -> Optional[PurchaseRequest]:
        try:
            page = self.client.retrieve_page(request_id)
        except RecordStoreError as e:
            if e.status_code == 404:
                return None
            raise
        if page.get("archived"):
            return None
        return self._from_page(page)

    def list(
        self,
        requester_id: Optional[str] = None,
        status: Optional[PurchaseStatus] = None,
    ) -> List[PurchaseRequest]:
        database_id = _require(self.database_id, "purchase")

        conditions = []
        if requester_id:
            conditions.append({"property": schema.PURCHASE_REQUESTER_ID, "rich_text": {"equals": requester_id}})
        if status:
            conditions.append({"property": schema.PURCHASE_STATUS, "select": {"equals": _STATUS_LABELS[status]}})

        if len(conditions) > 1:
            filter = {"and": conditions}
        else:
            filter = conditions[0] if conditions else None

        return [self._from_page(page) for page in self.client.iter_database(database_id, filter=filter)]

    def set_status(self, request_id: str, status: PurchaseStatus, decided_by: str) -> PurchaseRequest:
        try:
            page = self.client.update_page(request_id, properties={
                schema.PURCHASE_STATUS: schema.select(_STATUS_LABELS[status]),
                schema.PURCHASE_DECIDED_BY: schema.rich_text(decided_by),
            })
        except RecordStoreError as e:
            if e.status_code == 404:
                raise NotFoundError("Purchase request not found", request_id) from e
            raise
        return self._from_page(page)
