"""
Domain interfaces (ports)
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models import (
    CandidateRecord,
    ConsultationUpdate,
    CustomerUpdate,
    NewCustomer,
    PurchaseRequest,
    PurchaseStatus,
)


class CustomerRepositoryInterface(ABC):
    """Interface for the customer database"""

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the customer database id is set"""
        pass

    @abstractmethod
    def fetch_candidates_with_embedding(self) -> List[CandidateRecord]:
        """Fetch every customer whose face embedding is not empty"""
        pass

    @abstractmethod
    def get_customer_display_name(self, record: CandidateRecord) -> str:
        """Customer name, or the record id when the name is missing"""
        pass

    @abstractmethod
    def search(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Search customers by the first given criterion"""
        pass

    @abstractmethod
    def create(self, customer: NewCustomer) -> Dict[str, Any]:
        """Create a customer page"""
        pass

    @abstractmethod
    def update(self, page_id: str, customer: CustomerUpdate) -> Dict[str, Any]:
        """Overwrite a customer page's properties"""
        pass

    @abstractmethod
    def archive(self, page_id: str) -> None:
        """Archive (soft delete) a customer page"""
        pass


class ConsultationRepositoryInterface(ABC):
    """Interface for the consultation note database"""

    @abstractmethod
    def update(self, page_id: str, consultation: ConsultationUpdate) -> Dict[str, Any]:
        """Update a consultation page, appending new images"""
        pass

    @abstractmethod
    def archive(self, page_id: str) -> None:
        """Archive (soft delete) a consultation page"""
        pass


class DailyIncomeRepositoryInterface(ABC):
    """Interface for the daily income ledger"""

    @abstractmethod
    def get(self, day: str) -> Optional[Dict[str, Any]]:
        """Get the ledger page for a date (YYYY-MM-DD)"""
        pass

    @abstractmethod
    def save(self, day: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Create or update the ledger page for a date"""
        pass


class PurchaseRepositoryInterface(ABC):
    """Interface for employee purchase requests"""

    @abstractmethod
    def add(self, request: PurchaseRequest) -> PurchaseRequest:
        """Store a new request and return it with its id"""
        pass

    @abstractmethod
    def get(self, request_id: str) -> Optional[PurchaseRequest]:
        """Get a request by id"""
        pass

    @abstractmethod
    def list(
        self,
        requester_id: Optional[str] = None,
        status: Optional[PurchaseStatus] = None,
    ) -> List[PurchaseRequest]:
        """List requests, optionally filtered"""
        pass

    @abstractmethod
    def set_status(self, request_id: str, status: PurchaseStatus, decided_by: str) -> PurchaseRequest:
        """Record an approval decision"""
        pass
