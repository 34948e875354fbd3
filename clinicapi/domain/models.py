"""
Domain models/entities
"""
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FeatureSummary:
    """Facial-geometry fingerprint computed on the client (ratios in 0-1)"""
    eye_distance_ratio: Optional[float] = None
    eye_nose_ratio: Optional[float] = None
    nose_mouth_ratio: Optional[float] = None
    symmetry_score: Optional[float] = None
    contour_features: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[float] = None
    image_quality_score: Optional[float] = None  # 0-100

    def with_values(self, **changes) -> "FeatureSummary":
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to the camelCase shape the client sends"""
        return {
            "eyeDistanceRatio": self.eye_distance_ratio,
            "eyeNoseRatio": self.eye_nose_ratio,
            "noseMouthRatio": self.nose_mouth_ratio,
            "symmetryScore": self.symmetry_score,
            "contourFeatures": self.contour_features,
            "gender": self.gender,
            "age": self.age,
            "imageQualityScore": self.image_quality_score,
        }


@dataclass(frozen=True)
class CandidateRecord:
    """Stored customer page eligible for face matching"""
    id: str
    page: Dict[str, Any]
    embedding_text: str  # serialized FeatureSummary as stored in the page


@dataclass(frozen=True)
class DecodedCandidate:
    """Outcome of decoding one candidate's stored embedding"""
    record: CandidateRecord
    summary: Optional[FeatureSummary] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.summary is not None


@dataclass(frozen=True)
class Match:
    """Single ranked candidate"""
    record: CandidateRecord
    similarity: float


@dataclass
class MatchResult:
    """Candidates above threshold, sorted by similarity descending"""
    matches: List[Match] = field(default_factory=list)

    @property
    def customers(self) -> List[Dict[str, Any]]:
        return [m.record.page for m in self.matches]

    @property
    def similarities(self) -> List[float]:
        return [m.similarity for m in self.matches]

    def __len__(self) -> int:
        return len(self.matches)


class Role(str, Enum):
    """Employee purchase roles"""
    STAFF = "staff"
    MANAGER = "manager"
    OWNER = "owner"

    @property
    def display_name(self) -> str:
        return {
            Role.STAFF: "family",
            Role.MANAGER: "secretary",
            Role.OWNER: "master",
        }[self]


@dataclass(frozen=True)
class User:
    """Acting user of the purchase workflow"""
    id: str
    name: str
    role: Role

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "roleName": self.role.display_name,
        }


class PurchaseStatus(str, Enum):
    """Purchase request lifecycle"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class PurchaseRequest:
    """Employee purchase request"""
    item_name: str
    amount: int  # KRW
    requester_id: str
    requester_name: str
    requester_role: Role
    photo_urls: List[str]
    quantity: int = 1
    note: str = ""
    status: PurchaseStatus = PurchaseStatus.PENDING
    request_date: Optional[date] = None
    decided_by: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "itemName": self.item_name,
            "amount": self.amount,
            "quantity": self.quantity,
            "note": self.note,
            "requesterId": self.requester_id,
            "requesterName": self.requester_name,
            "requesterRole": self.requester_role.value,
            "photoUrls": list(self.photo_urls),
            "status": self.status.value,
            "requestDate": self.request_date.isoformat() if self.request_date else None,
            "decidedBy": self.decided_by,
        }


@dataclass
class PurchaseReport:
    """Owner's purchase statistics"""
    month: Optional[str]
    counts: Dict[str, int]
    approved_total: int
    approved_by_requester: Dict[str, int]

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "counts": dict(self.counts),
            "approvedTotal": self.approved_total,
            "approvedByRequester": dict(self.approved_by_requester),
        }


@dataclass(frozen=True)
class HealthStatus:
    """Service health status"""
    status: str
    records_service: str
    version: str

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "recordsService": self.records_service,
            "version": self.version,
        }


@dataclass
class NewCustomer:
    """Customer registration form"""
    name: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    birth: Optional[str] = None  # YYYY-MM-DD
    address: Optional[str] = None
    photo_url: Optional[str] = None
    face_embedding: Optional[str] = None  # serialized FeatureSummary


@dataclass
class CustomerUpdate:
    """Full customer edit; unset optional fields are cleared"""
    name: str
    customer_id: str = ""
    phone: Optional[str] = None
    gender: Optional[str] = None
    birth: Optional[str] = None
    estimated_age: Optional[int] = None
    address: Optional[str] = None
    customer_folder_id: Optional[str] = None
    special_note: Optional[str] = None


@dataclass
class ConsultationUpdate:
    """Consultation note edit; unset optional fields are left as stored"""
    content: str
    consult_date: Optional[str] = None
    medicine: Optional[str] = None
    result: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
