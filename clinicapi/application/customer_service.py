"""
Customer service - application layer
"""
import json
import logging
from typing import Any, Dict, List, Optional

from domain import face_matching
from domain.exceptions import ConfigurationError, ValidationError
from domain.interfaces import CustomerRepositoryInterface
from domain.models import CustomerUpdate, MatchResult, NewCustomer

logger = logging.getLogger(__name__)


class CustomerService:
    """Customer records and face re-identification"""

    def __init__(
        self,
        repository: CustomerRepositoryInterface,
        match_threshold: float = face_matching.MATCH_THRESHOLD,
    ):
        self.repository = repository
        self.match_threshold = match_threshold

    def search(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Search by name, else phone, else gender; no criteria returns nothing"""
        if not (name or phone or gender):
            return []
        self._require_configured()
        return self.repository.search(name=name, phone=phone, gender=gender)

    def register(self, customer: NewCustomer) -> Dict[str, Any]:
        if not customer.name:
            raise ValidationError("이름은 필수 입력 항목입니다.")
        self._require_configured()
        page = self.repository.create(customer)
        logger.info(f"Registered customer {page.get('id')}")
        return page

    def update(self, page_id: str, customer: CustomerUpdate) -> Dict[str, Any]:
        if not customer.name:
            raise ValidationError("이름은 필수 입력 항목입니다.")
        page = self.repository.update(page_id, customer)
        logger.info(f"Updated customer {page_id}")
        return page

    def delete(self, page_id: str) -> None:
        if not page_id:
            raise ValidationError("고객 ID가 필요합니다.")
        self.repository.archive(page_id)
        logger.info(f"Archived customer {page_id}")

    def find_by_face(
        self,
        face_embedding: Any,
        gender: Optional[str] = None,
        age: Optional[float] = None,
    ) -> MatchResult:
        """
        Rank stored customers by similarity to a face embedding.

        face_embedding may be a JSON string or an already decoded object,
        in either the flat or the nested "embedding" shape. gender and age
        from the request body fill in whatever the embedding lacks.
        """
        if face_embedding is None or face_embedding == "":
            raise ValidationError("얼굴 임베딩 데이터가 필요합니다.")

        if isinstance(face_embedding, str):
            try:
                face_embedding = json.loads(face_embedding)
            except ValueError as e:
                raise ValidationError("얼굴 임베딩 데이터 형식이 올바르지 않습니다.", str(e)) from e

        self._require_configured()

        if isinstance(face_embedding, dict):
            face_embedding = dict(face_embedding)
            if not face_embedding.get("gender") and isinstance(gender, str) and gender:
                face_embedding["gender"] = gender
            if not face_matching.is_number(face_embedding.get("age")) and face_matching.is_number(age):
                face_embedding["age"] = age

        query = face_matching.normalize(face_embedding)
        logger.info(f"Normalized query embedding: {query.to_dict()}")

        candidates = self.repository.fetch_candidates_with_embedding()
        if not candidates:
            return MatchResult()

        result = face_matching.rank(query, candidates, threshold=self.match_threshold)
        for match in result.matches:
            name = self.repository.get_customer_display_name(match.record)
            logger.info(f"Matched customer {name}: {match.similarity * 100:.1f}%")
        return result

    def _require_configured(self):
        if not self.repository.is_configured():
            raise ConfigurationError("노션 고객 DB ID가 설정되지 않았습니다.")
