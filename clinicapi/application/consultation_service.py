"""
Consultation note service - application layer
"""
import logging
from typing import Any, Dict

from domain.exceptions import ValidationError
from domain.interfaces import ConsultationRepositoryInterface
from domain.models import ConsultationUpdate

logger = logging.getLogger(__name__)


class ConsultationService:
    """Edit and archive consultation notes"""

    def __init__(self, repository: ConsultationRepositoryInterface):
        self.repository = repository

    def update(self, page_id: str, consultation: ConsultationUpdate) -> Dict[str, Any]:
        if not page_id:
            raise ValidationError("상담일지 ID가 필요합니다.")
        if not consultation.content:
            raise ValidationError("상담내용은 필수 입력 항목입니다.")
        page = self.repository.update(page_id, consultation)
        logger.info(f"Updated consultation {page_id} ({len(consultation.image_urls)} new images)")
        return page

    def delete(self, page_id: str) -> None:
        if not page_id:
            raise ValidationError("상담일지 ID가 필요합니다.")
        self.repository.archive(page_id)
        logger.info(f"Archived consultation {page_id}")
