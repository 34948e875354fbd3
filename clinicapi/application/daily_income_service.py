"""
Daily income ledger service - application layer
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from domain.exceptions import ValidationError
from domain.interfaces import DailyIncomeRepositoryInterface

logger = logging.getLogger(__name__)


def _validate_day(day: str) -> str:
    try:
        return date.fromisoformat(day).isoformat()
    except (TypeError, ValueError) as e:
        raise ValidationError("날짜 형식이 올바르지 않습니다. (YYYY-MM-DD)", day) from e


class DailyIncomeService:
    """Read and write one ledger page per day"""

    def __init__(self, repository: DailyIncomeRepositoryInterface):
        self.repository = repository

    def get(self, day: str) -> Optional[Dict[str, Any]]:
        return self.repository.get(_validate_day(day))

    def save(self, day: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(properties, dict) or not properties:
            raise ValidationError("저장할 데이터가 없습니다.")
        day = _validate_day(day)
        page = self.repository.save(day, properties)
        logger.info(f"Saved daily income for {day}")
        return page
