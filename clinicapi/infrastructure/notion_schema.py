"""
Notion property names and value builders
"""
from typing import Any, Dict, List, Optional

# Customer database
CUSTOMER_ID = "id"  # title
CUSTOMER_NAME = "고객명"
CUSTOMER_PHONE = "전화번호"
CUSTOMER_GENDER = "성별"
CUSTOMER_BIRTH = "생년월일"
CUSTOMER_ESTIMATED_AGE = "추정나이"
CUSTOMER_ADDRESS = "주소"
CUSTOMER_PHOTO = "사진"
CUSTOMER_FACE_EMBEDDING = "얼굴_임베딩"
CUSTOMER_FOLDER_ID = "customerFolderId"
CUSTOMER_SPECIAL_NOTE = "특이사항"

# Consultation database
CONSULTATION_CONTENT = "상담내용"
CONSULTATION_DATE = "상담일자"
CONSULTATION_MEDICINE = "처방약"
CONSULTATION_RESULT = "결과"
CONSULTATION_IMAGES = "증상이미지"

# Daily income database
INCOME_DATE = "날짜"

# Purchase request database
PURCHASE_ITEM = "물품명"  # title
PURCHASE_AMOUNT = "금액"
PURCHASE_QUANTITY = "수량"
PURCHASE_NOTE = "메모"
PURCHASE_REQUESTER_ID = "신청자ID"
PURCHASE_REQUESTER_NAME = "신청자명"
PURCHASE_REQUESTER_ROLE = "신청자권한"
PURCHASE_PHOTOS = "사진"
PURCHASE_STATUS = "상태"
PURCHASE_DATE = "신청일"
PURCHASE_DECIDED_BY = "처리자"


def title(content: str) -> dict:
    return {"title": [{"type": "text", "text": {"content": content}}]}


def rich_text(content: Optional[str]) -> dict:
    if not content:
        return {"rich_text": []}
    return {"rich_text": [{"type": "text", "text": {"content": content}}]}


def select(name: Optional[str]) -> dict:
    return {"select": {"name": name} if name else None}


def date_value(start: Optional[str]) -> dict:
    return {"date": {"start": start} if start else None}


def number(value: Optional[float]) -> dict:
    return {"number": value}


def phone_number(value: Optional[str]) -> dict:
    return {"phone_number": value or None}


def external_file(name: str, url: str) -> dict:
    return {"type": "external", "name": name, "external": {"url": url}}


def files(items: List[dict]) -> dict:
    return {"files": items}


def _prop(page: Dict[str, Any], name: str) -> Dict[str, Any]:
    prop = (page.get("properties") or {}).get(name)
    return prop if isinstance(prop, dict) else {}


def read_text(page: Dict[str, Any], name: str) -> str:
    """Concatenated content of a rich_text or title property, '' if absent"""
    prop = _prop(page, name)
    segments = prop.get("rich_text") or prop.get("title") or []
    parts = []
    for segment in segments:
        if not isinstance(segment, dict):
            continue
        text = segment.get("text")
        if isinstance(text, dict) and isinstance(text.get("content"), str):
            parts.append(text["content"])
        elif isinstance(segment.get("plain_text"), str):
            parts.append(segment["plain_text"])
    return "".join(parts)


def read_select(page: Dict[str, Any], name: str) -> Optional[str]:
    value = _prop(page, name).get("select")
    return value.get("name") if isinstance(value, dict) else None


def read_number(page: Dict[str, Any], name: str) -> Optional[float]:
    return _prop(page, name).get("number")


def read_date(page: Dict[str, Any], name: str) -> Optional[str]:
    value = _prop(page, name).get("date")
    return value.get("start") if isinstance(value, dict) else None


def read_files(page: Dict[str, Any], name: str) -> List[dict]:
    value = _prop(page, name).get("files")
    return list(value) if isinstance(value, list) else []


def file_url(item: dict) -> Optional[str]:
    for kind in ("external", "file"):
        source = item.get(kind)
        if isinstance(source, dict) and source.get("url"):
            return source["url"]
    return None
