"""
API routes/handlers
"""
import json
import logging
from urllib.parse import unquote

from flask import Blueprint, request, jsonify
from werkzeug.exceptions import HTTPException

from application.consultation_service import ConsultationService
from application.customer_service import CustomerService
from application.daily_income_service import DailyIncomeService
from application.purchase_service import PurchaseService
from domain.exceptions import (
    AuthenticationError,
    ClinicError,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from domain.models import ConsultationUpdate, CustomerUpdate, HealthStatus, NewCustomer, Role, User

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Create blueprint
api = Blueprint('api', __name__)

# Service instances (injected)
customer_service: CustomerService = None
consultation_service: ConsultationService = None
daily_income_service: DailyIncomeService = None
purchase_service: PurchaseService = None

_STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (InvalidStateError, 409),
)


def init_routes(
    customers: CustomerService,
    consultations: ConsultationService,
    daily_income: DailyIncomeService,
    purchases: PurchaseService,
):
    """Initialize routes with service dependencies"""
    global customer_service, consultation_service, daily_income_service, purchase_service
    customer_service = customers
    consultation_service = consultations
    daily_income_service = daily_income
    purchase_service = purchases


def _status_for(error: ClinicError) -> int:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


def _client_message(error: Exception, generic_message: str) -> str:
    """Message safe to show the caller; store failures stay generic"""
    if isinstance(error, ClinicError) and (_status_for(error) < 500 or isinstance(error, ConfigurationError)):
        return error.message
    return generic_message


def _error_response(error: Exception, generic_message: str):
    status = _status_for(error) if isinstance(error, ClinicError) else 500
    if not isinstance(error, ClinicError):
        logger.exception(f"{generic_message} {error}")
    elif status >= 500:
        logger.error(f"{generic_message} {error}")
    return jsonify({"error": _client_message(error, generic_message)}), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _current_user() -> User:
    """Acting user, as forwarded by the upstream auth layer"""
    user_id = request.headers.get('X-User-Id')
    role = request.headers.get('X-User-Role')
    if not user_id or not role:
        raise AuthenticationError("로그인이 필요합니다.")
    try:
        role = Role(role)
    except ValueError as e:
        raise AuthenticationError("알 수 없는 권한입니다.", role) from e
    name = unquote(request.headers.get('X-User-Name', '')) or user_id
    return User(id=user_id, name=name, role=role)


@api.errorhandler(ClinicError)
def handle_clinic_error(error: ClinicError):
    return _error_response(error, "요청 처리 중 오류가 발생했습니다.")


@api.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception(f"Unhandled error: {error}")
    return jsonify({"error": "서버 오류가 발생했습니다."}), 500


@api.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    configured = customer_service.repository.is_configured()
    status = HealthStatus(
        status="ok",
        records_service="configured" if configured else "unconfigured",
        version=VERSION,
    )
    return jsonify(status.to_dict())


# Customers

@api.route('/api/customer', methods=['GET'])
def search_customers():
    """Search customers by name, phone or gender"""
    try:
        customers = customer_service.search(
            name=request.args.get('name'),
            phone=request.args.get('phone'),
            gender=request.args.get('gender'),
        )
    except Exception as e:
        return _error_response(e, "고객 정보 조회 중 오류가 발생했습니다.")
    return jsonify({"success": True, "customers": customers})


@api.route('/api/customer', methods=['POST'])
def create_customer():
    """Register a customer"""
    data = _json_body()
    face_embedding = data.get('faceEmbedding')
    if face_embedding and not isinstance(face_embedding, str):
        face_embedding = json.dumps(face_embedding, ensure_ascii=False)

    try:
        customer = customer_service.register(NewCustomer(
            name=data.get('name'),
            phone=data.get('phone'),
            gender=data.get('gender'),
            birth=data.get('birth'),
            address=data.get('address'),
            photo_url=data.get('photoUrl'),
            face_embedding=face_embedding or None,
        ))
    except Exception as e:
        return _error_response(e, "고객 정보 저장 중 오류가 발생했습니다.")
    return jsonify({"success": True, "customer": customer})


@api.route('/api/customer', methods=['PUT'])
def search_by_face():
    """Find returning customers by face embedding"""
    data = _json_body()
    try:
        result = customer_service.find_by_face(
            data.get('faceEmbedding'),
            gender=data.get('gender'),
            age=data.get('age'),
        )
    except Exception as e:
        return _error_response(e, "얼굴 인식 검색 중 오류가 발생했습니다.")

    if not result.matches:
        return jsonify({
            "success": False,
            "customers": [],
            "similarities": [],
            "message": "매칭된 고객이 없습니다.",
        })

    return jsonify({
        "success": True,
        "customers": result.customers,
        "similarities": result.similarities,
        "message": f"{len(result)}명의 고객이 매칭되었습니다.",
    })


def _customer_failure(error: Exception, generic_message: str):
    status = _status_for(error) if isinstance(error, ClinicError) else 500
    body = {"success": False, "message": _client_message(error, generic_message)}
    if status >= 500:
        logger.error(f"{generic_message} {error}")
        body["error"] = body["message"]
    return jsonify(body), status


@api.route('/api/customer/<customer_id>', methods=['PUT'])
def update_customer(customer_id):
    """Overwrite a customer's details"""
    data = _json_body()
    estimated_age = data.get('estimatedAge')
    try:
        estimated_age = int(estimated_age) if estimated_age else None
    except (TypeError, ValueError):
        return _customer_failure(ValidationError("추정나이는 숫자여야 합니다."), "")

    try:
        customer_service.update(customer_id, CustomerUpdate(
            name=data.get('name'),
            customer_id=data.get('customerId') or '',
            phone=data.get('phone'),
            gender=data.get('gender'),
            birth=data.get('birth'),
            estimated_age=estimated_age,
            address=data.get('address'),
            customer_folder_id=data.get('customerFolderId'),
            special_note=data.get('specialNote'),
        ))
    except Exception as e:
        return _customer_failure(e, "고객 정보 업데이트 중 오류가 발생했습니다.")
    return jsonify({"success": True, "message": "고객 정보가 업데이트되었습니다."})


@api.route('/api/customer/<customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    """Archive a customer"""
    try:
        customer_service.delete(customer_id)
    except Exception as e:
        return _customer_failure(e, "고객 정보 삭제 중 오류가 발생했습니다.")
    return jsonify({"success": True, "message": "고객 정보가 삭제되었습니다."})


# Consultations

@api.route('/api/consultation/<consultation_id>', methods=['PUT'])
def update_consultation(consultation_id):
    """Edit a consultation note, appending any new images"""
    data = _json_body()
    image_urls = data.get('imageUrls')
    if not isinstance(image_urls, list):
        image_urls = []

    try:
        consultation = consultation_service.update(consultation_id, ConsultationUpdate(
            content=data.get('content'),
            consult_date=data.get('consultDate'),
            medicine=data.get('medicine'),
            result=data.get('result'),
            image_urls=[url for url in image_urls if isinstance(url, str) and url],
        ))
    except Exception as e:
        return _error_response(e, "상담일지 수정 중 오류가 발생했습니다.")
    return jsonify({"success": True, "consultation": consultation})


@api.route('/api/consultation/<consultation_id>', methods=['DELETE'])
def delete_consultation(consultation_id):
    """Archive a consultation note"""
    try:
        consultation_service.delete(consultation_id)
    except Exception as e:
        return _error_response(e, "상담일지 삭제 중 오류가 발생했습니다.")
    return jsonify({"success": True, "message": "상담일지가 삭제되었습니다."})


# Daily income

@api.route('/api/daily-income/<day>', methods=['GET'])
def get_daily_income(day):
    return jsonify({"success": True, "income": daily_income_service.get(day)})


@api.route('/api/daily-income/<day>', methods=['PUT'])
def save_daily_income(day):
    page = daily_income_service.save(day, _json_body())
    return jsonify({"success": True, "income": page})


# Employee purchase

@api.route('/api/employee-purchase/me', methods=['GET'])
def current_user():
    return jsonify({"user": _current_user().to_dict()})


@api.route('/api/employee-purchase/requests', methods=['POST'])
def create_purchase_request():
    user = _current_user()
    data = _json_body()
    purchase = purchase_service.create(
        user,
        item_name=data.get('itemName'),
        amount=data.get('amount'),
        quantity=data.get('quantity', 1),
        photo_urls=data.get('photoUrls') or [],
        note=data.get('note', ''),
    )
    return jsonify({"success": True, "request": purchase.to_dict()}), 201


@api.route('/api/employee-purchase/requests', methods=['GET'])
def list_my_purchase_requests():
    requests = purchase_service.my_requests(_current_user())
    return jsonify({"success": True, "requests": [r.to_dict() for r in requests]})


@api.route('/api/employee-purchase/requests/pending', methods=['GET'])
def list_pending_purchase_requests():
    requests = purchase_service.pending(_current_user())
    return jsonify({"success": True, "requests": [r.to_dict() for r in requests]})


@api.route('/api/employee-purchase/requests/<request_id>/approve', methods=['POST'])
def approve_purchase_request(request_id):
    purchase = purchase_service.approve(_current_user(), request_id)
    return jsonify({"success": True, "request": purchase.to_dict()})


@api.route('/api/employee-purchase/requests/<request_id>/reject', methods=['POST'])
def reject_purchase_request(request_id):
    purchase = purchase_service.reject(_current_user(), request_id)
    return jsonify({"success": True, "request": purchase.to_dict()})


@api.route('/api/employee-purchase/reports', methods=['GET'])
def purchase_report():
    report = purchase_service.report(_current_user(), month=request.args.get('month'))
    return jsonify({"success": True, "report": report.to_dict()})
