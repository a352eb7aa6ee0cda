"""
Input Validation & Sanitization Utilities
Validates API request bodies for job orders, cost breakdowns and expenses
"""
import re
from datetime import date
from typing import Dict, Any, List, Optional, Tuple
import logging

from database.models import JOB_STATUSES
from services.cost_engine import InvalidCostEdit, edit_from_dict
from services.job_order_repository import COST_KINDS

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

MAX_EDITS_PER_REQUEST = 200


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_iso_date(value: Any) -> Tuple[bool, Optional[str]]:
    """Validate a YYYY-MM-DD date string"""
    if not isinstance(value, str):
        return False, "Date must be a string"
    try:
        date.fromisoformat(value)
    except ValueError:
        return False, "Date must use the YYYY-MM-DD format"
    return True, None


def validate_cost_kind(kind: str) -> Tuple[bool, Optional[str]]:
    """Validate the estimated/actual selector used in cost URLs"""
    if kind not in COST_KINDS:
        return False, f"Cost breakdown kind must be one of: {', '.join(COST_KINDS)}"
    return True, None


def validate_job_order_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate job order create/update request data

    Args:
        data: Request data dictionary
        partial: True for updates, where job_name is optional

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial:
        is_valid, error = validate_required_fields(data, ['job_name'])
        if not is_valid:
            return False, error

    if 'job_name' in data:
        is_valid, error = validate_string_length(data['job_name'], min_length=1, max_length=255)
        if not is_valid:
            return False, f"Invalid job_name: {error}"

    if 'status' in data and data['status'] not in JOB_STATUSES:
        return False, f"Invalid status. Allowed: {', '.join(JOB_STATUSES)}"

    if 'price' in data:
        is_valid, error = validate_number_range(data['price'], min_value=0)
        if not is_valid:
            return False, f"Invalid price: {error}"

    if 'quantity' in data:
        is_valid, error = validate_number_range(data['quantity'], min_value=0)
        if not is_valid:
            return False, f"Invalid quantity: {error}"

    for field in ('order_date', 'due_date'):
        if data.get(field):
            is_valid, error = validate_iso_date(data[field])
            if not is_valid:
                return False, f"Invalid {field}: {error}"

    for field in ('estimated_cost_breakdown', 'actual_cost_breakdown'):
        if data.get(field) is not None and not isinstance(data[field], dict):
            return False, f"{field} must be an object"

    if 'materials_used' in data and not isinstance(data['materials_used'], list):
        return False, "materials_used must be an array"

    return True, None


def validate_cost_edits_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str], list]:
    """
    Validate and parse a batch of cost edits

    Non-numeric values are not errors; the costing engine coerces them to 0.

    Returns:
        Tuple of (is_valid, error_message, parsed_edits)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object", []

    edits = data.get('edits')
    if not isinstance(edits, list):
        return False, "edits must be an array", []

    if len(edits) > MAX_EDITS_PER_REQUEST:
        return False, f"Too many edits (maximum {MAX_EDITS_PER_REQUEST})", []

    parsed = []
    for idx, payload in enumerate(edits):
        try:
            parsed.append(edit_from_dict(payload))
        except InvalidCostEdit as e:
            return False, f"Edit {idx}: {e.message}", []

    return True, None, parsed


def validate_breakdown_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a full breakdown save request"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not isinstance(data.get('breakdown'), dict):
        return False, "breakdown must be an object"

    return True, None


def validate_expense_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate an expense create request"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['description', 'amount'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['description'], min_length=1, max_length=500)
    if not is_valid:
        return False, f"Invalid description: {error}"

    is_valid, error = validate_number_range(data['amount'])
    if not is_valid:
        return False, f"Invalid amount: {error}"

    if data.get('date'):
        is_valid, error = validate_iso_date(data['date'])
        if not is_valid:
            return False, f"Invalid date: {error}"

    return True, None


def validate_customer_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a customer create request"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['name'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['name'], min_length=1, max_length=255)
    if not is_valid:
        return False, f"Invalid name: {error}"

    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, f"Invalid email: {error}"

    return True, None


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error response dictionary
    """
    return {
        'success': False,
        'error': 'Validation Error',
        'field': field,
        'message': message
    }

