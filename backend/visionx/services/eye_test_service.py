# Overview: Service-layer operations for eye tests and the decoded result variants.

"""
Eye test results are stored verbatim as JSON. Two producers exist and are
told apart by the "type" tag:

- ManualResult: {"type": "manual", distance, pd, left_eye: {acuity},
  right_eye: {acuity}, summary} from the Snellen chart flow
- AiDiagnosis: no "type" key; {left_eye: {spherical, cylindrical, axis,
  redness, dryness, clarity}, right_eye: {...}, pd, abnormalities[],
  confidence_level, summary} from the AI flow

Readers go through decode_results and branch on the variant. Blobs that are
not JSON objects decode to None.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Union

from flask import current_app

from ..extensions import db
from ..models import Customer, EyeTest
from ..validation import NotFoundError, ValidationError, require_int
from . import activity_service, ai_service, notification_service


MANUAL_TAG = "manual"


@dataclass
class ManualResult:
    distance: str | None
    pd: str | None
    left_acuity: str | None
    right_acuity: str | None
    summary: str = ""


@dataclass
class AiDiagnosis:
    left_eye: dict
    right_eye: dict
    pd: str | None
    abnormalities: list = field(default_factory=list)
    confidence_level: float | None = None
    summary: str = ""


EyeTestResult = Union[ManualResult, AiDiagnosis]


def _eye(value) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def decode_results(raw) -> EyeTestResult | None:
    """Decode a stored results blob (string or already-parsed dict)."""
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            return None
    else:
        data = raw
    if not isinstance(data, dict):
        return None

    if data.get("type") == MANUAL_TAG:
        return ManualResult(
            distance=data.get("distance"),
            pd=data.get("pd"),
            left_acuity=_eye(data.get("left_eye")).get("acuity"),
            right_acuity=_eye(data.get("right_eye")).get("acuity"),
            summary=_text(data.get("summary")),
        )

    abnormalities = data.get("abnormalities")
    return AiDiagnosis(
        left_eye=_eye(data.get("left_eye")),
        right_eye=_eye(data.get("right_eye")),
        pd=data.get("pd"),
        abnormalities=abnormalities if isinstance(abnormalities, list) else [],
        confidence_level=data.get("confidence_level"),
        summary=_text(data.get("summary")),
    )


def list_eye_tests(customer_id: int | None = None) -> list[EyeTest]:
    query = db.session.query(EyeTest).join(Customer, EyeTest.customer_id == Customer.id)
    if customer_id is not None:
        query = query.filter(EyeTest.customer_id == customer_id)
    return query.order_by(EyeTest.date.desc(), EyeTest.id.desc()).all()


def _require_customer(customer_id) -> Customer:
    if customer_id is None:
        raise ValidationError("customer_id is required")
    customer = db.session.get(Customer, require_int(customer_id, "customer_id"))
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def record_eye_test(customer_id, results, image_url: str | None = None, *, actor_id: int | None = None) -> EyeTest:
    """
    Store a results payload verbatim. Only the envelope is checked (a JSON
    object is required); the internal shape is not validated.
    """
    customer = _require_customer(customer_id)
    if not isinstance(results, dict):
        raise ValidationError("results must be a JSON object")
    if image_url is not None and not isinstance(image_url, str):
        raise ValidationError("image_url must be a string")

    test = EyeTest(customer_id=customer.id, results=json.dumps(results), image_url=image_url)
    db.session.add(test)
    db.session.flush()
    kind = "manual" if results.get("type") == MANUAL_TAG else "ai"
    activity_service.record_activity(
        actor_id, "EYE_TEST_RECORDED", f"Eye test #{test.id} ({kind}) for customer #{customer.id}", commit=False
    )
    notification_service.notify_customer(
        customer, "New eye test result", "A new eye test result is available in your portal.", "info", commit=False
    )
    db.session.commit()
    return test


def diagnose_and_record(
    customer_id,
    image_base64: str,
    mime_type: str,
    *,
    actor_id: int | None = None,
    client: ai_service.GeminiClient | None = None,
) -> tuple[EyeTest, dict]:
    """
    Run the AI diagnosis and persist its result.

    The customer is checked first and the read transaction is closed before
    the external call, so no store transaction is open while waiting on the
    AI. On AIServiceError nothing is persisted.
    """
    if not isinstance(image_base64, str) or not image_base64.strip():
        raise ValidationError("image_base64 is required")
    if mime_type not in ("image/jpeg", "image/png"):
        raise ValidationError("mime_type must be image/jpeg or image/png")

    customer = _require_customer(customer_id)
    target_id = customer.id
    db.session.commit()

    results = ai_service.diagnose_eye(image_base64, mime_type, client=client)
    current_app.logger.info("AI diagnosis completed for customer #%s", target_id)

    test = record_eye_test(target_id, results, actor_id=actor_id)
    return test, results
