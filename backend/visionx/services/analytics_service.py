# Overview: Read-only aggregate reports for the admin dashboard.

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func

from ..extensions import db
from ..models import Customer, EyeTest, InventoryItem
from ..time_utils import today_iso
from .appointment_service import appointments_on
from .eye_test_service import decode_results


# Checked in this order; the first keyword found wins.
CONDITION_KEYWORDS = ("myopia", "hyperopia", "astigmatism")
NORMAL_BUCKET = "normal"

AGE_BUCKETS = ("0-17", "18-35", "36-60", "60+")


def classify_summary(summary: str | None) -> str:
    """
    Bucket a summary by case-insensitive substring match.

    "astigmatism, mild myopia" -> "myopia" because myopia is checked first.
    """
    text = (summary or "").lower()
    for keyword in CONDITION_KEYWORDS:
        if keyword in text:
            return keyword
    return NORMAL_BUCKET


def eye_condition_distribution() -> dict:
    """
    Count eye tests per condition bucket.

    Every decodable record is bucketed by its summary, manual Snellen
    records included. Undecodable blobs count as normal.
    """
    stats = {keyword: 0 for keyword in CONDITION_KEYWORDS}
    stats[NORMAL_BUCKET] = 0

    for (raw,) in db.session.query(EyeTest.results).all():
        result = decode_results(raw)
        if result is None:
            if raw:
                current_app.logger.warning("Undecodable eye test results blob counted as normal")
            stats[NORMAL_BUCKET] += 1
            continue
        stats[classify_summary(result.summary)] += 1

    return stats


def age_group_expression():
    """
    SQL CASE for age brackets.

    NULL age matches no WHEN branch and falls through to "60+".
    """
    return case(
        (Customer.age < 18, "0-17"),
        (Customer.age.between(18, 35), "18-35"),
        (Customer.age.between(36, 60), "36-60"),
        else_="60+",
    )


def demographics() -> dict:
    """
    Customer counts by stored gender string (no normalization) and by age
    bracket.
    """
    gender_rows = (
        db.session.query(Customer.gender, func.count(Customer.id))
        .group_by(Customer.gender)
        .order_by(Customer.gender.asc())
        .all()
    )

    age_group = age_group_expression().label("age_group")
    age_rows = (
        db.session.query(age_group, func.count(Customer.id))
        .group_by(age_group)
        .all()
    )
    age_counts = dict(age_rows)

    return {
        "gender": [{"gender": gender, "count": count} for gender, count in gender_rows],
        "age": [
            {"age_group": bucket, "count": age_counts[bucket]}
            for bucket in AGE_BUCKETS
            if bucket in age_counts
        ],
    }


def dashboard_stats(low_stock_threshold: int) -> dict:
    total_customers = db.session.query(func.count(Customer.id)).scalar() or 0
    low_stock = (
        db.session.query(func.count(InventoryItem.id))
        .filter(InventoryItem.stock < low_stock_threshold)
        .scalar()
        or 0
    )
    ai_tests = db.session.query(func.count(EyeTest.id)).scalar() or 0

    return {
        "stats": {
            "totalCustomers": total_customers,
            "lowStock": low_stock,
            "appointmentsToday": appointments_on(today_iso()),
            "aiTests": ai_tests,
        }
    }
