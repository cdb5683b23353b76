from __future__ import annotations

from prometheus_client import Counter

course_purchases_total = Counter(
    "learningoo_course_purchases_total",
    "Course purchase attempts by outcome.",
    ["outcome"],
)
license_assignments_total = Counter(
    "learningoo_license_assignments_total",
    "License assignment attempts by outcome.",
    ["outcome"],
)
ledger_amount_total = Counter(
    "learningoo_ledger_amount_total",
    "Sum of amounts written to the transaction ledger.",
    ["type", "category"],
)
access_checks_total = Counter(
    "learningoo_access_checks_total",
    "Access evaluations by target kind and resolved access level.",
    ["target", "level"],
)
