"""Money-moving operations: course purchases, license assignment and admin
balance adjustments.

The record store has no multi-row transactions, so a purchase is an ordered
list of single-row writes. The enrollment is reserved first through the
unique (student_id, course_id) index; balances move only after that
reservation exists, which makes a concurrent double purchase fail with
``Conflict(alreadyEnrolled)`` before any debit. Once money has moved,
nothing is compensated: a failure surfaces as ``PurchaseIncomplete`` with
the progress reached, and the pending reservation is left for
``scripts/reconcile_purchases.py``. A failure before any debit releases
the reservation so the purchase can be retried.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..errors import (
    Conflict,
    InsufficientFunds,
    Internal,
    InvalidRequest,
    LedgerError,
    NotFound,
    PurchaseIncomplete,
)
from ..logging_context import bound_log_context
from ..metrics import course_purchases_total, ledger_amount_total, license_assignments_total
from ..repositories import courses as courses_repo
from ..repositories import enrollments as enrollments_repo
from ..repositories import licenses as licenses_repo
from ..repositories import transactions as transactions_repo
from ..repositories import users as users_repo
from ..repositories.store import DuplicateRecord, Row, StoreError

logger = logging.getLogger(__name__)

STUDENT_SLUG = "student"


class PurchaseStep(str, enum.Enum):
    RESERVE_ENROLLMENT = "reserve_enrollment"
    DEBIT_STUDENT = "debit_student"
    RECORD_DEBIT = "record_debit"
    CREDIT_TUTOR = "credit_tutor"
    RECORD_CREDIT = "record_credit"
    ACTIVATE_ENROLLMENT = "activate_enrollment"


@dataclass
class PurchaseProgress:
    student_id: str
    course_id: str
    price: int
    tutor_id: str | None = None
    enrollment_id: str | None = None
    completed: list[PurchaseStep] = field(default_factory=list)
    tutor_skipped: bool = False

    def mark(self, step: PurchaseStep) -> None:
        self.completed.append(step)

    @property
    def money_moved(self) -> bool:
        return PurchaseStep.DEBIT_STUDENT in self.completed

    def as_log(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "tutor_id": self.tutor_id,
            "price": self.price,
            "enrollment_id": self.enrollment_id,
            "completed": [step.value for step in self.completed],
            "tutor_skipped": self.tutor_skipped,
        }


@dataclass
class PurchaseResult:
    enrollment: Row
    balance: int
    progress: PurchaseProgress


def _outcome(exc: LedgerError) -> str:
    return exc.kind


async def _record(
    *,
    user_id: str,
    type: str,
    category: str,
    amount: int,
    related_id: str | None,
    counterpart_id: str | None,
    description: str,
) -> Row:
    row = await transactions_repo.record_transaction(
        user_id=user_id,
        type=type,
        category=category,
        amount=amount,
        related_id=related_id,
        counterpart_id=counterpart_id,
        description=description,
    )
    ledger_amount_total.labels(type=type, category=category).inc(amount)
    return row


async def _release_reservation(progress: PurchaseProgress) -> None:
    try:
        await enrollments_repo.release_enrollment(progress.enrollment_id)
    except StoreError:
        # Left pending for scripts/reconcile_purchases.py.
        logger.exception("Could not release enrollment reservation", extra=progress.as_log())


async def purchase_course(student_id: str, course_id: str) -> PurchaseResult:
    try:
        with bound_log_context(student_id=student_id, course_id=course_id):
            result = await _purchase_course(student_id, course_id)
    except LedgerError as exc:
        course_purchases_total.labels(outcome=_outcome(exc)).inc()
        raise
    course_purchases_total.labels(outcome="success").inc()
    return result


async def _purchase_course(student_id: str, course_id: str) -> PurchaseResult:
    try:
        course = await courses_repo.get_course(course_id)
        if not course or course.get("is_deleted"):
            raise NotFound("course")
        student = await users_repo.get_user(student_id)
        if not student:
            raise NotFound("user")
        if await enrollments_repo.get_enrollment(student_id, course_id):
            raise Conflict("alreadyEnrolled")
    except StoreError as exc:
        raise Internal() from exc

    price = int(course.get("price") or 0)
    balance = int(student.get("balance") or 0)
    if balance < price:
        raise InsufficientFunds(required=price, available=balance)

    tutor_id = str(course["tutor_id"]) if course.get("tutor_id") else None
    progress = PurchaseProgress(
        student_id=student_id, course_id=course_id, price=price, tutor_id=tutor_id
    )

    try:
        reservation = await enrollments_repo.reserve_enrollment(student_id, course_id)
    except DuplicateRecord as exc:
        raise Conflict("alreadyEnrolled") from exc
    except StoreError as exc:
        raise Internal() from exc
    progress.enrollment_id = str(reservation["id"])
    progress.mark(PurchaseStep.RESERVE_ENROLLMENT)

    step = PurchaseStep.DEBIT_STUDENT
    try:
        if price > 0:
            debited = await users_repo.adjust_balance(student_id, -price)
            if debited is None:
                # Balance was spent concurrently; nothing has moved yet.
                await enrollments_repo.release_enrollment(progress.enrollment_id)
                raise InsufficientFunds(required=price)
            balance = int(debited["balance"])
            progress.mark(step)

            step = PurchaseStep.RECORD_DEBIT
            await _record(
                user_id=student_id,
                type="debit",
                category="course",
                amount=price,
                related_id=course_id,
                counterpart_id=tutor_id,
                description=f"Purchase of course {course.get('title') or course_id}",
            )
            progress.mark(step)

            step = PurchaseStep.CREDIT_TUTOR
            credited = None
            if tutor_id and await users_repo.get_user(tutor_id):
                credited = await users_repo.adjust_balance(tutor_id, price)
            if credited is None:
                progress.tutor_skipped = True
                logger.warning(
                    "Tutor missing during purchase; credit skipped",
                    extra=progress.as_log(),
                )
            else:
                progress.mark(step)
                step = PurchaseStep.RECORD_CREDIT
                await _record(
                    user_id=tutor_id,
                    type="credit",
                    category="course",
                    amount=price,
                    related_id=course_id,
                    counterpart_id=student_id,
                    description=f"Sale of course {course.get('title') or course_id}",
                )
                progress.mark(step)

        step = PurchaseStep.ACTIVATE_ENROLLMENT
        enrollment = await enrollments_repo.activate_enrollment(progress.enrollment_id)
        if enrollment is None:
            raise StoreError("enrollment reservation disappeared")
        progress.mark(step)
    except StoreError as exc:
        if not progress.money_moved:
            logger.exception("Purchase failed before any balance moved", extra=progress.as_log())
            await _release_reservation(progress)
            raise Internal() from exc
        logger.error(
            "Purchase incomplete at %s",
            step.value,
            extra=progress.as_log(),
            exc_info=True,
        )
        raise PurchaseIncomplete(progress, step) from exc

    logger.info("Course purchased", extra=progress.as_log())
    return PurchaseResult(enrollment=enrollment, balance=balance, progress=progress)


async def assign_license(user_id: str, slug: str) -> dict[str, Any]:
    try:
        with bound_log_context(license_user_id=user_id, license_slug=slug):
            result = await _assign_license(user_id, slug)
    except LedgerError as exc:
        license_assignments_total.labels(outcome=_outcome(exc)).inc()
        raise
    license_assignments_total.labels(outcome="success").inc()
    return result


async def _assign_license(user_id: str, slug: str) -> dict[str, Any]:
    try:
        license_row = await licenses_repo.get_license_by_slug(slug)
        if not license_row:
            raise NotFound("license")
        user = await users_repo.get_user(user_id)
        if not user:
            raise NotFound("user")
    except StoreError as exc:
        raise Internal() from exc

    price = int(license_row.get("price") or 0)
    charged = False
    try:
        if price > 0:
            available = int(user.get("balance") or 0)
            if available < price:
                raise InsufficientFunds(required=price, available=available)
            if await users_repo.adjust_balance(user_id, -price) is None:
                raise InsufficientFunds(required=price)
            charged = True
            await _record(
                user_id=user_id,
                type="debit",
                category="license",
                amount=price,
                related_id=str(license_row["id"]),
                counterpart_id=None,
                description=f"License upgrade to {license_row.get('name') or slug}",
            )
        updated = await users_repo.update_user(
            user_id, {"role": "tutor", "license_id": str(license_row["id"])}
        )
        if updated is None:
            raise StoreError("user disappeared during license assignment")
    except StoreError as exc:
        logger.error(
            "License assignment failed",
            extra={"user_id": user_id, "license": slug, "charged": charged},
            exc_info=True,
        )
        raise Internal() from exc

    logger.info(
        "License assigned",
        extra={"user_id": user_id, "license": license_row["slug"], "price": price},
    )
    return {
        "message": "upgraded",
        "license": license_row,
        "user": users_repo.public_user(updated),
    }


async def set_user_license(user_id: str, slug: str) -> Row:
    """Admin override: ``student`` downgrades, any other slug upgrades free of charge.

    Neither direction writes a Transaction.
    """
    user = await users_repo.get_user(user_id)
    if not user:
        raise NotFound("user")
    if slug == STUDENT_SLUG:
        values: dict[str, Any] = {"role": "student", "license_id": None}
    else:
        license_row = await licenses_repo.get_license_by_slug(slug)
        if not license_row:
            raise NotFound("license")
        values = {"role": "tutor", "license_id": str(license_row["id"])}
    if user.get("role") == "admin":
        values.pop("role")
    updated = await users_repo.update_user(user_id, values)
    if updated is None:
        raise NotFound("user")
    logger.info("License overridden by admin", extra={"user_id": user_id, "license": slug})
    return updated


async def adjust_balance(user_id: str, new_balance: int, *, actor_id: str | None = None) -> Row:
    """Move a balance to ``new_balance`` through a ``topup`` Transaction."""
    if new_balance < 0:
        raise InvalidRequest("Balance must be >= 0", reason="negativeBalance")
    user = await users_repo.get_user(user_id)
    if not user:
        raise NotFound("user")
    delta = int(new_balance) - int(user.get("balance") or 0)
    if delta == 0:
        return user
    updated = await users_repo.adjust_balance(user_id, delta)
    if updated is None:
        raise InsufficientFunds(required=-delta)
    await _record(
        user_id=user_id,
        type="credit" if delta > 0 else "debit",
        category="topup",
        amount=abs(delta),
        related_id=None,
        counterpart_id=actor_id,
        description="Balance adjusted by admin",
    )
    logger.info(
        "Balance adjusted",
        extra={"user_id": user_id, "delta": delta, "actor_id": actor_id},
    )
    return updated


async def list_transactions(user_id: str) -> Sequence[Row]:
    return await transactions_repo.list_user_transactions(user_id)


async def list_all_transactions() -> Sequence[Row]:
    return await transactions_repo.list_all_transactions()


__all__ = [
    "PurchaseProgress",
    "PurchaseResult",
    "PurchaseStep",
    "adjust_balance",
    "assign_license",
    "list_all_transactions",
    "list_transactions",
    "purchase_course",
    "set_user_license",
]
