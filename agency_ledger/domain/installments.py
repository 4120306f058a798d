"""Installment schedule generation and validation for project budgets"""

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from agency_ledger.domain.exceptions import ValidationError
from agency_ledger.domain.models import Installment
from agency_ledger.utils.date_utils import add_months
from agency_ledger.utils.money import AMOUNT_TOLERANCE, CENT, money_sum, to_money


def generate_installments(
    budget: Optional[Decimal],
    count: int,
    deadline: Optional[date],
    today: date,
    existing: Sequence[Installment] = (),
) -> List[Installment]:
    """
    Split a project budget into ``count`` installments.

    Requirements:
    - Equal amounts rounded to cents
    - Last installment absorbs the rounding remainder so the total equals the budget
    - With a deadline, due dates are spread evenly between today and the deadline;
      otherwise one installment per month starting a month from today
    - Installments whose number already exists keep their date and paid state

    Args:
        budget: Total amount to split
        count: Number of installments
        deadline: Optional project deadline
        today: Reference date for due date calculation
        existing: Current schedule, used for carry-forward

    Returns:
        List of Installment objects numbered 1..count, or [] for a
        non-positive budget or count

    Raises:
        ValidationError: when the budget cannot give every installment a
            positive amount

    Example:
        1000.00 / 3 -> [333.33, 333.33, 333.34]
    """
    if budget is None or count <= 0:
        return []

    budget = to_money(budget)
    if budget <= 0:
        return []

    per_installment = (budget / count).quantize(CENT, rounding=ROUND_HALF_UP)
    last_amount = (budget - per_installment * (count - 1)).quantize(CENT, rounding=ROUND_HALF_UP)
    if per_installment <= 0 or last_amount <= 0:
        raise ValidationError(f"Budget {budget} is too small to split into {count} installments")

    days_per_installment = None
    if deadline is not None:
        days_per_installment = (deadline - today).days // count

    previous = {inst.number: inst for inst in existing}

    installments = []
    for number in range(1, count + 1):
        if days_per_installment is not None:
            due_date = today + timedelta(days=number * days_per_installment)
        else:
            due_date = add_months(today, number)

        amount = last_amount if number == count else per_installment

        carried = previous.get(number)
        if carried is not None:
            installments.append(
                Installment(
                    number=number,
                    amount=amount,
                    date=carried.date,
                    paid=carried.paid,
                    paid_at=carried.paid_at,
                )
            )
        else:
            installments.append(Installment(number=number, amount=amount, date=due_date))

    return installments


def installment_total(installments: Iterable[Installment]) -> Decimal:
    """Sum of installment amounts, exact to the cent"""
    return money_sum(inst.amount for inst in installments)


def find_installment(installments: Iterable[Installment], number: int) -> Optional[Installment]:
    for inst in installments:
        if inst.number == number:
            return inst
    return None


def validate_installment_edit(budget: Optional[Decimal], installments: Sequence[Installment]) -> None:
    """
    Validate a hand-edited installment schedule.

    Raises:
        ValidationError: listing the installment numbers with a non-positive
            amount or a missing date, a numbering that is not 1..n, or a
            total that differs from the budget by more than 0.01
    """
    if budget is None or to_money(budget) <= 0:
        raise ValidationError("Project budget must be positive to define installments")

    if not installments:
        raise ValidationError("At least one installment is required")

    numbers = sorted(inst.number for inst in installments)
    if numbers != list(range(1, len(installments) + 1)):
        raise ValidationError(
            f"Installment numbers must be 1..{len(installments)} without gaps, got {numbers}",
            installment_numbers=numbers,
        )

    invalid_amounts = [inst.number for inst in installments if inst.amount is None or inst.amount <= 0]
    if invalid_amounts:
        raise ValidationError(
            f"Installments with invalid amount: {_format_numbers(invalid_amounts)}",
            installment_numbers=invalid_amounts,
        )

    missing_dates = [inst.number for inst in installments if inst.date is None]
    if missing_dates:
        raise ValidationError(
            f"Installments without due date: {_format_numbers(missing_dates)}",
            installment_numbers=missing_dates,
        )

    total = installment_total(installments)
    difference = abs(to_money(budget) - total)
    if difference > AMOUNT_TOLERANCE:
        raise ValidationError(
            f"Installment total {total} does not match budget {to_money(budget)} (difference {difference})"
        )


def _format_numbers(numbers: Iterable[int]) -> str:
    return ", ".join(f"#{n}" for n in numbers)
