"""
Module: pnl_kernel.domain.line_items
Responsibility: Enumerate every canonical P&L line item the pipeline stores.
Architecture position: Kernel > Domain.  Pure data, zero I/O.

The catalogue is the single source of truth for:
    - the numeric columns on ``FinancialRecord``,
    - the payload of ``DataVersion.data`` snapshots,
    - the targets of the label table in ``pnl_ingestion.mapping.labels``.

Invariants enforced:
    - Field names are unique.
    - ``record_values`` never lets an unknown field through.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Section(str, Enum):
    """P&L statement section a line item belongs to."""

    INCOME = "income"
    COGS = "cogs"
    OPERATING_EXPENSE = "operating_expense"
    OTHER = "other"


@dataclass(frozen=True)
class LineItem:
    """One canonical line item."""

    field: str
    section: Section
    is_total: bool = False


def _items(section: Section, *fields: str, totals: tuple[str, ...] = ()) -> list[LineItem]:
    items = [LineItem(f, section) for f in fields]
    items.extend(LineItem(f, section, is_total=True) for f in totals)
    return items


LINE_ITEMS: tuple[LineItem, ...] = tuple(
    _items(
        Section.INCOME,
        "hd_research_income",
        "personal_injury_income",
        "ach_credit_income",
        "nonmedical_income",
        "otc_deposit_income",
        "practice_income",
        "refunds_income",
        "management_fee_income",
        totals=("total_income",),
    )
    + _items(
        Section.COGS,
        "consulting_cogs",
        "medical_waste_cogs",
        "medical_billing_cogs",
        "medical_supplies_cogs",
        "contract_labor_cogs",
        "merchant_fees_cogs",
        "management_fees_cogs",
        "medical_books_cogs",
        "laboratory_fees_cogs",
        "laboratory_directory_cogs",
        "lab_supplies_cogs",
        "patient_expense_cogs",
        "chronic_care_management_cogs",
        totals=("total_cogs", "gross_profit"),
    )
    + _items(
        Section.OPERATING_EXPENSE,
        # Payroll
        "payroll_shared_wages",
        "payroll_shared_tax",
        "payroll_shared_overhead",
        "payroll_shared_health",
        "payroll_shared_contract",
        "payroll_shared_reimbursements",
        "payroll_physician_wages",
        "payroll_physician_tax",
        "payroll_physician_benefits",
        "payroll_physician_bonus",
        "payroll_physician_other",
        "payroll_in_office_salary",
        "payroll_in_office_wages",
        "payroll_in_office_bonus",
        "payroll_in_office_np_extra_visits",
        "payroll_in_office_telehealth",
        "payroll_in_office_administration",
        "payroll_in_office_payroll_taxes",
        "payroll_in_office_unemployment",
        "payroll_in_office_health_insurance",
        "payroll_in_office_simple_plan_match",
        "payroll_in_office_other",
        "payroll_processing_fees",
        "payroll_other",
        # Facilities
        "rent_expense",
        "utilities_expense",
        "janitorial_expense",
        "repairs_maintenance_expense",
        "security_expense",
        # Professional services
        "accounting_expense",
        "legal_fees_expense",
        "professional_fees_expense",
        "credentialing_expense",
        # Office and admin
        "office_expense",
        "office_supplies_expense",
        "postage_expense",
        "printing_expense",
        "computer_expense",
        "telephone_internet_expense",
        # Marketing
        "advertising_expense",
        "charitable_expense",
        # Medical operations
        "small_medical_equip_expense",
        "oxygen_gas_expense",
        "radiation_badges_expense",
        "linens_cleaning_expense",
        "equipment_rental_expense",
        # Travel, auto, meals
        "automobile_expense_other",
        "gas_expense",
        "parking_expense",
        "travel_expense",
        "business_entertainment_expense",
        "employee_meals_expense",
        "travel_meals_expense",
        "office_snacks_expense",
        "office_party_expense",
        "meals_entertainment_expense_other",
        # Insurance, taxes, other
        "health_insurance_expense",
        "liability_insurance_expense",
        "medical_malpractice_expense",
        "insurance_expense_other",
        "taxes_expense",
        "personal_property_tax_expense",
        "franchise_tax_expense",
        "licenses_permits_expense",
        "license_fee_expense",
        "bank_service_charges_expense",
        "continuing_education_expense",
        "dues_subscriptions_expense",
        "uniforms_expense",
        "answering_service_expense",
        "recruiting_expense",
        "moving_expense",
        "marketing_gifts_expense",
        "conference_fees_expense",
        "miscellaneous_expense",
        totals=(
            "shared_payroll",
            "physician_payroll",
            "in_office_payroll",
            "payroll_expense",
            "automobile_expense",
            "meals_entertainment_expense",
            "insurance_expense",
            "total_expenses",
            "net_ordinary_income",
        ),
    )
    + _items(
        Section.OTHER,
        "interest_income",
        "depreciation_expense",
        "management_fee_paid",
        "interest_expense",
        "corporate_admin_fee",
        "other_expenses",
        totals=("net_income",),
    )
)

FIELD_NAMES: tuple[str, ...] = tuple(item.field for item in LINE_ITEMS)

_FIELD_SET: frozenset[str] = frozenset(FIELD_NAMES)

if len(_FIELD_SET) != len(FIELD_NAMES):
    raise RuntimeError("Duplicate field in P&L line-item catalogue")


def is_field(name: str) -> bool:
    """True if *name* is a canonical field."""
    return name in _FIELD_SET


def fields_in(section: Section) -> tuple[str, ...]:
    """Canonical fields of one section, in catalogue order."""
    return tuple(item.field for item in LINE_ITEMS if item.section == section)


def record_values(values: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """
    Expand a partial field mapping into a full-row value dict.

    Every canonical field is present in the result; fields absent from
    *values* are ``Decimal(0)``.

    Raises:
        KeyError: If *values* contains a name that is not a canonical field.
    """
    unknown = sorted(k for k in values if k not in _FIELD_SET)
    if unknown:
        raise KeyError(f"Unknown P&L field(s): {', '.join(unknown)}")
    return {name: Decimal(values.get(name, 0)) for name in FIELD_NAMES}
