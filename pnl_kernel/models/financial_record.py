"""
Module: pnl_kernel.models.financial_record
Responsibility: ORM persistence for the live P&L figures of one clinic-month.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/line_items.py only.

Invariants enforced:
    - One row per (clinic_id, year, month) (uq_financial_record_period).
    - One Numeric(38, 9) column per canonical field in
      ``pnl_kernel.domain.line_items``; no other amount columns exist.
    - Writes go through ``replace_values``, which sets every canonical
      field.  A field absent from the incoming values becomes 0.

Failure modes:
    - KeyError from ``replace_values`` on an unknown field name.
    - IntegrityError on a duplicate (clinic_id, year, month).
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pnl_kernel.db.base import TrackedBase, UUIDString
from pnl_kernel.domain.line_items import FIELD_NAMES, record_values

if TYPE_CHECKING:
    from pnl_kernel.models.clinic import Clinic


def _amount():
    return mapped_column(Numeric(38, 9), default=Decimal("0"), nullable=False)


class FinancialRecord(TrackedBase):
    """Live P&L values for one clinic and calendar month."""

    __tablename__ = "financial_records"

    __table_args__ = (
        UniqueConstraint("clinic_id", "year", "month", name="uq_financial_record_period"),
        Index("idx_financial_record_period_date", "period_date"),
    )

    clinic_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clinics.id"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    period_date: Mapped[date] = mapped_column(Date, nullable=False)

    hd_research_income: Mapped[Decimal] = _amount()
    personal_injury_income: Mapped[Decimal] = _amount()
    ach_credit_income: Mapped[Decimal] = _amount()
    nonmedical_income: Mapped[Decimal] = _amount()
    otc_deposit_income: Mapped[Decimal] = _amount()
    practice_income: Mapped[Decimal] = _amount()
    refunds_income: Mapped[Decimal] = _amount()
    management_fee_income: Mapped[Decimal] = _amount()
    total_income: Mapped[Decimal] = _amount()
    consulting_cogs: Mapped[Decimal] = _amount()
    medical_waste_cogs: Mapped[Decimal] = _amount()
    medical_billing_cogs: Mapped[Decimal] = _amount()
    medical_supplies_cogs: Mapped[Decimal] = _amount()
    contract_labor_cogs: Mapped[Decimal] = _amount()
    merchant_fees_cogs: Mapped[Decimal] = _amount()
    management_fees_cogs: Mapped[Decimal] = _amount()
    medical_books_cogs: Mapped[Decimal] = _amount()
    laboratory_fees_cogs: Mapped[Decimal] = _amount()
    laboratory_directory_cogs: Mapped[Decimal] = _amount()
    lab_supplies_cogs: Mapped[Decimal] = _amount()
    patient_expense_cogs: Mapped[Decimal] = _amount()
    chronic_care_management_cogs: Mapped[Decimal] = _amount()
    total_cogs: Mapped[Decimal] = _amount()
    gross_profit: Mapped[Decimal] = _amount()
    payroll_shared_wages: Mapped[Decimal] = _amount()
    payroll_shared_tax: Mapped[Decimal] = _amount()
    payroll_shared_overhead: Mapped[Decimal] = _amount()
    payroll_shared_health: Mapped[Decimal] = _amount()
    payroll_shared_contract: Mapped[Decimal] = _amount()
    payroll_shared_reimbursements: Mapped[Decimal] = _amount()
    payroll_physician_wages: Mapped[Decimal] = _amount()
    payroll_physician_tax: Mapped[Decimal] = _amount()
    payroll_physician_benefits: Mapped[Decimal] = _amount()
    payroll_physician_bonus: Mapped[Decimal] = _amount()
    payroll_physician_other: Mapped[Decimal] = _amount()
    payroll_in_office_salary: Mapped[Decimal] = _amount()
    payroll_in_office_wages: Mapped[Decimal] = _amount()
    payroll_in_office_bonus: Mapped[Decimal] = _amount()
    payroll_in_office_np_extra_visits: Mapped[Decimal] = _amount()
    payroll_in_office_telehealth: Mapped[Decimal] = _amount()
    payroll_in_office_administration: Mapped[Decimal] = _amount()
    payroll_in_office_payroll_taxes: Mapped[Decimal] = _amount()
    payroll_in_office_unemployment: Mapped[Decimal] = _amount()
    payroll_in_office_health_insurance: Mapped[Decimal] = _amount()
    payroll_in_office_simple_plan_match: Mapped[Decimal] = _amount()
    payroll_in_office_other: Mapped[Decimal] = _amount()
    payroll_processing_fees: Mapped[Decimal] = _amount()
    payroll_other: Mapped[Decimal] = _amount()
    rent_expense: Mapped[Decimal] = _amount()
    utilities_expense: Mapped[Decimal] = _amount()
    janitorial_expense: Mapped[Decimal] = _amount()
    repairs_maintenance_expense: Mapped[Decimal] = _amount()
    security_expense: Mapped[Decimal] = _amount()
    accounting_expense: Mapped[Decimal] = _amount()
    legal_fees_expense: Mapped[Decimal] = _amount()
    professional_fees_expense: Mapped[Decimal] = _amount()
    credentialing_expense: Mapped[Decimal] = _amount()
    office_expense: Mapped[Decimal] = _amount()
    office_supplies_expense: Mapped[Decimal] = _amount()
    postage_expense: Mapped[Decimal] = _amount()
    printing_expense: Mapped[Decimal] = _amount()
    computer_expense: Mapped[Decimal] = _amount()
    telephone_internet_expense: Mapped[Decimal] = _amount()
    advertising_expense: Mapped[Decimal] = _amount()
    charitable_expense: Mapped[Decimal] = _amount()
    small_medical_equip_expense: Mapped[Decimal] = _amount()
    oxygen_gas_expense: Mapped[Decimal] = _amount()
    radiation_badges_expense: Mapped[Decimal] = _amount()
    linens_cleaning_expense: Mapped[Decimal] = _amount()
    equipment_rental_expense: Mapped[Decimal] = _amount()
    automobile_expense_other: Mapped[Decimal] = _amount()
    gas_expense: Mapped[Decimal] = _amount()
    parking_expense: Mapped[Decimal] = _amount()
    travel_expense: Mapped[Decimal] = _amount()
    business_entertainment_expense: Mapped[Decimal] = _amount()
    employee_meals_expense: Mapped[Decimal] = _amount()
    travel_meals_expense: Mapped[Decimal] = _amount()
    office_snacks_expense: Mapped[Decimal] = _amount()
    office_party_expense: Mapped[Decimal] = _amount()
    meals_entertainment_expense_other: Mapped[Decimal] = _amount()
    health_insurance_expense: Mapped[Decimal] = _amount()
    liability_insurance_expense: Mapped[Decimal] = _amount()
    medical_malpractice_expense: Mapped[Decimal] = _amount()
    insurance_expense_other: Mapped[Decimal] = _amount()
    taxes_expense: Mapped[Decimal] = _amount()
    personal_property_tax_expense: Mapped[Decimal] = _amount()
    franchise_tax_expense: Mapped[Decimal] = _amount()
    licenses_permits_expense: Mapped[Decimal] = _amount()
    license_fee_expense: Mapped[Decimal] = _amount()
    bank_service_charges_expense: Mapped[Decimal] = _amount()
    continuing_education_expense: Mapped[Decimal] = _amount()
    dues_subscriptions_expense: Mapped[Decimal] = _amount()
    uniforms_expense: Mapped[Decimal] = _amount()
    answering_service_expense: Mapped[Decimal] = _amount()
    recruiting_expense: Mapped[Decimal] = _amount()
    moving_expense: Mapped[Decimal] = _amount()
    marketing_gifts_expense: Mapped[Decimal] = _amount()
    conference_fees_expense: Mapped[Decimal] = _amount()
    miscellaneous_expense: Mapped[Decimal] = _amount()
    shared_payroll: Mapped[Decimal] = _amount()
    physician_payroll: Mapped[Decimal] = _amount()
    in_office_payroll: Mapped[Decimal] = _amount()
    payroll_expense: Mapped[Decimal] = _amount()
    automobile_expense: Mapped[Decimal] = _amount()
    meals_entertainment_expense: Mapped[Decimal] = _amount()
    insurance_expense: Mapped[Decimal] = _amount()
    total_expenses: Mapped[Decimal] = _amount()
    net_ordinary_income: Mapped[Decimal] = _amount()
    interest_income: Mapped[Decimal] = _amount()
    depreciation_expense: Mapped[Decimal] = _amount()
    management_fee_paid: Mapped[Decimal] = _amount()
    interest_expense: Mapped[Decimal] = _amount()
    corporate_admin_fee: Mapped[Decimal] = _amount()
    other_expenses: Mapped[Decimal] = _amount()
    net_income: Mapped[Decimal] = _amount()

    clinic: Mapped["Clinic"] = relationship("Clinic", back_populates="financial_records")

    def __repr__(self) -> str:
        return f"<FinancialRecord {self.clinic_id} {self.year}-{self.month:02d}>"

    def values(self) -> dict[str, Decimal]:
        """Current value of every canonical field."""
        return {
            name: Decimal(getattr(self, name) if getattr(self, name) is not None else 0)
            for name in FIELD_NAMES
        }

    def replace_values(self, values: dict[str, Decimal]) -> None:
        """Overwrite every canonical field (full replace, never a merge)."""
        for name, amount in record_values(values).items():
            setattr(self, name, amount)
