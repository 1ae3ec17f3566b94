"""
Label normalization and lookup for P&L line items.

Source exports write account labels as ``"<number> <sep> <name>"`` where the
separator is a middle dot that often arrives corrupted: U+FFFD after a bad
decode, ``Â·`` after a double encode, a bullet operator, or with the
surrounding spaces dropped.  ``normalize_label`` rewrites every variant to
``"<number> · <name>"`` so one table serves all of them.

Matching is otherwise exact and case-sensitive.  There is no fuzzy matching.
"""

from __future__ import annotations

import re

from pnl_kernel.domain.line_items import is_field

SEPARATOR = "·"

_SEPARATOR_RE = re.compile(r"^(\d+)\s*(?:Â·|·|�|∙|•)\s*(.*)$")

LABEL_TABLE: dict[str, str] = {
    # Income
    "40000 · HD Research LLC Income": "hd_research_income",
    "41000 · Personal Injury": "personal_injury_income",
    "42000 · Nonmedical Income": "nonmedical_income",
    "43000 · ACH Credit": "ach_credit_income",
    "44000 · OTC Deposit": "otc_deposit_income",
    "44500 · Practice Income": "practice_income",
    "45000 · Refunds": "refunds_income",
    "46000 · Management Fee Income": "management_fee_income",
    "Total Income": "total_income",
    # Cost of goods sold
    "51000 · Consulting": "consulting_cogs",
    "52000 · Medical Waste": "medical_waste_cogs",
    "53000 · Medical Billing": "medical_billing_cogs",
    "54000 · Medical Supplies": "medical_supplies_cogs",
    "55000 · Contract Labor": "contract_labor_cogs",
    "56000 · Merchant Fees": "merchant_fees_cogs",
    "58000 · Management Fees": "management_fees_cogs",
    "64300 · Medical Books and Research": "medical_books_cogs",
    "68200 · Laboratory Fees": "laboratory_fees_cogs",
    "59100 · Laboratory Directory": "laboratory_directory_cogs",
    "6380 · Laboratory Directory": "laboratory_directory_cogs",
    "68300 · Lab Supplies": "lab_supplies_cogs",
    "59300 · Patient Expense": "patient_expense_cogs",
    "59400 · Chronic Care Management": "chronic_care_management_cogs",
    "57500 · Chronic Care Management": "chronic_care_management_cogs",
    "Cost of Goods Sold": "total_cogs",
    "Total COGS": "total_cogs",
    "Gross Profit": "gross_profit",
    # Payroll: shared
    "66030 · Wages": "payroll_shared_wages",
    "66033 · Payroll Tax": "payroll_shared_tax",
    "66031 · Payroll Overhead": "payroll_shared_overhead",
    "66032 · Health Insurance": "payroll_shared_health",
    "66038 · Contract Labor": "payroll_shared_contract",
    "66039 · Reimbursments": "payroll_shared_reimbursements",
    "Total Shared Payroll": "shared_payroll",
    # Payroll: physician
    "66010 · Wages": "payroll_physician_wages",
    "66011 · Payroll Tax": "payroll_physician_tax",
    "66012 · Provider Benefits": "payroll_physician_benefits",
    "66075 · Physician Bonus": "payroll_physician_bonus",
    "Physician Payroll - Other": "payroll_physician_other",
    "Total Physician Payroll": "physician_payroll",
    # Payroll: in-office
    "66020 · Salary - Other": "payroll_in_office_salary",
    "66051 · Wages": "payroll_in_office_wages",
    "66052 · Bonus": "payroll_in_office_bonus",
    "66053 · NP Extra Visits": "payroll_in_office_np_extra_visits",
    "66054 · Telehealth": "payroll_in_office_telehealth",
    "66055 · Administration": "payroll_in_office_administration",
    "66061 · Payroll Taxes": "payroll_in_office_payroll_taxes",
    "66062 · Unemployment": "payroll_in_office_unemployment",
    "66071 · Health Insurance": "payroll_in_office_health_insurance",
    "66072 · Simple Plan Match": "payroll_in_office_simple_plan_match",
    "In Office Payroll - Other": "payroll_in_office_other",
    "Total In-Office Payroll": "in_office_payroll",
    # Payroll: processing and totals
    "65800 · Payroll Processing Fees": "payroll_processing_fees",
    "Payroll - Other": "payroll_other",
    "Total Payroll": "payroll_expense",
    # Facilities
    "67100 · Rent Expense": "rent_expense",
    "68600 · Utilities": "utilities_expense",
    "65900 · Janitorial Expense": "janitorial_expense",
    "67200 · Repairs and Maintenance": "repairs_maintenance_expense",
    "67400 · Security": "security_expense",
    # Professional services
    "65100 · Accounting": "accounting_expense",
    "66400 · Legal Fees": "legal_fees_expense",
    "66700 · Professional Fees": "professional_fees_expense",
    "65475 · Credentialing": "credentialing_expense",
    # Office and admin
    "66800 · Office Expense": "office_expense",
    "64900 · Office Supplies": "office_supplies_expense",
    "66900 · Postage": "postage_expense",
    "67300 · Printing": "printing_expense",
    "68100 · Computer Expense": "computer_expense",
    "66200 · Telephone and Internet": "telephone_internet_expense",
    # Marketing
    "65000 · Advertising and Promotion": "advertising_expense",
    "65350 · Charitable Contributions": "charitable_expense",
    # Medical operations
    "67700 · Small Medical Equipment": "small_medical_equip_expense",
    "67600 · Oxygen and Gas": "oxygen_gas_expense",
    "67900 · Radiation Badges": "radiation_badges_expense",
    "66500 · Linens and Cleaning": "linens_cleaning_expense",
    "67500 · Equipment Rental": "equipment_rental_expense",
    # Travel, auto, meals
    "Automobile Expense": "automobile_expense",
    "Total Automobile Expense": "automobile_expense",
    "Automobile Expense - Other": "automobile_expense_other",
    "65210 · Gas": "gas_expense",
    "65220 · Parking": "parking_expense",
    "68400 · Travel Expense": "travel_expense",
    "66110 · Business Entertainment": "business_entertainment_expense",
    "66150 · Employee meals on Premises": "employee_meals_expense",
    "66160 · Travel Meals": "travel_meals_expense",
    "66140 · Office Snacks and Beverages": "office_snacks_expense",
    "66140 · Office Party": "office_party_expense",
    "Meals and Entertainment - Other": "meals_entertainment_expense_other",
    "Total Meals and Entertainment": "meals_entertainment_expense",
    # Insurance, taxes, other operating
    "65610 · Health Insurance": "health_insurance_expense",
    "65620 · Liability Insurance": "liability_insurance_expense",
    "65630 · Medical Malpractice": "medical_malpractice_expense",
    "Insurance - Other": "insurance_expense_other",
    "Total Insurance": "insurance_expense",
    "68000 · Taxes": "taxes_expense",
    "68010 · Personal Property Tax": "personal_property_tax_expense",
    "68020 · Franchise Tax": "franchise_tax_expense",
    "65700 · Business Licenses and Permits": "licenses_permits_expense",
    "6380 · License & Fee": "license_fee_expense",
    "65300 · Bank Service Charges": "bank_service_charges_expense",
    "65400 · Continuing Education": "continuing_education_expense",
    "65500 · Dues and Subscriptions": "dues_subscriptions_expense",
    "68500 · Uniforms": "uniforms_expense",
    "69900 · Answering Service": "answering_service_expense",
    "67800 · Recruiting": "recruiting_expense",
    "66600 · Moving Expense": "moving_expense",
    "66120 · Marketing Gifts": "marketing_gifts_expense",
    "68700 · Conference Fees": "conference_fees_expense",
    "70000 · Miscellaneous": "miscellaneous_expense",
    "Total Expense": "total_expenses",
    "Net Ordinary Income": "net_ordinary_income",
    # Other income / expense
    "93000 · Interest Income": "interest_income",
    "84000 · Depreciation Expense": "depreciation_expense",
    "80000 · Management Fee Paid": "management_fee_paid",
    "85000 · Interest Expense": "interest_expense",
    "89005 · Corporate Admin Fee": "corporate_admin_fee",
    "80500 · Other Expenses": "other_expenses",
    "Net Income": "net_income",
}

_bad_targets = sorted({f for f in LABEL_TABLE.values() if not is_field(f)})
if _bad_targets:
    raise RuntimeError(f"Label table targets unknown fields: {_bad_targets}")


def normalize_label(raw: str | None) -> str:
    """Trim *raw* and canonicalize the account-number separator."""
    if raw is None:
        return ""
    label = raw.strip()
    match = _SEPARATOR_RE.match(label)
    if match:
        number, name = match.groups()
        return f"{number} {SEPARATOR} {name}"
    return label


def resolve_label(raw: str | None) -> str | None:
    """Canonical field for *raw*, or None when the label is unmapped."""
    label = normalize_label(raw)
    if not label:
        return None
    return LABEL_TABLE.get(label)
