"""
Module: ledger_kernel.selectors.company_selector
Responsibility: ``CompanyFacts`` over the ``companies`` table.

Unset policy flags fall back to the defaults of the posting policy the
adapter was built with.
"""

from datetime import date

from sqlalchemy.orm import Session

from ledger_kernel.domain.ports import PolicyFlags
from ledger_kernel.exceptions import CompanyNotFoundError
from ledger_kernel.models.company import Company
from ledger_kernel.selectors.base import BaseSelector


class SqlCompanyFacts(BaseSelector):
    port_name = "CompanyFacts"

    def __init__(self, session: Session, default_flags: PolicyFlags | None = None):
        super().__init__(session)
        self._default_flags = default_flags or PolicyFlags()

    def _company(self, company_id: str, operation: str) -> Company:
        with self._lookup(operation):
            company = self.session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company

    def get_base_currency(self, company_id: str) -> str:
        return self._company(company_id, "get_base_currency").base_currency

    def get_policy_flags(self, company_id: str) -> PolicyFlags:
        company = self._company(company_id, "get_policy_flags")
        if company.require_cost_center_on_pl is None:
            return self._default_flags
        return PolicyFlags(require_cost_center_on_pl=company.require_cost_center_on_pl)

    def get_fiscal_year_start(self, company_id: str, as_of: date) -> date | None:
        company = self._company(company_id, "get_fiscal_year_start")
        start = date(as_of.year, company.fiscal_year_start_month, company.fiscal_year_start_day)
        if start > as_of:
            start = date(as_of.year - 1, start.month, start.day)
        return start
