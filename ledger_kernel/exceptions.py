"""
Typed exception hierarchy for the ledger kernel.

===============================================================================
WHEN THE KERNEL RAISES
===============================================================================

Business findings (an unbalanced journal, a frozen account, a duplicate
voucher number) are NOT exceptions.  They come back as result values
(``JournalRejected``, ``ValidationResult``, ``ReportFailure``) so callers
can render every finding at once.

Exceptions are reserved for the cases where the kernel cannot produce a
meaningful answer at all:
  - a port lookup failed (database down, driver error)
  - configuration is malformed
  - a pure function was called with arguments that violate its contract

Every exception carries a class-level ``code`` (machine-readable) and
structured attributes so logs and callers never parse message text:

    try:
        result = validator.validate_voucher(voucher)
    except LookupUnavailableError as e:
        log.error("ledger unavailable", extra={"port": e.port})
        api_response(code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- PortLookupError
    |   +-- LookupUnavailableError
    |   +-- CompanyNotFoundError
    |
    +-- PolicyConfigurationError
    |
    +-- InvalidReportParametersError

Code                         | When raised
-----------------------------|---------------------------------------------
LOOKUP_UNAVAILABLE           | Port adapter could not reach its store
COMPANY_NOT_FOUND            | Company facts requested for an unknown company
POLICY_CONFIGURATION_ERROR   | YAML policy or reporting config is invalid
INVALID_REPORT_PARAMETERS    | Pure report builder called with bad arguments
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Lookup (port) errors


class PortLookupError(LedgerKernelError):
    """Base exception for failures behind a read-only port."""

    code: str = "PORT_LOOKUP_ERROR"


class LookupUnavailableError(PortLookupError):
    """The backing store for a port could not be queried."""

    code: str = "LOOKUP_UNAVAILABLE"

    def __init__(self, port: str, operation: str, reason: str):
        self.port = port
        self.operation = operation
        self.reason = reason
        super().__init__(f"{port}.{operation} unavailable: {reason}")


class CompanyNotFoundError(PortLookupError):
    """Company facts were requested for a company the store does not know."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


# Configuration errors


class PolicyConfigurationError(LedgerKernelError):
    """Posting policy or reporting configuration is malformed."""

    code: str = "POLICY_CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for {setting}: {reason}")


# Reporting errors


class InvalidReportParametersError(LedgerKernelError):
    """A pure report builder was called with arguments outside its contract."""

    code: str = "INVALID_REPORT_PARAMETERS"

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid report parameter {parameter}: {reason}")
