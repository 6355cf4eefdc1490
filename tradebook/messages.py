"""
Quote / invoice cover messages built from the business's templates.

Templates use {placeholder} variables. Unknown placeholders are left as
typed; values that are missing render as empty text.
"""

import re
from typing import Optional

from .document_composer import format_date

DEFAULT_QUOTE_TEMPLATE = (
    "Hi {customer_name},\n\n"
    "See attached your quote for {job_title}.\n\n"
    "Valid until {expiry_date}.\n\n"
    "Let me know if you have any questions.\n\n"
    "Thanks,\n"
    "{business_name}"
)

DEFAULT_INVOICE_TEMPLATE = (
    "Hi {customer_name},\n\n"
    "Please find attached invoice #{invoice_number} for {job_title}.\n\n"
    "Total: £{total}\n\n"
    "Payment details:\n"
    "{bank_details}\n\n"
    "Thanks,\n"
    "{business_name}"
)

QUOTE_VARIABLES = ("customer_name", "job_title", "expiry_date", "business_name")
INVOICE_VARIABLES = (
    "customer_name", "job_title", "invoice_number", "total", "bank_details", "business_name",
)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def fill_template(template: str, values: dict) -> str:
    """Replace {name} with values[name]; names not in `values` are kept."""
    def _sub(match):
        name = match.group(1)
        if name not in values:
            return match.group(0)
        value = values[name]
        return "" if value is None else str(value)
    return _PLACEHOLDER.sub(_sub, template)


def _business_name(settings) -> Optional[str]:
    return settings.business_name if settings is not None else None


def quote_message(job, settings) -> str:
    template = (settings.quote_message_template if settings is not None else None) or DEFAULT_QUOTE_TEMPLATE
    return fill_template(template, {
        "customer_name": job.customer.name,
        "job_title": job.title,
        "expiry_date": format_date(job.quote_valid_until) if job.quote_valid_until else None,
        "business_name": _business_name(settings),
    })


def invoice_message(job, settings) -> str:
    template = (settings.invoice_message_template if settings is not None else None) or DEFAULT_INVOICE_TEMPLATE
    return fill_template(template, {
        "customer_name": job.customer.name,
        "job_title": job.title,
        "invoice_number": job.invoice_number,
        "total": f"{(job.total or 0):.2f}",
        "bank_details": settings.bank_details if settings is not None else None,
        "business_name": _business_name(settings),
    })
