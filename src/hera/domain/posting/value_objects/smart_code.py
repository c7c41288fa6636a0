"""Smart code parsing helpers.

A smart code is a dotted, versioned classification string such as
``HERA.SALON.FINANCE.TXN.SALE.RETAIL.V1``: the literal ``HERA`` prefix, the
business domain, two or more classification segments and a version.
"""

import re
from enum import Enum

SMART_CODE_PATTERN = re.compile(
    r"^HERA\.[A-Z0-9]{2,15}(?:\.[A-Z0-9_]{2,30}){2,8}\.[Vv][0-9]+$",
)

CRITICAL_SEGMENT = "CRITICAL"

# Segments marking records that never carry GL impact
NEVER_RELEVANT_SEGMENTS: frozenset[str] = frozenset(
    {"QUOTE", "DRAFT", "INQUIRY", "RESERVATION", "BOOK", "ESTIMATE"},
)

AUDIT_LOG_SMART_CODE = "HERA.FIN.GL.AUTO.JOURNAL.LOG.v1"
AUDIT_ERROR_SMART_CODE = "HERA.FIN.GL.AUTO.JOURNAL.ERROR.v1"


class JournalKind(str, Enum):
    """How a journal header was produced."""

    AUTO = "AUTO"
    AI = "AI"
    BATCH = "BATCH"


def is_valid_smart_code(code: str) -> bool:
    return bool(SMART_CODE_PATTERN.match(code))


def segments(code: str) -> list[str]:
    return code.upper().split(".")


def domain_of(code: str) -> str:
    """Return the business domain segment (``SALON`` in ``HERA.SALON...``)."""
    parts = segments(code)
    if len(parts) < 2:  # NOQA: PLR2004
        return "FIN"
    return parts[1]


def is_critical(code: str) -> bool:
    return CRITICAL_SEGMENT in segments(code)[1:-1]


def never_relevant_segment(code: str) -> str | None:
    """Return the first segment that rules the code out of the GL, if any."""
    for segment in segments(code)[1:-1]:
        if segment in NEVER_RELEVANT_SEGMENTS:
            return segment
    return None


def line_smart_code(domain: str, is_debit: bool) -> str:
    side = "DEBIT" if is_debit else "CREDIT"
    return f"HERA.{domain}.GL.LINE.JE.{side}.v1"


def journal_smart_code(domain: str, kind: JournalKind) -> str:
    return f"HERA.{domain}.GL.TXN.JE.{kind.value}.v1"
