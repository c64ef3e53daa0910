from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .classify import DDL_KEYWORDS, StatementKind, classify_statement
from .safety import apply_row_limit, has_multiple_statements, has_where_clause

EMPTY_QUERY_REASON = "Query cannot be empty"
MULTIPLE_STATEMENTS_REASON = "Multiple statements are not allowed"
DDL_REASON = f"DDL operations ({', '.join(DDL_KEYWORDS)}) are not allowed"


@dataclass(frozen=True)
class SecurityPolicy:
    max_select_rows: int = 1000
    allow_ddl: bool = False
    allow_multiple_statements: bool = False
    require_where_clause: bool = True


@dataclass(frozen=True)
class ValidationOutcome:
    accepted: bool
    rejection_reason: Optional[str] = None
    statement_kind: Optional[StatementKind] = None
    executable_text: Optional[str] = None

    @classmethod
    def accept(cls, kind: StatementKind, executable_text: str) -> "ValidationOutcome":
        return cls(accepted=True, statement_kind=kind, executable_text=executable_text)

    @classmethod
    def reject(cls, reason: str, kind: Optional[StatementKind] = None) -> "ValidationOutcome":
        return cls(accepted=False, rejection_reason=reason, statement_kind=kind)


class QueryValidator:
    """
    Applies a SecurityPolicy to raw SQL.

    Checks run in a fixed order and stop at the first rejection:
    empty query, multiple statements, DDL, missing WHERE on UPDATE/DELETE.
    Accepted SELECTs get a LIMIT injected when they have none.

    validate() never raises for bad input; rejections come back as a
    ValidationOutcome with accepted=False.
    """

    def __init__(self, policy: SecurityPolicy):
        self.policy = policy

    def validate(self, sql: str) -> ValidationOutcome:
        query = (sql or "").strip()
        if not query:
            return ValidationOutcome.reject(EMPTY_QUERY_REASON)

        if not self.policy.allow_multiple_statements and has_multiple_statements(query):
            return ValidationOutcome.reject(MULTIPLE_STATEMENTS_REASON)

        kind = classify_statement(query)

        if kind is StatementKind.DDL and not self.policy.allow_ddl:
            return ValidationOutcome.reject(DDL_REASON, kind)

        if (
            kind in (StatementKind.UPDATE, StatementKind.DELETE)
            and self.policy.require_where_clause
            and not has_where_clause(query)
        ):
            return ValidationOutcome.reject(f"{kind.value} queries must include a WHERE clause", kind)

        if kind is StatementKind.SELECT:
            return ValidationOutcome.accept(kind, apply_row_limit(query, self.policy.max_select_rows))
        return ValidationOutcome.accept(kind, query)


def validate(sql: str, policy: SecurityPolicy) -> ValidationOutcome:
    return QueryValidator(policy).validate(sql)
