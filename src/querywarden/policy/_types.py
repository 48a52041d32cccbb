"""Internal types for the policy engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class StatementCategory(enum.Enum):
    READ_ONLY = "read_only"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"      # needs confirmation
    TRUNCATE = "truncate"  # needs confirmation
    DANGEROUS = "dangerous"  # DDL, admin, or anything unrecognised → blocked


class OperationTag(enum.Enum):
    MULTIPLE_STATEMENTS = "MULTIPLE_STATEMENTS"
    NON_SELECT_STATEMENT = "NON_SELECT_STATEMENT"
    SELECT_INTO = "SELECT_INTO"
    QUERY_TOO_LONG = "QUERY_TOO_LONG"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    DROP = "DROP"
    CREATE = "CREATE"
    ALTER = "ALTER"
    EXEC = "EXEC"
    EXECUTE = "EXECUTE"
    MERGE = "MERGE"
    BULK = "BULK"
    GRANT = "GRANT"
    REVOKE = "REVOKE"
    DENY = "DENY"
    USE = "USE"
    SET = "SET"
    DBCC = "DBCC"
    BACKUP = "BACKUP"
    RESTORE = "RESTORE"
    RECONFIGURE = "RECONFIGURE"
    SP_CONFIGURE = "SP_CONFIGURE"


class PolicyMode(enum.Enum):
    DML = "dml"              # INSERT/UPDATE allowed, DELETE/TRUNCATE need confirmation
    READ_ONLY = "read_only"  # anything but SELECT is blocked


class Verdict(enum.Enum):
    ALLOWED = "allow"
    BLOCKED = "deny"
    REQUIRES_CONFIRMATION = "ask"


@dataclass(frozen=True)
class Classification:
    category: StatementCategory
    tag: OperationTag | None = None

    @property
    def is_read_only(self) -> bool:
        return self.category == StatementCategory.READ_ONLY


@dataclass(frozen=True)
class PolicyDecision:
    verdict: Verdict
    tag: OperationTag | None = None

    @classmethod
    def allowed(cls) -> PolicyDecision:
        return cls(verdict=Verdict.ALLOWED)

    @classmethod
    def blocked(cls, tag: OperationTag) -> PolicyDecision:
        return cls(verdict=Verdict.BLOCKED, tag=tag)

    @classmethod
    def requires_confirmation(cls, tag: OperationTag) -> PolicyDecision:
        return cls(verdict=Verdict.REQUIRES_CONFIRMATION, tag=tag)

    @property
    def is_allowed(self) -> bool:
        return self.verdict == Verdict.ALLOWED
