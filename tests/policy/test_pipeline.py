"""Integration tests for the full policy pipeline."""

from querywarden.diagnostics import Level, codes
from querywarden.policy import PolicyMode, run_policy


class TestOrdersScenarios:
    def test_unbounded_select_gets_top(self):
        result = run_policy("SELECT * FROM Orders", limit=100)
        assert result.decision == "allow"
        assert not result.blocked
        assert result.classification == "read_only"
        assert result.tag is None
        assert result.effective_sql == "SELECT TOP 100 * FROM Orders"
        assert any(d.code == codes.LIMIT_INJECTED for d in result.diagnostics)
        assert result.warnings == ["query may return a large result set"]

    def test_top_capped_to_limit(self):
        result = run_policy("SELECT TOP 50 * FROM Orders", limit=10)
        assert result.effective_sql == "SELECT TOP 10 * FROM Orders"
        assert result.applied_fixes_summary() == ["Q0603: cap TOP at 10"]

    def test_top_below_limit_kept(self):
        result = run_policy("SELECT TOP 50 * FROM Orders", limit=1000)
        assert result.healed_sql is None
        assert result.effective_sql == "SELECT TOP 50 * FROM Orders"

    def test_drop_blocked(self):
        result = run_policy("DROP TABLE Orders")
        assert result.decision == "deny"
        assert result.blocked
        assert not result.requires_confirmation
        assert result.classification == "dangerous"
        assert result.tag == "DROP"
        assert result.effective_sql == "DROP TABLE Orders"
        (error,) = [d for d in result.diagnostics if d.level == Level.ERROR]
        assert error.code == codes.DDL_BLOCKED
        assert "confirmation cannot override this block" in error.notes

    def test_drop_blocked_even_when_confirmed(self):
        result = run_policy("DROP TABLE Orders", confirm_unsafe=True)
        assert result.decision == "deny"

    def test_delete_requires_confirmation(self):
        result = run_policy("DELETE FROM Orders WHERE Id = 5")
        assert result.decision == "ask"
        assert result.requires_confirmation
        assert result.tag == "DELETE"
        assert result.diagnostics[0].code == codes.CONFIRMATION_REQUIRED
        assert result.warnings == [
            "this query will permanently delete data; make sure a backup exists before proceeding"
        ]

    def test_delete_confirmed(self):
        result = run_policy("DELETE FROM Orders WHERE Id = 5", confirm_unsafe=True)
        assert result.decision == "allow"
        assert result.classification == "delete"
        assert result.healed_sql is None
        assert result.warnings

    def test_multiple_statements_blocked(self):
        result = run_policy("SELECT a; SELECT b;")
        assert result.decision == "deny"
        assert result.tag == "MULTIPLE_STATEMENTS"
        error = result.diagnostics[0]
        assert error.code == codes.MULTIPLE_STATEMENTS
        assert error.spans[0].span.start == 8


class TestModes:
    def test_insert_allowed_in_dml_mode(self):
        result = run_policy("INSERT INTO Orders (Id) VALUES (1)")
        assert result.decision == "allow"
        assert result.tag == "INSERT"
        assert result.healed_sql is None

    def test_insert_blocked_in_read_only_mode(self):
        result = run_policy("INSERT INTO Orders (Id) VALUES (1)", mode=PolicyMode.READ_ONLY)
        assert result.decision == "deny"
        assert result.diagnostics[0].code == codes.WRITE_BLOCKED

    def test_delete_blocked_in_read_only_mode_despite_confirmation(self):
        result = run_policy(
            "DELETE FROM Orders WHERE Id = 5", mode=PolicyMode.READ_ONLY, confirm_unsafe=True,
        )
        assert result.decision == "deny"
        assert not result.requires_confirmation

    def test_set_blocked_only_in_read_only_mode(self):
        assert run_policy("SET NOCOUNT ON").tag == "NON_SELECT_STATEMENT"
        assert run_policy("SET NOCOUNT ON", mode=PolicyMode.READ_ONLY).tag == "SET"

    def test_select_into_blocked(self):
        result = run_policy("SELECT * INTO Archive FROM Orders")
        assert result.decision == "deny"
        assert result.diagnostics[0].code == codes.SELECT_INTO


class TestRewriteOptions:
    def test_limit_none_disables_rewrite(self):
        result = run_policy("SELECT * FROM Orders", limit=None)
        assert result.healed_sql is None

    def test_dialect_selects_limit_style(self):
        result = run_policy("SELECT * FROM orders", limit=100, dialect="postgres")
        assert result.effective_sql == "SELECT * FROM orders LIMIT 100"

    def test_offset_paginates(self):
        result = run_policy("SELECT * FROM Orders ORDER BY Id", limit=10, offset=20)
        assert result.effective_sql == (
            "SELECT * FROM Orders ORDER BY Id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"
        )
        assert any(d.code == codes.PAGINATION_APPLIED for d in result.diagnostics)

    def test_surrounding_whitespace_trimmed(self):
        result = run_policy("  SELECT 1 \n", limit=5)
        assert result.original_sql == "SELECT 1"
        assert result.effective_sql == "SELECT TOP 5 1"

    def test_blocked_statements_never_rewritten(self):
        result = run_policy("SELECT 1; DROP TABLE Orders", limit=5)
        assert result.healed_sql is None
        assert result.applied_fixes_summary() == []


class TestHostileInput:
    def test_non_positive_limit_disables_rewrite(self):
        for limit in (0, -5):
            result = run_policy("SELECT * FROM Orders", limit=limit)
            assert result.decision == "allow"
            assert result.healed_sql is None

    def test_negative_offset_treated_as_zero(self):
        result = run_policy("SELECT * FROM Orders ORDER BY Id", limit=10, offset=-1)
        assert result.effective_sql == "SELECT TOP 10 * FROM Orders ORDER BY Id"
        assert not any(d.code == codes.MANUAL_PAGINATION for d in result.diagnostics)

    def test_deep_nesting_does_not_raise(self):
        result = run_policy("SELECT " + "(" * 2000 + "1")
        assert result.decision == "allow"
        assert result.tables == []

    def test_unterminated_brackets_do_not_raise(self):
        result = run_policy("SELECT " + "[" * 3000)
        assert result.tables == []

    def test_dollar_quote_cannot_hide_stacked_drop(self):
        result = run_policy("SELECT $$--$$; DROP TABLE Orders", dialect="postgres")
        assert result.decision == "deny"
        assert result.tag == "MULTIPLE_STATEMENTS"
        assert result.healed_sql is None

    def test_separator_span_skips_commented_semicolon(self):
        sql = "SELECT 1 /* ; */ ; SELECT 2"
        error = run_policy(sql).diagnostics[0]
        assert error.spans[0].span.start == sql.index("; SELECT 2")

    def test_union_not_rewritten_in_top_style(self):
        result = run_policy("SELECT a FROM t UNION ALL SELECT b FROM u", limit=10)
        assert result.healed_sql is None
        assert any(d.code == codes.UNBOUNDED_RESULT for d in result.diagnostics)
