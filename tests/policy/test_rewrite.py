"""Test row-limit rewriting (TOP / LIMIT / OFFSET-FETCH)."""

import pytest

from querywarden.diagnostics import codes
from querywarden.policy import (
    LimitStyle,
    RewriteRequest,
    StatementCategory,
    limit_style_for,
    rewrite_for_limit,
)
from querywarden.policy.classify import MAX_SQL_LENGTH

_READ = StatementCategory.READ_ONLY


def _top(sql: str, limit: int = 100, offset: int = 0) -> str:
    request = RewriteRequest(sql=sql, limit=limit, offset=offset)
    return rewrite_for_limit(request, _READ, style=LimitStyle.TOP).sql


def _limit(sql: str, limit: int = 100, offset: int = 0) -> str:
    request = RewriteRequest(sql=sql, limit=limit, offset=offset)
    return rewrite_for_limit(request, _READ, style=LimitStyle.LIMIT).sql


class TestTopInjection:
    def test_unbounded_select(self):
        assert _top("SELECT * FROM Orders") == "SELECT TOP 100 * FROM Orders"

    def test_distinct_kept_first(self):
        assert _top("SELECT DISTINCT name FROM t") == "SELECT DISTINCT TOP 100 name FROM t"

    def test_no_space_after_select(self):
        assert _top("SELECT*FROM t") == "SELECT TOP 100 *FROM t"

    def test_lowercase_and_newlines(self):
        assert _top("select\n*\nfrom t") == "select\nTOP 100 *\nfrom t"

    def test_leading_comment_preserved(self):
        sql = "-- top customers\nSELECT * FROM t"
        assert _top(sql) == "-- top customers\nSELECT TOP 100 * FROM t"

    def test_cte_uses_outer_select(self):
        sql = "WITH c AS (SELECT 1 AS x) SELECT * FROM c"
        assert _top(sql) == "WITH c AS (SELECT 1 AS x) SELECT TOP 100 * FROM c"

    def test_subquery_top_not_mistaken_for_outer(self):
        sql = "SELECT * FROM (SELECT TOP 5 id FROM t) x"
        assert _top(sql) == "SELECT TOP 100 * FROM (SELECT TOP 5 id FROM t) x"

    def test_parenthesis_in_literal_ignored(self):
        sql = "SELECT ')' AS p, * FROM t"
        assert _top(sql) == "SELECT TOP 100 ')' AS p, * FROM t"

    def test_result_carries_diagnostic(self):
        result = rewrite_for_limit(RewriteRequest("SELECT 1", 10), _READ)
        assert result.changed
        assert result.diagnostic.code == codes.LIMIT_INJECTED


class TestTopCapping:
    def test_larger_top_capped(self):
        assert _top("SELECT TOP 50 * FROM Orders", limit=10) == "SELECT TOP 10 * FROM Orders"

    def test_smaller_top_kept(self):
        sql = "SELECT TOP 50 * FROM Orders"
        result = rewrite_for_limit(RewriteRequest(sql, 1000), _READ)
        assert result.sql == sql
        assert not result.changed

    def test_parenthesized_top(self):
        assert _top("SELECT TOP (500) * FROM t") == "SELECT TOP (100) * FROM t"

    def test_distinct_top(self):
        assert _top("SELECT DISTINCT TOP 500 a FROM t") == "SELECT DISTINCT TOP 100 a FROM t"

    def test_variable_top_untouched(self):
        assert _top("SELECT TOP (@n) * FROM t") == "SELECT TOP (@n) * FROM t"

    def test_percent_untouched(self):
        assert _top("SELECT TOP 10 PERCENT * FROM t") == "SELECT TOP 10 PERCENT * FROM t"

    def test_capped_diagnostic(self):
        result = rewrite_for_limit(RewriteRequest("SELECT TOP 500 * FROM t", 100), _READ)
        assert result.diagnostic.code == codes.LIMIT_CAPPED


class TestOffsetFetch:
    def test_pagination_appended(self):
        sql = "SELECT * FROM Orders ORDER BY Id"
        assert _top(sql, limit=10, offset=20) == (
            "SELECT * FROM Orders ORDER BY Id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"
        )

    def test_pagination_before_semicolon(self):
        sql = "SELECT * FROM Orders ORDER BY Id;"
        assert _top(sql, limit=10, offset=20) == (
            "SELECT * FROM Orders ORDER BY Id OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY;"
        )

    def test_pagination_before_trailing_comment(self):
        sql = "SELECT * FROM Orders ORDER BY Id -- page"
        assert _top(sql, limit=10, offset=5) == (
            "SELECT * FROM Orders ORDER BY Id OFFSET 5 ROWS FETCH NEXT 10 ROWS ONLY -- page"
        )

    def test_existing_fetch_capped(self):
        sql = "SELECT * FROM t ORDER BY id OFFSET 0 ROWS FETCH NEXT 5000 ROWS ONLY"
        assert _top(sql) == "SELECT * FROM t ORDER BY id OFFSET 0 ROWS FETCH NEXT 100 ROWS ONLY"

    def test_existing_fetch_first_row_kept(self):
        sql = "SELECT * FROM t ORDER BY id OFFSET 0 ROWS FETCH FIRST 1 ROW ONLY"
        assert _top(sql) == sql

    def test_offset_without_fetch(self):
        sql = "SELECT * FROM t ORDER BY id OFFSET 10 ROWS"
        assert _top(sql, limit=50) == (
            "SELECT * FROM t ORDER BY id OFFSET 10 ROWS FETCH NEXT 50 ROWS ONLY"
        )

    def test_top_with_requested_offset_only_caps(self):
        assert _top("SELECT TOP 500 * FROM t", limit=10, offset=20) == "SELECT TOP 10 * FROM t"


class TestLimitStyle:
    def test_append_limit(self):
        assert _limit("SELECT * FROM orders") == "SELECT * FROM orders LIMIT 100"

    def test_append_before_semicolon(self):
        assert _limit("SELECT * FROM orders;") == "SELECT * FROM orders LIMIT 100;"

    def test_append_before_trailing_comment(self):
        assert _limit("SELECT * FROM t -- all") == "SELECT * FROM t LIMIT 100 -- all"

    def test_existing_limit_capped(self):
        assert _limit("SELECT * FROM t LIMIT 5000") == "SELECT * FROM t LIMIT 100"

    def test_existing_limit_kept(self):
        assert _limit("SELECT * FROM t LIMIT 10") == "SELECT * FROM t LIMIT 10"

    def test_limit_with_offset_capped(self):
        assert _limit("SELECT * FROM t LIMIT 500 OFFSET 40") == "SELECT * FROM t LIMIT 100 OFFSET 40"

    def test_mysql_limit_pair_capped(self):
        assert _limit("SELECT * FROM t LIMIT 40, 500") == "SELECT * FROM t LIMIT 40, 100"

    def test_limit_all_untouched(self):
        assert _limit("SELECT * FROM t LIMIT ALL") == "SELECT * FROM t LIMIT ALL"

    def test_subquery_limit_ignored(self):
        sql = "SELECT * FROM (SELECT id FROM t LIMIT 5) s"
        assert _limit(sql) == "SELECT * FROM (SELECT id FROM t LIMIT 5) s LIMIT 100"

    def test_pagination(self):
        assert _limit("SELECT * FROM t", limit=10, offset=5) == "SELECT * FROM t LIMIT 10 OFFSET 5"


class TestGuarantees:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM Orders",
            "SELECT DISTINCT a FROM t",
            "SELECT TOP 500 * FROM t",
            "SELECT * FROM t ORDER BY id OFFSET 10 ROWS",
            "WITH c AS (SELECT 1 AS x) SELECT * FROM c;",
        ],
    )
    @pytest.mark.parametrize("style", list(LimitStyle))
    def test_idempotent(self, sql, style):
        request = RewriteRequest(sql, 100)
        once = rewrite_for_limit(request, _READ, style=style).sql
        twice = rewrite_for_limit(RewriteRequest(once, 100), _READ, style=style).sql
        assert once == twice

    def test_paginated_rewrite_idempotent(self):
        once = _top("SELECT * FROM t ORDER BY id", limit=10, offset=20)
        assert _top(once, limit=10, offset=20) == once

    @pytest.mark.parametrize(
        "category",
        [
            StatementCategory.INSERT,
            StatementCategory.UPDATE,
            StatementCategory.DELETE,
            StatementCategory.TRUNCATE,
            StatementCategory.DANGEROUS,
        ],
    )
    def test_only_reads_rewritten(self, category):
        sql = "SELECT * FROM t"
        result = rewrite_for_limit(RewriteRequest(sql, 10), category)
        assert result.sql == sql
        assert not result.changed

    def test_blank_text_unchanged(self):
        assert _top("   ") == "   "
        assert _top("-- nothing") == "-- nothing"

    def test_too_long_unchanged(self):
        sql = "SELECT 1" + " " * MAX_SQL_LENGTH
        assert _top(sql) == sql

    def test_no_select_unchanged(self):
        assert _top("VALUES (1)") == "VALUES (1)"


class TestRequest:
    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError, match="limit"):
            RewriteRequest("SELECT 1", 0)

    def test_rejects_negative_offset(self):
        with pytest.raises(ValueError, match="offset"):
            RewriteRequest("SELECT 1", 10, offset=-1)

    def test_build_uses_default(self):
        assert RewriteRequest.build("SELECT 1", default=100, ceiling=1000).limit == 100

    def test_build_clamps_to_ceiling(self):
        assert RewriteRequest.build("SELECT 1", 5000, default=100, ceiling=1000).limit == 1000

    def test_build_clamps_to_one(self):
        request = RewriteRequest.build("SELECT 1", -3, -7, default=100, ceiling=1000)
        assert request.limit == 1
        assert request.offset == 0


@pytest.mark.parametrize(
    ("dialect", "style"),
    [
        (None, LimitStyle.TOP),
        ("tsql", LimitStyle.TOP),
        ("TSQL", LimitStyle.TOP),
        ("postgres", LimitStyle.LIMIT),
        ("duckdb", LimitStyle.LIMIT),
        ("mysql", LimitStyle.LIMIT),
    ],
)
def test_limit_style_for(dialect, style):
    assert limit_style_for(dialect) == style


class TestSetOperations:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT a FROM t UNION ALL SELECT b FROM u",
            "SELECT a FROM t UNION SELECT b FROM u",
            "select a from t except select b from u",
            "SELECT a FROM t INTERSECT SELECT b FROM u",
        ],
    )
    def test_top_style_leaves_set_operation_unchanged(self, sql):
        request = RewriteRequest(sql=sql, limit=10)
        result = rewrite_for_limit(request, _READ, style=LimitStyle.TOP)
        assert result.sql == sql
        assert not result.changed

    def test_existing_top_in_branch_left_alone(self):
        sql = "SELECT TOP 500 a FROM t UNION ALL SELECT b FROM u"
        assert _top(sql, limit=10) == sql

    def test_fetch_on_set_operation_still_capped(self):
        sql = (
            "SELECT a FROM t UNION SELECT b FROM u "
            "ORDER BY 1 OFFSET 0 ROWS FETCH NEXT 500 ROWS ONLY"
        )
        assert _top(sql, limit=10) == sql.replace("500", "10")

    def test_union_inside_cte_does_not_block(self):
        sql = "WITH x AS (SELECT a FROM t UNION SELECT b FROM u) SELECT * FROM x"
        assert _top(sql) == (
            "WITH x AS (SELECT a FROM t UNION SELECT b FROM u) SELECT TOP 100 * FROM x"
        )

    def test_set_keyword_in_literal_ignored(self):
        assert _top("SELECT 'union' AS x") == "SELECT TOP 100 'union' AS x"

    def test_limit_style_bounds_whole_set_operation(self):
        sql = "SELECT a FROM t UNION ALL SELECT b FROM u"
        assert _limit(sql) == sql + " LIMIT 100"


class TestDialectLiterals:
    def test_dollar_quoted_comment_marker(self):
        assert _limit("SELECT $$--$$ AS x") == "SELECT $$--$$ AS x LIMIT 100"

    def test_escape_string_comment_marker(self):
        sql = "SELECT E'\\'--' AS x"
        assert _limit(sql) == sql + " LIMIT 100"

    def test_dollar_marker_inside_comment(self):
        assert _limit("SELECT 1 -- $$") == "SELECT 1 LIMIT 100 -- $$"

    def test_top_after_dollar_literal_select_list(self):
        assert _top("SELECT $$(x$$ FROM t") == "SELECT TOP 100 $$(x$$ FROM t"
