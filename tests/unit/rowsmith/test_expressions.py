"""Tests for expression rendering."""

from datetime import date

import pytest

from rowsmith.data_types import EMPTY_STRING, DataType
from rowsmith.errors import InvalidArgumentError
from rowsmith.expr import CTX_ALL, CTX_DEFAULT, CTX_NAME, CmdParam, SqlBuffer
from rowsmith.expr.compare import CompareOp


def render(expr, driver, context=CTX_DEFAULT, auto_prepare=False):
    buf = SqlBuffer(driver, auto_prepare)
    expr.add_sql(buf, context)
    return buf


def test_column_context_controls_qualification(company):
    assert render(company.last_name, company.driver).getvalue() == "t2.LAST_NAME"
    assert render(company.last_name, company.driver, CTX_NAME).getvalue() == "LAST_NAME"


def test_equality_with_none_becomes_is_null(company):
    cond = company.salary.is_(None)
    assert cond.op == CompareOp.NULL
    assert render(cond, company.driver).getvalue() == "t2.SALARY IS NULL"
    assert render(company.salary.is_not(None), company.driver).getvalue() == "t2.SALARY IS NOT NULL"


def test_comparison_literals(company):
    driver = company.driver
    assert render(company.salary.is_greater_than(1000), driver).getvalue() == "t2.SALARY > 1000"
    assert render(company.last_name.is_("O'Brien"), driver).getvalue() == "t2.LAST_NAME = 'O''Brien'"
    assert render(company.active.is_(True), driver).getvalue() == "t2.ACTIVE = 1"
    assert (
        render(company.hired.is_(date(2024, 5, 1)), driver).getvalue()
        == "t2.HIRED = '2024-05-01'"
    )


def test_empty_string_sentinel_renders_quotes(company):
    driver = company.driver
    assert render(company.last_name.is_(EMPTY_STRING), driver).getvalue() == "t2.LAST_NAME = ''"


def test_in_and_between(company):
    driver = company.driver
    assert render(company.emp_id.in_([1, 2, 3]), driver).getvalue() == "t2.EMPLOYEE_ID IN (1, 2, 3)"
    assert (
        render(company.salary.is_between(100, 200), driver).getvalue()
        == "t2.SALARY BETWEEN 100 AND 200"
    )
    assert render(company.emp_id.not_in(7), driver).getvalue() == "t2.EMPLOYEE_ID NOT IN (7)"


def test_in_requires_values(company):
    with pytest.raises(InvalidArgumentError):
        company.emp_id.in_([])
    with pytest.raises(InvalidArgumentError):
        company.salary.cmp(CompareOp.BETWEEN, [1])


def test_or_is_parenthesized_and(company):
    driver = company.driver
    cond = company.last_name.is_("Smith").or_(company.last_name.is_("Jones"))
    assert render(cond, driver).getvalue() == "(t2.LAST_NAME = 'Smith' OR t2.LAST_NAME = 'Jones')"
    both = company.active.is_(True).and_(cond)
    assert (
        render(both, driver).getvalue()
        == "t2.ACTIVE = 1 AND (t2.LAST_NAME = 'Smith' OR t2.LAST_NAME = 'Jones')"
    )


def test_not_and_explicit_parenthesis(company):
    driver = company.driver
    cond = company.last_name.is_("Smith").or_(company.last_name.is_("Jones"))
    assert (
        render(cond.not_(), driver).getvalue()
        == "NOT (t2.LAST_NAME = 'Smith' OR t2.LAST_NAME = 'Jones')"
    )
    assert render(company.active.is_(True).parenthesis(), driver).getvalue() == "(t2.ACTIVE = 1)"


def test_mutually_exclusive_conditions(company):
    assert company.emp_id.is_(1).is_mutually_exclusive(company.emp_id.is_(2))
    assert company.emp_id.is_(1).is_mutually_exclusive(company.emp_id.in_([2, 3]))
    assert not company.emp_id.is_(1).is_mutually_exclusive(company.emp_id.in_([1, 3]))
    assert company.salary.is_null().is_mutually_exclusive(company.salary.is_not_null())
    assert not company.emp_id.is_(1).is_mutually_exclusive(company.emp_dept.is_(2))
    assert not company.emp_id.is_greater_than(1).is_mutually_exclusive(company.emp_id.is_(0))


def test_auto_prepare_binds_values(company):
    buf = render(company.last_name.is_("Smith"), company.driver, auto_prepare=True)
    assert buf.getvalue() == "t2.LAST_NAME = ?"
    assert buf.param_values() == ["Smith"]


def test_cmd_param_value_resolved_at_render(company):
    param = CmdParam(DataType.INTEGER, 1)
    buf = render(company.emp_id.is_(param), company.driver)
    param.value = 5
    assert buf.getvalue() == "t2.EMPLOYEE_ID = ?"
    assert buf.param_values() == [5]


def test_functions_use_dialect_phrases(company, make_company):
    assert render(company.last_name.upper(), company.driver).getvalue() == "upper(t2.LAST_NAME)"
    assert (
        render(company.last_name.substring(2, 3), company.driver).getvalue()
        == "substr(t2.LAST_NAME, 2, 3)"
    )
    mssql = make_company("sqlserver")
    assert render(mssql.last_name.length(), mssql.driver).getvalue() == "len(t2.LAST_NAME)"
    assert (
        render(mssql.last_name.index_of("a"), mssql.driver).getvalue()
        == "charindex('a', t2.LAST_NAME)"
    )


def test_aggregates(company):
    driver = company.driver
    total = company.salary.sum()
    assert total.is_aggregate
    assert render(total, driver).getvalue() == "sum(t2.SALARY)"
    assert render(company.employees.count(), driver).getvalue() == "count(*)"
    assert render(company.emp_dept.count(distinct=True), driver).getvalue() == (
        "count(distinct t2.DEPARTMENT_ID)"
    )


def test_alias_renders_only_with_alias_context(company):
    driver = company.driver
    pay = company.salary.as_("PAY")
    assert render(pay, driver, CTX_ALL).getvalue() == "t2.SALARY AS PAY"
    assert render(pay, driver).getvalue() == "t2.SALARY"
    assert render(pay, driver, CTX_NAME).getvalue() == "PAY"


def test_concat_operator_and_function(company, make_company):
    full = company.first_name.append(" ", company.last_name)
    assert render(full, company.driver).getvalue() == "t2.FIRST_NAME || ' ' || t2.LAST_NAME"
    mysql = make_company("mysql")
    full = mysql.first_name.append(" ", mysql.last_name)
    assert (
        render(full, mysql.driver).getvalue()
        == "concat(concat(t2.FIRST_NAME, ' '), t2.LAST_NAME)"
    )


def test_decode_renders_case(company):
    expr = company.active.decode([(1, "yes"), (0, "no")], otherwise="unknown")
    assert (
        render(expr, company.driver).getvalue()
        == "case t2.ACTIVE when 1 then 'yes' when 0 then 'no' else 'unknown' end"
    )
    assert expr.data_type is DataType.VARCHAR


def test_convert_uses_cast_by_default(company):
    expr = company.salary.convert_to(DataType.INTEGER)
    assert render(expr, company.driver).getvalue() == "CAST(t2.SALARY AS INTEGER)"


def test_order_by(company):
    assert render(company.last_name.desc(), company.driver).getvalue() == "t2.LAST_NAME DESC"
    assert render(company.last_name.asc(), company.driver).getvalue() == "t2.LAST_NAME"


def test_referenced_columns_in_order(company):
    cond = company.last_name.is_("Smith").and_(company.salary.is_greater_than(company.emp_dept))
    assert cond.get_referenced_columns() == [company.last_name, company.salary, company.emp_dept]
