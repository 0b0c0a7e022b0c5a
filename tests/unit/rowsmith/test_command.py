"""Tests for statement rendering by the command builder."""

from decimal import Decimal

import pytest

from rowsmith.data_types import DataType
from rowsmith.errors import (
    ColumnNotFoundError,
    FieldNotNullError,
    InvalidArgumentError,
    InvalidPropertyError,
    NotSupportedError,
)
from rowsmith.expr import ExistsExpr, JoinType, ValueExpr
from rowsmith.schema import Database, Table
from rowsmith.sqlglot_support import is_valid_sql


def test_select_with_where_and_order(company):
    cmd = company.db.create_command()
    cmd.select(company.first_name, company.last_name)
    cmd.where(company.salary.is_greater_than(1000))
    cmd.order_by(company.last_name)

    sql = cmd.get_select()

    assert sql == (
        "SELECT t2.FIRST_NAME, t2.LAST_NAME\n"
        "FROM EMPLOYEES t2\n"
        "WHERE t2.SALARY > 1000\n"
        "ORDER BY t2.LAST_NAME"
    )
    assert is_valid_sql(sql, "sqlite")


def test_select_requires_columns(company):
    cmd = company.db.create_command()
    with pytest.raises(InvalidPropertyError):
        cmd.get_select()


def test_select_rejects_non_column_expressions(company):
    cmd = company.db.create_command()
    with pytest.raises(InvalidArgumentError):
        cmd.select(company.salary.is_(1))


def test_select_rowset_expands_to_columns(company):
    cmd = company.db.create_command().select(company.departments)
    assert cmd.get_select() == (
        "SELECT t1.DEPARTMENT_ID, t1.NAME, t1.BUDGET\nFROM DEPARTMENTS t1"
    )


def test_select_is_unique_and_distinct(company):
    cmd = company.db.create_command()
    cmd.select_distinct(company.last_name, company.last_name)
    assert cmd.get_select() == "SELECT DISTINCT t2.LAST_NAME\nFROM EMPLOYEES t2"


def test_inner_join(company):
    cmd = company.db.create_command()
    cmd.select(company.last_name, company.dept_name)
    cmd.join(company.emp_dept, company.dept_id)

    assert cmd.get_select() == (
        "SELECT t2.LAST_NAME, t1.NAME\n"
        "FROM EMPLOYEES t2 INNER JOIN DEPARTMENTS t1 ON t2.DEPARTMENT_ID = t1.DEPARTMENT_ID"
    )


def test_left_join_with_extra_condition(company):
    cmd = company.db.create_command()
    cmd.select(company.dept_name, company.last_name)
    cmd.join(company.dept_id, company.emp_dept, JoinType.LEFT, company.active.is_(True))

    assert cmd.get_select() == (
        "SELECT t1.NAME, t2.LAST_NAME\n"
        "FROM DEPARTMENTS t1 LEFT JOIN EMPLOYEES t2 "
        "ON t1.DEPARTMENT_ID = t2.DEPARTMENT_ID AND t2.ACTIVE = 1"
    )


def test_duplicate_join_is_ignored(company):
    cmd = company.db.create_command()
    cmd.join(company.emp_dept, company.dept_id).join(company.emp_dept, company.dept_id)
    assert len(cmd.joins) == 1


def test_where_replaces_contradicting_condition(company):
    """A second equality on the same column replaces the first."""
    cmd = company.db.create_command()
    cmd.select(company.last_name)
    cmd.where(company.emp_dept.is_(1))
    cmd.where(company.emp_dept.is_(2))
    cmd.where(company.active.is_(True))
    cmd.where(company.active.is_(True))

    assert len(cmd.where_constraints) == 2
    assert cmd.get_select().endswith("WHERE t2.DEPARTMENT_ID = 2 AND t2.ACTIVE = 1")


def test_where_keeps_compound_condition_on_contradiction(company):
    """Only single-column conditions are replaced; an AND keeps all its filters."""
    cmd = company.db.create_command()
    cmd.where(company.emp_dept.is_(1).and_(company.active.is_(True)))
    cmd.where(company.emp_dept.is_(2))

    assert len(cmd.where_constraints) == 2
    assert cmd.get_delete(company.employees) == (
        "DELETE FROM EMPLOYEES\n"
        "WHERE DEPARTMENT_ID = 1 AND ACTIVE = 1 AND DEPARTMENT_ID = 2"
    )

    cmd = company.db.create_command()
    cmd.where(company.emp_dept.is_(2))
    cmd.where(company.emp_dept.is_(1).and_(company.active.is_(True)))
    assert len(cmd.where_constraints) == 2


def test_where_replaces_parenthesized_condition(company):
    cmd = company.db.create_command()
    cmd.where(company.emp_dept.is_(1).parenthesis())
    cmd.where(company.emp_dept.is_(2))

    assert len(cmd.where_constraints) == 1
    assert cmd.get_delete(company.employees) == "DELETE FROM EMPLOYEES\nWHERE DEPARTMENT_ID = 2"


def test_group_by_and_having(company):
    cmd = company.db.create_command()
    cmd.select(company.emp_dept, company.salary.sum())
    cmd.group_by(company.emp_dept)
    cmd.having(company.salary.sum().is_greater_than(5000))

    assert cmd.has_aggregation()
    assert cmd.get_select() == (
        "SELECT t2.DEPARTMENT_ID, sum(t2.SALARY)\n"
        "FROM EMPLOYEES t2\n"
        "GROUP BY t2.DEPARTMENT_ID\n"
        "HAVING sum(t2.SALARY) > 5000"
    )


def test_limit_and_skip_replace_earlier_values(company):
    cmd = company.db.create_command().select(company.last_name)
    cmd.limit_rows(50).limit_rows(10).skip_rows(5).skip_rows(20)
    assert cmd.get_select().endswith("\nLIMIT 10 OFFSET 20")
    cmd.clear_limit()
    assert "LIMIT" not in cmd.get_select()


def test_negative_limit_is_rejected(company):
    cmd = company.db.create_command()
    with pytest.raises(InvalidArgumentError):
        cmd.limit_rows(-1)
    with pytest.raises(InvalidArgumentError):
        cmd.skip_rows(-5)


def test_select_without_sources_uses_pseudo_table(make_company):
    oracle = make_company("oracle")
    cmd = oracle.db.create_command()
    cmd.select(ValueExpr(1))
    assert cmd.get_select() == "SELECT 1\nFROM DUAL"


def test_update_params_follow_placeholder_order(company):
    """SET values are bound before WHERE values."""
    cmd = company.db.create_command()
    cmd.set(company.salary, cmd.add_param(DataType.DECIMAL, Decimal("2500.00")))
    cmd.where(company.emp_dept.is_(cmd.add_param(DataType.INTEGER, 3)))
    cmd.where(company.last_name.is_(cmd.add_param(DataType.VARCHAR, "Smith")))

    stmt = cmd.render_update()

    assert stmt.sql == (
        "UPDATE EMPLOYEES\n"
        "SET SALARY=?\n"
        "WHERE DEPARTMENT_ID = ? AND LAST_NAME = ?"
    )
    assert stmt.params == [Decimal("2500.00"), 3, "Smith"]
    assert cmd.get_param_values() == [Decimal("2500.00"), 3, "Smith"]


def test_update_literal_values(company):
    cmd = company.db.create_command()
    cmd.set(company.salary, Decimal("1500.50"))
    cmd.set(company.salary, Decimal("1750.00"))
    cmd.where(company.emp_id.is_(5))

    assert cmd.get_update() == "UPDATE EMPLOYEES\nSET SALARY=1750.00\nWHERE EMPLOYEE_ID = 5"


def test_update_rejects_foreign_columns_and_joins(company):
    cmd = company.db.create_command()
    cmd.set(company.salary, 10)
    cmd.where(company.dept_name.is_("Sales"))
    with pytest.raises(ColumnNotFoundError):
        cmd.get_update()

    cmd.clear_where().join(company.emp_dept, company.dept_id)
    with pytest.raises(NotSupportedError):
        cmd.get_update()


def test_set_validates_values(company):
    cmd = company.db.create_command()
    with pytest.raises(FieldNotNullError):
        cmd.set(company.last_name, None)
    with pytest.raises(InvalidArgumentError):
        cmd.set(company.salary.sum(), 1)


def test_set_columns_from_one_table(company):
    cmd = company.db.create_command()
    cmd.set(company.salary, 1).set(company.dept_name, "x")
    with pytest.raises(InvalidArgumentError):
        cmd.get_insert()


def test_insert_follows_declaration_order(company):
    cmd = company.db.create_command()
    cmd.set(company.last_name, "Smith")
    cmd.set(company.first_name, "Ann")
    cmd.set(company.emp_dept, 2)

    assert cmd.get_insert() == (
        "INSERT INTO EMPLOYEES (DEPARTMENT_ID, FIRST_NAME, LAST_NAME) VALUES (2, 'Ann', 'Smith')"
    )


def test_insert_with_auto_prepare_binds_params(make_company):
    model = make_company("sqlite", auto_prepare_statements=True)
    cmd = model.db.create_command()
    cmd.set(model.last_name, "Smith")
    cmd.set(model.first_name, "Ann")

    stmt = cmd.render_insert()

    assert stmt.sql == "INSERT INTO EMPLOYEES (FIRST_NAME, LAST_NAME) VALUES (?, ?)"
    assert stmt.params == ["Ann", "Smith"]


def test_format_paramstyle_escapes_percent(make_company):
    model = make_company("postgres")
    cmd = model.db.create_command().select(model.last_name)
    cmd.where(model.last_name.like("Sm%"))
    cmd.where(model.emp_dept.is_(cmd.add_param(DataType.INTEGER, 4)))

    stmt = cmd.render_select()

    assert "t2.LAST_NAME LIKE 'Sm%%'" in stmt.sql
    assert stmt.sql.endswith("t2.DEPARTMENT_ID = %s")
    assert stmt.params == [4]


def test_numeric_paramstyle_numbers_placeholders(make_company):
    model = make_company("oracle", auto_prepare_statements=True)
    cmd = model.db.create_command()
    cmd.set(model.first_name, "Ann").set(model.last_name, "Smith")
    assert cmd.get_insert().endswith("VALUES (:1, :2)")


def test_delete(company):
    cmd = company.db.create_command()
    cmd.where(company.active.is_(False))
    assert cmd.get_delete(company.employees) == "DELETE FROM EMPLOYEES\nWHERE ACTIVE = 0"
    assert company.db.create_command().get_delete(company.departments) == "DELETE FROM DEPARTMENTS"


def test_delete_rejects_conditions_on_other_tables(company):
    cmd = company.db.create_command()
    cmd.where(company.dept_name.is_("Sales"))
    with pytest.raises(ColumnNotFoundError):
        cmd.get_delete(company.employees)


def test_insert_into_from_select(company):
    archive = Table("EMPLOYEE_NAMES", company.db)
    archive.add_column("FIRST_NAME", DataType.VARCHAR, 40)
    archive.add_column("LAST_NAME", DataType.VARCHAR, 40)
    cmd = company.db.create_command()
    cmd.select(company.first_name, company.last_name)
    cmd.where(company.active.is_(True))

    assert cmd.get_insert_into(archive) == (
        "INSERT INTO EMPLOYEE_NAMES (FIRST_NAME, LAST_NAME)\n"
        "SELECT t2.FIRST_NAME, t2.LAST_NAME\n"
        "FROM EMPLOYEES t2\n"
        "WHERE t2.ACTIVE = 1"
    )


def test_insert_into_column_count_must_match(company):
    cmd = company.db.create_command().select(company.first_name, company.last_name)
    with pytest.raises(InvalidArgumentError):
        cmd.get_insert_into(company.employees, [company.first_name])


def test_union_with_order_by(company):
    active = company.db.create_command().select(company.last_name)
    active.where(company.active.is_(True))
    rich = company.db.create_command().select(company.last_name)
    rich.where(company.salary.is_greater_than(9000))

    combined = active.union(rich).order_by(company.last_name)

    assert combined.get_select() == (
        "SELECT t2.LAST_NAME\nFROM EMPLOYEES t2\nWHERE t2.ACTIVE = 1\n"
        "UNION\n"
        "SELECT t2.LAST_NAME\nFROM EMPLOYEES t2\nWHERE t2.SALARY > 9000\n"
        "ORDER BY LAST_NAME"
    )


def test_combined_order_by_must_use_select_list(company):
    left = company.db.create_command().select(company.last_name)
    right = company.db.create_command().select(company.last_name)
    combined = left.except_(right).order_by(company.salary)
    with pytest.raises(ColumnNotFoundError):
        combined.get_select()


def test_clone_is_independent(company):
    cmd = company.db.create_command().select(company.last_name)
    cmd.where(company.active.is_(True))
    copy = cmd.clone()
    copy.where(company.emp_dept.is_(1)).order_by(company.last_name)

    assert len(cmd.where_constraints) == 1
    assert not cmd.order_by_exprs
    assert len(copy.where_constraints) == 2


def test_combined_clone_copies_operands(company):
    active = company.db.create_command().select(company.last_name)
    active.where(company.active.is_(True))
    rich = company.db.create_command().select(company.last_name)
    combined = active.union(rich)
    expected = combined.get_select()

    copy = combined.clone()
    copy.left.where(company.emp_dept.is_(1))
    copy.right.where(company.salary.is_greater_than(9000))

    assert copy.left is not active
    assert copy.right is not rich
    assert combined.get_select() == expected
    assert "DEPARTMENT_ID = 1" in copy.get_select()


def test_has_set_expr(company):
    cmd = company.db.create_command().set(company.last_name, "Smith")
    assert cmd.has_set_expr(company.last_name)
    assert not cmd.has_set_expr(company.first_name)


def test_clear_joins(company):
    cmd = company.db.create_command().select(company.last_name)
    cmd.join(company.emp_dept, company.dept_id)

    assert cmd.clear_joins() is cmd
    assert not cmd.joins
    assert cmd.get_select() == "SELECT t2.LAST_NAME\nFROM EMPLOYEES t2"


def test_command_needs_attached_driver():
    db = Database("detached")
    items = Table("ITEMS", db)
    code = items.add_column("CODE", DataType.VARCHAR, 10)
    cmd = db.create_command().select(code)
    with pytest.raises(InvalidPropertyError):
        cmd.get_select()


def test_exists_subquery(company):
    sub = company.db.create_command().select(company.emp_id)
    sub.where(company.salary.is_greater_than(100))
    cmd = company.db.create_command().select(company.dept_name)
    cmd.where(ExistsExpr(sub))

    assert cmd.get_select() == (
        "SELECT t1.NAME\nFROM DEPARTMENTS t1\n"
        "WHERE EXISTS (SELECT t2.EMPLOYEE_ID\nFROM EMPLOYEES t2\nWHERE t2.SALARY > 100)"
    )
