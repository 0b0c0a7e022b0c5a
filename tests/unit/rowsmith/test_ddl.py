"""Tests for DDL generation."""

import logging
import sqlite3
from unittest.mock import MagicMock

import pytest

from rowsmith.data_types import SYSDATE, DataType
from rowsmith.ddl import DDLOperation, SQLScript
from rowsmith.dialect.registry import create_driver
from rowsmith.errors import InvalidArgumentError, NotSupportedError
from rowsmith.schema import Database, Table, View

EMPLOYEES_SQLSERVER = (
    "CREATE TABLE EMPLOYEES (\n"
    "   EMPLOYEE_ID [int] IDENTITY(1, 1) NOT NULL,\n"
    "   DEPARTMENT_ID [int] NOT NULL,\n"
    "   FIRST_NAME [nvarchar](40) NOT NULL,\n"
    "   LAST_NAME [nvarchar](40) NOT NULL,\n"
    "   SALARY [decimal](10,2),\n"
    "   ACTIVE [bit] DEFAULT 1 NOT NULL,\n"
    "   HIRED [datetime],\n"
    " CONSTRAINT EMPLOYEES_PK PRIMARY KEY (EMPLOYEE_ID))"
)


def test_create_table_sqlserver(make_company):
    model = make_company("sqlserver")
    statements = model.driver.get_ddl(model.employees, DDLOperation.CREATE)
    assert statements == [EMPLOYEES_SQLSERVER]


def test_create_table_adds_secondary_indexes(company):
    statements = company.driver.get_ddl(company.departments, DDLOperation.CREATE)
    assert statements == [
        "CREATE TABLE DEPARTMENTS (\n"
        "   DEPARTMENT_ID INTEGER NOT NULL,\n"
        "   NAME VARCHAR(80) NOT NULL,\n"
        "   BUDGET DECIMAL(10,2),\n"
        " CONSTRAINT DEPARTMENTS_PK PRIMARY KEY (DEPARTMENT_ID))",
        "CREATE UNIQUE INDEX DEPARTMENT_NAME_IDX ON DEPARTMENTS (NAME)",
    ]


def test_create_table_with_native_sequences(make_company):
    """Sequence-based dialects create one sequence per AUTOINC column first."""
    model = make_company("postgres")
    statements = model.driver.get_ddl(model.employees, "CREATE")
    assert statements[0] == "CREATE SEQUENCE EMPLOYEES_EMPLOYEE_ID INCREMENT BY 1 START WITH 1"
    assert statements[1].startswith("CREATE TABLE EMPLOYEES (\n   EMPLOYEE_ID INTEGER NOT NULL,")
    assert "ACTIVE BOOLEAN DEFAULT TRUE NOT NULL" in statements[1]


def test_mysql_identity_and_quoting(make_company):
    model = make_company("mysql")
    order_table = Table("order", model.db)
    key = order_table.add_column("id", DataType.AUTOINC)
    order_table.set_primary_key(key)

    (statement,) = model.driver.get_ddl(order_table, DDLOperation.CREATE)

    assert statement == (
        "CREATE TABLE `order` (\n"
        "   id INT NOT NULL AUTO_INCREMENT,\n"
        " CONSTRAINT order_PK PRIMARY KEY (id))"
    )


def test_ddl_column_defaults_can_be_disabled(make_company):
    model = make_company("sqlite", ddl_column_defaults=False)
    statements = model.driver.get_ddl(model.employees, DDLOperation.CREATE)
    assert "ACTIVE BOOLEAN NOT NULL" in statements[0]


def test_create_database_orders_statements(make_company):
    """Schema first, then tables with their indexes, relations and views."""
    model = make_company("postgres", schema="hr")
    cmd = model.db.create_command()
    cmd.select(model.last_name, model.dept_name)
    cmd.join(model.emp_dept, model.dept_id)
    cmd.order_by(model.last_name)
    View("EMPLOYEE_DEPARTMENTS", model.db, cmd)

    statements = model.driver.get_ddl(model.db, DDLOperation.CREATE)

    assert statements[0] == "CREATE SCHEMA hr"
    assert statements[1] == "CREATE SEQUENCE DEPARTMENTS_DEPARTMENT_ID INCREMENT BY 1 START WITH 1"
    assert statements[2].startswith("CREATE TABLE hr.DEPARTMENTS (")
    assert statements[3] == "CREATE UNIQUE INDEX DEPARTMENT_NAME_IDX ON hr.DEPARTMENTS (NAME)"
    assert statements[4] == "CREATE SEQUENCE EMPLOYEES_EMPLOYEE_ID INCREMENT BY 1 START WITH 1"
    assert statements[5].startswith("CREATE TABLE hr.EMPLOYEES (")
    assert statements[6] == (
        "ALTER TABLE hr.EMPLOYEES ADD CONSTRAINT EMPLOYEE_DEPARTMENT_FK "
        "FOREIGN KEY (DEPARTMENT_ID) REFERENCES hr.DEPARTMENTS (DEPARTMENT_ID)"
    )
    assert statements[7] == (
        "CREATE VIEW hr.EMPLOYEE_DEPARTMENTS (LAST_NAME, NAME)\n"
        "AS\n"
        "SELECT t2.LAST_NAME, t1.NAME\n"
        "FROM hr.EMPLOYEES t2 INNER JOIN hr.DEPARTMENTS t1 "
        "ON t2.DEPARTMENT_ID = t1.DEPARTMENT_ID"
    )
    assert len(statements) == 8


def test_view_ddl_drops_order_by_but_keeps_view_command(company):
    cmd = company.db.create_command().select(company.last_name).order_by(company.last_name)
    view = View("EMPLOYEE_NAMES", company.db, cmd)

    (statement,) = company.driver.get_ddl(view, DDLOperation.CREATE)

    assert "ORDER BY" not in statement
    assert view.create_command().order_by_exprs


def test_view_with_parameters_is_rejected(company):
    cmd = company.db.create_command().select(company.last_name)
    cmd.where(company.emp_dept.is_(cmd.add_param(DataType.INTEGER, 1)))
    view = View("DEPT_ONE", company.db, cmd)
    with pytest.raises(NotSupportedError):
        company.driver.get_ddl(view, DDLOperation.CREATE)


def test_sqlite_skips_relations_in_database_script(company, caplog):
    with caplog.at_level(logging.WARNING, logger="rowsmith.ddl"):
        statements = company.driver.get_ddl(company.db, DDLOperation.CREATE)
    assert not any(s.startswith("ALTER TABLE") for s in statements)
    assert "skipping 1 relation" in caplog.text
    relation = company.db.get_relation("EMPLOYEE_DEPARTMENT_FK")
    with pytest.raises(NotSupportedError):
        company.driver.get_ddl(relation, DDLOperation.CREATE)


def test_cascade_relation(make_company):
    model = make_company("mysql")
    relation = model.db.add_relation(
        "EMPLOYEE_DEPARTMENT_CASCADE", model.emp_dept.reference_on(model.dept_id), cascade=True
    )
    (statement,) = model.driver.get_ddl(relation, DDLOperation.CREATE)
    assert statement.endswith("REFERENCES DEPARTMENTS (DEPARTMENT_ID) ON DELETE CASCADE")


def test_drop_relation_keyword_per_dialect(make_company):
    mysql = make_company("mysql")
    relation = mysql.db.get_relation("EMPLOYEE_DEPARTMENT_FK")
    assert mysql.driver.get_ddl(relation, DDLOperation.DROP) == [
        "ALTER TABLE EMPLOYEES DROP FOREIGN KEY EMPLOYEE_DEPARTMENT_FK"
    ]
    mssql = make_company("sqlserver")
    relation = mssql.db.get_relation("EMPLOYEE_DEPARTMENT_FK")
    assert mssql.driver.get_ddl(relation, DDLOperation.DROP) == [
        "ALTER TABLE EMPLOYEES DROP CONSTRAINT EMPLOYEE_DEPARTMENT_FK"
    ]


def test_alter_column_per_dialect(make_company):
    mssql = make_company("sqlserver")
    assert mssql.driver.get_ddl(mssql.last_name, DDLOperation.ALTER) == [
        "ALTER TABLE EMPLOYEES ALTER COLUMN LAST_NAME [nvarchar](40) NOT NULL"
    ]
    mysql = make_company("mysql")
    assert mysql.driver.get_ddl(mysql.last_name, DDLOperation.ALTER) == [
        "ALTER TABLE EMPLOYEES MODIFY LAST_NAME VARCHAR(40) NOT NULL"
    ]
    postgres = make_company("postgres")
    assert postgres.driver.get_ddl(postgres.last_name, DDLOperation.ALTER) == [
        "ALTER TABLE EMPLOYEES ALTER COLUMN LAST_NAME TYPE VARCHAR(40)"
    ]


def test_sqlite_cannot_alter_columns(company):
    with pytest.raises(NotSupportedError):
        company.driver.get_ddl(company.last_name, DDLOperation.ALTER)


def test_add_and_drop_column(company):
    email = company.employees.add_column("EMAIL", DataType.VARCHAR, 120)
    assert company.driver.get_ddl(email, DDLOperation.CREATE) == [
        "ALTER TABLE EMPLOYEES ADD EMAIL VARCHAR(120)"
    ]
    assert company.driver.get_ddl(email, DDLOperation.DROP) == [
        "ALTER TABLE EMPLOYEES DROP COLUMN EMAIL"
    ]


def test_unknown_column_type(company, caplog):
    mystery = company.employees.add_column("MYSTERY", DataType.UNKNOWN)
    with caplog.at_level(logging.ERROR, logger="rowsmith.ddl"):
        statements = company.driver.get_ddl(company.employees, DDLOperation.CREATE)
    assert "MYSTERY" not in statements[0]
    assert "UNKNOWN" in caplog.text
    with pytest.raises(InvalidArgumentError):
        company.driver.get_ddl(mystery, DDLOperation.CREATE)


def test_drop_objects(make_company):
    model = make_company("postgres", schema="hr")
    assert model.driver.get_ddl(model.employees, DDLOperation.DROP) == ["DROP TABLE hr.EMPLOYEES"]
    assert model.driver.get_ddl(model.db, DDLOperation.DROP) == ["DROP DATABASE hr"]


def test_drop_database_needs_a_name(company):
    with pytest.raises(InvalidArgumentError):
        company.driver.get_ddl(company.db, DDLOperation.DROP)


def test_alter_table_is_not_supported(company):
    with pytest.raises(NotSupportedError):
        company.driver.get_ddl(company.employees, DDLOperation.ALTER)


def test_sqlserver_create_database(make_company):
    model = make_company("sqlserver", database_name="crm")
    statements = model.driver.get_ddl(model.db, DDLOperation.CREATE)
    assert statements[:4] == [
        "USE master",
        "IF NOT EXISTS(SELECT * FROM sys.databases WHERE name = 'crm') CREATE DATABASE crm",
        "USE crm",
        "SET DATEFORMAT ymd",
    ]


def test_script_text_and_run():
    script = SQLScript("postgres")
    script.add_stmt("CREATE TABLE a (id INTEGER)").add_stmt("DROP TABLE b")
    assert len(script) == 2
    assert script.to_text() == "CREATE TABLE a (id INTEGER);\nDROP TABLE b;\n"

    runner = MagicMock()
    assert script.run(runner) == 2
    assert [c.args[0] for c in runner.execute_sql.call_args_list] == list(script)


def test_script_pretty_text_uses_sqlglot():
    script = SQLScript("sqlite")
    script.add_stmt("SELECT a, b FROM t WHERE a = 1")
    text = script.to_text(pretty=True)
    assert text.startswith("SELECT\n")
    assert text.endswith(";\n")


def test_driver_appends_to_existing_script(company):
    script = SQLScript("sqlite")
    company.driver.get_ddl_script(DDLOperation.CREATE, company.departments, script)
    company.driver.get_ddl_script(DDLOperation.DROP, company.employees, script)
    assert script.statements[-1] == "DROP TABLE EMPLOYEES"
    assert len(script) == 3


def test_sysdate_default_runs_on_sqlite():
    db = Database("audit")
    events = Table("EVENTS", db)
    events.add_column("EVENT_ID", DataType.INTEGER, required=True)
    events.add_column("CREATED", DataType.DATETIME, required=True, default=SYSDATE)
    driver = create_driver("sqlite")
    driver.attach_database(db)

    (statement,) = driver.get_ddl(events, DDLOperation.CREATE)
    assert "CREATED DATETIME DEFAULT (datetime('now')) NOT NULL" in statement

    connection = sqlite3.connect(":memory:")
    connection.execute(statement)
    connection.execute("INSERT INTO EVENTS (EVENT_ID) VALUES (1)")
    (created,) = connection.execute("SELECT CREATED FROM EVENTS").fetchone()
    assert created is not None


def test_sysdate_default_is_bare_on_other_dialects(make_company):
    model = make_company("postgres")
    column = model.employees.add_column("CREATED", DataType.DATETIME, default=SYSDATE)
    assert model.driver.get_ddl(column, DDLOperation.CREATE) == [
        "ALTER TABLE EMPLOYEES ADD CREATED TIMESTAMP DEFAULT NOW()"
    ]


def test_enable_and_disable_relation(make_company):
    model = make_company("postgres")
    relation = model.db.get_relation("EMPLOYEE_DEPARTMENT_FK")
    script = SQLScript("postgres")
    model.driver.get_enable_relation_ddl(relation, False, script)
    model.driver.get_enable_relation_ddl(relation, True, script)
    assert script.statements == [
        "ALTER TABLE EMPLOYEES DROP CONSTRAINT EMPLOYEE_DEPARTMENT_FK",
        "ALTER TABLE EMPLOYEES ADD CONSTRAINT EMPLOYEE_DEPARTMENT_FK "
        "FOREIGN KEY (DEPARTMENT_ID) REFERENCES DEPARTMENTS (DEPARTMENT_ID)",
    ]


def test_enable_relation_on_sqlite(company):
    relation = company.db.get_relation("EMPLOYEE_DEPARTMENT_FK")
    script = SQLScript("sqlite")
    company.driver.get_enable_relation_ddl(relation, False, script)
    assert script.statements == ["ALTER TABLE EMPLOYEES DROP CONSTRAINT EMPLOYEE_DEPARTMENT_FK"]
    with pytest.raises(NotSupportedError):
        company.driver.get_enable_relation_ddl(relation, True, script)
    with pytest.raises(InvalidArgumentError):
        company.driver.get_enable_relation_ddl(company.employees, True, script)
