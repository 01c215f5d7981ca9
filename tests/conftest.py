import os
from datetime import date

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.db import Base, get_db
from app.main import app as api_app
from app.models.performance import ReviewCycle
from app.models.person import PersonRole
from app.services.performance.goals import goal_lifecycle
from tests.helpers import completion_payload, evidence_items, goal_payload, make_person

load_dotenv(os.path.join(os.getcwd(), ".env"))


def _resolve_test_database_url() -> str | None:
    raw_url = os.getenv("TEST_DATABASE_URL")
    if not raw_url:
        return None

    url = make_url(raw_url)
    if url.drivername.startswith("postgresql") and url.database != "performance_track_test":
        url = url.set(database="performance_track_test")
    return url.render_as_string(hide_password=False)


@pytest.fixture(scope="session")
def engine():
    database_url = _resolve_test_database_url()
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        # pysqlite needs explicit BEGIN handling for SAVEPOINT support.
        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_connection, _connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_sqlite(conn):
            conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)

    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits and rollbacks stay inside a SAVEPOINT of the outer test transaction.
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        autocommit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def client(db_session):
    def _override_get_db():
        yield db_session

    api_app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(api_app)
    finally:
        api_app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def manager(db_session):
    return make_person(db_session, role=PersonRole.manager, name="Maria Manager")


@pytest.fixture()
def other_manager(db_session):
    return make_person(db_session, role=PersonRole.manager, name="Omar Manager")


@pytest.fixture()
def admin(db_session):
    return make_person(db_session, role=PersonRole.admin, name="Ada Admin")


@pytest.fixture()
def employee(db_session, manager):
    return make_person(db_session, role=PersonRole.employee, manager=manager, name="Eli Employee")


@pytest.fixture()
def other_employee(db_session, manager):
    return make_person(db_session, role=PersonRole.employee, manager=manager, name="Eve Employee")


@pytest.fixture()
def lenient_cycle(db_session):
    cycle = ReviewCycle(
        title="H1 2026",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 6, 30),
        evidence_required=False,
    )
    db_session.add(cycle)
    db_session.commit()
    db_session.refresh(cycle)
    return cycle


@pytest.fixture()
def pending_goal(db_session, employee, manager):
    return goal_lifecycle.create(db_session, employee.id, goal_payload(approver_id=manager.id))


@pytest.fixture()
def active_goal(db_session, pending_goal, manager):
    return goal_lifecycle.approve(db_session, pending_goal.id, manager.id)


@pytest.fixture()
def submitted_goal(db_session, active_goal, employee):
    goal_lifecycle.add_progress(db_session, active_goal.id, employee.id, "Halfway there", progress=60)
    return goal_lifecycle.submit_completion(
        db_session, active_goal.id, employee.id, completion_payload(), evidence_items(2)
    )
