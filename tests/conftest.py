from datetime import datetime

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from dojo.db import get_session
from dojo.main import app
from dojo.models import Grade, Location, PointBalance, TrainingSession, User

DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()


def add_student(session: Session, name: str, location: str = "Casa de Cultura", role: str = "student", points: dict = None) -> User:
    user = User(
        full_name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        role=role,
        training_location=location,
    )
    session.add(user)
    session.commit()
    for year, value in (points or {}).items():
        session.add(PointBalance(user_id=user.id, year=year, points=value))
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="club")
def club_fixture(session: Session):
    """Two locations, one evening session at the first, three students there and one elsewhere."""
    casa = Location(name="Casa de Cultura")
    escola = Location(name="E.E. Antonio Pereira")
    session.add(casa)
    session.add(escola)
    session.commit()

    training = TrainingSession(title="Roda", date_time=datetime(2025, 3, 4, 19, 0), location_id=casa.id)
    session.add(training)
    session.commit()

    students = [add_student(session, name) for name in ("Ana", "Bruno", "Carla")]
    other = add_student(session, "Davi", location="E.E. Antonio Pereira")
    admin = add_student(session, "Mestre", role="admin")
    return {
        "location": casa,
        "other_location": escola,
        "training": training,
        "students": students,
        "other": other,
        "admin": admin,
    }


@pytest.fixture(name="ladder")
def ladder_fixture(session: Session):
    grades = [
        Grade(order=0, name="Crua", colors=["#FFFFFF"], points_required=0),
        Grade(order=1, name="Crua-Amarela", colors=["#FFFFFF", "#FFFF00"], points_required=10),
        Grade(order=2, name="Amarela", colors=["#FFFF00"], points_required=25),
    ]
    for grade in grades:
        session.add(grade)
    session.commit()
    for grade in grades:
        session.refresh(grade)
    return grades
