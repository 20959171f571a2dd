"""
Shared fixtures for the billing tests.
"""
import unittest
from decimal import Decimal
from types import SimpleNamespace

from jose import jwt

import dependencies
from database import SessionLocal, engine, get_session_context, init_db
from models import Base, Flat, OccupancyStatus, Society, User
from models.billing_config import ComputationType


def make_head(name, computation_type, rate, percentage_of_name=None,
              is_non_occupancy_only=False, is_reserve_fund=False, is_active=True):
    """A charge head as plain data, for the pure breakdown functions."""
    return SimpleNamespace(
        name=name,
        computation_type=ComputationType(computation_type),
        rate=Decimal(str(rate)),
        percentage_of_name=percentage_of_name,
        is_non_occupancy_only=is_non_occupancy_only,
        is_reserve_fund=is_reserve_fund,
        is_active=is_active,
    )


def make_flat_data(area_sqft, occupancy_status=OccupancyStatus.OWNER_OCCUPIED):
    return SimpleNamespace(area_sqft=Decimal(str(area_sqft)), occupancy_status=OccupancyStatus(occupancy_status))


def make_token(society_id, user_id=None, role="admin"):
    return jwt.encode(
        {"id": user_id, "society_id": society_id, "role": role},
        dependencies.SECRET_KEY,
        algorithm=dependencies.ALGORITHM,
    )


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema for every test, plus helpers to seed societies, residents and flats."""

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        init_db()
        self.db = SessionLocal()
        self.society = self.add_society("Green Meadows")

    def tearDown(self):
        self.db.rollback()
        self.db.close()

    def add_society(self, name):
        society = Society(name=name, is_active=True)
        self.db.add(society)
        self.db.flush()
        return society

    def add_user(self, email, society=None, role="resident"):
        user = User(
            society_id=(society or self.society).id,
            email=email,
            first_name=email.split("@")[0].title(),
            last_name="Resident",
            role=role,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def add_flat(self, flat_number, area_sqft=1000, occupancy_status=OccupancyStatus.OWNER_OCCUPIED,
                 owner=None, occupant=None, society=None, wing="A", is_active=True):
        flat = Flat(
            society_id=(society or self.society).id,
            wing=wing,
            flat_number=flat_number,
            floor=0,
            area_sqft=Decimal(str(area_sqft)),
            occupancy_status=occupancy_status,
            owner_id=owner.id if owner else None,
            tenant_occupant_id=occupant.id if occupant else None,
            is_active=is_active,
        )
        self.db.add(flat)
        self.db.flush()
        return flat


class ApiTestCase(DatabaseTestCase):
    """
    Runs requests through the FastAPI app. Seed data is committed before
    each request because the in-memory database has a single connection.
    """

    def setUp(self):
        super().setUp()
        from fastapi.testclient import TestClient
        from main import app

        self.client = TestClient(app)
        self.admin = self.add_user("admin@example.com", role="admin")
        self.db.commit()

    def headers(self, user=None, role=None, society=None):
        user = user or self.admin
        token = make_token(
            (society or self.society).id,
            user_id=user.id,
            role=role or user.role,
        )
        return {"Authorization": f"Bearer {token}"}

    def commit(self):
        self.db.commit()

    def fresh_query(self, model):
        with get_session_context() as db:
            return db.query(model).all()
