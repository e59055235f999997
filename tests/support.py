import os
import sys

sys.path.append(os.getcwd())
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("ENABLE_EXPIRY_SWEEP", None)

from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from database import Base, get_db
# Every model module is imported so all mappers and tables are registered
from auth.models import Admin, AdminActivityLog
from auth.services import AuthService
from content.models import Category, Package, Tryout, SubChapter, TryoutSession
from question.models import Question, AnswerOption, QuestionSubChapter
from subscription.models import SubscriptionType, UserSubscription
from payment.models import Transaction

ADMIN_USERNAME = "root_admin"
ADMIN_PASSWORD = "s3cret-pass"


def make_session_factory():
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_subscription_type(db, name="Gold", duration_days=30, price=150000.0, is_active=True):
    subscription_type = SubscriptionType(name=name, duration_days=duration_days, price=price, is_active=is_active)
    db.add(subscription_type)
    db.commit()
    return subscription_type


def add_transaction(db, user_id, subscription_type, payment_status="pending", created_at=None):
    transaction = Transaction(
        user_id=user_id,
        subscription_type_id=subscription_type.id,
        amount=subscription_type.price,
        payment_method="bank_transfer",
        payment_status=payment_status,
    )
    if created_at is not None:
        transaction.created_at = created_at
    db.add(transaction)
    db.commit()
    return transaction


def add_admin(db, username=ADMIN_USERNAME, password=ADMIN_PASSWORD, is_active=True):
    admin = Admin(
        username=username,
        password_hash=AuthService.hash_password(password),
        is_super_admin=True,
        is_active=is_active,
    )
    db.add(admin)
    db.commit()
    return admin


def active_rows(db, user_id):
    return db.query(UserSubscription).filter(
        UserSubscription.user_id == user_id,
        UserSubscription.is_active == True
    ).all()


def make_client(session_factory, login=True):
    """TestClient bound to the given database, optionally logged in as the default admin."""
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    if login:
        response = client.post("/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        assert response.status_code == 200, response.text
    return client


def reset_overrides():
    from main import app
    app.dependency_overrides.clear()
