# src/content/services.py
import logging

from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from content.models import Category, Package, Tryout, SubChapter, TryoutSession
from content.schemas import (
    CategoryCreate, CategoryUpdate, PackageCreate, PackageUpdate,
    TryoutCreate, TryoutUpdate, TryoutResponse,
    SubChapterCreate, SubChapterUpdate, SubChapterResponse,
    TryoutSessionCreate, TryoutSessionUpdate, TryoutSessionResponse,
    UserTryoutSessionResponse, SessionTryout
)
from question.models import Question
from subscription.models import SubscriptionType, UserSubscription
from database import atomic
from errors import ConflictError, NotFoundError, ValidationError
from timeutils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

def _require_updates(data) -> Dict[str, Any]:
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update")
    return updates

class CategoryService:
    @staticmethod
    def list_categories(db: Session) -> List[Category]:
        return db.query(Category).order_by(Category.name).all()

    @staticmethod
    def get_category(category_id: str, db: Session) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    @staticmethod
    def _ensure_name_free(name: str, db: Session, exclude_id: Optional[str] = None):
        query = db.query(Category).filter(Category.name == name)
        if exclude_id:
            query = query.filter(Category.id != exclude_id)
        if query.first():
            raise ConflictError("Category name already exists")

    @staticmethod
    def create_category(category_data: CategoryCreate, db: Session) -> Category:
        name = category_data.name.strip()
        CategoryService._ensure_name_free(name, db)
        category = Category(name=name, description=category_data.description)
        with atomic(db):
            db.add(category)
        db.refresh(category)
        return category

    @staticmethod
    def update_category(category_id: str, category_data: CategoryUpdate, db: Session) -> Tuple[Category, Dict[str, Any]]:
        category = CategoryService.get_category(category_id, db)
        updates = _require_updates(category_data)
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            CategoryService._ensure_name_free(updates["name"], db, exclude_id=category_id)
        old_values = {key: getattr(category, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                setattr(category, key, value)
        db.refresh(category)
        return category, old_values

    @staticmethod
    def delete_category(category_id: str, db: Session) -> str:
        category = CategoryService.get_category(category_id, db)
        if db.query(SubChapter).filter(SubChapter.category_id == category_id).first():
            raise ConflictError("Category is used by sub-chapters and cannot be deleted")
        if db.query(Question).filter(Question.category_id == category_id).first():
            raise ConflictError("Category is used by questions and cannot be deleted")
        name = category.name
        with atomic(db):
            db.delete(category)
        return name

class PackageService:
    @staticmethod
    def list_packages(db: Session, is_active: Optional[bool] = None) -> List[Package]:
        query = db.query(Package)
        if is_active is not None:
            query = query.filter(Package.is_active == is_active)
        return query.order_by(Package.created_at.desc()).all()

    @staticmethod
    def get_package(package_id: str, db: Session) -> Package:
        package = db.query(Package).filter(Package.id == package_id).first()
        if not package:
            raise NotFoundError("Package not found")
        return package

    @staticmethod
    def ensure_package(name: str, db: Session) -> Package:
        """Find a package by name, creating an active one when missing. Flushes only."""
        name = name.strip()
        package = db.query(Package).filter(Package.name == name).first()
        if package:
            return package
        package = Package(name=name, is_active=True)
        db.add(package)
        db.flush()
        logger.info(f"Created package {name} on demand")
        return package

    @staticmethod
    def create_package(package_data: PackageCreate, db: Session) -> Package:
        name = package_data.name.strip()
        if db.query(Package).filter(Package.name == name).first():
            raise ConflictError("Package name already exists")
        package = Package(name=name, description=package_data.description, is_active=package_data.is_active)
        with atomic(db):
            db.add(package)
        db.refresh(package)
        return package

    @staticmethod
    def update_package(package_id: str, package_data: PackageUpdate, db: Session) -> Tuple[Package, Dict[str, Any]]:
        package = PackageService.get_package(package_id, db)
        updates = _require_updates(package_data)
        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            if db.query(Package).filter(Package.name == updates["name"], Package.id != package_id).first():
                raise ConflictError("Package name already exists")
        old_values = {key: getattr(package, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                setattr(package, key, value)
        db.refresh(package)
        return package, old_values

    @staticmethod
    def delete_package(package_id: str, db: Session) -> str:
        package = PackageService.get_package(package_id, db)
        if db.query(Tryout).filter(Tryout.package_id == package_id).first():
            raise ConflictError("Package is used by tryouts and cannot be deleted")
        if db.query(TryoutSession).filter(TryoutSession.package_id == package_id).first():
            raise ConflictError("Package is used by tryout sessions and cannot be deleted")
        name = package.name
        with atomic(db):
            db.delete(package)
        return name

class TryoutService:
    @staticmethod
    def to_response(tryout: Tryout) -> TryoutResponse:
        return TryoutResponse.from_orm(tryout).model_copy(
            update={"package_name": tryout.package.name if tryout.package else None}
        )

    @staticmethod
    def list_tryouts(
            db: Session,
            package_id: Optional[str] = None,
            is_active: Optional[bool] = None,
            search: Optional[str] = None
    ) -> List[TryoutResponse]:
        query = db.query(Tryout)
        if package_id:
            query = query.filter(Tryout.package_id == package_id)
        if is_active is not None:
            query = query.filter(Tryout.is_active == is_active)
        if search:
            query = query.filter(Tryout.title.ilike(f"%{search}%"))
        return [TryoutService.to_response(t) for t in query.order_by(Tryout.created_at.desc()).all()]

    @staticmethod
    def get_tryout(tryout_id: str, db: Session) -> Tryout:
        tryout = db.query(Tryout).filter(Tryout.id == tryout_id).first()
        if not tryout:
            raise NotFoundError("Tryout not found")
        return tryout

    @staticmethod
    def create_tryout(tryout_data: TryoutCreate, db: Session) -> Tryout:
        with atomic(db):
            package = PackageService.ensure_package(tryout_data.package_name, db)
            tryout = Tryout(
                title=tryout_data.title.strip(),
                description=tryout_data.description,
                duration_minutes=tryout_data.duration_minutes,
                is_active=tryout_data.is_active,
                package_id=package.id
            )
            db.add(tryout)
        db.refresh(tryout)
        return tryout

    @staticmethod
    def update_tryout(tryout_id: str, tryout_data: TryoutUpdate, db: Session) -> Tuple[Tryout, Dict[str, Any]]:
        tryout = TryoutService.get_tryout(tryout_id, db)
        updates = _require_updates(tryout_data)
        package_name = updates.pop("package_name", None)
        old_values = {key: getattr(tryout, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                setattr(tryout, key, value)
            if package_name:
                old_values["package_id"] = tryout.package_id
                tryout.package_id = PackageService.ensure_package(package_name, db).id
        db.refresh(tryout)
        return tryout, old_values

    @staticmethod
    def delete_tryout(tryout_id: str, db: Session) -> str:
        """Delete a tryout together with its sub-chapters and their question assignments."""
        tryout = TryoutService.get_tryout(tryout_id, db)
        title = tryout.title
        with atomic(db):
            db.delete(tryout)
        return title

class SubChapterService:
    @staticmethod
    def to_response(sub_chapter: SubChapter) -> SubChapterResponse:
        return SubChapterResponse.from_orm(sub_chapter).model_copy(update={
            "category_name": sub_chapter.category.name if sub_chapter.category else None,
            "question_count": len(sub_chapter.question_links),
        })

    @staticmethod
    def list_sub_chapters(tryout_id: str, db: Session) -> List[SubChapterResponse]:
        TryoutService.get_tryout(tryout_id, db)
        sub_chapters = db.query(SubChapter).filter(
            SubChapter.tryout_id == tryout_id
        ).order_by(SubChapter.order_index, SubChapter.created_at).all()
        return [SubChapterService.to_response(s) for s in sub_chapters]

    @staticmethod
    def get_sub_chapter(tryout_id: str, sub_chapter_id: str, db: Session) -> SubChapter:
        sub_chapter = db.query(SubChapter).filter(
            SubChapter.id == sub_chapter_id,
            SubChapter.tryout_id == tryout_id
        ).first()
        if not sub_chapter:
            raise NotFoundError("Sub-chapter not found")
        return sub_chapter

    @staticmethod
    def create_sub_chapter(tryout_id: str, sub_chapter_data: SubChapterCreate, db: Session) -> SubChapter:
        TryoutService.get_tryout(tryout_id, db)
        CategoryService.get_category(sub_chapter_data.category_id, db)
        sub_chapter = SubChapter(
            tryout_id=tryout_id,
            category_id=sub_chapter_data.category_id,
            order_index=sub_chapter_data.order_index
        )
        with atomic(db):
            db.add(sub_chapter)
        db.refresh(sub_chapter)
        return sub_chapter

    @staticmethod
    def update_sub_chapter(
            tryout_id: str,
            sub_chapter_id: str,
            sub_chapter_data: SubChapterUpdate,
            db: Session
    ) -> Tuple[SubChapter, Dict[str, Any]]:
        sub_chapter = SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        updates = _require_updates(sub_chapter_data)
        if updates.get("category_id"):
            CategoryService.get_category(updates["category_id"], db)
        old_values = {key: getattr(sub_chapter, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                if value is not None:
                    setattr(sub_chapter, key, value)
        db.refresh(sub_chapter)
        return sub_chapter, old_values

    @staticmethod
    def delete_sub_chapter(tryout_id: str, sub_chapter_id: str, db: Session) -> None:
        sub_chapter = SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        if sub_chapter.question_links:
            raise ConflictError("Sub-chapter still has questions assigned and cannot be deleted")
        with atomic(db):
            db.delete(sub_chapter)

class TryoutSessionService:
    @staticmethod
    def to_response(tryout_session: TryoutSession) -> TryoutSessionResponse:
        return TryoutSessionResponse.from_orm(tryout_session).model_copy(update={
            "package_name": tryout_session.package.name if tryout_session.package else None,
            "subscription_type_name": tryout_session.subscription_type.name if tryout_session.subscription_type else None,
        })

    @staticmethod
    def list_sessions(
            db: Session,
            package_id: Optional[str] = None,
            subscription_type_id: Optional[str] = None
    ) -> List[TryoutSessionResponse]:
        query = db.query(TryoutSession)
        if package_id:
            query = query.filter(TryoutSession.package_id == package_id)
        if subscription_type_id:
            query = query.filter(TryoutSession.subscription_type_id == subscription_type_id)
        return [TryoutSessionService.to_response(s) for s in query.order_by(TryoutSession.created_at.desc()).all()]

    @staticmethod
    def get_session(session_id: str, db: Session) -> TryoutSession:
        tryout_session = db.query(TryoutSession).filter(TryoutSession.id == session_id).first()
        if not tryout_session:
            raise NotFoundError("Tryout session not found")
        return tryout_session

    @staticmethod
    def create_sessions(sessions_data: Sequence[TryoutSessionCreate], db: Session) -> List[TryoutSession]:
        """Create one or many sessions atomically; a duplicate pair anywhere rejects the whole batch."""
        if not sessions_data:
            raise ValidationError("At least one tryout session is required")
        seen = set()
        created = []
        with atomic(db):
            for data in sessions_data:
                pair = (data.package_id, data.subscription_type_id)
                if pair in seen:
                    raise ConflictError("Duplicate package and subscription type pair in request")
                seen.add(pair)
                PackageService.get_package(data.package_id, db)
                if not db.query(SubscriptionType).filter(SubscriptionType.id == data.subscription_type_id).first():
                    raise NotFoundError("Subscription type not found")
                if db.query(TryoutSession).filter(
                    TryoutSession.package_id == data.package_id,
                    TryoutSession.subscription_type_id == data.subscription_type_id
                ).first():
                    raise ConflictError("A session for this package and subscription type already exists")
                tryout_session = TryoutSession(
                    package_id=data.package_id,
                    subscription_type_id=data.subscription_type_id,
                    available_until=to_naive_utc(data.available_until),
                    is_active=data.is_active
                )
                db.add(tryout_session)
                created.append(tryout_session)
            db.flush()
        for tryout_session in created:
            db.refresh(tryout_session)
        return created

    @staticmethod
    def update_session(session_id: str, session_data: TryoutSessionUpdate, db: Session) -> Tuple[TryoutSession, Dict[str, Any]]:
        tryout_session = TryoutSessionService.get_session(session_id, db)
        updates = _require_updates(session_data)
        old_values = {key: getattr(tryout_session, key) for key in updates}
        with atomic(db):
            if "available_until" in updates:
                tryout_session.available_until = to_naive_utc(session_data.available_until)
            if session_data.is_active is not None:
                tryout_session.is_active = session_data.is_active
        db.refresh(tryout_session)
        return tryout_session, old_values

    @staticmethod
    def delete_session(session_id: str, db: Session) -> None:
        tryout_session = TryoutSessionService.get_session(session_id, db)
        with atomic(db):
            db.delete(tryout_session)

    @staticmethod
    def get_sessions_for_user(user_id: str, db: Session, now: Optional[datetime] = None) -> List[UserTryoutSessionResponse]:
        """Active, still-open sessions reachable through the user's current subscriptions."""
        now = now or utcnow()
        type_ids = [
            row.subscription_type_id
            for row in db.query(UserSubscription.subscription_type_id).filter(
                UserSubscription.user_id == user_id,
                UserSubscription.is_active == True,
                UserSubscription.expires_at > now
            ).all()
        ]
        if not type_ids:
            return []

        sessions = db.query(TryoutSession).filter(
            TryoutSession.subscription_type_id.in_(type_ids),
            TryoutSession.is_active == True
        ).order_by(TryoutSession.created_at.desc()).all()

        result = []
        for tryout_session in sessions:
            if tryout_session.available_until is not None and tryout_session.available_until <= now:
                continue
            package = tryout_session.package
            result.append(UserTryoutSessionResponse(
                id=tryout_session.id,
                package_id=tryout_session.package_id,
                package_name=package.name if package else None,
                package_description=package.description if package else None,
                subscription_type_id=tryout_session.subscription_type_id,
                subscription_type_name=tryout_session.subscription_type.name if tryout_session.subscription_type else None,
                available_until=tryout_session.available_until,
                tryouts=[SessionTryout.from_orm(t) for t in (package.tryouts if package else []) if t.is_active]
            ))
        return result
