# src/content/routes.py
from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional, Union
from content.services import CategoryService, PackageService, TryoutService, SubChapterService, TryoutSessionService
from content.schemas import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    PackageCreate, PackageUpdate, PackageResponse,
    TryoutCreate, TryoutUpdate, TryoutResponse,
    SubChapterCreate, SubChapterUpdate, SubChapterResponse,
    TryoutSessionCreate, TryoutSessionUpdate, TryoutSessionResponse, UserTryoutSessionResponse
)
from admin.services import ActivityLogger, ActionType, ResourceType
from auth.routes import get_current_admin
from auth.models import Admin
from database import get_db

category_router = APIRouter(prefix="/categories", tags=["categories"])
package_router = APIRouter(prefix="/packages", tags=["packages"])
tryout_router = APIRouter(prefix="/tryouts", tags=["tryouts"])
session_router = APIRouter(prefix="/tryout-sessions", tags=["tryout-sessions"])

# Categories

@category_router.get("", response_model=List[CategoryResponse])
def get_categories(db: Session = Depends(get_db)):
    return CategoryService.list_categories(db)

@category_router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: str, db: Session = Depends(get_db)):
    return CategoryService.get_category(category_id, db)

@category_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    category = CategoryService.create_category(category_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.CATEGORY,
        resource_id=category.id, description=f"Created category {category.name}", request=request
    )
    return category

@category_router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    category, old_values = CategoryService.update_category(category_id, category_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.CATEGORY,
        resource_id=category_id, description=f"Updated category {category.name}",
        metadata={"old_values": old_values, "new_values": category_data.model_dump(exclude_unset=True)},
        request=request
    )
    return category

@category_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    name = CategoryService.delete_category(category_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.CATEGORY,
        resource_id=category_id, description=f"Deleted category {name}", request=request
    )

# Packages

@package_router.get("", response_model=List[PackageResponse])
def get_packages(is_active: Optional[bool] = None, db: Session = Depends(get_db)):
    return PackageService.list_packages(db, is_active=is_active)

@package_router.get("/{package_id}", response_model=PackageResponse)
def get_package(package_id: str, db: Session = Depends(get_db)):
    return PackageService.get_package(package_id, db)

@package_router.get("/{package_id}/tryouts", response_model=List[TryoutResponse])
def get_package_tryouts(package_id: str, db: Session = Depends(get_db)):
    """Retrieve the tryouts that belong to a package."""
    PackageService.get_package(package_id, db)
    return TryoutService.list_tryouts(db, package_id=package_id)

@package_router.post("", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(
    package_data: PackageCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    package = PackageService.create_package(package_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.PACKAGE,
        resource_id=package.id, description=f"Created package {package.name}", request=request
    )
    return package

@package_router.patch("/{package_id}", response_model=PackageResponse)
def update_package(
    package_id: str,
    package_data: PackageUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    package, old_values = PackageService.update_package(package_id, package_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.PACKAGE,
        resource_id=package_id, description=f"Updated package {package.name}",
        metadata={"old_values": old_values, "new_values": package_data.model_dump(exclude_unset=True)},
        request=request
    )
    return package

@package_router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_package(
    package_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    name = PackageService.delete_package(package_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.PACKAGE,
        resource_id=package_id, description=f"Deleted package {name}", request=request
    )

# Tryouts and their sub-chapters

@tryout_router.get("", response_model=List[TryoutResponse])
def get_tryouts(
    package_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Retrieve tryouts with optional filters."""
    return TryoutService.list_tryouts(db, package_id=package_id, is_active=is_active, search=search)

@tryout_router.get("/{tryout_id}", response_model=TryoutResponse)
def get_tryout(tryout_id: str, db: Session = Depends(get_db)):
    return TryoutService.to_response(TryoutService.get_tryout(tryout_id, db))

@tryout_router.post("", response_model=TryoutResponse, status_code=status.HTTP_201_CREATED)
def create_tryout(
    tryout_data: TryoutCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Create a tryout; an unknown package name creates the package."""
    tryout = TryoutService.create_tryout(tryout_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.TRYOUT,
        resource_id=tryout.id, description=f"Created tryout {tryout.title}",
        metadata={"new_values": tryout_data.model_dump()}, request=request
    )
    return TryoutService.to_response(tryout)

@tryout_router.patch("/{tryout_id}", response_model=TryoutResponse)
def update_tryout(
    tryout_id: str,
    tryout_data: TryoutUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    tryout, old_values = TryoutService.update_tryout(tryout_id, tryout_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.TRYOUT,
        resource_id=tryout_id, description=f"Updated tryout {tryout.title}",
        metadata={"old_values": old_values, "new_values": tryout_data.model_dump(exclude_unset=True)},
        request=request
    )
    return TryoutService.to_response(tryout)

@tryout_router.delete("/{tryout_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tryout(
    tryout_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    title = TryoutService.delete_tryout(tryout_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.TRYOUT,
        resource_id=tryout_id, description=f"Deleted tryout {title}", request=request
    )

@tryout_router.get("/{tryout_id}/sub-chapters", response_model=List[SubChapterResponse])
def get_sub_chapters(tryout_id: str, db: Session = Depends(get_db)):
    """Retrieve a tryout's sub-chapters in order."""
    return SubChapterService.list_sub_chapters(tryout_id, db)

@tryout_router.get("/{tryout_id}/sub-chapters/{sub_chapter_id}", response_model=SubChapterResponse)
def get_sub_chapter(tryout_id: str, sub_chapter_id: str, db: Session = Depends(get_db)):
    return SubChapterService.to_response(SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db))

@tryout_router.post("/{tryout_id}/sub-chapters", response_model=SubChapterResponse, status_code=status.HTTP_201_CREATED)
def create_sub_chapter(
    tryout_id: str,
    sub_chapter_data: SubChapterCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    sub_chapter = SubChapterService.create_sub_chapter(tryout_id, sub_chapter_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.SUB_CHAPTER,
        resource_id=sub_chapter.id, description=f"Added sub-chapter to tryout {tryout_id}",
        metadata={"new_values": sub_chapter_data.model_dump()}, request=request
    )
    return SubChapterService.to_response(sub_chapter)

@tryout_router.patch("/{tryout_id}/sub-chapters/{sub_chapter_id}", response_model=SubChapterResponse)
def update_sub_chapter(
    tryout_id: str,
    sub_chapter_id: str,
    sub_chapter_data: SubChapterUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    sub_chapter, old_values = SubChapterService.update_sub_chapter(tryout_id, sub_chapter_id, sub_chapter_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.SUB_CHAPTER,
        resource_id=sub_chapter_id, description=f"Updated sub-chapter of tryout {tryout_id}",
        metadata={"old_values": old_values, "new_values": sub_chapter_data.model_dump(exclude_unset=True)},
        request=request
    )
    return SubChapterService.to_response(sub_chapter)

@tryout_router.delete("/{tryout_id}/sub-chapters/{sub_chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sub_chapter(
    tryout_id: str,
    sub_chapter_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    SubChapterService.delete_sub_chapter(tryout_id, sub_chapter_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.SUB_CHAPTER,
        resource_id=sub_chapter_id, description=f"Deleted sub-chapter of tryout {tryout_id}", request=request
    )

# Tryout sessions

@session_router.get("", response_model=List[TryoutSessionResponse])
def get_tryout_sessions(
    package_id: Optional[str] = None,
    subscription_type_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return TryoutSessionService.list_sessions(db, package_id=package_id, subscription_type_id=subscription_type_id)

@session_router.get("/user/{user_id}", response_model=List[UserTryoutSessionResponse])
def get_user_tryout_sessions(user_id: str, db: Session = Depends(get_db)):
    """Retrieve the sessions a user can open through their current subscriptions."""
    return TryoutSessionService.get_sessions_for_user(user_id, db)

@session_router.get("/{session_id}", response_model=TryoutSessionResponse)
def get_tryout_session(session_id: str, db: Session = Depends(get_db)):
    return TryoutSessionService.to_response(TryoutSessionService.get_session(session_id, db))

@session_router.post("", response_model=List[TryoutSessionResponse], status_code=status.HTTP_201_CREATED)
def create_tryout_sessions(
    request: Request,
    sessions_data: Union[List[TryoutSessionCreate], TryoutSessionCreate] = Body(...),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Create a session, or a batch of sessions when the body is a list."""
    is_bulk = isinstance(sessions_data, list)
    created = TryoutSessionService.create_sessions(sessions_data if is_bulk else [sessions_data], db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.BULK_UPDATE if is_bulk else ActionType.CREATE, ResourceType.TRYOUT_SESSION,
        resource_id=None if is_bulk else created[0].id,
        description=f"Created {len(created)} tryout session(s)",
        metadata={"session_ids": [s.id for s in created]},
        request=request
    )
    return [TryoutSessionService.to_response(s) for s in created]

@session_router.patch("/{session_id}", response_model=TryoutSessionResponse)
def update_tryout_session(
    session_id: str,
    session_data: TryoutSessionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    tryout_session, old_values = TryoutSessionService.update_session(session_id, session_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.TRYOUT_SESSION,
        resource_id=session_id, description=f"Updated tryout session {session_id}",
        metadata={"old_values": old_values, "new_values": session_data.model_dump(exclude_unset=True)},
        request=request
    )
    return TryoutSessionService.to_response(tryout_session)

@session_router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tryout_session(
    session_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    TryoutSessionService.delete_session(session_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.TRYOUT_SESSION,
        resource_id=session_id, description=f"Deleted tryout session {session_id}", request=request
    )
