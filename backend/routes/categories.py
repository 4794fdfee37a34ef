# backend/routes/categories.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.leave_request import LeaveRequest
from models.users import UserRole
from schemas.category import (
    CategoryCreate, CategoryDeleted, CategoryList, CategoryOut, CategoryResult, CategoryUpdate
)
from schemas.user import CurrentUser
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(prefix="/categorie", tags=["Categorie"])
logger = logging.getLogger(__name__)

manager_only = role_required(UserRole.MANAGER)


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoria non trovata")
    return category


# List all categories alphabetically
@router.get("", response_model=CategoryList)
def list_categories(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Listing categories for user %s", current_user.id)
    categories = db.query(Category).order_by(Category.description.asc()).all()
    logger.info("Found %d categories", len(categories))
    return CategoryList(
        count=len(categories),
        data=[CategoryOut.model_validate(c) for c in categories],
    )


@router.get("/{category_id}", response_model=CategoryResult)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Fetching category %s for user %s", category_id, current_user.id)
    category = _get_category_or_404(db, category_id)
    return CategoryResult(data=CategoryOut.model_validate(category))


# Create a category (Manager only)
@router.post("", response_model=CategoryResult, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_only),
):
    logger.info("Creating category %s requested by user %s", payload.categoriaId, current_user.id)
    # Id and description (case-insensitive) must both be unused
    existing = db.query(Category).filter(
        or_(
            Category.id == payload.categoriaId,
            func.lower(Category.description) == payload.descrizione.lower(),
        )
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Esiste già una categoria con questo ID o descrizione",
        )

    category = Category(id=payload.categoriaId, description=payload.descrizione)
    db.add(category)
    db.commit()
    db.refresh(category)

    logger.info("Category %s created by user %s", category.id, current_user.id)
    return CategoryResult(message="Categoria creata con successo", data=CategoryOut.model_validate(category))


# Rename a category (Manager only)
@router.put("/{category_id}", response_model=CategoryResult)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_only),
):
    logger.info("Renaming category %s requested by user %s", category_id, current_user.id)
    category = _get_category_or_404(db, category_id)

    duplicate = db.query(Category).filter(
        func.lower(Category.description) == payload.descrizione.lower(),
        Category.id != category_id,
    ).first()
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Esiste già un'altra categoria con questa descrizione",
        )

    category.description = payload.descrizione
    db.commit()
    db.refresh(category)

    logger.info("Category %s renamed by user %s", category.id, current_user.id)
    return CategoryResult(message="Categoria modificata con successo", data=CategoryOut.model_validate(category))


# Delete a category that no request refers to (Manager only)
@router.delete("/{category_id}", response_model=CategoryDeleted)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_only),
):
    logger.info("Deleting category %s requested by user %s", category_id, current_user.id)
    category = _get_category_or_404(db, category_id)

    usage = db.query(func.count(LeaveRequest.id)).filter(LeaveRequest.category_id == category_id).scalar()
    if usage:
        logger.info("Category %s still used by %d requests, not deleted", category_id, usage)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": "Impossibile eliminare: ci sono richieste associate a questa categoria",
                "details": f"Trovate {usage} richieste",
            },
        )

    db.delete(category)
    db.commit()

    logger.info("Category %s deleted by user %s", category_id, current_user.id)
    return CategoryDeleted(message="Categoria eliminata con successo")
