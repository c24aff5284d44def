# barbershop/routers/gallery_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import GalleryPhoto
from barbershop.schemas import (
    GalleryCategory,
    GalleryPhotoCreate,
    GalleryPhotoPublic,
    GalleryPhotoUpdate,
)
from barbershop.deps import get_current_admin

router = APIRouter(
    prefix="/gallery",
    tags=["gallery"],
)


def _photo_or_404(session: Session, photo_id: int) -> GalleryPhoto:
    photo = session.get(GalleryPhoto, photo_id)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo


def _save(session: Session, photo: GalleryPhoto) -> GalleryPhoto:
    session.add(photo)
    session.commit()
    session.refresh(photo)
    return photo


@router.get("", response_model=List[GalleryPhotoPublic])
def list_photos(session: Session = Depends(get_session)):
    return session.exec(
        select(GalleryPhoto)
        .where(GalleryPhoto.is_active == True)  # noqa: E712
        .order_by(GalleryPhoto.created_at.desc(), GalleryPhoto.id.desc())
    ).all()


@router.get("/admin/all", response_model=List[GalleryPhotoPublic])
def list_all_photos(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return session.exec(
        select(GalleryPhoto).order_by(GalleryPhoto.created_at.desc(), GalleryPhoto.id.desc())
    ).all()


@router.get("/category/{category}", response_model=List[GalleryPhotoPublic])
def list_photos_by_category(
    category: GalleryCategory,
    session: Session = Depends(get_session),
):
    return session.exec(
        select(GalleryPhoto)
        .where(GalleryPhoto.category == category.value)
        .where(GalleryPhoto.is_active == True)  # noqa: E712
        .order_by(GalleryPhoto.created_at.desc(), GalleryPhoto.id.desc())
    ).all()


@router.get("/{photo_id}", response_model=GalleryPhotoPublic)
def get_photo(photo_id: int, session: Session = Depends(get_session)):
    return _photo_or_404(session, photo_id)


@router.post("", response_model=GalleryPhotoPublic, status_code=201)
def create_photo(
    photo: GalleryPhotoCreate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return _save(
        session,
        GalleryPhoto(
            title=photo.title.strip(),
            category=photo.category.value,
            image_url=photo.image_url,
        ),
    )


@router.put("/{photo_id}", response_model=GalleryPhotoPublic)
def update_photo(
    photo_id: int,
    update: GalleryPhotoUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_photo = _photo_or_404(session, photo_id)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in changes:
        changes["category"] = changes["category"].value
    for field, value in changes.items():
        setattr(db_photo, field, value)
    return _save(session, db_photo)


@router.patch("/{photo_id}/toggle", response_model=GalleryPhotoPublic)
def toggle_photo(
    photo_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_photo = _photo_or_404(session, photo_id)
    db_photo.is_active = not db_photo.is_active
    return _save(session, db_photo)


@router.post("/{photo_id}/like", response_model=GalleryPhotoPublic)
def like_photo(photo_id: int, session: Session = Depends(get_session)):
    db_photo = _photo_or_404(session, photo_id)
    db_photo.likes += 1
    return _save(session, db_photo)


@router.delete("/{photo_id}", status_code=204)
def delete_photo(
    photo_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_photo = _photo_or_404(session, photo_id)
    session.delete(db_photo)
    session.commit()
