# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Service
from barbershop.schemas import ServiceCategory, ServiceCreate, ServicePublic, ServiceUpdate
from barbershop.deps import get_current_admin

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


def _get_or_404(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.get("", response_model=List[ServicePublic])
def list_active_services(session: Session = Depends(get_session)):
    return session.exec(
        select(Service)
        .where(Service.is_active == True)  # noqa: E712
        .order_by(Service.category, Service.name)
    ).all()


@router.get("/admin", response_model=List[ServicePublic])
def list_all_services(
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    return session.exec(select(Service).order_by(Service.category, Service.name)).all()


@router.get("/category/{category}", response_model=List[ServicePublic])
def list_services_by_category(
    category: ServiceCategory,
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Service)
        .where(Service.category == category.value)
        .where(Service.is_active == True)  # noqa: E712
        .order_by(Service.name)
    ).all()


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(service_id: int, session: Session = Depends(get_session)):
    return _get_or_404(session, service_id)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_service = Service(
        name=service.name.strip(),
        description=service.description.strip(),
        duration=service.duration,
        price=service.price,
        category=service.category.value,
        image=service.image,
    )
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.put("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    update: ServiceUpdate,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_service = _get_or_404(session, service_id)

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in changes:
        changes["category"] = changes["category"].value
    for field, value in changes.items():
        setattr(db_service, field, value)

    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.delete("/{service_id}", response_model=ServicePublic)
def deactivate_service(
    service_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_service = _get_or_404(session, service_id)
    db_service.is_active = False
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.delete("/{service_id}/permanent", response_model=ServicePublic)
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    admin: dict = Depends(get_current_admin),
):
    db_service = _get_or_404(session, service_id)
    payload = ServicePublic.model_validate(db_service)
    session.delete(db_service)
    session.commit()
    return payload
