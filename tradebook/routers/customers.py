from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..repository import CustomerRepository, JobRepository

router = APIRouter(prefix="/customers", tags=["customers"])


def get_customers(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CustomerRepository:
    return CustomerRepository(db, current_user.id)


def _get_or_404(customers: CustomerRepository, customer_id: int) -> models.Customer:
    customer = customers.get(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("/", response_model=schemas.Customer)
def create_customer(
    customer: schemas.CustomerCreate,
    customers: CustomerRepository = Depends(get_customers),
):
    return customers.add(**customer.model_dump())


@router.get("/", response_model=List[schemas.Customer])
def list_customers(customers: CustomerRepository = Depends(get_customers)):
    return customers.list()


@router.get("/{customer_id}", response_model=schemas.Customer)
def get_customer(customer_id: int, customers: CustomerRepository = Depends(get_customers)):
    return _get_or_404(customers, customer_id)


@router.patch("/{customer_id}", response_model=schemas.Customer)
def update_customer(
    customer_id: int,
    update: schemas.CustomerUpdate,
    customers: CustomerRepository = Depends(get_customers),
):
    customer = _get_or_404(customers, customer_id)
    return customers.update(customer, **update.model_dump(exclude_unset=True))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, customers: CustomerRepository = Depends(get_customers)):
    """Delete a customer together with all of their jobs."""
    customers.delete(_get_or_404(customers, customer_id))


@router.get("/{customer_id}/jobs", response_model=List[schemas.Job])
def list_customer_jobs(
    customer_id: int,
    customers: CustomerRepository = Depends(get_customers),
):
    customer = _get_or_404(customers, customer_id)
    return JobRepository(customers.db, customers.user_id).list_for_customer(customer.id)
