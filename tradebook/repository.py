"""
Data store access for customers, jobs and settings.

Every lookup is scoped to the owning user, so a row belonging to someone
else behaves exactly like a missing one.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from . import models


class CustomerRepository:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def get(self, customer_id: int) -> Optional[models.Customer]:
        return self.db.query(models.Customer).filter(
            models.Customer.id == customer_id,
            models.Customer.user_id == self.user_id,
        ).first()

    def list(self) -> List[models.Customer]:
        return self.db.query(models.Customer).filter(
            models.Customer.user_id == self.user_id,
        ).order_by(models.Customer.name).all()

    def add(self, **fields) -> models.Customer:
        customer = models.Customer(user_id=self.user_id, **fields)
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def update(self, customer: models.Customer, **fields) -> models.Customer:
        for field, value in fields.items():
            setattr(customer, field, value)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete(self, customer: models.Customer):
        """Delete the customer and, through the relationship cascade, its jobs."""
        self.db.delete(customer)
        self.db.commit()


class JobRepository:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _owned(self):
        return self.db.query(models.Job).filter(models.Job.user_id == self.user_id)

    def get(self, job_id: int) -> Optional[models.Job]:
        return self._owned().filter(models.Job.id == job_id).first()

    def get_with_customer(self, job_id: int) -> Optional[models.Job]:
        return self._owned().options(joinedload(models.Job.customer)).filter(
            models.Job.id == job_id,
        ).first()

    def list(self, status: Optional[models.JobStatus] = None) -> List[models.Job]:
        query = self._owned().options(joinedload(models.Job.customer))
        if status is not None:
            query = query.filter(models.Job.status == status)
        return query.order_by(models.Job.created_at.desc(), models.Job.id.desc()).all()

    def list_for_customer(self, customer_id: int) -> List[models.Job]:
        return self._owned().filter(models.Job.customer_id == customer_id).order_by(
            models.Job.created_at.desc(), models.Job.id.desc(),
        ).all()

    def status_counts(self) -> dict:
        rows = self.db.query(models.Job.status, func.count(models.Job.id)).filter(
            models.Job.user_id == self.user_id,
        ).group_by(models.Job.status).all()
        return {status.value: count for status, count in rows}

    def add(self, **fields) -> models.Job:
        job = models.Job(user_id=self.user_id, **fields)
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def replace(self, job: models.Job, record: dict) -> models.Job:
        """Overwrite every field in `record` — used for full saves."""
        for field, value in record.items():
            setattr(job, field, value)
        self.db.commit()
        self.db.refresh(job)
        return job

    def delete(self, job: models.Job):
        self.db.delete(job)
        self.db.commit()


class SettingsRepository:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def get(self) -> Optional[models.BusinessSettings]:
        return self.db.query(models.BusinessSettings).filter(
            models.BusinessSettings.user_id == self.user_id,
        ).first()

    def upsert(self, **fields) -> models.BusinessSettings:
        settings = self.get()
        if settings is None:
            settings = models.BusinessSettings(user_id=self.user_id)
            self.db.add(settings)
        for field, value in fields.items():
            setattr(settings, field, value)
        self.db.commit()
        self.db.refresh(settings)
        return settings
