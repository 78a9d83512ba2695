# Overview: Service-layer CRUD for simple resources; validation, uniqueness and reference checks.

"""
Generic create/read/update/delete for flat resources (categories,
discounts, tax categories, stores, devices...).

Each resource is a CrudResource describing:
- model and ModelValidationPolicy (writable/required fields)
- unique_fields: single columns that must be unique (409 on clash)
- references: column -> model that the value must point at (400 if absent)
- rules: callable(patch, instance_or_None) for business rules
- before_save: callable(instance) run inside the same transaction
- soft_delete_field: deletes set this boolean column False instead
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..validation import ModelValidationPolicy, apply_patch, to_camel, validate_payload


@dataclass
class CrudResource:
    model: type
    policy: ModelValidationPolicy
    label: str
    unique_fields: tuple = ()
    references: dict = field(default_factory=dict)
    rules: Optional[Callable] = None
    before_save: Optional[Callable] = None
    soft_delete_field: Optional[str] = None
    order_by: Optional[str] = "id"
    filterable: tuple = ()

    # -- reads --

    def list(self, filters: dict | None = None) -> list:
        query = db.session.query(self.model)
        for key, value in (filters or {}).items():
            if key in self.filterable and value is not None:
                query = query.filter(getattr(self.model, key) == value)
        if self.order_by:
            query = query.order_by(getattr(self.model, self.order_by))
        return query.all()

    def get(self, entity_id: int):
        instance = db.session.get(self.model, entity_id)
        if instance is None:
            raise NotFoundError(f"{self.label} not found")
        return instance

    # -- writes --

    def check_unique(self, patch: dict, instance=None) -> None:
        for column in self.unique_fields:
            if column not in patch or patch[column] is None:
                continue
            query = db.session.query(self.model).filter(getattr(self.model, column) == patch[column])
            if instance is not None:
                query = query.filter(self.model.id != instance.id)
            if query.first() is not None:
                raise ConflictError(f"{self.label} with this {to_camel(column)} already exists")

    def check_references(self, patch: dict) -> None:
        for column, target in self.references.items():
            value = patch.get(column)
            if value is None:
                continue
            if db.session.get(target, value) is None:
                raise ValidationError(
                    f"{to_camel(column)} does not reference an existing record",
                    details={to_camel(column): "not found"},
                )

    def _save(self, instance) -> None:
        try:
            if self.before_save is not None:
                self.before_save(instance)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"{self.label} conflicts with an existing record")
        except Exception:
            db.session.rollback()
            raise

    def create(self, payload: dict):
        patch = validate_payload(model=self.model, payload=payload, policy=self.policy, partial=False)
        if self.rules is not None:
            self.rules(patch, None)
        self.check_unique(patch)
        self.check_references(patch)

        instance = self.model()
        apply_patch(instance, patch)
        db.session.add(instance)
        self._save(instance)
        return instance

    def update(self, entity_id: int, payload: dict):
        instance = self.get(entity_id)
        patch = validate_payload(model=self.model, payload=payload, policy=self.policy, partial=True)
        if self.rules is not None:
            self.rules(patch, instance)
        self.check_unique(patch, instance)
        self.check_references(patch)

        apply_patch(instance, patch)
        self._save(instance)
        return instance

    def delete(self, entity_id: int):
        instance = self.get(entity_id)
        if self.soft_delete_field:
            setattr(instance, self.soft_delete_field, False)
            self._save(instance)
            return instance
        db.session.delete(instance)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"{self.label} is still referenced and cannot be deleted")
        return None
