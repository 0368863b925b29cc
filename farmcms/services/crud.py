"""Generic CRUD service with validation and link maintenance hooks."""

from __future__ import annotations

import json
from typing import Any, Type, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError

from farmcms.extensions import db

Model = TypeVar("Model", bound=db.Model)


class CRUDService:
    """Create, read, update and delete for one model, with hooks for link upkeep.

    Subclasses declare ``fields``, a mapping of camelCase request keys to model
    attributes, and override the ``_validate_*`` / ``_prepare`` / ``_after_save``
    hooks as needed.
    """

    fields: dict[str, str] = {}
    label: str | None = None

    def __init__(self, model: Type[Model]):
        self.model = model
        self.model_name = self.label or model.__tablename__

    def from_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Translate a camelCase JSON body into model attributes, dropping unknown keys."""
        return {attr: payload[key] for key, attr in self.fields.items() if key in payload}

    def create(self, data: dict[str, Any]) -> tuple[Model | None, str | None]:
        """
        Validate, coerce and insert ``data`` (model attribute names).

        Returns:
            (instance, None) on success, (None, message) otherwise
        """
        try:
            error = self._validate_create(data)
            if error:
                return None, error

            data = self._prepare(data, None)
            instance = self.model(**data)
            db.session.add(instance)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            return None, self._handle_integrity_error(e)
        except ValueError as e:
            db.session.rollback()
            return None, str(e)

        self._run_after_save(instance, data, created=True)
        return instance, None

    def get_by_id(self, object_id: str) -> Model | None:
        return db.session.get(self.model, object_id)

    def list_all(self, filters: dict[str, Any] | None = None, order_by: Any = None) -> list[Model]:
        """Every row, optionally narrowed by equality ``filters`` and sorted by ``order_by``."""
        query = db.select(self.model)
        if filters:
            query = query.filter_by(**filters)
        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                query = query.order_by(*order_by)
            else:
                query = query.order_by(order_by)
        return list(db.session.execute(query).scalars())

    def update(self, object_id: str, data: dict[str, Any]) -> tuple[Model | None, str | None]:
        """Partial update: only the attributes present in ``data`` are written."""
        instance = self.get_by_id(object_id)
        if not instance:
            return None, f"{self.model_name.capitalize()} not found"

        try:
            error = self._validate_update(instance, data)
            if error:
                return None, error

            data = self._prepare(data, instance)
            for key, value in data.items():
                if hasattr(instance, key) and key not in ('id', 'created_at', 'updated_at'):
                    setattr(instance, key, value)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            return None, self._handle_integrity_error(e)
        except ValueError as e:
            db.session.rollback()
            return None, str(e)

        self._run_after_save(instance, data, created=False)
        return instance, None

    def delete(self, object_id: str) -> tuple[bool, str | None]:
        """Remove a row after running ``_before_delete`` in the same transaction."""
        instance = self.get_by_id(object_id)
        if not instance:
            return False, f"{self.model_name.capitalize()} not found"

        try:
            self._before_delete(instance)
            db.session.delete(instance)
            db.session.commit()
            return True, None
        except IntegrityError as e:
            db.session.rollback()
            return False, self._handle_integrity_error(e)

    def _run_after_save(self, instance: Model, data: dict[str, Any], created: bool) -> None:
        # Link maintenance failures leave the saved record in place.
        try:
            self._after_save(instance, data, created)
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to update media links for {self.model_name} {instance.id}: {e}")

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        """Return an error message to reject the payload."""
        return None

    def _validate_update(self, instance: Model, data: dict[str, Any]) -> str | None:
        return None

    def _prepare(self, data: dict[str, Any], instance: Model | None) -> dict[str, Any]:
        """Coerce incoming values before they are written. May raise ValueError."""
        return data

    def _after_save(self, instance: Model, data: dict[str, Any], created: bool) -> None:
        """Hook run after a successful commit."""

    def _before_delete(self, instance: Model) -> None:
        """Hook run inside the delete transaction."""

    def _handle_integrity_error(self, error: IntegrityError) -> str:
        """Message shown to the client when a write breaks a constraint."""
        text = str(error).lower()
        if "unique" in text:
            return f"This {self.model_name} already exists"
        if "foreign" in text:
            return f"The {self.model_name} refers to a missing record"
        return f"Could not save the {self.model_name}"


def clean_text(value: Any) -> str | None:
    """Strip strings and turn blanks into None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def to_int(value: Any, field_name: str) -> int | None:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field_name} must be a whole number')


def to_list(value: Any, field_name: str) -> list | None:
    """Accept a list or a JSON-encoded list; empty becomes None."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError(f'{field_name} must be a list')
    if not isinstance(value, list):
        raise ValueError(f'{field_name} must be a list')
    return value or None


def isoformat(value) -> str | None:
    return value.isoformat() if value else None


__all__ = ['CRUDService', 'clean_text', 'to_bool', 'to_int', 'to_list', 'isoformat']
