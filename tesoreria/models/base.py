"""
Record Base Models.

``StoreRecord`` is the shape every remote row is parsed into; each concrete
record names its collection via ``TABLE`` and the input model that guards
writes via ``INPUT_MODEL``.

``RecordInput`` subclasses carry the validation rules for create and
partial-update payloads.  Payloads are produced keyed by the remote column
name (field alias) and in JSON mode, ready for PostgREST.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Annotated, ClassVar, Mapping, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tesoreria.errors import RecordValidationError

__all__ = [
    "RecordId",
    "RecordInput",
    "SERVER_ASSIGNED_FIELDS",
    "StoreRecord",
    "coerce_enum",
]

EnumT = TypeVar("EnumT", bound=Enum)

RecordId = Union[int, str]
"""Server-assigned sequence number or UUID string."""

SERVER_ASSIGNED_FIELDS: frozenset[str] = frozenset({"id", "created_at"})

_FIELD_CONFIG = ConfigDict(str_strip_whitespace=True)


def _first_messages(exc: PydanticValidationError) -> dict[str, str]:
    """Collapse pydantic errors into ``{field: first message}``."""
    messages: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        key = str(loc[0])
        messages.setdefault(key, err.get("msg", "Invalid value."))
    return messages


def coerce_enum(enum_cls: type[EnumT], value: object) -> Optional[EnumT]:
    """Read a stored enum column, mapping blank or unknown values to ``None``.

    Legacy rows may hold an empty string or a value the form no longer
    offers.  Such a row is still a valid record; the column simply counts
    as unset.
    """
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        value = value.strip()
    try:
        return enum_cls(value)
    except ValueError:
        return None


class RecordInput(BaseModel):
    """Validated write payload for one collection."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @classmethod
    def parse_create(
        cls, fields: Union["RecordInput", Mapping[str, object]]
    ) -> dict[str, object]:
        """Validate a full create payload and return it keyed by column.

        Raises:
            RecordValidationError: On server-assigned keys, unknown keys or
                any constraint violation.
        """
        if isinstance(fields, RecordInput):
            if not isinstance(fields, cls):
                raise RecordValidationError(
                    f"Expected {cls.__name__}, got {type(fields).__name__}."
                )
            return fields.to_payload()

        _reject_server_assigned(fields)
        try:
            model = cls.model_validate(dict(fields))
        except PydanticValidationError as exc:
            field_errors = _first_messages(exc)
            raise RecordValidationError(
                f"Invalid {cls.__name__}: {', '.join(sorted(field_errors))}",
                field_errors=field_errors,
            ) from exc
        return model.to_payload()

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, mode="json")

    # ------------------------------------------------------------------
    # Partial update
    # ------------------------------------------------------------------

    @classmethod
    def parse_partial(cls, fields: Mapping[str, object]) -> dict[str, object]:
        """Validate only the supplied fields against their declared constraints.

        Keys may be given by attribute name or by column alias.

        Raises:
            RecordValidationError: On an empty payload, server-assigned
                keys, unknown keys or any constraint violation.
        """
        if not fields:
            raise RecordValidationError("Nothing to update.")
        _reject_server_assigned(fields)

        lookup = _field_lookup(cls)
        payload: dict[str, object] = {}
        errors: dict[str, str] = {}

        for key, value in fields.items():
            name = lookup.get(key)
            if name is None:
                errors[key] = "Unknown field."
                continue
            adapter = _field_adapter(cls, name)
            try:
                validated = adapter.validate_python(value)
            except PydanticValidationError as exc:
                errors[key] = exc.errors()[0].get("msg", "Invalid value.")
                continue
            info = cls.model_fields[name]
            column = info.serialization_alias or info.alias or name
            payload[column] = adapter.dump_python(validated, mode="json")

        if errors:
            raise RecordValidationError(
                f"Invalid {cls.__name__} update: {', '.join(sorted(errors))}",
                field_errors=errors,
            )
        return cls.complete_partial(payload)

    @classmethod
    def complete_partial(cls, payload: dict[str, object]) -> dict[str, object]:
        """Hook for inputs that derive columns from other columns."""
        return payload


def _reject_server_assigned(fields: Mapping[str, object]) -> None:
    rejected = SERVER_ASSIGNED_FIELDS.intersection(fields)
    if rejected:
        raise RecordValidationError(
            "Fields assigned by the server cannot be written: "
            + ", ".join(sorted(rejected)),
            field_errors={name: "Assigned by the server." for name in rejected},
        )


@lru_cache(maxsize=None)
def _field_lookup(model: type[RecordInput]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for name, info in model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
        if isinstance(info.validation_alias, str):
            lookup[info.validation_alias] = name
        elif isinstance(info.validation_alias, AliasChoices):
            for choice in info.validation_alias.choices:
                if isinstance(choice, str):
                    lookup[choice] = name
    return lookup


@lru_cache(maxsize=None)
def _field_adapter(model: type[RecordInput], name: str) -> TypeAdapter:
    info = model.model_fields[name]
    if info.metadata:
        return TypeAdapter(
            Annotated[(info.annotation, *info.metadata)], config=_FIELD_CONFIG
        )
    return TypeAdapter(info.annotation, config=_FIELD_CONFIG)


class StoreRecord(BaseModel):
    """One row of a remote collection.

    Identity (``id``) is stable for the record's lifetime; every other
    field is mutable and only valid until the next fetch.
    """

    TABLE: ClassVar[str] = ""
    INPUT_MODEL: ClassVar[type[RecordInput]] = RecordInput
    ORDER_BY: ClassVar[Optional[str]] = "created_at"
    ORDER_DESC: ClassVar[bool] = True

    id: RecordId
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @classmethod
    def parse_row(cls, row: Mapping[str, object]):
        """Parse one stored row.

        Raises:
            RecordValidationError: If the row cannot be read as this record.
        """
        try:
            return cls.model_validate(row)
        except PydanticValidationError as exc:
            field_errors = _first_messages(exc)
            raise RecordValidationError(
                f"Unreadable {cls.TABLE} row {row.get('id')!r}: "
                f"{', '.join(sorted(field_errors))}",
                field_errors=field_errors,
            ) from exc
