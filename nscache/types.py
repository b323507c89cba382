from __future__ import annotations

import typing as t

import pydantic as pyd


class BaseModel(pyd.BaseModel):
    """Base model shared by the nscache models.

    Records such as ``Metadata`` are frozen snapshots that accept their
    camelCase aliases and serialize through them. Settings models that must
    change at runtime, like ``AdapterOptions``, override ``frozen`` and keep
    the validation on assignment.

    Attributes:
        model_config: Configuration dictionary for the model.
    """
    model_config: t.ClassVar[pyd.ConfigDict] = pyd.ConfigDict(
        validate_assignment=True,  # Validate on assignment
        validate_default=False,  # Do not validate default values
        extra="forbid",  # Disallow extra fields
        arbitrary_types_allowed=True,  # Allow arbitrary types
        populate_by_name=True,  # Allow population by field name
        use_enum_values=True,  # Use enum values directly
        frozen=True,  # Make the model immutable
        serialize_by_alias=True,  # Serialize using field aliases
    )


Pairs: t.TypeAlias = t.Mapping[str, t.Any]
"""Type alias for key/value batches."""
