from typing import Annotated, Any, Dict, Union

from pydantic import BaseModel, ConfigDict, StringConstraints

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
"""Type alias for non-empty strings with minimum length of 1."""

DependencySpec = Union[str, Dict[str, Any]]
"""A cargo dependency specification: a version requirement (e.g. ``"0.8"``) or an inline table
(e.g. ``{"version": "1", "features": ["derive"]}``)."""


class BaseModelWithDocstrings(BaseModel):
    """Base model with the attribute docstrings being extracted to the model JSON schema."""

    model_config = ConfigDict(use_attribute_docstrings=True)
