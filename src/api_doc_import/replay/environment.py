"""Handing parsed environment variables to an environment store."""

import re
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from api_doc_import.log import get_logger
from api_doc_import.parser.base import EnvironmentVariable

logger = get_logger(__name__)

VARIABLE_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class StoreVariable(BaseModel):
    name: str
    value: str
    secret: bool
    is_global: bool = Field(default=False, alias="global")

    model_config = ConfigDict(populate_by_name=True)


class EnvironmentValidation(BaseModel):
    valid: bool
    error: str | None = None


class EnvironmentCreationResult(BaseModel):
    success: bool
    environment_name: str
    variables_created: int
    message: str
    error: str | None = None


class EnvironmentStore(Protocol):
    async def set_variable(self, environment_name: str, variable: StoreVariable) -> None:
        ...


def convert_to_store_variables(variables: list[EnvironmentVariable]) -> list[StoreVariable]:
    """Keep enabled variables and map them to store records."""
    return [
        StoreVariable(name=v.key, value=v.value, secret=v.is_secret)
        for v in variables
        if v.enabled
    ]


def validate_environment_creation(
    variables: list[StoreVariable], environment_name: str
) -> EnvironmentValidation:
    if not environment_name or not environment_name.strip():
        return EnvironmentValidation(valid=False, error="Environment name cannot be empty")

    if not variables:
        return EnvironmentValidation(valid=False, error="At least one variable must be provided")

    names = [v.name.lower() for v in variables]
    if len(names) != len(set(names)):
        return EnvironmentValidation(valid=False, error="Duplicate variable names are not allowed")

    for variable in variables:
        if not variable.name.strip():
            return EnvironmentValidation(valid=False, error="Variable names cannot be empty")
        if " " in variable.name:
            return EnvironmentValidation(valid=False, error="Variable names cannot contain spaces")
        if not VARIABLE_NAME_PATTERN.match(variable.name):
            return EnvironmentValidation(
                valid=False,
                error=(
                    f'Invalid variable name: "{variable.name}". '
                    "Use only letters, numbers, and underscores."
                ),
            )

    return EnvironmentValidation(valid=True)


def unique_environment_name(name: str, existing: set[str]) -> str:
    """Return name, or name-1, name-2, ... whichever is not taken yet."""
    if name not in existing:
        return name
    counter = 1
    while f"{name}-{counter}" in existing:
        counter += 1
    return f"{name}-{counter}"


async def create_environment_variables(
    store: EnvironmentStore,
    variables: list[StoreVariable],
    environment_name: str,
) -> EnvironmentCreationResult:
    """Write variables one by one; failures are collected, not raised."""
    created = 0
    errors: list[str] = []

    for variable in variables:
        try:
            await store.set_variable(environment_name, variable)
        except Exception as e:
            logger.warning("Failed to create variable %s: %s", variable.name, e)
            errors.append(f'Failed to create variable "{variable.name}": {e}')
            continue
        created += 1

    if created == len(variables):
        message = f"Successfully added {created} variables to environment"
    elif created > 0:
        message = f"Partially added variables: {created}/{len(variables)} variables created"
    else:
        message = "Failed to add variables: no variables were created"

    return EnvironmentCreationResult(
        success=created > 0,
        environment_name=environment_name,
        variables_created=created,
        message=message,
        error="; ".join(errors) if errors else None,
    )
