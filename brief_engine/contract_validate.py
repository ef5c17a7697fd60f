from typing import Any, List

import jsonschema

from .schema_loader import load_schema


def validate_contract(data: Any, name: str) -> None:
    """Validate *data* against the packaged JSON Schema contract *name*.

    Raises jsonschema.ValidationError if non-conformant.
    """
    jsonschema.validate(data, load_schema(name))


def contract_errors(data: Any, name: str) -> List[str]:
    """Like validate_contract() but returns every violation instead of raising.

    Returns a list of human-readable error strings (empty list = valid).
    """
    schema = load_schema(name)
    validator = jsonschema.validators.validator_for(schema)(schema)
    return [
        f"{list(error.absolute_path)}: {error.message}"
        for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    ]
