import jsonschema

from .schema_loader import load_schema
from .schemas.document_v1 import canonical_document_dict


def validate_document_contract(data: dict) -> None:
    """Validate a ScriptDocument dict against the ScriptDocument.v1.json contract.

    Raises jsonschema.ValidationError if non-conformant.
    """
    schema = load_schema("ScriptDocument.v1.json")
    jsonschema.validate(data, schema)


def validate_document_model(document) -> None:
    """Validate a ScriptDocument model against the contract.

    The model is projected to its camelCase wire form first, exactly as the
    JSON exporter writes it.

    Raises jsonschema.ValidationError if the projected document is non-conformant.
    """
    validate_document_contract(canonical_document_dict(document))
