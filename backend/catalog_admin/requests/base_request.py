import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from catalog_admin.exceptions import ValidationError
from catalog_admin.repositories.base_repo import BaseRepository

log = logging.getLogger(__name__)

# pydantic error type -> rule name used in message keys ("price.min")
RULE_FOR_ERROR = {
    "missing": "required",
    "string_type": "string",
    "string_too_long": "max",
    "string_too_short": "min",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "decimal_type": "numeric",
    "decimal_parsing": "numeric",
    "float_type": "numeric",
    "float_parsing": "numeric",
    "greater_than_equal": "min",
    "greater_than": "min",
    "less_than_equal": "max",
    "decimal_max_places": "decimal",
    "decimal_max_digits": "max_digits",
    "decimal_whole_digits": "max_digits",
    "url": "url",
}

DEFAULT_MESSAGES = {
    "required": "The {attribute} field is required.",
    "string": "The {attribute} field must be a string.",
    "max": "The {attribute} field must not be greater than {max_length} characters.",
    "max.numeric": "The {attribute} field must not be greater than {le}.",
    "min": "The {attribute} field must be at least {ge}.",
    "integer": "The {attribute} field must be an integer.",
    "numeric": "The {attribute} field must be a number.",
    "decimal": "The {attribute} field must not have more than {decimal_places} decimal places.",
    "max_digits": "The {attribute} field has too many digits.",
    "url": "The {attribute} field must be a valid URL.",
    "unique": "The {attribute} has already been taken.",
}


class FormRequest:
    """
    Declarative validation for an incoming request body.

    ``rules`` is a pydantic model describing field types and bounds;
    ``messages`` overrides the text for a given "field.rule" pair;
    ``unique`` maps a field to the repository that must not already hold the
    value. Validation failures are raised as ValidationError before anything
    reaches a service.
    """

    rules: Type[BaseModel]
    messages: Dict[str, str] = {}
    unique: Dict[str, Type[BaseRepository]] = {}

    def _required_fields(self):
        return {name for name, f in self.rules.model_fields.items() if f.is_required()}

    def _normalize(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        # mirrors the usual trim-strings / empty-string-to-null input handling
        required = self._required_fields()
        data = {}
        for key, value in payload.items():
            if isinstance(value, str):
                value = value.strip() or None
            if value is None and key in required:
                continue
            data[key] = value
        return data

    def _message(self, field: str, rule: str, ctx: Optional[dict] = None, fallback: str = "") -> str:
        custom = self.messages.get(f"{field}.{rule}")
        if custom:
            return custom
        template = DEFAULT_MESSAGES.get(rule)
        if rule == "max" and ctx and "le" in ctx:
            template = DEFAULT_MESSAGES["max.numeric"]
        if template is None:
            return fallback
        try:
            return template.format(attribute=field.replace("_", " "), **(ctx or {}))
        except KeyError:
            return fallback or template

    def validate(self, payload: Any, db: Session, ignore_id=None) -> Dict[str, Any]:
        if not isinstance(payload, Mapping):
            raise ValidationError({"body": ["The request body must be an object."]})

        data = self._normalize(payload)
        errors: Dict[str, List[str]] = {}
        validated = None
        try:
            validated = self.rules.model_validate(data)
        except PydanticValidationError as e:
            for err in e.errors():
                field = str(err["loc"][0]) if err["loc"] else "body"
                rule = RULE_FOR_ERROR.get(err["type"], err["type"])
                errors.setdefault(field, []).append(
                    self._message(field, rule, err.get("ctx"), err["msg"])
                )

        values = validated.model_dump(exclude_unset=True) if validated is not None else data
        for field, repository_class in self.unique.items():
            value = values.get(field)
            if field in errors or value is None:
                continue
            if repository_class(db).exists_where(field, value, exclude_id=ignore_id):
                errors.setdefault(field, []).append(self._message(field, "unique"))

        if errors:
            log.info("%s rejected fields: %s", type(self).__name__, ", ".join(sorted(errors)))
            raise ValidationError(errors)
        return values
