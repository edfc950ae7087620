"""Turning step results into checkpoint JSON and back."""

import importlib
import json
from typing import Any

from pydantic import BaseModel


def serialize(obj: Any) -> Any:
    """JSON-ready form of a step result.

    Raises:
        TypeError: If ``obj`` is neither a pydantic model nor plain JSON
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    try:
        json.dumps(obj)
    except (TypeError, ValueError) as e:
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable") from e
    return obj


def _class_path(model: BaseModel) -> str:
    return f"{type(model).__module__}.{type(model).__name__}"


def schema_name_for(result: Any) -> str | None:
    """Class path stored next to a checkpoint so replay rebuilds the same model.

    ``module.Class`` for a model, ``list[module.Class]`` for a non-empty list
    of models, None for plain JSON.
    """
    if isinstance(result, BaseModel):
        return _class_path(result)
    if isinstance(result, list) and result and isinstance(result[0], BaseModel):
        return f"list[{_class_path(result[0])}]"
    return None


def _import_model(class_path: str) -> type[BaseModel]:
    module_name, _, class_name = class_path.rpartition(".")
    model_class = getattr(importlib.import_module(module_name), class_name)
    if not (isinstance(model_class, type) and issubclass(model_class, BaseModel)):
        raise TypeError(f"{class_path} is not a Pydantic model")
    return model_class


def deserialize(obj: Any, output_schema_name: str | None = None) -> Any:
    """Inverse of ``serialize`` given the name from ``schema_name_for``.

    Raises:
        ValueError: If the recorded model class cannot be imported or validated
    """
    if not output_schema_name:
        return obj

    is_list = output_schema_name.startswith("list[")
    class_path = output_schema_name[5:-1] if is_list else output_schema_name
    try:
        if is_list and isinstance(obj, list):
            model_class = _import_model(class_path)
            return [model_class.model_validate(item) for item in obj]
        if not is_list and isinstance(obj, dict):
            return _import_model(class_path).model_validate(obj)
    except (ImportError, AttributeError, ValueError, TypeError) as e:
        raise ValueError(f"Failed to rebuild {output_schema_name} from checkpoint: {e}") from e
    return obj


def safe_serialize(value: Any) -> Any:
    """Like ``serialize`` but never fails; used for hashing inputs and span attributes."""
    if isinstance(value, dict):
        return {str(k): safe_serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [safe_serialize(v) for v in value]
    try:
        return serialize(value)
    except TypeError:
        return f"<{getattr(value, '__name__', type(value).__name__)}>"
