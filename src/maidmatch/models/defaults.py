"""
Defaults para columnas NULL.

Supabase devuelve None para cada columna NULL; los modelos lo tratan
igual que una clave ausente y usan el default del campo.
"""

from pydantic import ValidationInfo


def none_to_default(model, value, info: ValidationInfo):
    if value is None:
        return model.model_fields[info.field_name].get_default(call_default_factory=True)
    return value
