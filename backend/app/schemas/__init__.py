from pydantic import BaseModel


def reject_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Partial updates may omit a required column but never send it as null."""
    nulled = [f for f in fields if f in model.model_fields_set and getattr(model, f) is None]
    if nulled:
        raise ValueError(f"{', '.join(nulled)} may not be null")
