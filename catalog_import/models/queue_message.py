"""Pydantic models for queue messages."""
from pydantic import BaseModel, Field, field_validator


class ImportTaskMessage(BaseModel):
    """Message schema for enqueuing CSV import tasks in the Redis queue.

    ``import_mode`` is left as a free string: the task normalizes anything
    other than "overwrite" to "skip".
    """

    task_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Unique identifier for this import task"
    )
    file_path: str = Field(
        ...,
        min_length=1,
        description="Path to the uploaded CSV file"
    )
    import_mode: str = Field(
        default="skip",
        description="'overwrite' to update structural duplicates, otherwise skip"
    )
    delete_after: bool = Field(
        default=True,
        description="Delete the uploaded file after a successful import"
    )

    @field_validator('task_id', 'file_path')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only identifiers and paths."""
        if not v.strip():
            raise ValueError('value cannot be empty or whitespace')
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "example": {
                "task_id": "import-001",
                "file_path": "/shared/uploads/products.csv",
                "import_mode": "overwrite",
                "delete_after": True
            }
        }
    }
