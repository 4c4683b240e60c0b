from typing import Optional


class BudgetMillError(Exception):
    """Base class for every error raised by the model."""


class ValidationError(BudgetMillError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(BudgetMillError):
    def __init__(self, kind: str, id: str):
        super().__init__(f"{kind} with ID {id} does not exist")
        self.kind = kind
        self.id = id

    def to_dict(self) -> dict:
        return {"error": f"{self.kind}_not_found", "message": str(self), f"{self.kind}_id": self.id}
