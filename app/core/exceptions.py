from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class InvalidQuantityError(ValidationError):
    def __init__(self, detail: str = "Quantity must be a non-zero integer"):
        super().__init__(detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class InsufficientStockError(BaseAppException):
    def __init__(self, detail: str = "Insufficient stock available", available_stock: int = 0):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
        self.available_stock = available_stock

class PersistenceError(BaseAppException):
    """Database failure; the transaction has been rolled back."""
    def __init__(self, detail: str = "An internal error occurred. Please try again later."):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
