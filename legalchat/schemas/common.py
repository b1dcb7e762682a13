from pydantic import BaseModel


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class DeleteAllResponse(BaseModel):
    deleted_count: int


class HealthCheck(BaseModel):
    status: str = "healthy"
    timestamp: float
    version: str
