from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union
from .storage.schema import TaskRecord

class NewTaskRequest(BaseModel):
    # Loosely typed on purpose: presence and number format are checked by the
    # coordinator so that bad input is reported as a 400 with a message.
    keyword: Optional[str] = None
    language_name: Optional[str] = None
    language_code: Optional[str] = None
    location_name: Optional[str] = None
    location_code: Optional[Union[int, float, str]] = None
    priority: Optional[Union[int, float, str]] = 1

class TaskPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    total_pages: int = Field(alias="totalPages")
    results: List[TaskRecord]

class DbStatusResponse(BaseModel):
    status: str  # connected | disconnected
    message: str

class MessageResponse(BaseModel):
    message: str
