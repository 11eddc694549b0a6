from typing import Optional
from fastapi import APIRouter, Depends, Query
from ..deps import Services, body_limit, get_services, rate_limit
from ..models import NewTaskRequest, TaskPage
from ..services.query import parse_page
from ..storage.schema import TaskRecord

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

@router.post("", response_model=TaskRecord, status_code=201, dependencies=[Depends(body_limit)])
async def create_task(payload: NewTaskRequest, services: Services = Depends(get_services)):
    return await services.coordinator.create(payload)

@router.get("", response_model=TaskPage, dependencies=[Depends(rate_limit("tasks"))])
async def list_tasks(page: Optional[str] = Query(default=None), services: Services = Depends(get_services)):
    return await services.queries.list(parse_page(page))

@router.get("/search/{key}", response_model=TaskPage, dependencies=[Depends(rate_limit("search"))])
async def search_tasks(key: str, page: Optional[str] = Query(default=None), services: Services = Depends(get_services)):
    return await services.queries.search(key, parse_page(page))

@router.get("/{task_id}", response_model=TaskRecord)
async def get_task(task_id: str, services: Services = Depends(get_services)):
    return await services.coordinator.refresh(task_id)
