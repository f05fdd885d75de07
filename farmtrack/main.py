import logging
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from farmtrack import schemas, summary, views
from farmtrack.db import init_db
from farmtrack.deps import (
    get_clock,
    get_crop_store,
    get_dashboard_service,
    get_expense_store,
    get_farm_store,
    get_forecast_cache,
    get_task_store,
)
from farmtrack.errors import NotFoundError, ProviderError, StorageIOError, ValidationError
from farmtrack.forecast import ForecastCache, weather_insights
from farmtrack.store import EntityStore, TaskStore
from farmtrack.summary import Clock, DashboardService

logger = logging.getLogger(__name__)

app = FastAPI(title="FarmTrack API")


# Create tables at startup
@app.on_event("startup")
def _init_db():
    init_db()


# ---------- error mapping ----------

@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def _invalid(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(StorageIOError)
async def _storage_failed(request: Request, exc: StorageIOError):
    logger.error(f"{request.method} {request.url.path} - storage failure: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.exception_handler(ProviderError)
async def _provider_failed(request: Request, exc: ProviderError):
    logger.error(f"{request.method} {request.url.path} - forecast provider failure: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Forecast unavailable"})


def _month_range(month: Optional[str]):
    """'YYYY-MM' -> (first day, last day); None -> (None, None)."""
    if not month:
        return None, None
    try:
        first = datetime.strptime(month, "%Y-%m").date()
    except ValueError:
        raise HTTPException(status_code=422, detail="month must look like YYYY-MM")
    return views.month_bounds(first)


# ---------- farms ----------

@app.get("/farms", response_model=List[schemas.Farm])
def list_farms(store: EntityStore = Depends(get_farm_store)):
    return store.get_all()


@app.get("/farms/{farm_id}", response_model=schemas.Farm)
def get_farm(farm_id: int, store: EntityStore = Depends(get_farm_store)):
    obj = store.get_by_id(farm_id)
    if not obj:
        raise HTTPException(404, "Farm not found")
    return obj


@app.post("/farms", response_model=schemas.Farm, status_code=201)
def create_farm(payload: schemas.FarmCreate, store: EntityStore = Depends(get_farm_store)):
    return store.create(payload)


@app.patch("/farms/{farm_id}", response_model=schemas.Farm)
def update_farm(farm_id: int, payload: schemas.FarmUpdate, store: EntityStore = Depends(get_farm_store)):
    return store.update(farm_id, payload)


@app.delete("/farms/{farm_id}")
def delete_farm(farm_id: int, store: EntityStore = Depends(get_farm_store)):
    return {"deleted": store.delete(farm_id)}


# ---------- crops ----------

@app.get("/crops", response_model=List[schemas.Crop])
def list_crops(
    farm_id: Optional[int] = None,
    status: Optional[schemas.CropStatus] = None,
    store: EntityStore = Depends(get_crop_store),
):
    return views.filter_by_equality(store.get_all(), {"farm_id": farm_id, "status": status})


@app.get("/crops/{crop_id}", response_model=schemas.Crop)
def get_crop(crop_id: int, store: EntityStore = Depends(get_crop_store)):
    obj = store.get_by_id(crop_id)
    if not obj:
        raise HTTPException(404, "Crop not found")
    return obj


@app.get("/crops/{crop_id}/timeline", response_model=schemas.CropTimeline)
def get_crop_timeline(
    crop_id: int,
    store: EntityStore = Depends(get_crop_store),
    clock: Clock = Depends(get_clock),
):
    obj = store.get_by_id(crop_id)
    if not obj:
        raise HTTPException(404, "Crop not found")
    return summary.crop_timeline(obj, clock())


@app.post("/crops", response_model=schemas.Crop, status_code=201)
def create_crop(payload: schemas.CropCreate, store: EntityStore = Depends(get_crop_store)):
    return store.create(payload)


@app.patch("/crops/{crop_id}", response_model=schemas.Crop)
def update_crop(crop_id: int, payload: schemas.CropUpdate, store: EntityStore = Depends(get_crop_store)):
    return store.update(crop_id, payload)


@app.delete("/crops/{crop_id}")
def delete_crop(crop_id: int, store: EntityStore = Depends(get_crop_store)):
    return {"deleted": store.delete(crop_id)}


# ---------- tasks ----------

@app.get("/tasks", response_model=List[schemas.Task])
def list_tasks(
    farm_id: Optional[int] = None,
    status: Optional[str] = None,
    priority: Optional[schemas.Priority] = None,
    store: TaskStore = Depends(get_task_store),
    clock: Clock = Depends(get_clock),
):
    now = clock()
    tasks = views.filter_by_equality(store.get_all(), {"farm_id": farm_id, "priority": priority})
    try:
        tasks = views.filter_tasks_by_status(tasks, status, now)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return views.sort_tasks(tasks, now)


@app.get("/tasks/counts", response_model=schemas.TaskCounts)
def get_task_counts(store: TaskStore = Depends(get_task_store), clock: Clock = Depends(get_clock)):
    return summary.task_counts(store.get_all(), clock())


@app.get("/tasks/{task_id}", response_model=schemas.Task)
def get_task(task_id: int, store: TaskStore = Depends(get_task_store)):
    obj = store.get_by_id(task_id)
    if not obj:
        raise HTTPException(404, "Task not found")
    return obj


@app.post("/tasks", response_model=schemas.Task, status_code=201)
def create_task(payload: schemas.TaskCreate, store: TaskStore = Depends(get_task_store)):
    return store.create(payload)


@app.patch("/tasks/{task_id}", response_model=schemas.Task)
def update_task(task_id: int, payload: schemas.TaskUpdate, store: TaskStore = Depends(get_task_store)):
    return store.update(task_id, payload)


@app.post("/tasks/{task_id}/complete", response_model=schemas.Task)
def complete_task(task_id: int, store: TaskStore = Depends(get_task_store)):
    return store.complete(task_id)


@app.delete("/tasks/{task_id}")
def delete_task(task_id: int, store: TaskStore = Depends(get_task_store)):
    return {"deleted": store.delete(task_id)}


# ---------- expenses ----------

def _filtered_expenses(store: EntityStore, farm_id, category, month) -> list:
    start, end = _month_range(month)
    expenses = views.filter_by_equality(store.get_all(), {"farm_id": farm_id, "category": category})
    if start is not None:
        expenses = views.filter_by_date_range(expenses, "date", start, end)
    return expenses


@app.get("/expenses", response_model=List[schemas.Expense])
def list_expenses(
    farm_id: Optional[int] = None,
    category: Optional[schemas.ExpenseCategory] = None,
    month: Optional[str] = None,
    store: EntityStore = Depends(get_expense_store),
):
    return views.sort_expenses_by_date_descending(_filtered_expenses(store, farm_id, category, month))


@app.get("/expenses/summary", response_model=schemas.ExpenseSummary)
def get_expense_summary(
    farm_id: Optional[int] = None,
    category: Optional[schemas.ExpenseCategory] = None,
    month: Optional[str] = None,
    store: EntityStore = Depends(get_expense_store),
):
    return summary.expense_summary(_filtered_expenses(store, farm_id, category, month))


@app.get("/expenses/{expense_id}", response_model=schemas.Expense)
def get_expense(expense_id: int, store: EntityStore = Depends(get_expense_store)):
    obj = store.get_by_id(expense_id)
    if not obj:
        raise HTTPException(404, "Expense not found")
    return obj


@app.post("/expenses", response_model=schemas.Expense, status_code=201)
def create_expense(payload: schemas.ExpenseCreate, store: EntityStore = Depends(get_expense_store)):
    return store.create(payload)


@app.patch("/expenses/{expense_id}", response_model=schemas.Expense)
def update_expense(expense_id: int, payload: schemas.ExpenseUpdate, store: EntityStore = Depends(get_expense_store)):
    return store.update(expense_id, payload)


@app.delete("/expenses/{expense_id}")
def delete_expense(expense_id: int, store: EntityStore = Depends(get_expense_store)):
    return {"deleted": store.delete(expense_id)}


# ---------- forecast & dashboard ----------

@app.get("/forecast", response_model=List[schemas.DayForecast])
def get_forecast(cache: ForecastCache = Depends(get_forecast_cache)):
    return cache.get_forecast()


@app.get("/forecast/insights", response_model=List[schemas.WeatherInsight])
def get_forecast_insights(cache: ForecastCache = Depends(get_forecast_cache)):
    return weather_insights(cache.get_forecast())


@app.get("/dashboard", response_model=schemas.Dashboard)
def get_dashboard(svc: DashboardService = Depends(get_dashboard_service)):
    return svc.build()
