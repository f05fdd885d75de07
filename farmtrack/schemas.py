# farmtrack/schemas.py
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from farmtrack.utils import quantize_cents, to_aware_utc, to_date


class AreaUnit(str, Enum):
    acres = "acres"
    hectares = "hectares"
    sq_feet = "sq_feet"
    sq_meters = "sq_meters"


class CropStatus(str, Enum):
    planted = "planted"
    growing = "growing"
    ready = "ready"
    harvested = "harvested"


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ExpenseCategory(str, Enum):
    seeds = "seeds"
    fertilizer = "fertilizer"
    equipment = "equipment"
    fuel = "fuel"
    labor = "labor"
    other = "other"


class WeatherCondition(str, Enum):
    sunny = "sunny"
    cloudy = "cloudy"
    rainy = "rainy"
    stormy = "stormy"
    snowy = "snowy"
    partly_cloudy = "partly_cloudy"


class CamelModel(BaseModel):
    """Python names on the attributes, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _lenient_date(v):
    # stored dates may be full ISO timestamps ("2024-03-15T00:00:00.000Z")
    if isinstance(v, (str, dt.datetime)):
        return to_date(v)
    return v


LenientDate = Annotated[dt.date, BeforeValidator(_lenient_date)]


class Record(CamelModel):
    """Fields every stored record carries; both are owned by the store."""

    id: int = Field(alias="Id", gt=0)
    created_at: dt.datetime

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, v: dt.datetime) -> dt.datetime:
        return to_aware_utc(v)


# ---------- farms ----------

class FarmBase(CamelModel):
    name: str
    location: str
    size: float
    unit: AreaUnit = AreaUnit.acres


class Farm(Record, FarmBase):
    pass


class FarmCreate(FarmBase):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    size: float = Field(gt=0)


class FarmUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    size: Optional[float] = Field(None, gt=0)
    unit: Optional[AreaUnit] = None


# ---------- crops ----------

class CropBase(CamelModel):
    farm_id: int
    crop_type: str
    planting_date: LenientDate
    field_location: str
    status: CropStatus = CropStatus.planted
    expected_harvest: LenientDate
    notes: Optional[str] = None


class Crop(Record, CropBase):
    pass


class CropCreate(CropBase):
    farm_id: int = Field(gt=0)
    crop_type: str = Field(min_length=1)
    field_location: str = Field(min_length=1)

    @model_validator(mode="after")
    def _harvest_after_planting(self):
        if self.expected_harvest <= self.planting_date:
            raise ValueError("expectedHarvest must be after plantingDate")
        return self


class CropUpdate(CamelModel):
    farm_id: Optional[int] = Field(None, gt=0)
    crop_type: Optional[str] = Field(None, min_length=1)
    planting_date: Optional[LenientDate] = None
    field_location: Optional[str] = Field(None, min_length=1)
    status: Optional[CropStatus] = None
    expected_harvest: Optional[LenientDate] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _harvest_after_planting(self):
        # only checkable when both ends arrive in the same update
        if self.planting_date and self.expected_harvest and self.expected_harvest <= self.planting_date:
            raise ValueError("expectedHarvest must be after plantingDate")
        return self


# ---------- tasks ----------

class TaskBase(CamelModel):
    farm_id: int
    title: str
    description: Optional[str] = None
    due_date: LenientDate
    priority: Priority = Priority.medium
    completed: bool = False
    completed_at: Optional[dt.datetime] = None


class Task(Record, TaskBase):
    pass


class TaskCreate(CamelModel):
    farm_id: int = Field(gt=0)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: LenientDate
    priority: Priority = Priority.medium


class TaskUpdate(CamelModel):
    farm_id: Optional[int] = Field(None, gt=0)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[LenientDate] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None
    completed_at: Optional[dt.datetime] = None


# ---------- expenses ----------

class ExpenseBase(CamelModel):
    farm_id: int
    amount: Decimal
    category: ExpenseCategory = ExpenseCategory.other
    date: LenientDate
    description: str

    @field_validator("amount")
    @classmethod
    def _cents(cls, v: Decimal) -> Decimal:
        return quantize_cents(v)


class Expense(Record, ExpenseBase):
    pass


class ExpenseCreate(ExpenseBase):
    farm_id: int = Field(gt=0)
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)


class ExpenseUpdate(CamelModel):
    farm_id: Optional[int] = Field(None, gt=0)
    amount: Optional[Decimal] = Field(None, gt=0)
    category: Optional[ExpenseCategory] = None
    date: Optional[LenientDate] = None
    description: Optional[str] = Field(None, min_length=1)


# ---------- forecast ----------

class Temperature(BaseModel):
    high: float
    low: float


class DayForecast(CamelModel):
    date: LenientDate
    condition: WeatherCondition
    temperature: Temperature
    precipitation: int = Field(ge=0, le=100)
    humidity: int = Field(ge=0, le=100)


class WeatherInsight(CamelModel):
    icon: str
    type: str
    title: str
    description: str


# ---------- derived summaries ----------

class TaskCounts(CamelModel):
    pending: int
    completed: int
    overdue: int


class ExpenseSummary(CamelModel):
    total: Decimal
    count: int
    average: Decimal
    category_totals: dict[str, Decimal]
    top_category: Optional[str] = None


class CropTimeline(CamelModel):
    crop_id: int
    days_since_planting: int
    days_until_harvest: Optional[int] = None
    harvest_overdue: bool = False


class FarmOverview(CamelModel):
    farm_id: int
    name: str
    location: str
    crop_count: int
    pending_tasks: int


class DashboardStats(CamelModel):
    active_farms: int
    active_crops: int
    pending_tasks: int
    overdue_tasks: int
    monthly_expenses: Decimal


class Dashboard(CamelModel):
    stats: DashboardStats
    upcoming_tasks: list[Task]
    today_weather: Optional[DayForecast] = None
    farms: list[FarmOverview]
