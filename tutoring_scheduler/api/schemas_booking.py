import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from tutoring_scheduler.models import AttendanceStatus, BookingStatus
from tutoring_scheduler.services.time_utils import TIME_PATTERN

HHMM = TIME_PATTERN.pattern


class BookingCreate(BaseModel):
    teacher_id: int
    student_id: int
    subject_id: int | None = None
    date: dt.date
    start_time: str = Field(..., pattern=HHMM, examples=["14:00"])
    end_time: str = Field(..., pattern=HHMM, examples=["15:00"])


class AdminAssignCreate(BookingCreate):
    pass


class BookingUpdate(BaseModel):
    teacher_id: int | None = None
    date: dt.date | None = None
    start_time: str | None = Field(None, pattern=HHMM)
    end_time: str | None = Field(None, pattern=HHMM)


class AttendanceMark(BaseModel):
    attendance: AttendanceStatus
    notes: str | None = Field(None, max_length=1000)


class BookingRead(BaseModel):
    id: int
    teacher_id: int
    student_id: int
    subject_id: int | None = None
    date: dt.date
    start_time: str
    end_time: str
    status: BookingStatus
    confirmed: bool
    attendance: AttendanceStatus | None = None
    attendance_at: dt.datetime | None = None
    attendance_by: str | None = None
    notes: str | None = None
    recurring_group_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingPageRead(BaseModel):
    items: list[BookingRead]
    total: int
    page: int
    page_size: int


class MonthlyBookingCreate(BaseModel):
    teacher_id: int
    student_id: int
    subject_id: int | None = None
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    start_time: str = Field(..., pattern=HHMM)
    end_time: str = Field(..., pattern=HHMM)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class BatchSuccess(BaseModel):
    booking_id: int
    date: dt.date
    start_time: str
    end_time: str


class BatchFailure(BaseModel):
    date: dt.date
    reason: str
    code: str


class BatchResultRead(BaseModel):
    recurring_group_id: int
    total_dates: int
    successful: list[BatchSuccess]
    failed: list[BatchFailure]

    model_config = ConfigDict(from_attributes=True)


class RecurringGroupRead(BaseModel):
    id: int
    teacher_id: int
    student_id: int
    subject_id: int | None = None
    day_of_week: int
    start_time: str
    end_time: str
    month: int
    year: int
    booking_count: int = 0

    model_config = ConfigDict(from_attributes=True)
