"""Slot generation and regeneration planning.

Slots are a materialized view of an event's time ranges: for every
participating company, one slot every ``interview_duration + buffer`` minutes
inside each range. Regeneration compares that desired set against what is
stored and never touches a slot that holds bookings beyond deactivating it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class TimeRange:
    day_date: date
    start_time: time
    end_time: time
    id: int | None = None


@dataclass(frozen=True)
class InterviewParams:
    interview_duration_minutes: int
    buffer_minutes: int
    slots_per_time: int

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.interview_duration_minutes)

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.interview_duration_minutes + self.buffer_minutes)


def validate_params(params: InterviewParams) -> None:
    if params.interview_duration_minutes <= 0:
        raise ValueError("Interview duration must be greater than 0 minutes")
    if params.buffer_minutes < 0:
        raise ValueError("Buffer must not be negative")
    if params.slots_per_time < 1:
        raise ValueError("Slots per time must be at least 1")


def validate_time_range(time_range: TimeRange) -> None:
    if time_range.start_time >= time_range.end_time:
        raise ValueError("End time must be after start time")


def generate_slot_times(
    ranges: list[TimeRange],
    params: InterviewParams,
    tz: str = "UTC",
    require_full_interview: bool = False,
) -> list[datetime]:
    """Return the sorted, de-duplicated slot start times for the given ranges.

    A start is emitted while it lies inside its range. With
    ``require_full_interview`` the interview must also end by the range end.
    Overlapping ranges never produce the same start twice.
    """
    validate_params(params)
    zone = ZoneInfo(tz)
    starts: set[datetime] = set()
    for time_range in ranges:
        validate_time_range(time_range)
        current = datetime.combine(time_range.day_date, time_range.start_time, tzinfo=zone)
        range_end = datetime.combine(time_range.day_date, time_range.end_time, tzinfo=zone)
        while current < range_end:
            if require_full_interview and current + params.duration > range_end:
                break
            starts.add(current)
            current += params.step
    return sorted(starts)


@dataclass(frozen=True)
class StoredSlot:
    """A slot as currently persisted, with its booking counts."""

    id: int
    company_id: int
    start_time: datetime
    end_time: datetime
    capacity: int
    is_active: bool
    confirmed_count: int = 0
    total_bookings: int = 0


@dataclass(frozen=True)
class NewSlot:
    company_id: int
    start_time: datetime
    end_time: datetime
    capacity: int


@dataclass
class RegenerationPlan:
    to_insert: list[NewSlot] = field(default_factory=list)
    # unbooked slots whose end time, capacity or active flag must be refreshed
    to_refresh: list[StoredSlot] = field(default_factory=list)
    # booked slots that are wanted again after an earlier deactivation
    to_reactivate: list[int] = field(default_factory=list)
    to_delete: list[int] = field(default_factory=list)
    to_deactivate: list[int] = field(default_factory=list)
    preserved: list[int] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (
            self.to_insert or self.to_refresh or self.to_reactivate
            or self.to_delete or self.to_deactivate
        )


def plan_regeneration(
    existing: list[StoredSlot],
    company_ids: list[int],
    slot_times: list[datetime],
    params: InterviewParams,
) -> RegenerationPlan:
    """Diff the desired ``company x slot_time`` grid against stored slots."""
    plan = RegenerationPlan()
    desired = {(company_id, start) for company_id in company_ids for start in slot_times}
    by_key = {(slot.company_id, slot.start_time): slot for slot in existing}

    for company_id, start in sorted(desired, key=lambda k: (k[1], k[0])):
        end = start + params.duration
        slot = by_key.get((company_id, start))
        if slot is None:
            plan.to_insert.append(NewSlot(company_id, start, end, params.slots_per_time))
        elif slot.confirmed_count > 0:
            # Booked slots keep their window and capacity.
            plan.preserved.append(slot.id)
            if not slot.is_active:
                plan.to_reactivate.append(slot.id)
        elif (
            slot.end_time != end
            or slot.capacity != params.slots_per_time
            or not slot.is_active
        ):
            plan.to_refresh.append(
                StoredSlot(
                    id=slot.id,
                    company_id=company_id,
                    start_time=start,
                    end_time=end,
                    capacity=params.slots_per_time,
                    is_active=True,
                )
            )

    for key, slot in by_key.items():
        if key in desired:
            continue
        if slot.total_bookings == 0:
            plan.to_delete.append(slot.id)
        else:
            plan.preserved.append(slot.id)
            if slot.is_active:
                plan.to_deactivate.append(slot.id)
    return plan
