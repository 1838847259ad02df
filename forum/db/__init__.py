"""Database access layer.

Controllers use this package as a facade (``from forum import db``); the
implementation lives in one module per table group.
"""

from forum.db.analytics import get_event_analytics, get_student_booking_stats
from forum.db.bookings import (
    book_interview,
    cancel_booking,
    check_booking_limit,
    list_student_bookings,
)
from forum.db.companies import (
    create_company,
    get_company,
    list_companies,
    list_company_event_ids,
    set_company_verification,
)
from forum.db.core import close_pool, get_pool, get_pool_stats, init_pool
from forum.db.events import (
    add_time_range,
    create_event,
    delete_event,
    delete_time_range,
    get_event,
    get_phase_status,
    list_events,
    list_time_ranges,
    set_event_active,
    update_event,
    update_phase_config,
)
from forum.db.offers import create_offer, get_offer, list_offers, set_offer_active, update_offer
from forum.db.registrations import decide_registration, list_registrations, register_company
from forum.db.schema import get_schema_info
from forum.db.slots import (
    list_available_slots,
    list_event_slots,
    regenerate_company_events,
    regenerate_event_slots,
)
from forum.db.students import create_student, get_student, set_student_deprioritized

__all__ = [
    "add_time_range",
    "book_interview",
    "cancel_booking",
    "check_booking_limit",
    "close_pool",
    "create_company",
    "create_event",
    "create_offer",
    "create_student",
    "decide_registration",
    "delete_event",
    "delete_time_range",
    "get_company",
    "get_event",
    "get_event_analytics",
    "get_offer",
    "get_phase_status",
    "get_pool",
    "get_pool_stats",
    "get_schema_info",
    "get_student",
    "get_student_booking_stats",
    "init_pool",
    "list_available_slots",
    "list_companies",
    "list_company_event_ids",
    "list_event_slots",
    "list_events",
    "list_offers",
    "list_registrations",
    "list_student_bookings",
    "list_time_ranges",
    "regenerate_company_events",
    "regenerate_event_slots",
    "register_company",
    "set_company_verification",
    "set_event_active",
    "set_offer_active",
    "set_student_deprioritized",
    "update_event",
    "update_offer",
    "update_phase_config",
]
