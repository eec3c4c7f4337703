"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from zoneinfo import ZoneInfo

from dependency_injector import containers, providers

from src.platform.cache.ttl_cache import TTLCache
from src.platform.config.core_setting import Settings
from src.platform.scheduler.cache_sweeper import CacheSweeper
from src.service.table_booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.table_booking.app.command.create_table_hold_use_case import (
    CreateTableHoldUseCase,
)
from src.service.table_booking.app.command.update_booking_status_use_case import (
    UpdateBookingStatusUseCase,
)
from src.service.table_booking.app.command.update_table_hold_use_case import (
    UpdateTableHoldUseCase,
)
from src.service.table_booking.app.service.booking_conversation_service import (
    BookingConversationService,
)
from src.service.table_booking.app.service.chat_message_builder import ChatMessageBuilder
from src.service.table_booking.app.service.dynamic_pricing_engine import DynamicPricingEngine
from src.service.table_booking.app.service.historical_data_analyzer import HistoricalDataAnalyzer
from src.service.table_booking.app.service.holiday_pricing_service import HolidayPricingService
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.domain.entity.restaurant_entity import OpeningHours
from src.service.table_booking.driven_adapter.messaging.line_booking_notifier import (
    LineBookingNotifier,
)
from src.service.table_booking.driven_adapter.messaging.line_messenger import LineMessenger
from src.service.table_booking.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.booking_query_repo_impl import (
    BookingQueryRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.customer_repo_impl import CustomerRepoImpl
from src.service.table_booking.driven_adapter.repo.dining_table_repo_impl import (
    DiningTableRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.holiday_query_repo_impl import (
    HolidayQueryRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.restaurant_query_repo_impl import (
    RestaurantQueryRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.staff_query_repo_impl import (
    StaffQueryRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.table_hold_repo_impl import (
    TableHoldRepoImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)
    tz = providers.Singleton(ZoneInfo, config_service.provided.TIMEZONE)

    # In-process caches (one instance each per process, swept by cache_sweeper below)
    pricing_cache = providers.Singleton(
        TTLCache, name='pricing', ttl_seconds=config_service.provided.PRICING_CACHE_TTL_SECONDS
    )
    holiday_cache = providers.Singleton(
        TTLCache, name='holiday', ttl_seconds=config_service.provided.HOLIDAY_CACHE_TTL_SECONDS
    )
    event_dedup_cache = providers.Singleton(
        TTLCache, name='event_dedup', ttl_seconds=config_service.provided.EVENT_DEDUP_TTL_SECONDS
    )

    # Repositories (stateless - acquire asyncpg connections per call)
    booking_command_repo = providers.Singleton(
        BookingCommandRepoImpl,
        tz=tz,
        max_ref_attempts=config_service.provided.BOOKING_REF_MAX_ATTEMPTS,
    )
    booking_query_repo = providers.Singleton(BookingQueryRepoImpl)
    holiday_query_repo = providers.Singleton(HolidayQueryRepoImpl)
    dining_table_repo = providers.Singleton(DiningTableRepoImpl)
    restaurant_query_repo = providers.Singleton(RestaurantQueryRepoImpl)
    staff_query_repo = providers.Singleton(StaffQueryRepoImpl)
    customer_repo = providers.Singleton(CustomerRepoImpl)
    table_hold_repo = providers.Singleton(TableHoldRepoImpl)

    # LINE channel
    messenger = providers.Singleton(
        LineMessenger,
        channel_access_token=config_service.provided.LINE_CHANNEL_ACCESS_TOKEN.get_secret_value.call(),
        base_url=config_service.provided.LINE_API_BASE_URL,
        timeout=config_service.provided.LINE_HTTP_TIMEOUT,
    )
    chat_message_builder = providers.Singleton(
        ChatMessageBuilder,
        currency=config_service.provided.CURRENCY,
        quick_reply_limit=config_service.provided.LINE_QUICK_REPLY_LIMIT,
        buttons_limit=config_service.provided.LINE_BUTTONS_LIMIT,
        carousel_limit=config_service.provided.LINE_CAROUSEL_LIMIT,
    )
    booking_notifier = providers.Singleton(
        LineBookingNotifier,
        messenger=messenger,
        staff_query_repo=staff_query_repo,
        customer_repo=customer_repo,
        message_builder=chat_message_builder,
    )

    # Pricing
    data_analyzer = providers.Singleton(
        HistoricalDataAnalyzer,
        booking_query_repo=booking_query_repo,
        time_slot_high_threshold=config_service.provided.TIME_SLOT_HIGH_THRESHOLD,
        time_slot_medium_threshold=config_service.provided.TIME_SLOT_MEDIUM_THRESHOLD,
        day_high_threshold=config_service.provided.DAY_HIGH_THRESHOLD,
        day_medium_threshold=config_service.provided.DAY_MEDIUM_THRESHOLD,
        capacity_window_days=config_service.provided.CAPACITY_WINDOW_DAYS,
        capacity_peak_utilization=config_service.provided.CAPACITY_PEAK_UTILIZATION,
        capacity_floor=config_service.provided.CAPACITY_FLOOR,
        capacity_default=config_service.provided.CAPACITY_DEFAULT,
    )
    holiday_pricing_service = providers.Singleton(
        HolidayPricingService, holiday_query_repo=holiday_query_repo, cache=holiday_cache
    )
    dynamic_pricing_engine = providers.Singleton(
        DynamicPricingEngine,
        booking_query_repo=booking_query_repo,
        data_analyzer=data_analyzer,
        holiday_pricing=holiday_pricing_service,
        cache=pricing_cache,
        tz=tz,
        base_price=config_service.provided.PRICING_BASE_PRICE,
        min_price=config_service.provided.PRICING_MIN_PRICE,
        max_price=config_service.provided.PRICING_MAX_PRICE,
        currency=config_service.provided.CURRENCY,
        fallback_confidence=config_service.provided.PRICING_FALLBACK_CONFIDENCE,
    )

    # Availability + booking commands (shared by HTTP and chat)
    table_availability_service = providers.Singleton(
        TableAvailabilityService,
        booking_query_repo=booking_query_repo,
        dining_table_repo=dining_table_repo,
        table_hold_repo=table_hold_repo,
        tz=tz,
    )
    create_booking_use_case = providers.Singleton(
        CreateBookingUseCase,
        booking_command_repo=booking_command_repo,
        dining_table_repo=dining_table_repo,
        table_hold_repo=table_hold_repo,
        availability_service=table_availability_service,
        pricing_engine=dynamic_pricing_engine,
        notifier=booking_notifier,
        default_duration_minutes=config_service.provided.DEFAULT_BOOKING_DURATION_MINUTES,
        default_price=config_service.provided.PRICING_BASE_PRICE,
        currency=config_service.provided.CURRENCY,
    )
    update_booking_status_use_case = providers.Singleton(
        UpdateBookingStatusUseCase,
        booking_command_repo=booking_command_repo,
        booking_query_repo=booking_query_repo,
        staff_query_repo=staff_query_repo,
        dining_table_repo=dining_table_repo,
        notifier=booking_notifier,
        tz=tz,
        cancellation_cutoff_hours=config_service.provided.CANCELLATION_CUTOFF_HOURS,
        history_dedup_seconds=config_service.provided.HISTORY_DEDUP_WINDOW_SECONDS,
    )

    # Table holds
    create_table_hold_use_case = providers.Singleton(
        CreateTableHoldUseCase,
        table_hold_repo=table_hold_repo,
        dining_table_repo=dining_table_repo,
        availability_service=table_availability_service,
        default_hold_minutes=config_service.provided.HOLD_DURATION_MINUTES,
        max_hold_minutes=config_service.provided.HOLD_MAX_MINUTES,
        default_duration_minutes=config_service.provided.DEFAULT_BOOKING_DURATION_MINUTES,
    )
    update_table_hold_use_case = providers.Singleton(
        UpdateTableHoldUseCase,
        table_hold_repo=table_hold_repo,
        create_booking_use_case=create_booking_use_case,
        default_extend_minutes=config_service.provided.HOLD_DURATION_MINUTES,
        max_hold_minutes=config_service.provided.HOLD_MAX_MINUTES,
    )

    # Background sweep: TTL caches and lapsed holds
    cache_sweeper = providers.Singleton(
        CacheSweeper,
        caches=providers.List(event_dedup_cache, holiday_cache, pricing_cache),
        interval_seconds=config_service.provided.CACHE_SWEEP_INTERVAL_SECONDS,
        hold_expirer=update_table_hold_use_case.provided.expire_lapsed,
    )

    # Chat booking flow
    default_opening_hours = providers.Singleton(
        OpeningHours,
        open=config_service.provided.DEFAULT_OPENING_TIME,
        close=config_service.provided.DEFAULT_CLOSING_TIME,
    )
    booking_conversation_service = providers.Singleton(
        BookingConversationService,
        restaurant_query_repo=restaurant_query_repo,
        dining_table_repo=dining_table_repo,
        customer_repo=customer_repo,
        staff_query_repo=staff_query_repo,
        booking_query_repo=booking_query_repo,
        availability_service=table_availability_service,
        pricing_engine=dynamic_pricing_engine,
        create_booking_use_case=create_booking_use_case,
        update_booking_status_use_case=update_booking_status_use_case,
        messenger=messenger,
        message_builder=chat_message_builder,
        tz=tz,
        default_restaurant_id=config_service.provided.LINE_DEFAULT_RESTAURANT_ID,
        default_duration_minutes=config_service.provided.DEFAULT_BOOKING_DURATION_MINUTES,
        date_choices=config_service.provided.CHAT_DATE_CHOICES,
        slot_interval_minutes=config_service.provided.SLOT_INTERVAL_MINUTES,
        slot_closing_buffer_minutes=config_service.provided.SLOT_CLOSING_BUFFER_MINUTES,
        slot_min_lead_minutes=config_service.provided.SLOT_MIN_LEAD_MINUTES,
        default_opening_hours=default_opening_hours,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
