from prometheus_client import Counter, Histogram


class BookingMetrics:
    """
    Table booking core metrics collector

    Tracks booking outcomes, pricing quality and chat webhook processing.
    """

    def __init__(self) -> None:
        # ========== Booking Metrics ==========
        self.bookings_created = Counter(
            'table_bookings_created_total',
            'Bookings persisted with status pending',
            ['channel'],  # channel: chat/direct
        )

        self.booking_conflicts = Counter(
            'table_booking_conflicts_total',
            'Booking attempts rejected by the availability guard',
            ['reason'],  # reason: precheck/constraint/version
        )

        self.booking_status_transitions = Counter(
            'table_booking_status_transitions_total',
            'Booking status changes',
            ['from_status', 'to_status'],
        )

        self.table_holds = Counter(
            'table_holds_total',
            'Table hold lifecycle events',
            ['action', 'result'],  # action: create/confirm/release/extend/expire
        )

        # ========== Pricing Metrics ==========
        self.pricing_calculations = Counter(
            'pricing_calculations_total',
            'Dynamic price calculations',
            ['result'],  # result: success/fallback/cached
        )

        self.pricing_duration = Histogram(
            'pricing_calculation_duration_seconds',
            'Dynamic price calculation time',
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        )

        # ========== Chat Metrics ==========
        self.chat_events = Counter(
            'chat_events_total',
            'Inbound chat webhook events',
            ['event_type', 'result'],  # result: processed/duplicate/error
        )

        self.chat_messages_sent = Counter(
            'chat_messages_sent_total',
            'Outbound chat messages',
            ['kind', 'result'],  # kind: reply/push
        )

        # ========== Cache Metrics ==========
        self.cache_evictions = Counter(
            'ttl_cache_evictions_total',
            'Entries evicted by the periodic sweep',
            ['cache'],
        )

    # ========== Helper Methods ==========

    def record_booking_created(self, *, channel: str) -> None:
        self.bookings_created.labels(channel=channel).inc()

    def record_booking_conflict(self, *, reason: str) -> None:
        self.booking_conflicts.labels(reason=reason).inc()

    def record_status_transition(self, *, from_status: str, to_status: str) -> None:
        self.booking_status_transitions.labels(from_status=from_status, to_status=to_status).inc()

    def record_hold(self, *, action: str, result: str, count: int = 1) -> None:
        if count:
            self.table_holds.labels(action=action, result=result).inc(count)

    def record_pricing(self, *, result: str, duration: float | None = None) -> None:
        self.pricing_calculations.labels(result=result).inc()
        if duration is not None:
            self.pricing_duration.observe(duration)

    def record_chat_event(self, *, event_type: str, result: str) -> None:
        self.chat_events.labels(event_type=event_type, result=result).inc()

    def record_message_sent(self, *, kind: str, result: str) -> None:
        self.chat_messages_sent.labels(kind=kind, result=result).inc()

    def record_cache_eviction(self, *, cache: str, count: int) -> None:
        if count:
            self.cache_evictions.labels(cache=cache).inc(count)


# Global metrics instance
metrics = BookingMetrics()
