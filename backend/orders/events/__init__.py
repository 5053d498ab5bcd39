"""
Real-time order events.

Services publish through OrderEventPublisher, which defers delivery until the
surrounding transaction commits and hands events to the configured sink.
"""

from .sinks import EventSink, ChannelLayerEventSink, InMemoryEventSink, get_event_sink
from .publishers import OrderEventPublisher, order_group_name, kitchen_group_name

__all__ = [
    'EventSink',
    'ChannelLayerEventSink',
    'InMemoryEventSink',
    'get_event_sink',
    'OrderEventPublisher',
    'order_group_name',
    'kitchen_group_name',
]
