from typing import Any, Dict, List
import logging
import threading

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils.module_loading import import_string

from core_backend.config import marketplace_settings
from core_backend.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class EventSink:
    """Destination for real-time events addressed to a group."""

    def publish(self, group: str, event_type: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class ChannelLayerEventSink(EventSink):
    """Broadcasts events to Channels groups; consumers handle `order.event`."""

    def __init__(self):
        self.channel_layer = get_channel_layer()

    def publish(self, group, event_type, payload):
        if not self.channel_layer:
            raise UpstreamUnavailable("No channel layer configured for real-time events.")

        logger.debug(f"Sending {event_type} to group {group}")
        async_to_sync(self.channel_layer.group_send)(
            group,
            {
                'type': 'order.event',
                'event': event_type,
                'data': payload,
            },
        )


class InMemoryEventSink(EventSink):
    """Collects published events in memory. Used by tests and local tooling."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[Dict[str, Any]] = []

    def publish(self, group, event_type, payload):
        with self._lock:
            self.events.append({'group': group, 'event': event_type, 'data': payload})

    def events_for(self, group=None, event_type=None):
        return [
            e for e in self.events
            if (group is None or e['group'] == group)
            and (event_type is None or e['event'] == event_type)
        ]

    def clear(self):
        with self._lock:
            self.events.clear()


_sinks: Dict[str, EventSink] = {}
_sinks_lock = threading.Lock()


def get_event_sink() -> EventSink:
    """
    Return the sink configured in MARKETPLACE['EVENT_SINK'], one instance per
    dotted path for the life of the process.
    """
    path = marketplace_settings.event_sink_path
    with _sinks_lock:
        if path not in _sinks:
            _sinks[path] = import_string(path)()
        return _sinks[path]
