"""
Core backend base components.

Foundational viewsets, serializers, mixins and filter sets shared by the
marketplace apps so list endpoints page, filter and archive the same way.
"""

from .viewsets import BaseViewSet, ReadOnlyBaseViewSet
from .serializers import BaseModelSerializer, FieldsetMixin
from .mixins import OptimizedQuerysetMixin, ArchivingViewSetMixin
from .filters import BaseFilterSet, FlexibleDateTimeFilter

__all__ = [
    # ViewSets
    'BaseViewSet',
    'ReadOnlyBaseViewSet',

    # Serializers
    'BaseModelSerializer',
    'FieldsetMixin',

    # Mixins
    'OptimizedQuerysetMixin',
    'ArchivingViewSetMixin',

    # Filters
    'BaseFilterSet',
    'FlexibleDateTimeFilter',
]
