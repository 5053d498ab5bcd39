from rest_framework.viewsets import ViewSetMixin
from django.db.models import Prefetch


class OptimizedQuerysetMixin(ViewSetMixin):
    """
    A ViewSet mixin that optimizes the queryset using the
    `select_related_fields` and `prefetch_related_fields` attributes declared
    on the current action's serializer Meta.
    """

    def _get_optimizations(self, serializer_class):
        select_related = []
        prefetch_related = []

        meta = getattr(serializer_class, "Meta", None)
        if meta is None:
            return select_related, prefetch_related

        for field in getattr(meta, "select_related_fields", []):
            if field not in select_related:
                select_related.append(field)

        for field in getattr(meta, "prefetch_related_fields", []):
            # Prefetch objects are passed through untouched
            if isinstance(field, Prefetch) or field not in prefetch_related:
                prefetch_related.append(field)

        return select_related, prefetch_related

    def get_queryset(self):
        queryset = super().get_queryset()

        try:
            serializer_class = self.get_serializer_class()
        except (AttributeError, AssertionError):
            return queryset

        select_related, prefetch_related = self._get_optimizations(serializer_class)

        if select_related:
            queryset = queryset.select_related(*select_related)

        if prefetch_related:
            queryset = queryset.prefetch_related(*prefetch_related)

        return queryset


class ArchivingViewSetMixin(ViewSetMixin):
    """
    A ViewSet mixin for models using SoftDeleteMixin.

    - Archived records are hidden by default (SoftDeleteManager)
    - ?include_archived=true includes them, ?include_archived=only shows only them
    - DELETE archives the record instead of removing the row
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        manager = queryset.model._default_manager

        if not hasattr(manager, 'with_archived'):
            return queryset

        include_archived = self.request.query_params.get('include_archived', '').lower()

        if include_archived in ['true', '1', 'yes']:
            queryset = manager.with_archived()
        elif include_archived == 'only':
            queryset = manager.archived_only()

        return queryset

    def perform_destroy(self, instance):
        if hasattr(instance, 'archive'):
            instance.archive(archived_by=self.request.user)
        else:
            instance.delete()
