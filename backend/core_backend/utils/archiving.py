"""
Soft delete (archiving) infrastructure for the marketplace catalogue.

Archived rows stay in the database so historical orders keep pointing at the
meal they were placed for.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def archived(self):
        return self.filter(is_active=False)

    def archive(self, archived_by=None):
        """Archive (soft delete) all records in this queryset."""
        update_fields = {
            'is_active': False,
            'archived_at': timezone.now(),
        }
        if archived_by:
            update_fields['archived_by'] = archived_by
        return self.update(**update_fields)

    def unarchive(self):
        return self.update(is_active=True, archived_at=None, archived_by=None)


class SoftDeleteManager(models.Manager):
    """
    Manager that filters out archived records by default.
    """

    def get_queryset(self):
        return SoftDeleteQuerySet(self.model, using=self._db).active()

    def with_archived(self):
        return SoftDeleteQuerySet(self.model, using=self._db)

    def archived_only(self):
        return SoftDeleteQuerySet(self.model, using=self._db).archived()


class SoftDeleteMixin(models.Model):
    """
    Abstract base class that provides soft delete functionality.

    - `is_active` marks a record as archived when False
    - `archived_at` / `archived_by` record when and by whom
    - `objects` hides archived rows, `all_objects` sees everything
    - delete() archives; force_delete() removes the row
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive records are considered archived/soft-deleted.",
    )
    archived_at = models.DateTimeField(null=True, blank=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(app_label)s_%(class)s_archived",
    )

    objects = SoftDeleteManager()
    all_objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    def archive(self, archived_by=None):
        self.is_active = False
        self.archived_at = timezone.now()
        if archived_by is not None and getattr(archived_by, 'is_authenticated', False):
            self.archived_by = archived_by
        self.save(update_fields=['is_active', 'archived_at', 'archived_by'])

    def unarchive(self):
        self.is_active = True
        self.archived_at = None
        self.archived_by = None
        self.save(update_fields=['is_active', 'archived_at', 'archived_by'])

    @property
    def is_archived(self):
        return not self.is_active

    def delete(self, using=None, keep_parents=False):
        self.archive()

    def force_delete(self, using=None, keep_parents=False):
        return super().delete(using=using, keep_parents=keep_parents)
