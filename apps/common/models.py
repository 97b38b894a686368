import uuid

from django.db import models, transaction

from .ordering import compact, next_sort_order


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SortableModel(models.Model):
    """Rows kept in a contiguous 1..n ``sort_order`` inside their parent scope.

    Subclasses name the parent foreign key in ``sort_scope`` (``None`` for
    global lists). New rows and rows moved to another parent are appended at
    the end of their scope, and every write closes the gaps it leaves behind.
    Explicit positions are only honoured relative to the siblings; the reorder
    endpoints in :mod:`apps.common.ordering` are the way to move rows around.
    """

    sort_scope: str | None = None

    sort_order = models.PositiveIntegerField(default=0, db_index=True)

    class Meta:
        abstract = True

    def _scope_filter(self, value) -> dict:
        return {f"{self.sort_scope}_id": value} if self.sort_scope else {}

    def sibling_queryset(self):
        qs = type(self)._default_manager.all()
        if self.sort_scope:
            qs = qs.filter(**self._scope_filter(getattr(self, f"{self.sort_scope}_id")))
        return qs

    def _stored_scope(self):
        """Parent id currently in the database, or ``None`` when unchanged."""
        if self._state.adding or not self.sort_scope:
            return None
        column = f"{self.sort_scope}_id"
        stored = type(self)._default_manager.filter(pk=self.pk).values_list(column, flat=True)
        if not stored:
            return None
        return stored[0] if stored[0] != getattr(self, column) else None

    def save(self, *args, **kwargs):
        with transaction.atomic():
            previous = self._stored_scope()
            if previous is not None or (self._state.adding and not self.sort_order):
                self.sort_order = next_sort_order(self.sibling_queryset().exclude(pk=self.pk))
            super().save(*args, **kwargs)
            if previous is not None:
                compact(type(self)._default_manager.filter(**self._scope_filter(previous)))
            compact(self.sibling_queryset())
        self.refresh_from_db(fields=["sort_order"])

    def delete(self, *args, **kwargs):
        siblings = self.sibling_queryset().exclude(pk=self.pk)
        result = super().delete(*args, **kwargs)
        compact(siblings)
        return result
