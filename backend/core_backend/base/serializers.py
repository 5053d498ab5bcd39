from rest_framework import serializers


class BaseModelSerializer(serializers.ModelSerializer):
    """
    Base serializer for the marketplace models.

    Subclasses declare `select_related_fields` / `prefetch_related_fields` on
    their Meta; OptimizedQuerysetMixin picks them up in the viewset.
    """

    class Meta:
        select_related_fields = []
        prefetch_related_fields = []


class FieldsetMixin:
    """
    Mixin that enables view modes through serializer context:
    - Fieldsets (view modes: list, detail)

    Usage:
        class MealSerializer(FieldsetMixin, BaseModelSerializer):
            class Meta:
                model = Meal
                fields = '__all__'
                fieldsets = {
                    'list': ['id', 'name', 'price', 'category'],
                }
                required_fields = {'id'}
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_fieldset_filtering()

    def _restrict_to(self, allowed):
        required_fields = getattr(self.Meta, 'required_fields', {'id'})
        allowed = set(allowed) | set(required_fields)
        for field_name in set(self.fields.keys()) - allowed:
            self.fields.pop(field_name)

    def _apply_fieldset_filtering(self):
        view_mode = self.context.get('view_mode')
        fieldsets = getattr(self.Meta, 'fieldsets', {})

        if view_mode and view_mode in fieldsets:
            if fieldsets[view_mode] == '__all__':
                return
            self._restrict_to(fieldsets[view_mode])
