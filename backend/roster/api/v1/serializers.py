from rest_framework import serializers

from roster.domain.assignments import AssignmentStatus, assignment_stats, normalize_assignments, staffing_state
from roster.domain.models import PreacherType, Service
from roster.services.calendar import RECURRENCE_KINDS, RECURRENCE_NONE, service_display_title

# ===== Saída =====

class ServiceSerializer(serializers.ModelSerializer):
    eventTypeId = serializers.UUIDField(source="event_type_id", read_only=True, allow_null=True)
    displayTitle = serializers.SerializerMethodField()
    assignments = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()
    state = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = ["id", "date", "title", "eventTypeId", "displayTitle", "assignments", "stats", "state"]
        read_only_fields = ("id", "date", "title")

    def get_displayTitle(self, obj: Service) -> str:
        return service_display_title(obj)

    def get_assignments(self, obj: Service):
        return normalize_assignments(obj.assignments).to_payload()

    def get_stats(self, obj: Service):
        return assignment_stats(normalize_assignments(obj.assignments))

    def get_state(self, obj: Service) -> str:
        return staffing_state(self.get_stats(obj))

# ===== Entrada =====

class ServiceCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    title = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=160)
    eventTypeId = serializers.UUIDField(required=False, allow_null=True)
    recurrence = serializers.ChoiceField(choices=RECURRENCE_KINDS, default=RECURRENCE_NONE)
    endDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if not (attrs.get("title") or "").strip() and not attrs.get("eventTypeId"):
            raise serializers.ValidationError("Informe um tipo ou nome para a escala.")
        if attrs.get("recurrence") != RECURRENCE_NONE and not attrs.get("endDate"):
            raise serializers.ValidationError({"endDate": "Obrigatório para escalas recorrentes."})
        return attrs

class SlotRequestSerializer(serializers.Serializer):
    ministryId = serializers.UUIDField()
    slots = serializers.IntegerField()

class SuggestionRequestSerializer(serializers.Serializer):
    requests = SlotRequestSerializer(many=True, allow_empty=False)

class SuggestionInputSerializer(serializers.Serializer):
    ministryId = serializers.UUIDField()
    suggestedVolunteerIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)

class ApplySuggestionsSerializer(serializers.Serializer):
    suggestions = SuggestionInputSerializer(many=True, allow_empty=False)

class AddVolunteerSerializer(serializers.Serializer):
    volunteerId = serializers.UUIDField()
    force = serializers.BooleanField(default=False)

class AssignmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AssignmentStatus.values)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=500)

class AddPreacherSerializer(serializers.Serializer):
    """Pregador existente (``preacherId``) ou cadastro rápido por nome."""
    preacherId = serializers.UUIDField(required=False)
    name = serializers.CharField(required=False, max_length=120)
    type = serializers.ChoiceField(choices=PreacherType.values, default=PreacherType.INTERNO)
    church = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=160)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("preacherId") and not (attrs.get("name") or "").strip():
            raise serializers.ValidationError("Informe 'preacherId' ou 'name'.")
        return attrs
