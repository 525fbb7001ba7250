from __future__ import annotations

from django.contrib import admin

from roster.domain.assignments import assignment_stats, normalize_assignments, staffing_state
from roster.domain.models import (
    AuditEvent,
    EventType,
    Ministry,
    MinistryMembership,
    Organization,
    Preacher,
    Service,
    Unavailability,
    Volunteer,
)
from roster.services.calendar import service_display_title

# =========================
# Filtros utilitários
# =========================

class ServiceMonthFilter(admin.SimpleListFilter):
    title = "Mês/Ano"
    parameter_name = "ym"

    def lookups(self, request, model_admin):
        pairs = (
            Service.objects
            .values_list("date__year", "date__month")
            .distinct()
            .order_by("date__year", "date__month")
        )
        return [(f"{y}-{m}", f"{m:02d}/{y}") for (y, m) in pairs]

    def queryset(self, request, qs):
        val = self.value()
        if not val:
            return qs
        y, m = val.split("-")
        return qs.filter(date__year=int(y), date__month=int(m))

# =========================
# Inlines
# =========================

class MembershipInline(admin.TabularInline):
    model = MinistryMembership
    extra = 0
    fields = ("ministry", "is_leader")
    autocomplete_fields = ("ministry",)

class UnavailabilityInline(admin.TabularInline):
    model = Unavailability
    extra = 0
    fields = ("start_date", "end_date", "reason")
    classes = ("collapse",)

# =========================
# Organização / ministérios
# =========================

@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)

@admin.register(Ministry)
class MinistryAdmin(admin.ModelAdmin):
    list_display = ("name", "organization")
    list_filter = ("organization",)
    search_fields = ("name",)

@admin.register(EventType)
class EventTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "organization", "color")
    list_filter = ("organization",)
    search_fields = ("name",)

# =========================
# Volunteer
# =========================

@admin.register(Volunteer)
class VolunteerAdmin(admin.ModelAdmin):
    list_display = ("name", "organization", "access_level", "can_manage_preaching_schedule", "email", "whatsapp")
    list_filter = ("organization", "access_level", "can_manage_preaching_schedule")
    search_fields = ("name", "email", "whatsapp")
    ordering = ("name",)
    list_per_page = 50
    inlines = (MembershipInline, UnavailabilityInline)

@admin.register(Unavailability)
class UnavailabilityAdmin(admin.ModelAdmin):
    list_display = ("volunteer", "start_date", "end_date", "reason")
    list_filter = ("organization",)
    search_fields = ("volunteer__name", "reason")
    autocomplete_fields = ("volunteer",)
    date_hierarchy = "start_date"
    list_per_page = 50

@admin.register(Preacher)
class PreacherAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "church", "organization")
    list_filter = ("organization", "type")
    search_fields = ("name", "name_normalized", "church")
    readonly_fields = ("name_normalized",)

# =========================
# Service
# =========================

@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("date", "display_title", "event_type", "organization", "confirmed_count", "total_count", "state")
    list_filter = ("organization", "event_type", ServiceMonthFilter)
    search_fields = ("title", "event_type__name")
    date_hierarchy = "date"
    ordering = ("-date",)
    list_select_related = ("event_type", "organization")
    list_per_page = 50

    def _stats(self, obj: Service):
        return assignment_stats(normalize_assignments(obj.assignments))

    @admin.display(description="Título")
    def display_title(self, obj: Service) -> str:
        return service_display_title(obj)

    @admin.display(description="Confirmados")
    def confirmed_count(self, obj: Service) -> int:
        return self._stats(obj)["confirmed"]

    @admin.display(description="Escalados")
    def total_count(self, obj: Service) -> int:
        return self._stats(obj)["total"]

    @admin.display(description="Situação")
    def state(self, obj: Service) -> str:
        return staffing_state(self._stats(obj))

# =========================
# AuditEvent
# =========================

@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("action", "entity_type", "entity_id", "created_at", "actor")
    list_filter = ("entity_type", "action")
    search_fields = ("entity_type", "entity_id", "actor__name")
    readonly_fields = ("organization", "actor", "action", "entity_type", "entity_id", "metadata", "created_at")
    ordering = ("-created_at",)
    list_per_page = 50
