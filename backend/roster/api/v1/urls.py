from django.urls import path

from .views import (
    my_schedules,
    service_conflicts,
    service_detail,
    service_preacher_detail,
    service_preachers,
    service_suggestions,
    service_suggestions_apply,
    service_volunteer_detail,
    service_volunteer_status,
    service_volunteers,
    services,
)

urlpatterns = [
    path("services/", services, name="api_services"),
    path("services/<uuid:service_id>/", service_detail, name="api_service_detail"),
    path("services/<uuid:service_id>/conflicts/", service_conflicts, name="api_service_conflicts"),
    path("services/<uuid:service_id>/suggestions/", service_suggestions, name="api_service_suggestions"),
    path("services/<uuid:service_id>/suggestions/apply/", service_suggestions_apply, name="api_service_suggestions_apply"),
    path("services/<uuid:service_id>/volunteers/", service_volunteers, name="api_service_volunteers"),
    path("services/<uuid:service_id>/volunteers/<uuid:volunteer_id>/", service_volunteer_detail, name="api_service_volunteer_detail"),
    path("services/<uuid:service_id>/volunteers/<uuid:volunteer_id>/status/", service_volunteer_status, name="api_service_volunteer_status"),
    path("services/<uuid:service_id>/preachers/", service_preachers, name="api_service_preachers"),
    path("services/<uuid:service_id>/preachers/<uuid:preacher_id>/", service_preacher_detail, name="api_service_preacher_detail"),
    path("me/schedules/", my_schedules, name="api_my_schedules"),
]
