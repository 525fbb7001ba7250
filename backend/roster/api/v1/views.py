from django.core.exceptions import PermissionDenied
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from roster.domain.models import EventType, Organization
from roster.domain.repositories import ProjectionRepository, ServiceRepository, VolunteerRepository
from roster.exceptions import (
    AssignmentNotFound,
    InvalidAssignmentStatus,
    PreacherNotFound,
    RosterError,
    SameDayConflict,
    ServiceNotFound,
    ServiceValidationError,
    SuggestionRequestInvalid,
    VolunteerNotFound,
    VolunteerUnavailable,
)
from roster.services.calendar import create_services, delete_service
from roster.services.conflicts import conflict_preview, find_same_day_conflicts
from roster.services.mutations import AssignmentService
from roster.services.permissions import can_manage, can_manage_preachers, can_manage_services, can_respond
from roster.services.preachers import upsert_preacher
from roster.services.suggestion import SlotRequest, Suggestion, suggest_for_service
from roster.utils import _parse_iso_date

from .filters import ServiceFilter
from .serializers import (
    AddPreacherSerializer,
    AddVolunteerSerializer,
    ApplySuggestionsSerializer,
    AssignmentStatusSerializer,
    ServiceCreateSerializer,
    ServiceSerializer,
    SuggestionRequestSerializer,
)

_NOT_FOUND = (ServiceNotFound, AssignmentNotFound, VolunteerNotFound, PreacherNotFound)
_INVALID = (InvalidAssignmentStatus, SuggestionRequestInvalid, ServiceValidationError)

# ===== Helpers =====

def _caller(request):
    volunteer = VolunteerRepository.for_user(request.user)
    if volunteer is None:
        raise PermissionDenied("Usuário sem perfil de voluntário.")
    return ProjectionRepository.caller_context(volunteer)

def _require(allowed: bool, message: str = "Permissão insuficiente.") -> None:
    if not allowed:
        raise PermissionDenied(message)

def _error_response(exc: RosterError) -> Response:
    if isinstance(exc, _NOT_FOUND):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, _INVALID):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, VolunteerUnavailable):
        return Response({
            "detail": str(exc),
            "unavailability": {
                "volunteerId": str(exc.volunteer_id),
                "startDate": exc.start_date.isoformat(),
                "endDate": exc.end_date.isoformat(),
                "reason": exc.reason,
            },
        }, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, SameDayConflict):
        return Response({
            "detail": str(exc),
            "conflicts": conflict_preview(exc.as_conflicts()),
        }, status=status.HTTP_409_CONFLICT)
    raise exc

def _assignments_response(normalized, http_status=status.HTTP_200_OK, **extra) -> Response:
    return Response({"assignments": normalized.to_payload(), **extra}, status=http_status)

# ===== Services =====

@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def services(request):
    caller = _caller(request)
    if request.method == "GET":
        qs = ServiceRepository.for_organization(caller.organization_id)
        filterset = ServiceFilter(request.query_params, queryset=qs)
        if not filterset.is_valid():
            return Response({"detail": filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ServiceSerializer(filterset.qs, many=True).data)

    _require(can_manage_services(caller))
    serializer = ServiceCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    event_type = None
    if data.get("eventTypeId"):
        event_type = EventType.objects.filter(
            id=data["eventTypeId"], organization_id=caller.organization_id
        ).first()
        if event_type is None:
            return Response({"detail": "Tipo de evento não encontrado."}, status=status.HTTP_400_BAD_REQUEST)

    organization = Organization.objects.get(id=caller.organization_id)
    try:
        created = create_services(
            organization,
            data["date"],
            title=data.get("title"),
            event_type=event_type,
            recurrence=data["recurrence"],
            end=data.get("endDate"),
            caller=caller,
        )
    except RosterError as exc:
        return _error_response(exc)
    return Response(ServiceSerializer(created, many=True).data, status=status.HTTP_201_CREATED)

@api_view(["GET", "DELETE"])
@permission_classes([IsAuthenticated])
def service_detail(request, service_id):
    caller = _caller(request)
    if request.method == "DELETE":
        try:
            delete_service(service_id, caller)
        except RosterError as exc:
            return _error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    service = ServiceRepository.get(service_id, caller.organization_id)
    if service is None:
        return _error_response(ServiceNotFound(service_id))
    target = ProjectionRepository.service_snapshot(service)
    same_day = ProjectionRepository.day_snapshots(caller.organization_id, service.date)
    data = ServiceSerializer(service).data
    data["conflicts"] = conflict_preview(find_same_day_conflicts(target, same_day))
    return Response(data)

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def service_conflicts(request, service_id):
    caller = _caller(request)
    service = ServiceRepository.get(service_id, caller.organization_id)
    if service is None:
        return _error_response(ServiceNotFound(service_id))
    target = ProjectionRepository.service_snapshot(service)
    conflicts = find_same_day_conflicts(
        target, ProjectionRepository.day_snapshots(caller.organization_id, service.date)
    )
    return Response({
        "serviceId": target.id,
        "conflicts": {vid: sorted(titles) for vid, titles in conflicts.items()},
    })

# ===== Sugestões =====

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def service_suggestions(request, service_id):
    caller = _caller(request)
    _require(can_manage_services(caller))
    serializer = SuggestionRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    requests_ = [
        SlotRequest(ministry_id=str(r["ministryId"]), slots=r["slots"])
        for r in serializer.validated_data["requests"]
    ]
    try:
        suggestions = suggest_for_service(service_id, requests_, caller)
    except RosterError as exc:
        return _error_response(exc)
    return Response({"suggestions": [s.to_dict() for s in suggestions]})

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def service_suggestions_apply(request, service_id):
    caller = _caller(request)
    _require(can_manage_services(caller))
    serializer = ApplySuggestionsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    suggestions = []
    for item in serializer.validated_data["suggestions"]:
        ministry_id = str(item["ministryId"])
        _require(can_manage(caller, ministry_id), "Você não lidera este ministério.")
        ids = [str(v) for v in item["suggestedVolunteerIds"]]
        suggestions.append(Suggestion(
            ministry_id=ministry_id,
            ministry_name="",
            requested_slots=len(ids),
            suggested_volunteer_ids=ids,
        ))
    try:
        normalized, added = AssignmentService.apply_suggestions(service_id, suggestions, caller=caller)
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized, added=added)

# ===== Voluntários =====

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def service_volunteers(request, service_id):
    caller = _caller(request)
    _require(can_manage_services(caller))
    serializer = AddVolunteerSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        normalized = AssignmentService.add_volunteer(
            service_id, data["volunteerId"], caller=caller, force=data["force"]
        )
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized, status.HTTP_201_CREATED)

@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def service_volunteer_detail(request, service_id, volunteer_id):
    caller = _caller(request)
    _require(can_manage_services(caller))
    try:
        normalized = AssignmentService.remove_volunteer(service_id, volunteer_id, caller=caller)
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized)

@api_view(["PATCH"])
@permission_classes([IsAuthenticated])
def service_volunteer_status(request, service_id, volunteer_id):
    caller = _caller(request)
    _require(can_respond(caller, str(volunteer_id)), "Você só pode responder pela sua própria escala.")
    serializer = AssignmentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        normalized = AssignmentService.update_status(
            service_id, volunteer_id, data["status"], note=data.get("note"), caller=caller
        )
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized)

# ===== Pregadores =====

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def service_preachers(request, service_id):
    caller = _caller(request)
    _require(can_manage_preachers(caller))
    serializer = AddPreacherSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({"detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        preacher_id = data.get("preacherId")
        if preacher_id is None:
            organization = Organization.objects.get(id=caller.organization_id)
            preacher, _ = upsert_preacher(
                organization, data["name"], data["type"], data.get("church"), data.get("notes")
            )
            preacher_id = preacher.id
        normalized = AssignmentService.add_preacher(service_id, preacher_id, caller=caller)
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized, status.HTTP_201_CREATED)

@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def service_preacher_detail(request, service_id, preacher_id):
    caller = _caller(request)
    _require(can_manage_preachers(caller))
    try:
        normalized = AssignmentService.remove_preacher(service_id, preacher_id, caller=caller)
    except RosterError as exc:
        return _error_response(exc)
    return _assignments_response(normalized)

# ===== Minha escala =====

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def my_schedules(request):
    caller = _caller(request)
    raw_start = request.query_params.get("start")
    start = _parse_iso_date(raw_start) if raw_start else timezone.localdate()
    if start is None:
        return Response(
            {"detail": "Parâmetro 'start' deve estar no formato YYYY-MM-DD."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    services_ = ServiceRepository.for_volunteer(caller.volunteer_id, caller.organization_id, start=start)
    data = ServiceSerializer(services_, many=True).data
    for item, service in zip(data, services_):
        snap = ProjectionRepository.service_snapshot(service)
        item["myStatus"] = snap.status_of(caller.volunteer_id)
    return Response(data)
