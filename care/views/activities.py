from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffOrAdmin
from ..serializers.activity import ActivityListQuerySerializer
from ..services.audit import list_activities


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffOrAdmin])
def activities(request):
    """Activity log, newest first.  Staff only see their own hospital."""
    q = ActivityListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    page = vd.pop('page', 1)
    page_size = vd.pop('page_size', 20)
    data, total = list_activities(request.user, page=page, page_size=page_size, **vd)
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})
