# campus_connect/api/api.py
from fastapi import APIRouter

from campus_connect.api.endpoints.admin_appointment_route import router as admin_appointment_router
from campus_connect.api.endpoints.admin_community_route import router as admin_community_router
from campus_connect.api.endpoints.admin_user_route import router as admin_user_router
from campus_connect.api.endpoints.auth_route import router as auth_router
from campus_connect.api.endpoints.availability_route import router as availability_router
from campus_connect.api.endpoints.chat_route import router as chat_router
from campus_connect.api.endpoints.community_route import router as community_router
from campus_connect.api.endpoints.notification_route import router as notification_router
from campus_connect.api.endpoints.staff_route import router as staff_router
from campus_connect.api.endpoints.student_route import router as student_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(student_router, prefix="/student", tags=["Student"])
# Lecturers and administrators share one portal
api_router.include_router(staff_router, prefix="/lecturer", tags=["Lecturer"])
api_router.include_router(staff_router, prefix="/administrator", tags=["Administrator"])
api_router.include_router(admin_appointment_router, prefix="/admin", tags=["Admin: Appointments"])
api_router.include_router(admin_user_router, prefix="/admin", tags=["Admin: Users"])
api_router.include_router(admin_community_router, prefix="/admin", tags=["Admin: Moderation"])
api_router.include_router(notification_router, prefix="/shared/notifications", tags=["Notifications"])
api_router.include_router(availability_router, prefix="/shared/availability", tags=["Availability"])
api_router.include_router(community_router, prefix="/shared", tags=["Community"])
api_router.include_router(chat_router, prefix="/shared", tags=["Chat"])
