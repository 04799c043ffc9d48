from fastapi import APIRouter

from alumni.modules.auth import admin_router as auth_admin_router
from alumni.modules.auth import router as auth_router
from alumni.modules.classrooms import router as classrooms_router
from alumni.modules.classrooms import user_classrooms_router
from alumni.modules.users import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(auth_admin_router, prefix="/auth", tags=["Admin - Approvals"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(user_classrooms_router, prefix="/users", tags=["Classrooms"])

api_router.include_router(classrooms_router, prefix="/classrooms", tags=["Classrooms"])
