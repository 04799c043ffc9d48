"""
Auth Module

Phone registration and the account approval workflow:
1. Registration sends a 6-digit SMS code (5 minute expiry, 3 attempts)
2. Verification creates the account in pending_approval and returns a token
3. Admins approve or reject pending accounts

API Endpoints:
- POST /auth/register
- POST /auth/verify
- GET /auth/pending-approvals (admin)
- POST /auth/approve/{user_id} (admin)
- POST /auth/reject/{user_id} (admin)

Background Jobs (via APScheduler):
- purge_expired_verification_codes: deletes expired codes
"""

from .admin_router import router as admin_router
from .jobs import register_auth_jobs
from .router import router

__all__ = ["router", "admin_router", "register_auth_jobs"]
