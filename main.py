# src/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from auth.routes import router as auth_router
from admin.routes import router as admin_router
from content.routes import category_router, package_router, tryout_router, session_router
from question.routes import router as question_router, assignment_router
from subscription.routes import type_router as subscription_type_router, router as user_subscription_router
from payment.routes import router as transaction_router
from dashboard.routes import router as dashboard_router
from auth.services import AuthService
from config import settings
from database import SessionLocal
from logging_config import configure_logging
from scheduler.tasks import start_scheduler

configure_logging()

app = FastAPI(
    title="Tryout Admin Backend",
    description="Back-office API for the tryout platform: content, subscriptions, transactions and admins",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers; auth first so /admin/login and /admin/session win over /admin/{admin_id}
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(category_router)
app.include_router(package_router)
app.include_router(tryout_router)
app.include_router(assignment_router)
app.include_router(session_router)
app.include_router(question_router)
app.include_router(subscription_type_router)
app.include_router(user_subscription_router)
app.include_router(transaction_router)
app.include_router(dashboard_router)

@app.on_event("startup")
def startup_event():
    """Run initial tasks on startup."""
    db = SessionLocal()
    try:
        AuthService.ensure_bootstrap_admin(db)
    finally:
        db.close()
    start_scheduler()

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Tryout Admin Backend"}
