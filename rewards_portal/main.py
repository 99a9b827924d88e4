from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rewards_portal.config import get_settings
from rewards_portal.db import engine, Base
from rewards_portal.errors import PortalError
from rewards_portal.logging_config import configure_logging

from rewards_portal.models.portal_user import PortalUser
from rewards_portal.models.location import Location
from rewards_portal.models.user_location import UserLocation
from rewards_portal.models.customer import Customer
from rewards_portal.models.enrollment import Enrollment
from rewards_portal.models.reward_item import RewardItem
from rewards_portal.models.purchase_log import PurchaseLog
from rewards_portal.models.redemption_intent import RedemptionIntent
from rewards_portal.models.invite import Invite

from rewards_portal.routes.locations import router as locations_router
from rewards_portal.routes.rewards import router as rewards_router
from rewards_portal.routes.clients import router as clients_router
from rewards_portal.routes.points import router as points_router
from rewards_portal.routes.customer import router as customer_router
from rewards_portal.routes.staff import router as staff_router
from rewards_portal.routes.admin import router as admin_router
from rewards_portal.routes.invites import router as invites_router

configure_logging()

app = FastAPI(title="Rewards Portal")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortalError)
def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(locations_router)
app.include_router(rewards_router)
app.include_router(clients_router)
app.include_router(points_router)
app.include_router(customer_router)
app.include_router(staff_router)
app.include_router(admin_router)
app.include_router(invites_router)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001, reload=True)
