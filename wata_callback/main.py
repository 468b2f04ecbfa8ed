# wata_callback/main.py

from fastapi import FastAPI
from dotenv import load_dotenv

# ---------------------------------------------
# LOAD ENVIRONMENT VARIABLES
# ---------------------------------------------
load_dotenv()

from .config import settings
from .middleware import request_context_middleware
from .routers import health, payments, webhooks

# ---------------------------------------------
# APP INIT
# ---------------------------------------------
app = FastAPI(
    title="Wata Callback API",
    version=settings.APP_VERSION,
)

app.middleware("http")(request_context_middleware)

# ---------------------------------------------
# ROUTERS
# ---------------------------------------------

# Health
app.include_router(health.router, prefix="/health", tags=["Health"])

# Payments
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])

# Webhooks
app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Payment Webhooks"])


# ---------------------------------------------
# ROOT ENDPOINT
# ---------------------------------------------
@app.get("/")
def root():
    return {"service": settings.APP_NAME, "version": settings.APP_VERSION}


def run():
    import uvicorn

    uvicorn.run(
        "wata_callback.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )


if __name__ == "__main__":
    run()
