import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from barberai.api.v1.conversations import router as conversations_router
from barberai.core.config import settings
from barberai.wiring.dependencies import get_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("conversation_id", "phase", "language", "channel", "appointment_id", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.dependency_overrides.get(get_container, get_container)()
    container.reminders.rearm_pending()
    yield
    container.reminders.shutdown()


app = FastAPI(title="BarberAI Booking Assistant", version="1.0.0", lifespan=lifespan)

app.include_router(conversations_router, prefix="/api/v1", tags=["conversations"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
