import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from config import settings
from core.address_pool import AddressPoolRegistry, load_registry
from core.device_manager import DeviceManager
from core.ipam import IPAMService
from core.project_manager import ProjectManager
from database import session
from api.v1.projects import router as projects_router
from api.v1.devices import router as devices_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    session.init_db()
    logger.info(f"{settings.APP_NAME} started, {len(app.state.ipam.registry)} IP pools loaded")
    yield


def create_app(registry: Optional[AddressPoolRegistry] = None) -> FastAPI:
    # 1. Bảng IP pool được tạo một lần và truyền vào các service
    if registry is None:
        registry = load_registry(settings.ADDRESS_POOL_FILE)

    ipam = IPAMService(registry)
    project_manager = ProjectManager(ipam)

    # 2. Khởi tạo FastAPI App
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.ipam = ipam
    app.state.project_manager = project_manager
    app.state.device_manager = DeviceManager(ipam, project_manager)

    # 3. Gắn Router vào App
    app.include_router(projects_router, prefix=settings.API_PREFIX, tags=["projects"])
    app.include_router(devices_router, prefix=settings.API_PREFIX, tags=["devices"])

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": "avnet-backend"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=True)
