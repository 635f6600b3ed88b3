import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from order_mgt.api.routes import customers, orders, products
from order_mgt.core import config
from order_mgt.core.database import engine
from order_mgt.core.logging import configure_logging
from order_mgt.models.database import Base

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        # The API still starts; requests report storage failures individually
        logger.warning(f"Database creation warning: {e}")
    yield


app = FastAPI(
    title="Order Management Backend",
    description="Customers, products and atomic order placement",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(customers.router, prefix="/api/v1/customers", tags=["customers"])
app.include_router(products.router, prefix="/api/v1/products", tags=["products"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])

@app.get("/")
async def root():
    return {"message": "Order Management Backend API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
