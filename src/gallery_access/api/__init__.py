"""HTTP API — FastAPI application, middleware and routers."""
