"""HTTP interface: FastAPI app factory, pydantic models and routers."""
