"""API subpackage - FastAPI app and routers."""
