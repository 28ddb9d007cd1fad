# ================================================================
# HSMS - Safety Management Backend
# VPC report generation service
# ================================================================

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from hsms.vpc_reports import register_vpc_report_routes
from hsms.vpc_reports.config import get_config, get_local_now

# ================================================================
# LOGGING
# ================================================================

logging.basicConfig(
    level=str(get_config("log_level", "INFO")).upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("hsms")

# ================================================================
# FASTAPI APP
# ================================================================

app = FastAPI(title="HSMS VPC Reports")

# Creates the report tables on import so the routers are usable at once
register_vpc_report_routes(app)


@app.on_event("startup")
async def _startup():
    log.info("HSMS report service started (db=%s)", get_config("db_path"))


@app.get("/api/health")
async def api_health():
    return JSONResponse({"ok": True, "service": "vpc-reports", "time": get_local_now().isoformat()})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000)
