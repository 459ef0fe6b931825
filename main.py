"""
System Metrics API Server

Aggregates operating system and Python runtime metrics and serves their live
status over HTTP.

Environment Variables:
    SYSMETRICS_ENABLE_SYSTEM_METRICS: Start the system metric set (default: true)
    SYSMETRICS_IO_WAIT_INTERVAL: Seconds between I/O wait samples (default: 5)
    SYSMETRICS_NIC_INTERVAL: Seconds between network interface samples (default: 10)
    LOG_LEVEL: Root log level (default: INFO)
    LOG_FILE: Optional rotating log file path
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8005)
    DEBUG: Enable debug mode with auto-reload (default: false)

Usage:
    python main.py

    # Serve without system metrics
    SYSMETRICS_ENABLE_SYSTEM_METRICS=false python main.py
"""

import uvicorn

from sysmetrics.core.config import settings

if __name__ == "__main__":
    port = settings.PORT
    host = settings.HOST

    print(f"Starting {settings.PROJECT_NAME} on {host}:{port}")
    print(f"System metrics: {'enabled' if settings.ENABLE_SYSTEM_METRICS else 'disabled'}")

    # If reload is enabled, restrict watch scope to backend code only.
    reload_enabled = bool(settings.DEBUG)
    reload_dirs = None
    if reload_enabled:
        from pathlib import Path

        repo_root = Path(__file__).resolve().parent
        reload_dirs = [str(repo_root / "sysmetrics")]

    uvicorn.run(
        "sysmetrics.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
        reload_dirs=reload_dirs,
    )
