"""
Health Check Service

Reports store and notification gateway health together with basic
system metrics.
"""

import os
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from opentelemetry import trace

from .. import __version__
from .mongodb import MongoDBService
from .notifier import NotificationGateway

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for system health monitoring."""

    def __init__(self, mongodb_service: MongoDBService, notification_gateway: NotificationGateway):
        self.mongodb_service = mongodb_service
        self.notification_gateway = notification_gateway
        self.service_version = __version__

    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including all dependencies and metrics."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()

            mongodb_health = self._check_mongodb_health()
            notifier_health = self._check_notifier_health()

            overall_status = self._determine_overall_status(
                mongodb_health["status"], notifier_health["status"]
            )

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": "civic-issue-api",
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health,
                    "notifier": notifier_health
                },
                "system_metrics": self._get_system_metrics()
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.mongodb_status": mongodb_health["status"],
                "health.notifier_status": notifier_health["status"]
            })

            return health_data

    def _check_mongodb_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.mongodb_check") as span:
            start_time = time.time()
            health_info = dict(self.mongodb_service.health_check())
            health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            health_info["last_check"] = datetime.utcnow().isoformat() + "Z"
            span.set_attribute("mongodb.status", health_info.get("status", "unknown"))
            return health_info

    def _check_notifier_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.notifier_check") as span:
            health_info = dict(self.notification_gateway.health_check())
            health_info["last_check"] = datetime.utcnow().isoformat() + "Z"
            span.set_attribute("notifier.status", health_info.get("status", "unknown"))
            return health_info

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic system performance metrics."""
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage('/')

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory": {
                    "used_mb": round(memory.used / 1024 / 1024, 2),
                    "total_mb": round(memory.total / 1024 / 1024, 2),
                    "percent": memory.percent
                },
                "disk": {
                    "used_gb": round(disk.used / 1024 / 1024 / 1024, 2),
                    "total_gb": round(disk.total / 1024 / 1024 / 1024, 2),
                    "percent": round((disk.used / disk.total) * 100, 2)
                },
                "load_average": list(os.getloadavg()) if hasattr(os, 'getloadavg') else None
            }
        except (psutil.Error, OSError) as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }

    def _determine_overall_status(self, mongodb_status: str, notifier_status: str) -> str:
        """The store is required; the notifier only degrades the service."""
        if mongodb_status != "healthy":
            return "unhealthy"
        if notifier_status != "healthy":
            return "degraded"
        return "healthy"
