"""
Response envelope for the dashboard API

Every endpoint answers with the same shape so the browser client can branch on
`status` without knowing which route it called.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ApiResponse:
    """Standardized API response model"""

    status: str
    message: str
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response"""
        result = {"status": self.status, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        if self.errors is not None:
            result["errors"] = self.errors
        return result

    @classmethod
    def success(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "ApiResponse":
        """Create success response (200 OK)"""
        return cls(status="success", message=message, data=data)

    @classmethod
    def error(cls, message: str, errors: Optional[List[str]] = None) -> "ApiResponse":
        """Create error response (4xx/5xx status codes)"""
        return cls(status="error", message=message, errors=errors)

    @classmethod
    def partial(
        cls, message: str, data: Optional[Dict[str, Any]] = None, errors: Optional[List[str]] = None
    ) -> "ApiResponse":
        """Create partial success response (some operations succeeded, some failed)"""
        return cls(status="partial", message=message, data=data, errors=errors)

    @classmethod
    def health_check(
        cls, service_name: str, version: str, status: str = "healthy", message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> "ApiResponse":
        """Create standardized health check response"""
        health_data = {"service": service_name, "version": version, "status": status, **(data or {})}
        return cls(status="success", message=message or "Service is healthy", data=health_data)
