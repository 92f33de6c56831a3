#!/usr/bin/env python3
"""
Setup script for the sheet-mirror service

Installs the packages under backend/ (shared, data_connector, dashboard)
as namespace packages.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="sheet-mirror",
    version="1.0.0",
    description="Google Sheets record mirror with search, filters and status insights",
    package_dir={"": "backend"},
    packages=find_namespace_packages(
        where="backend", include=["shared*", "data_connector*", "dashboard*"]
    ),
    python_requires=">=3.10",
    install_requires=[
        # 🚀 Web Framework
        "fastapi>=0.104.1",
        "uvicorn[standard]>=0.24.0",
        "httpx>=0.25.2",

        # 📋 Data Validation & Settings
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dotenv>=1.0.0",

        # 🔗 Google APIs
        "google-auth>=2.27.0",
        "requests>=2.31.0",  # google.auth.transport.requests
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sheet-mirror=dashboard.main:main",
        ],
    },
)
