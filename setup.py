"""
Setup configuration for the Spyglass search backend
"""

from setuptools import setup, find_packages

setup(
    name="spyglass-backend",
    version="1.0.0",
    description="Meta-search backend with automatic result-card selector discovery",
    author="Spyglass Team",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*", "docs"]),
    py_modules=["main", "update_selectors"],
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "slowapi>=0.1.9",
        "httpx>=0.26",
        "beautifulsoup4>=4.12",
        "lxml>=5.0",
        "soupsieve>=2.5",
        "rapidfuzz>=3.6",
        "tenacity>=8.2",
        "cachetools>=5.3",
        "validators>=0.22",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "spyglass-update-selectors=update_selectors:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
