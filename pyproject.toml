[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pipo"
version = "0.1.0"
description = "Sentiment ingestion and processing pipeline built on Redis streams, an HTTP API and SQL storage"
requires-python = ">=3.10"
keywords = ["sentiment", "pipeline", "redis", "streams", "ingestion", "etl", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: Flask",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database",
    "Topic :: Text Processing :: Linguistic",
]
dependencies = [
    "flask>=2.2",
    "redis>=4.5",
    "sqlalchemy>=2.0",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
pipo-ingestor = "pipo.ingestor_cli:main"
pipo-processor = "pipo.processor_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pipo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
