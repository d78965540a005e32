[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blogapi"
version = "0.1.0"
description = "A small JSON blog service with users, groups, tagged posts and paginated listings"
requires-python = ">=3.10"
keywords = ["blog", "rest", "json", "flask", "sqlalchemy", "pagination"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
]
dependencies = [
    "flask>=2.2",
    "sqlalchemy>=2.0",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
blogapi = "blogapi.app:main"

[tool.hatch.build.targets.wheel]
packages = ["blogapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
