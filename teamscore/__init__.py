"""
Team Scorecard Backend Package.

FastAPI service layer for the team-performance scorecard: ingests activity logs,
incoming calls and outgoing calls per month, and scores individuals, teams,
departments and the whole company on a 1-10 level scale across four metrics
(TCM, CE, TS, RBSL).

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, record store and dependencies
    - models: Pydantic schemas and enums
    - services: Scoring, identity resolution, aggregation, ingestion
    - sql: Parameterized SQL for the PostgreSQL record store
"""

__version__ = "1.0.0"
