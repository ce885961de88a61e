"""
Repository package for data access layers.

Every repository has a protocol class, an in-memory implementation (tests and
local development) and a SQLAlchemy implementation over the async engine.
All of them return the plain dataclasses in `app.repositories.records`.

The backend is chosen with `REPOSITORY_BACKEND` (`sql` or `memory`). A custom
implementation can be provided per repository with a dotted path, e.g.

    SHARE_REPOSITORY_IMPL=myapp.data.shares:CachedShareRepository
"""
