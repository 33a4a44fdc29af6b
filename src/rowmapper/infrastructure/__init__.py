from rowmapper.infrastructure.connection import Connection, PsycopgConnection

__all__ = ["Connection", "PsycopgConnection"]
